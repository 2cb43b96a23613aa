"""
CLI sync commands — run a sync cycle and inspect the pending PR store.

Usage:
    magic-mirror sync [--dry-run] [--state-file PATH]
    magic-mirror status [--json] [--all]
"""

from __future__ import annotations

import json
from pathlib import Path

import click


def _build_client(config):
    from ..github.client import GitHubClient

    return GitHubClient(
        token=config.github_token,
        api_url=config.github_api_url,
        timeout=config.timeout_seconds,
    )


@click.command()
@click.option("--state-file", default=None, help="Path to the pending PR store")
@click.option("--audit-file", default=None, help="Path to the audit ledger")
@click.option("--dry-run", is_flag=True, help="Evaluate gates without merging or writing")
@click.pass_context
def sync(ctx: click.Context, state_file: str | None, audit_file: str | None, dry_run: bool) -> None:
    """Evaluate every pending PR once and merge those that are ready."""
    from ..engine.sync import run_sync_cycle
    from ..errors import ConfigError
    from ..persistence.audit import AuditWriter
    from ..persistence.store import JsonFileStore

    config = ctx.obj["config"]
    try:
        config.require_valid()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    store = JsonFileStore(Path(state_file or config.state_file))
    audit_writer = None if dry_run else AuditWriter(Path(audit_file or config.audit_file))

    with _build_client(config) as client:
        result = run_sync_cycle(
            client,
            store,
            require_approval=config.require_approval,
            dry_run=dry_run,
            audit_writer=audit_writer,
        )

    for record in result.records:
        pr = f"#{record.pr_id}" if record.pr_id is not None else "(no PR)"
        click.echo(f"  {record.outcome:8} {record.repo}@{record.branch} {pr} {record.detail or ''}")

    click.echo(
        f"Cycle {result.cycle_id}: merged={result.merged_count} "
        f"blocked={result.blocked_count} errors={len(result.errors)}"
    )

    if result.errors:
        ctx.exit(1)


@click.command()
@click.option("--state-file", default=None, help="Path to the pending PR store")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--all", "show_all", is_flag=True, help="Include merged and blocked records")
@click.pass_context
def status(ctx: click.Context, state_file: str | None, as_json: bool, show_all: bool) -> None:
    """Show records in the pending PR store."""
    from ..persistence.store import JsonFileStore

    config = ctx.obj["config"]
    store = JsonFileStore(Path(state_file or config.state_file))
    records = store.list_records() if show_all else store.list_pending()

    if as_json:
        click.echo(json.dumps([r.model_dump(mode="json") for r in records], indent=2))
        return

    if not records:
        click.echo("No records.")
        return

    for r in records:
        pr = f"#{r.pr_id}" if r.pr_id is not None else "(no PR)"
        line = f"{r.action:8} {r.repo}@{r.branch} {pr} upstream {r.upstream_refs}"
        if r.github_issue is not None:
            line += f" issue #{r.github_issue}"
        click.echo(line)
