"""
CLI inspection commands — show the merge gates configured for a branch.

Usage:
    magic-mirror required-checks ORG/REPO BRANCH
    magic-mirror owners ORG/REPO BRANCH
"""

from __future__ import annotations

import click

from ..errors import MagicMirrorError
from ..models.pending_pr import Repo


def _parse_repo(value: str) -> Repo:
    try:
        return Repo.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


@click.command("required-checks")
@click.argument("repo")
@click.argument("branch")
@click.pass_context
def required_checks_cmd(ctx: click.Context, repo: str, branch: str) -> None:
    """List the status checks branch protection requires."""
    from ..engine.gates import required_checks
    from .sync import _build_client

    target = _parse_repo(repo)
    with _build_client(ctx.obj["config"]) as client:
        try:
            checks = required_checks(client, target, branch)
        except MagicMirrorError as e:
            raise click.ClickException(str(e)) from e

    if not checks:
        click.echo(f"No required checks on {target}@{branch}")
        return
    for name in sorted(checks):
        click.echo(name)


@click.command()
@click.argument("repo")
@click.argument("branch")
@click.pass_context
def owners(ctx: click.Context, repo: str, branch: str) -> None:
    """List the approvers from the branch's OWNERS file."""
    from ..engine.gates import get_approvers
    from .sync import _build_client

    target = _parse_repo(repo)
    with _build_client(ctx.obj["config"]) as client:
        try:
            approvers = get_approvers(client, target, branch)
        except MagicMirrorError as e:
            raise click.ClickException(str(e)) from e

    if not approvers:
        click.echo(f"No approvers configured on {target}@{branch}")
        return
    for login in approvers:
        click.echo(login)
