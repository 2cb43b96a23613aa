"""
CLI config commands — validate the runtime configuration.

Usage:
    magic-mirror check-config [--json]
"""

from __future__ import annotations

import json

import click


@click.command("check-config")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def check_config(ctx: click.Context, as_json: bool) -> None:
    """Check that the configuration is complete."""
    config = ctx.obj["config"]
    problems = config.validate()

    if as_json:
        click.echo(json.dumps({
            "valid": not problems,
            "problems": problems,
            "config": config.to_safe_dict(),
        }, indent=2))
    else:
        for key, value in config.to_safe_dict().items():
            click.echo(f"  {key}: {value}")
        if problems:
            click.secho("\n✗ Configuration problems:", fg="red", bold=True)
            for problem in problems:
                click.echo(f"  - {problem}")
        else:
            click.secho("\n✓ Configuration OK", fg="green")

    if problems:
        ctx.exit(1)
