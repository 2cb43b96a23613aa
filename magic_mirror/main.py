"""
Magic Mirror — CLI Entry Point

Usage:
    magic-mirror sync [--dry-run]
    magic-mirror status [--json]
    magic-mirror required-checks ORG/REPO BRANCH
    magic-mirror owners ORG/REPO BRANCH
    magic-mirror check-config
"""

from __future__ import annotations

# Load .env file FIRST, before any other imports that might read env vars
from pathlib import Path
from dotenv import load_dotenv

_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

import click

from .cli.config import check_config
from .cli.inspect import owners, required_checks_cmd
from .cli.sync import status, sync
from .config.loader import MagicMirrorConfig
from .errors import ConfigError
from .logging_config import setup_logging


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """Magic Mirror — Mirror upstream pull requests onto a fork."""
    redactor = setup_logging(level=log_level)
    ctx.ensure_object(dict)
    try:
        config = MagicMirrorConfig.from_env()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    redactor.add(config.github_token)
    ctx.obj["config"] = config


cli.add_command(sync)
cli.add_command(status)
cli.add_command(required_checks_cmd)
cli.add_command(owners)
cli.add_command(check_config)


if __name__ == "__main__":
    cli()
