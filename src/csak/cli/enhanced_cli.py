#!/usr/bin/env python3
"""
csak - Cardano Swiss Army Knife
Command-line interface with rich terminal UX
"""

from __future__ import annotations

import json
import logging
import sys
import platform

import click
from rich.console import Console
from rich.markup import escape

from csak import __version__
from csak.config import DEFAULT_LOG_LEVEL, LOG_JSON
from csak.logging_config import setup_logging

# Configure module logger
logger = logging.getLogger(__name__)

# Rich console for terminal output
console = Console()

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _cli_fail(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging."""
    logger.debug("CLI error: %s", exc, exc_info=True)
    console.print(f"[bold red]Error:[/] {escape(str(exc))}", highlight=False, soft_wrap=True)
    sys.exit(exit_code)


@click.group()
@click.version_option(__version__, prog_name="csak")
@click.option('--json-output', is_flag=True, help='Output raw JSON')
@click.option(
    '--log-level',
    envvar='CSAK_LOG_LEVEL',
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=DEFAULT_LOG_LEVEL,
    show_default=True,
    help='Diagnostic log level (logs go to stderr)',
)
@click.option('--log-json', is_flag=True, default=LOG_JSON, help='Emit structured JSON log records')
@click.pass_context
def cli(ctx: click.Context, json_output: bool, log_level: str, log_json: bool):
    """
    csak - Cardano Swiss Army Knife

    HD wallet derivation (CIP-1852), Shelley addresses, CIP-30 message
    signing and verification, and assorted encoding helpers.
    """
    ctx.ensure_object(dict)
    setup_logging(level=log_level, json_format=log_json)
    ctx.obj['json_output'] = json_output
    logger.debug("CLI started", extra={"event": "cli.start", "command": ctx.invoked_subcommand})


@cli.command('version')
@click.pass_context
def version(ctx: click.Context):
    """Display version information"""
    info = {
        "name": "Cardano Swiss Army Knife (csak)",
        "version": __version__,
        "python": platform.python_version(),
        "license": "Apache 2.0",
    }
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(info, indent=2))
        return

    click.echo("=" * 80)
    console.print(f"[bold green]{info['name']}[/]")
    click.echo("=" * 80)
    click.echo()
    click.echo(f"Version: {info['version']}")
    click.echo()
    click.echo("Build Information:")
    click.echo(f"  Python: {info['python']}")
    click.echo()
    click.echo(f"License: {info['license']}")
    click.echo()
    click.echo("=" * 80)


from csak.cli.signing_commands import cip30_sign, cip30_verify  # noqa: E402
from csak.cli.util_commands import (  # noqa: E402
    base64_to_string,
    blake2b_hash,
    hex_to_string,
    string_to_base64,
    string_to_hex,
)
from csak.cli.wallet_commands import hd_wallet_generate, hd_wallet_restore, private_to_public_key  # noqa: E402

cli.add_command(hd_wallet_generate)
cli.add_command(hd_wallet_restore)
cli.add_command(private_to_public_key)
cli.add_command(cip30_sign)
cli.add_command(cip30_verify)
cli.add_command(blake2b_hash)
cli.add_command(string_to_hex)
cli.add_command(hex_to_string)
cli.add_command(string_to_base64)
cli.add_command(base64_to_string)


def main():
    """Main CLI entry point"""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/]")
        sys.exit(130)
    except ValueError as exc:
        _cli_fail(exc)


if __name__ == '__main__':
    main()
