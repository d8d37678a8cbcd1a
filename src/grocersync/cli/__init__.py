"""
grocersync CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from rich.console import Console

from grocersync import __version__
from grocersync.cli import sync
from grocersync.core.config.env import load_layered_env

app = typer.Typer(
    name="grocersync",
    help="Keep cached grocery cart, orders and profile in sync with the server",
    no_args_is_help=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for CLI commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    grocersync - client-side state reconciliation.

    Quick Start:
        export GROCERSYNC_API_URL=https://api.example.com
        export GROCERSYNC_ACCESS_TOKEN=...
        grocersync sync run          # One full sync
        grocersync sync status       # Inspect cached state
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()
    setup_logging(debug)
    ctx.obj = {"debug": debug}


app.add_typer(sync.app, name="sync")


@app.command()
def version() -> None:
    """Show grocersync version and exit."""
    console.print(f"grocersync version {__version__}")


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
