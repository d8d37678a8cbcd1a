"""
Standardized error handling and exit codes for the grocersync CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

from enum import IntEnum

from rich.console import Console
from rich.markup import escape

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for grocersync CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Sync failed (offline, server unreachable, server rejected)."""

    USER_ERROR = 2
    """User configuration or input error (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{escape(reason)}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_missing_api_url_error() -> None:
    """Print error when no API base URL is configured."""
    print_error(
        "No sync API configured",
        reason="grocersync needs the platform's API base URL to fetch server state",
        solution="export GROCERSYNC_API_URL=https://api.example.com  # or set api.base_url",
    )


def print_offline_error() -> None:
    """Print error when the device has no connectivity."""
    print_error(
        "No network connectivity",
        reason="The sync API host could not be reached, so nothing was attempted",
        solution="Check your connection and run grocersync sync run again",
    )
