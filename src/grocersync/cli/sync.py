"""
grocersync CLI - Sync commands.

Provides a CLI interface to SyncService for reconciling the locally cached
cart, orders and profile with the server.
"""

import threading
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from grocersync.cli.errors import (
    ExitCode,
    print_error,
    print_missing_api_url_error,
    print_offline_error,
)
from grocersync.core.config import load_config
from grocersync.core.sync import (
    ConfigurationError,
    EntityKind,
    JsonStateStore,
    NetworkUnavailableError,
    SyncError,
    SyncService,
    SyncSummary,
    SyncWorker,
)

console = Console()
app = typer.Typer(
    name="sync",
    help="Reconcile cached cart, orders and profile with the server",
    no_args_is_help=True,
)


def _build_service() -> SyncService:
    return SyncService.from_config(load_config())


def _build_store() -> JsonStateStore:
    config = load_config()
    state_dir = Path(config.state.state_dir)
    if not state_dir.is_absolute():
        state_dir = Path.cwd() / state_dir
    return JsonStateStore(state_dir)


def _load_service() -> SyncService:
    try:
        return _build_service()
    except ValidationError as e:
        print_error("Invalid configuration", reason=str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    except ConfigurationError as e:
        if e.context.get("base_url") is None:
            print_missing_api_url_error()
        else:
            print_error(
                "Invalid API base URL",
                reason=str(e),
                solution="export GROCERSYNC_API_URL=https://api.example.com",
            )
        raise typer.Exit(ExitCode.USER_ERROR)


def _print_summary(summary: SyncSummary) -> None:
    table = Table(title="Sync Summary")
    table.add_column("Entity", style="cyan")
    table.add_column("Synced")
    table.add_column("Action")

    for entity in EntityKind:
        result = summary.result_for(entity)
        if result is None:
            table.add_row(entity.value, "[dim]-[/dim]", "[dim]-[/dim]")
            continue
        synced = "[green]✓[/green]" if result.synced else "[red]✗[/red]"
        action = result.action.value if result.action else "[dim]none[/dim]"
        table.add_row(entity.value, synced, action)

    console.print(table)

    if summary.errors:
        console.print(f"[yellow]⚠[/yellow]  Completed with {len(summary.errors)} errors:")
        for error in summary.errors:
            console.print(f"  - {error}")
    else:
        console.print("[green]✓[/green] All entities in sync")


@app.command()
def run() -> None:
    """
    Run one full sync.

    Fetches the server's state once and reconciles the cart, orders and
    profile independently. Entity failures are reported but don't stop the
    others.

    Examples:
        grocersync sync run
    """
    try:
        with _load_service() as service:
            summary = service.perform_full_sync()
    except NetworkUnavailableError:
        print_offline_error()
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except SyncError as e:
        print_error("Failed to fetch server state", reason=str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    _print_summary(summary)


@app.command()
def watch(
    background: bool = typer.Option(
        False,
        "--background",
        help="Use the background interval instead of the foreground one",
    ),
    interval: float | None = typer.Option(
        None,
        "--interval",
        help="Seconds between syncs (overrides config)",
    ),
    cycles: int | None = typer.Option(
        None,
        "--cycles",
        help="Stop after this many runs",
    ),
) -> None:
    """
    Sync periodically until interrupted.

    Examples:
        grocersync sync watch                 # Every 15s (foreground interval)
        grocersync sync watch --background    # Every 30s
        grocersync sync watch --cycles 3      # Three runs, then exit
    """
    service = _load_service()
    config = load_config()

    if interval is None:
        interval = (
            config.sync.background_interval_seconds
            if background
            else config.sync.foreground_interval_seconds
        )
    if interval <= 0:
        service.close()
        print_error("Interval must be positive", solution="grocersync sync watch --interval 15")
        raise typer.Exit(ExitCode.USER_ERROR)

    stop = threading.Event()
    with service:
        worker = SyncWorker(
            service,
            max_run_attempts=config.sync.max_run_attempts,
            retry_base_delay=config.retry.base_delay,
        )

        console.print(f"[blue]Syncing every {interval:g}s (Ctrl+C to stop)...[/blue]")
        try:
            runs = worker.run_forever(interval, stop, max_cycles=cycles)
        except KeyboardInterrupt:
            stop.set()
            console.print("\n[dim]Stopped[/dim]")
            raise typer.Exit(ExitCode.SIGINT)

    console.print(f"[green]✓[/green] Completed {runs} sync runs")


@app.command()
def status() -> None:
    """
    Show the locally cached snapshots.

    Examples:
        grocersync sync status
    """
    store = _build_store()

    try:
        cart = store.get_cart_state()
        orders = store.get_orders_state()
        profile = store.get_profile_state()
    except SyncError as e:
        print_error("Failed to read local state", reason=str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    table = Table(title="Local State")
    table.add_column("Entity", style="cyan")
    table.add_column("Items")
    table.add_column("Updated")
    table.add_column("Checksum")

    table.add_row("cart", str(len(cart.data)), cart.updated_at, cart.checksum[:8] or "-")
    table.add_row("orders", str(len(orders.data)), orders.updated_at, orders.checksum[:8] or "-")
    if profile is None:
        table.add_row("profile", "[dim]none[/dim]", "-", "-")
    else:
        table.add_row("profile", "1", profile.updated_at, profile.checksum[:8] or "-")

    console.print(table)


@app.command()
def clear(
    entity: EntityKind | None = typer.Option(
        None,
        "--entity",
        "-e",
        help="Clear only this entity",
    ),
) -> None:
    """
    Clear locally cached state.

    The next sync pulls fresh copies from the server.

    Examples:
        grocersync sync clear                 # Clear everything
        grocersync sync clear --entity cart   # Clear only the cart
    """
    store = _build_store()

    try:
        if entity is None:
            store.clear_all_state()
        elif entity is EntityKind.CART:
            store.clear_cart_state()
        elif entity is EntityKind.ORDERS:
            store.clear_orders_state()
        else:
            store.clear_profile_state()
    except SyncError as e:
        print_error("Failed to clear local state", reason=str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    label = entity.value if entity else "all"
    console.print(f"[green]✓[/green] Cleared {label} state")
