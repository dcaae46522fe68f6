"""CLI commands for dobrobot (admin: tabelas, estatísticas, ranking, reset, notificação manual, API)."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from dobrobot import __logo__, __title__, __version__

app = typer.Typer(
    name="Dobro",
    help=f"{__logo__} {__title__} - view tracking and engagement notifications",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} {__title__} v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """Dobro - view tracking and engagement notifications."""
    pass


def _run(coro_factory):
    """Cria o runtime a partir da config, corre a corrotina e fecha tudo."""
    from dobrobot.config.loader import load_config
    from dobrobot.runtime import create_runtime
    from dobrobot.utils.logging_config import configure_logging

    configure_logging()

    async def _main():
        runtime = await create_runtime(load_config())
        try:
            return await coro_factory(runtime)
        finally:
            await runtime.close()

    return asyncio.run(_main())


# ============================================================================
# Database
# ============================================================================


@app.command("init-db")
def init_db_cmd():
    """Create the tables if they do not exist."""
    async def _noop(runtime):
        return runtime.engine.url.render_as_string(hide_password=True)

    url = _run(_noop)
    console.print(f"[green]✓[/green] Database ready: {url}")


# ============================================================================
# Stats
# ============================================================================


@app.command()
def stats(user_id: int = typer.Argument(..., help="Messenger user id")):
    """Show a user's views, level and last notification."""
    from backend.engagement_levels import level_for

    async def _stats(runtime):
        service = runtime.service
        total = await service.get_user_total_views(user_id)
        items = await service.get_viewed_item_ids(user_id)
        state = await service.states.get(user_id)
        return total, items, state

    total, items, state = _run(_stats)
    level = level_for(total)

    table = Table(title=f"User {user_id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Total views", str(total))
    table.add_row("Distinct cards", str(len(items)))
    table.add_row("Level", level.name)
    table.add_row("To next level", "max" if level.is_max else str(level.views_to_next(total)))
    table.add_row("Last notified total", str(state.last_notified_total))
    table.add_row("Last notification", state.last_notification_at.isoformat() if state.last_notification_at else "-")
    table.add_row("Message ref", state.last_notification_message_ref or "-")
    console.print(table)


@app.command()
def top(limit: int = typer.Option(5, "--limit", "-n", help="How many users")):
    """Top users by total views."""
    async def _top(runtime):
        return await runtime.service.top_viewers(limit)

    ranks = _run(_top)
    if not ranks:
        console.print("No views yet.")
        return
    table = Table(title="Top viewers")
    table.add_column("#", style="dim")
    table.add_column("User")
    table.add_column("Name")
    table.add_column("Views", justify="right")
    for i, r in enumerate(ranks, 1):
        table.add_row(str(i), str(r.user_id), r.name, str(r.total_views))
    console.print(table)


# ============================================================================
# Engagement
# ============================================================================


@app.command()
def reset(user_id: int = typer.Argument(..., help="Messenger user id")):
    """Clear a user's engagement state (as after a dialog restart)."""
    async def _reset(runtime):
        await runtime.service.reset_engagement_state(user_id)

    _run(_reset)
    console.print(f"[green]✓[/green] Engagement state cleared for {user_id}")


@app.command()
def notify(user_id: int = typer.Argument(..., help="Messenger user id")):
    """Send (or edit today's) progress notification now."""
    from backend.errors import NotificationError

    async def _notify(runtime):
        return await runtime.service.notify_engagement(user_id)

    try:
        outcome = _run(_notify)
    except NotificationError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] {outcome.action} (total={outcome.total}, ref={outcome.message_ref or '-'})")


# ============================================================================
# API
# ============================================================================


@app.command()
def serve(
    host: str = typer.Option(None, "--host", help="Bind host (default: gateway.host)"),
    port: int = typer.Option(None, "--port", "-p", help="Bind port (default: gateway.port)"),
):
    """Start the mini app HTTP API."""
    import uvicorn

    from dobrobot.config.loader import load_config

    config = load_config()
    host = host or config.gateway.host
    port = port or config.gateway.port
    console.print(f"{__logo__} Starting {__title__} API on {host}:{port}...")
    uvicorn.run("backend.app:app", host=host, port=port)


if __name__ == "__main__":
    app()
