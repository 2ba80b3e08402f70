"""OrderFlow CLI.

Commands:
- init: Initialize database schema
- statuses: Show the status catalog for an entity kind
- transition: Apply an action to an entity
- history: Show an entity's status history
- event-transitions: Start/end events scheduled for a date (cron entry point)
- retry-notifications: Retry FAILED notifications
- web serve: Run the HTTP API
"""

from __future__ import annotations

import asyncio
from datetime import date
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from orderflow.config import get_config
from orderflow.core.logging import configure_logging
from orderflow.db.connection import close_db, get_session, init_db
from orderflow.db.repository import EntityRepository
from orderflow.errors import LifecycleError
from orderflow.lifecycle.actions import available_actions
from orderflow.lifecycle.automation import run_event_transitions
from orderflow.lifecycle.catalog import get_catalog
from orderflow.lifecycle.service import transition
from orderflow.models import Actor, ActorRole, Dimension, EntityKind
from orderflow.notifications.retry import retry_failed_notifications

app = typer.Typer(
    name="orderflow",
    help="OrderFlow - rental order and request lifecycle engine",
    no_args_is_help=True,
)
web_cli = typer.Typer(help="HTTP API")
app.add_typer(web_cli, name="web")

console = Console()


def _run(coro):
    """Run a coroutine and dispose the engine afterwards."""

    async def _wrapped():
        try:
            return await coro
        finally:
            await close_db()

    return asyncio.run(_wrapped())


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    configure_logging(level=log_level)


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")
    if drop:
        console.print("[yellow]Dropping existing tables...[/yellow]")
    _run(init_db(drop=drop))
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command()
def statuses(
    kind: EntityKind = typer.Argument(..., help="ORDER, INBOUND_REQUEST or SERVICE_REQUEST"),
    dimension: Dimension = typer.Option(Dimension.OPERATIONAL, "--dimension", "-d"),
):
    """Show the status catalog for an entity kind."""
    catalog = get_catalog(kind, dimension)

    table = Table(title=f"{kind.value} ({dimension.value})")
    table.add_column("Status", style="cyan")
    table.add_column("Label")
    table.add_column("Next", style="green")
    table.add_column("Terminal", justify="center")

    for status, info in catalog.items():
        marker = " (initial)" if status == catalog.initial else ""
        table.add_row(
            f"{status}{marker}",
            info.label,
            ", ".join(sorted(info.allowed_next)) or "-",
            "✓" if info.is_terminal else "",
        )

    console.print(table)
    console.print(
        "[dim]Actions:[/dim] " + ", ".join(action.value for action in available_actions(kind))
    )


@app.command(name="transition")
def transition_cmd(
    entity_id: UUID = typer.Argument(..., help="Entity UUID"),
    action: str = typer.Argument(..., help="Action name, e.g. CONFIRM"),
    actor_id: str = typer.Option("cli", "--actor", help="Acting user id"),
    role: ActorRole = typer.Option(ActorRole.ADMIN, "--role", help="Acting user role"),
    note: str | None = typer.Option(None, "--note", help="History note"),
):
    """Apply an action to an entity."""
    actor = Actor(id=actor_id, role=role)

    async def _transition():
        async with get_session() as session:
            return await transition(session, entity_id, action.upper(), actor, note=note)

    try:
        entity = _run(_transition())
    except (LifecycleError, ValueError) as exc:
        console.print(f"[bold red]✗[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    commercial = f" / {entity.commercial_status}" if entity.commercial_status else ""
    console.print(
        f"[bold green]✓[/bold green] {entity.code}: {entity.status}{commercial} "
        f"(version {entity.version})"
    )


@app.command()
def history(
    entity_id: UUID = typer.Argument(..., help="Entity UUID"),
):
    """Show an entity's status history."""

    async def _history():
        async with get_session() as session:
            return await EntityRepository(session).get(entity_id)

    try:
        entity = _run(_history())
    except LifecycleError as exc:
        console.print(f"[bold red]✗[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    table = Table(title=f"{entity.code} history")
    table.add_column("#", justify="right")
    table.add_column("Dimension", style="cyan")
    table.add_column("From")
    table.add_column("To", style="green")
    table.add_column("Actor")
    table.add_column("When")
    table.add_column("Note", style="dim")

    for entry in entity.status_history:
        table.add_row(
            str(entry.sequence),
            entry.dimension.value,
            entry.from_status or "-",
            entry.to_status,
            f"{entry.actor_id} ({entry.actor_role.value})",
            entry.timestamp.strftime("%Y-%m-%d %H:%M"),
            entry.note or "",
        )

    console.print(table)


@app.command(name="event-transitions")
def event_transitions(
    run_date: str | None = typer.Option(None, "--date", help="Run date (YYYY-MM-DD, default today)"),
):
    """Start and end events scheduled for a date."""
    today = date.fromisoformat(run_date) if run_date else None

    async def _events():
        async with get_session() as session:
            return await run_event_transitions(session, today=today)

    report = _run(_events())

    table = Table(title=f"Event transitions {report.run_date.isoformat()}")
    table.add_column("Result", style="cyan")
    table.add_column("Count", justify="right", style="green")
    table.add_column("Orders")
    table.add_row("Started", str(len(report.started)), ", ".join(report.started))
    table.add_row("Ended", str(len(report.ended)), ", ".join(report.ended))
    table.add_row("Skipped", str(len(report.skipped)), ", ".join(report.skipped))
    console.print(table)


@app.command(name="retry-notifications")
def retry_notifications(
    limit: int = typer.Option(50, "--limit", help="Maximum rows to retry"),
):
    """Retry FAILED notifications."""

    async def _retry():
        async with get_session() as session:
            return await retry_failed_notifications(session, limit=limit)

    sent, failed = _run(_retry())
    console.print(f"[bold green]✓[/bold green] {sent} sent, [red]{failed} still failing[/red]")


@web_cli.command("serve")
def web_serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8001, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the HTTP API."""
    import uvicorn

    typer.echo(f"Starting OrderFlow API on http://{host}:{port}")
    uvicorn.run("orderflow.web.app:app", host=host, port=port, reload=reload, workers=1)


if __name__ == "__main__":
    app()
