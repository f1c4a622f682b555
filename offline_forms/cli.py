"""Offline forms CLI - serve the API and run maintenance from the shell."""

import asyncio
import json
import uuid

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="offline-forms",
    help="Offline form sync service - server, purge and record inspection",
    no_args_is_help=True,
)
console = Console()

forms_app = typer.Typer(help="Inspect stored forms")
app.add_typer(forms_app, name="forms")


def _fmt(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else "-"


@app.command("serve")
def serve(
    port: int = typer.Option(8030, "--port", "-p", help="Port to run on"),
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Launch the offline form API server."""
    import uvicorn

    console.print(f"[bold cyan]Starting Offline Form Sync at http://{host}:{port}[/bold cyan]")
    uvicorn.run("offline_forms.app:app", host=host, port=port, reload=reload)


@app.command("migrate")
def migrate(
    revision: str = typer.Argument("head", help="Target revision"),
):
    """Apply database migrations up to REVISION."""
    from pathlib import Path

    from alembic import command
    from alembic.config import Config

    cfg = Config(str(Path(__file__).resolve().parent / "alembic.ini"))
    command.upgrade(cfg, revision)
    console.print(f"[green]Database upgraded to {revision}[/green]")


@app.command("purge")
def purge(
    sync_days: int = typer.Option(None, "--sync-days", help="Expire synced forms older than this (default from settings)"),
    stale_days: int = typer.Option(None, "--stale-days", help="Expire unsynced forms older than this (default from settings)"),
):
    """Run the expiry sweep once with the given thresholds."""
    from .config import settings
    from .database import async_session_factory, init_models
    from .services import purge_svc

    if sync_days is None:
        sync_days = settings.purge_synced_days
    if stale_days is None:
        stale_days = settings.purge_stale_days

    async def _purge():
        await init_models()
        async with async_session_factory() as db:
            return await purge_svc.run_manual(db, sync_days, stale_days)

    result = asyncio.run(_purge())
    console.print(
        f"[green]Expired {result.expired_synced_count} synced and "
        f"{result.expired_stale_count} stale forms[/green]"
    )


@forms_app.command("list")
def forms_list(
    status: str = typer.Option(None, "--status", "-s", help="Comma-separated statuses"),
    form_type: str = typer.Option(None, "--type", "-t", help="Form type"),
    limit: int = typer.Option(20, "--limit", "-l", help="Max forms to return"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List stored forms, newest first."""
    from .database import async_session_factory, init_models
    from .routers.params import build_criteria
    from .services import form_svc

    criteria = build_criteria(form_type=form_type, statuses=status)

    async def _list():
        await init_models()
        async with async_session_factory() as db:
            return await form_svc.search_forms(db, criteria, limit=limit)

    records, total = asyncio.run(_list())

    if json_output:
        console.print_json(json.dumps([
            {"id": str(r.id), "form_type": r.form_type, "status": r.status,
             "customer_id": r.customer_id, "created_on": _fmt(r.created_on)}
            for r in records
        ]))
        return

    table = Table(title=f"Forms ({len(records)} of {total})")
    table.add_column("ID", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Status", style="yellow")
    table.add_column("Customer", style="white")
    table.add_column("Created", style="green")
    for r in records:
        table.add_row(
            str(r.id),
            r.form_type,
            r.status,
            r.customer_name or r.customer_id or "-",
            _fmt(r.created_on),
        )
    console.print(table)


@app.command("history")
def history(form_id: str = typer.Argument(..., help="Form UUID")):
    """Show the lifecycle history of one form."""
    from .database import async_session_factory, init_models
    from .services import form_svc

    try:
        parsed = uuid.UUID(form_id)
    except ValueError:
        console.print(f"[red]Not a valid form id: {form_id}[/red]")
        raise typer.Exit(1)

    async def _history():
        await init_models()
        async with async_session_factory() as db:
            return await form_svc.get_history(db, parsed)

    entries = asyncio.run(_history())
    if not entries:
        console.print("[yellow]No history found.[/yellow]")
        return

    table = Table(title=f"History for {form_id}")
    table.add_column("When", style="green")
    table.add_column("Category", style="cyan")
    table.add_column("Status", style="yellow")
    table.add_column("Remark", style="white")
    table.add_column("Error", style="red")
    for e in entries:
        table.add_row(
            _fmt(e.created_on),
            e.category_code or "-",
            e.status,
            e.remark or "",
            e.error_message or "",
        )
    console.print(table)


if __name__ == "__main__":
    app()
