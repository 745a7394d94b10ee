"""OKRHub CLI - operate the sync queue from a shell."""

import asyncio
import json
import logging
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .api import OKRHub
from .errors import OKRHubError

app = typer.Typer(
    name="okrhub",
    help="OKRHub - replicate local OKR entities to LinkHub",
    no_args_is_help=True,
)
console = Console()


def _hub() -> OKRHub:
    return OKRHub()


def _output_result(result: Any) -> None:
    console.print_json(json.dumps(result, default=str))


def _run(coro):
    try:
        return asyncio.run(coro)
    except OKRHubError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("init-db")
def init_db():
    """Create the local tables."""
    _run(_hub().init_db())
    console.print("[green]Database initialized[/green]")


@app.command("process")
def process(
    batch_size: int = typer.Option(None, "--batch-size", "-b", help="Max entries to send"),
    endpoint_url: str = typer.Option(None, "--endpoint", help="LinkHub base URL"),
):
    """Send one batch of pending entries to LinkHub."""
    hub = _hub()
    summary = _run(hub.process_sync_queue(endpoint_url=endpoint_url, batch_size=batch_size))
    style = "green" if summary.failed == 0 else "yellow"
    console.print(
        Panel(
            f"Processed: {summary.processed}\n"
            f"Succeeded: [green]{summary.succeeded}[/green]\n"
            f"Failed: [red]{summary.failed}[/red]",
            title="Sync run",
            border_style=style,
            expand=False,
        )
    )


@app.command("pending")
def pending(
    limit: int = typer.Option(50, "--limit", "-l", help="Max entries to list"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List pending queue entries, oldest first."""
    items = _run(_hub().get_pending_sync_items(limit=limit))

    if json_output:
        _output_result([
            {
                "id": i.id,
                "entityType": i.entity_type,
                "externalId": i.external_id,
                "attempts": i.attempts,
                "createdAt": i.created_at,
            }
            for i in items
        ])
        return

    table = Table(title=f"Pending ({len(items)})")
    table.add_column("ID", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("External ID", style="white")
    table.add_column("Attempts", style="yellow")
    table.add_column("Created", style="green")
    for i in items:
        table.add_row(str(i.id), i.entity_type, i.external_id, str(i.attempts), str(i.created_at))
    console.print(table)


@app.command("log")
def log(
    external_id: str = typer.Option(None, "--external-id", "-e", help="Filter by external id"),
    entity_type: str = typer.Option(None, "--type", "-t", help="Filter by entity type"),
    limit: int = typer.Option(50, "--limit", "-l", help="Max rows"),
):
    """Show confirmed LinkHub applies, newest first."""
    entries = _run(_hub().get_sync_log(external_id=external_id, entity_type=entity_type, limit=limit))

    table = Table(title=f"Sync log ({len(entries)})")
    table.add_column("Synced", style="green")
    table.add_column("Action", style="cyan")
    table.add_column("Type")
    table.add_column("External ID", style="white")
    table.add_column("LinkHub ID", style="dim")
    for e in entries:
        table.add_row(str(e.synced_at), e.action, e.entity_type, e.external_id, e.link_hub_id or "-")
    console.print(table)


@app.command("resubmit")
def resubmit(queue_id: int = typer.Argument(..., help="ID of a failed queue entry")):
    """Queue a fresh entry for a failed one."""
    item = _run(_hub().resubmit_failed(queue_id))
    console.print(f"[green]Queued entry {item.id} for {item.external_id}[/green]")


@app.command("release-stuck")
def release_stuck(
    older_than: float = typer.Option(900, "--older-than", help="Seconds an entry may stay processing"),
):
    """Fail entries left processing by an interrupted run."""
    count = _run(_hub().release_stuck_items(older_than_seconds=older_than))
    if count:
        console.print(f"[yellow]Released {count} stuck entries[/yellow]")
    else:
        console.print("[dim]No stuck entries[/dim]")


if __name__ == "__main__":
    app()
