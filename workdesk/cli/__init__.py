"""Workdesk CLI application - main entry point."""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from workdesk.runtime import build_runtime
from workdesk.workstreams import STATUS_COLORS, STATUS_INDICATORS, WorkstreamStatus, WorkstreamType

from .config import config_app
from .trash import trash_app

app = typer.Typer(
    name="workdesk",
    help="Track workstreams, their status and the trash bin",
    no_args_is_help=True,
)

console = Console()


@app.command("list")
def list_workstreams(
    status: Optional[WorkstreamStatus] = typer.Option(None, "--status", "-s", help="Only show this status"),
    type: Optional[WorkstreamType] = typer.Option(None, "--type", "-t", help="Only show this type"),
    attention: bool = typer.Option(False, "--attention", help="Only workstreams needing input or in error"),
):
    """List active workstreams, numbered by creation order.

    Examples:
        workdesk list
        workdesk list --type pr
        workdesk list --attention
    """
    runtime = build_runtime()
    manager = runtime.workstreams

    if attention:
        workstreams = manager.get_needing_attention()
    else:
        workstreams = manager.get_all()
    if status is not None:
        workstreams = [w for w in workstreams if w.status == status]
    if type is not None:
        workstreams = [w for w in workstreams if w.type == type]

    if not workstreams:
        console.print("[yellow]No workstreams found[/yellow]")
        return

    table = Table(title=f"Workstreams ({len(workstreams)})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Status")
    table.add_column("Name", style="bold")
    table.add_column("Type", style="green")
    table.add_column("Status Message", style="dim")
    table.add_column("ID", style="cyan", no_wrap=True)

    for index, workstream in enumerate(workstreams, 1):
        color = STATUS_COLORS[workstream.status]
        table.add_row(
            str(index),
            f"[{color}]{STATUS_INDICATORS[workstream.status]} {workstream.status.value}[/{color}]",
            workstream.name,
            workstream.type.value,
            workstream.status_message or "",
            workstream.id,
        )

    console.print(table)


@app.command("show")
def show_workstream(workstream_id: str = typer.Argument(help="Workstream ID")):
    """Show one workstream's details."""
    runtime = build_runtime()
    workstream = runtime.workstreams.get(workstream_id)
    if workstream is None:
        console.print(f"[red]Workstream not found: {workstream_id}[/red]")
        raise typer.Exit(1)

    color = STATUS_COLORS[workstream.status]
    console.print(f"[bold]{workstream.name}[/bold] [dim]({workstream.id})[/dim]")
    console.print(f"Type: {workstream.type.value}")
    console.print(f"Status: [{color}]{workstream.indicator} {workstream.status.value}[/{color}]")
    if workstream.status_message:
        console.print(f"Status message: {workstream.status_message}")
    console.print(f"Created: {workstream.created_at:%Y-%m-%d %H:%M}")
    console.print(f"Updated: {workstream.updated_at:%Y-%m-%d %H:%M}")
    console.print(f"Messages: {len(workstream.messages)} (~{workstream.token_estimate:,} tokens, {workstream.turn_count} turns)")

    if workstream.metadata is not None:
        for key, value in workstream.metadata.model_dump(exclude_none=True).items():
            console.print(f"  {key}: {value}")


@app.command("delete")
def delete_workstream(
    workstream_id: str = typer.Argument(help="Workstream ID"),
    reason: Optional[str] = typer.Option(None, "--reason", "-r", help="Why it was deleted"),
):
    """Move a workstream to the trash."""
    runtime = build_runtime()
    trashed = runtime.workstreams.delete(workstream_id, reason=reason)
    if trashed is None:
        console.print(f"[red]Workstream not found: {workstream_id}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Moved '{trashed.name}' to trash[/green]")
    console.print(f"[dim]Restore with 'workdesk trash restore {trashed.id}'[/dim]")


app.add_typer(trash_app, name="trash")
app.add_typer(config_app, name="config")


def main():
    app()
