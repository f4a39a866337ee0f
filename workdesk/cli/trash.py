"""Trash bin CLI commands."""

import typer
from rich.console import Console
from rich.table import Table

from workdesk.runtime import build_runtime

console = Console()

trash_app = typer.Typer(help="Inspect and recover deleted workstreams")


def _format_time(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


@trash_app.command("list")
def trash_list():
    """List deleted workstreams, most recent first."""
    runtime = build_runtime()
    items = runtime.trash_bin.list()

    if not items:
        console.print("[yellow]Trash is empty[/yellow]")
        return

    table = Table(title=f"Trash ({len(items)} item(s), kept {runtime.trash_bin.retention_days} days)")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Type", style="green")
    table.add_column("Deleted", style="dim")
    table.add_column("Reason", style="dim")

    for item in items:
        table.add_row(item.id, item.name, item.type.value, _format_time(item.deleted_at), item.deletion_reason or "")

    console.print(table)


@trash_app.command("search")
def trash_search(
    query: str = typer.Argument(help="Text to look for"),
    plain: bool = typer.Option(False, "--plain", help="Unranked substring search instead of scored search"),
):
    """Search deleted workstreams by name, metadata and message content.

    Examples:
        workdesk trash search PROJ-123
        workdesk trash search "login timeout" --plain
    """
    runtime = build_runtime()
    results = runtime.trash_bin.search(query) if plain else runtime.trash_bin.smart_search(query)

    if not results:
        console.print(f"[yellow]No trashed workstreams match '{query}'[/yellow]")
        return

    table = Table(title=f"Trash matches for '{query}'")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    if not plain:
        table.add_column("Score", justify="right")
    table.add_column("Match", style="dim")

    for result in results:
        row = [result.workstream.id, result.workstream.name]
        if not plain:
            row.append(f"{result.score:.0f}")
        row.append(result.match_context)
        table.add_row(*row)

    console.print(table)


@trash_app.command("restore")
def trash_restore(workstream_id: str = typer.Argument(help="Workstream ID to restore")):
    """Restore a deleted workstream."""
    runtime = build_runtime()
    restored = runtime.workstreams.restore_from_trash(workstream_id)
    if restored is None:
        console.print(f"[red]Not in trash: {workstream_id}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Restored '{restored.name}'[/green]")


@trash_app.command("purge")
def trash_purge(
    workstream_id: str = typer.Argument(help="Workstream ID to delete for good"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Permanently delete one workstream from the trash."""
    if not yes:
        typer.confirm(f"Permanently delete {workstream_id}?", abort=True)

    runtime = build_runtime()
    if not runtime.workstreams.permanently_delete(workstream_id):
        console.print(f"[red]Not in trash: {workstream_id}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Permanently deleted {workstream_id}[/green]")


@trash_app.command("empty")
def trash_empty(yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation")):
    """Permanently delete everything in the trash."""
    if not yes:
        typer.confirm("Permanently delete everything in the trash?", abort=True)

    runtime = build_runtime()
    count = runtime.workstreams.empty_trash()
    console.print(f"[green]✓ Emptied trash ({count} item(s) deleted)[/green]")


@trash_app.command("stats")
def trash_stats():
    """Show trash statistics."""
    runtime = build_runtime()
    stats = runtime.trash_bin.get_stats()

    console.print(f"[bold]Items:[/bold] {stats.count}")
    console.print(f"[bold]Messages:[/bold] {stats.total_messages}")
    console.print(f"[bold]Oldest deletion:[/bold] {_format_time(stats.oldest_deleted_at)}")
    console.print(f"[bold]Newest deletion:[/bold] {_format_time(stats.newest_deleted_at)}")
    console.print(f"[bold]Retention:[/bold] {runtime.trash_bin.retention_days} days")
