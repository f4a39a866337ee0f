"""Configuration management CLI commands."""

import typer
from rich.console import Console
from rich.markup import escape

console = Console()

config_app = typer.Typer(help="Manage Workdesk configuration")


@config_app.command("show")
def config_show():
    """Show current configuration."""
    from workdesk.config import get_config_path, load_config

    config_path = get_config_path()
    config = load_config()

    console.print(f"[cyan]Configuration file:[/cyan] [dim]{config_path}[/dim]\n")
    console.print(f"[bold]Workstreams:[/bold] {config.workstreams_dir}")
    console.print(f"[bold]Trash:[/bold] {config.trash_dir}")
    console.print(f"[bold]Trash retention:[/bold] {config.trash_retention_days} days")
    console.print(f"[bold]Max notifications:[/bold] {config.max_notifications}")
    console.print(f"[bold]Max conversation messages:[/bold] {config.max_conversation_messages}")
    poller = "enabled" if config.poller_enabled else "disabled"
    console.print(f"[bold]Background sync:[/bold] {poller}, every {config.poll_interval_seconds:g}s")
    console.print(f"[bold]Models:[/bold] {config.standard_model} / {config.external_comms_model}")


@config_app.command("set-retention")
def config_set_retention(days: int = typer.Argument(help="Days to keep deleted workstreams (minimum 1)")):
    """Set how long deleted workstreams stay in the trash."""
    from workdesk.config import get_config_path, set_trash_retention_days

    try:
        stored = set_trash_retention_days(days)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
    except OSError as e:
        console.print(f"[red]Failed to save configuration: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Trash retention set to {stored} day(s)[/green]")
    console.print(f"[dim]Saved to: {get_config_path()}[/dim]")


@config_app.command("set-poll-interval")
def config_set_poll_interval(seconds: float = typer.Argument(help="Seconds between background status checks")):
    """Set the background sync interval."""
    from workdesk.config import set_poll_interval

    try:
        set_poll_interval(seconds)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Poll interval set to {seconds:g}s[/green]")
