"""Utility functions for CLI output."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from youtube_pubsub.domain.models.feed import Feed

console = Console()


def display_success_message(message: str) -> None:
    """Display a success message."""
    console.print(Panel(
        f"[green]{message}[/green]",
        title="[green]✅ Success[/green]",
        border_style="green"
    ))


def display_warning_message(message: str) -> None:
    """Display a warning message."""
    console.print(Panel(
        f"[yellow]{message}[/yellow]",
        title="[yellow]⚠️ Warning[/yellow]",
        border_style="yellow"
    ))


def format_viewers(viewers: int | None) -> str:
    """Format a viewer count, e.g. ``12.3k``."""
    if viewers is None:
        return "-"
    if viewers < 1000:
        return str(viewers)
    if viewers < 1_000_000:
        return f"{viewers / 1000:.1f}k"
    return f"{viewers / 1_000_000:.1f}M"


def streams_table(streams: list[Feed]) -> Table:
    """Build a table of stream feeds."""
    table = Table(title="📡 Streams")
    table.add_column("Channel", style="cyan")
    table.add_column("Title")
    table.add_column("URL", style="blue")
    table.add_column("Viewers", justify="right")
    table.add_column("Status", justify="center")

    for feed in streams:
        if feed.is_ended:
            status = "[dim]Ended[/dim]"
        elif feed.is_offline:
            status = "[yellow]Upcoming[/yellow]"
        else:
            status = "[green]🔴 Live[/green]"
        table.add_row(
            feed.channel_title or feed.channel_id,
            feed.title,
            f"https://youtu.be/{feed.id}",
            format_viewers(feed.viewers),
            status,
        )
    return table
