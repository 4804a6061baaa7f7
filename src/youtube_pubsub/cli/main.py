"""Main CLI interface for YouTube PubSub."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from youtube_pubsub import __version__
from youtube_pubsub.application.services.pubsub_service import PubSubHubService
from youtube_pubsub.cli.utils import (
    display_success_message,
    display_warning_message,
    streams_table,
)
from youtube_pubsub.domain.exceptions import (
    ConfigurationError,
    HubError,
    YouTubePubSubError,
)
from youtube_pubsub.domain.models.feed import Feed
from youtube_pubsub.domain.models.results import CleanResult, RenewalResult
from youtube_pubsub.infrastructure.container import (
    Container,
    create_container,
    get_configuration_provider,
    get_pubsub_service,
)
from youtube_pubsub.infrastructure.log_setup import configure_logging
from youtube_pubsub.infrastructure.web.app import create_app

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="YouTube PubSub")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default="config/config.yml",
    help="Path to configuration file",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.pass_context
def cli(ctx: click.Context, config: Path, verbose: bool) -> None:
    """
    YouTube PubSub - Live stream notifications through the YouTube PubSub hub.

    Keeps hub subscriptions for tracked channels alive, ingests pushed feed
    notifications and reconciles them with the YouTube Data API.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose

    if verbose:
        console.print(f"[dim]Using configuration: {config}[/dim]")


def _load_container(ctx: click.Context) -> Container:
    container = create_container(ctx.obj["config_path"])
    config_provider = get_configuration_provider(container)
    configure_logging(config_provider.get_logging_config(), ctx.obj["verbose"])
    return container


def _fail(error: Exception, verbose: bool) -> None:
    if isinstance(error, ConfigurationError):
        console.print(f"[red]❌ Configuration Error:[/red] {error}")
    elif isinstance(error, YouTubePubSubError):
        console.print(f"[red]❌ Error:[/red] {error}")
    else:
        console.print(f"[red]❌ Unexpected Error:[/red] {error}")
        if verbose:
            console.print_exception()
    sys.exit(1)


@cli.command()
@click.option("--host", default=None, help="Override the configured bind address")
@click.option("--port", type=int, default=None, help="Override the configured port")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Run the webhook server with renewal and cleanup jobs."""
    try:
        container = _load_container(ctx)
        push_settings = get_configuration_provider(container).get_push_settings()
        app = create_app(get_pubsub_service(container), push_settings)
    except Exception as e:
        _fail(e, ctx.obj["verbose"])
        return

    bind_host = host or push_settings.host
    bind_port = port or push_settings.port
    console.print(Panel(
        f"[blue]📡 Listening on http://{bind_host}:{bind_port}[/blue]\n"
        f"Hub callback: {push_settings.callback_url}",
        title="YouTube PubSub",
        border_style="blue"
    ))
    uvicorn.run(app, host=bind_host, port=bind_port, log_config=None)


async def _run_renewal(service: PubSubHubService) -> RenewalResult:
    await service.init()
    try:
        return await service.update_subscriptions()
    finally:
        await service.stop()


@cli.command()
@click.pass_context
def renew(ctx: click.Context) -> None:
    """Renew hub subscriptions that are missing or about to expire."""
    try:
        container = _load_container(ctx)
        result = asyncio.run(_run_renewal(get_pubsub_service(container)))
    except Exception as e:
        _fail(e, ctx.obj["verbose"])
        return

    message = f"Renewed {result.subscribe_count} subscriptions"
    if result.error_count:
        display_warning_message(f"{message}, {result.error_count} failed")
    else:
        display_success_message(message)


async def _run_clean(service: PubSubHubService) -> CleanResult:
    await service.init()
    try:
        return await service.clean()
    finally:
        await service.stop()


@cli.command()
@click.pass_context
def clean(ctx: click.Context) -> None:
    """Remove old feeds that are not on air."""
    try:
        container = _load_container(ctx)
        result = asyncio.run(_run_clean(get_pubsub_service(container)))
    except Exception as e:
        _fail(e, ctx.obj["verbose"])
        return

    display_success_message(f"Removed {result.removed_feed_count} feeds")


@cli.command()
@click.argument("channel_id")
@click.pass_context
def subscribe(ctx: click.Context, channel_id: str) -> None:
    """Ask the hub to deliver notifications for CHANNEL_ID."""
    try:
        container = _load_container(ctx)
        asyncio.run(get_pubsub_service(container).subscribe(channel_id))
    except HubError as e:
        console.print(f"[red]❌ Hub Error:[/red] {e}")
        sys.exit(1)
    except Exception as e:
        _fail(e, ctx.obj["verbose"])
        return

    display_success_message(f"Subscription requested for {channel_id}")


@cli.command()
@click.argument("channel_id")
@click.pass_context
def unsubscribe(ctx: click.Context, channel_id: str) -> None:
    """Ask the hub to stop delivering notifications for CHANNEL_ID."""
    try:
        container = _load_container(ctx)
        asyncio.run(get_pubsub_service(container).unsubscribe(channel_id))
    except HubError as e:
        console.print(f"[red]❌ Hub Error:[/red] {e}")
        sys.exit(1)
    except Exception as e:
        _fail(e, ctx.obj["verbose"])
        return

    display_success_message(f"Unsubscription requested for {channel_id}")


async def _run_get_streams(
    service: PubSubHubService, channel_ids: list[str], skipped_channel_ids: list[str]
) -> list[Feed]:
    await service.init()
    try:
        return await service.get_streams(channel_ids, skipped_channel_ids)
    finally:
        await service.stop()


@cli.command()
@click.argument("channel_ids", nargs=-1, required=True)
@click.option("--all", "show_all", is_flag=True, help="Include ended and upcoming streams")
@click.pass_context
def live(ctx: click.Context, channel_ids: tuple[str, ...], show_all: bool) -> None:
    """Sync and show the streams of CHANNEL_IDS."""
    skipped: list[str] = []
    try:
        container = _load_container(ctx)
        streams = asyncio.run(
            _run_get_streams(get_pubsub_service(container), list(channel_ids), skipped)
        )
    except Exception as e:
        _fail(e, ctx.obj["verbose"])
        return

    if not show_all:
        streams = [feed for feed in streams if not feed.is_offline]

    if streams:
        console.print(streams_table(streams))
    else:
        console.print("[dim]No streams found[/dim]")

    if skipped:
        display_warning_message(f"Skipped channels: {', '.join(skipped)}")


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Validate the configuration file."""
    console.print(Panel(
        "[blue]🔍 Configuration Validation[/blue]\n"
        "Checking configuration file and settings...",
        title="Validation",
        border_style="blue"
    ))

    try:
        container = create_container(ctx.obj["config_path"])
        config_provider = get_configuration_provider(container)
        push_settings = config_provider.get_push_settings()
        storage_settings = config_provider.get_storage_settings()
        channels = config_provider.get_channels()
    except Exception as e:
        console.print(f"\n[red]❌ Validation failed:[/red] {e}")
        if ctx.obj["verbose"]:
            console.print_exception()
        sys.exit(1)

    table = Table(title="📋 Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Hub", push_settings.hub_url)
    table.add_row("Callback URL", push_settings.callback_url)
    table.add_row("Callback path", push_settings.callback_path)
    table.add_row("Signed deliveries", "yes" if push_settings.secret else "no")
    table.add_row("Lease", f"{push_settings.lease_seconds}s")
    table.add_row("Storage", storage_settings.backend)
    table.add_row("Channels", str(len(channels)))
    console.print(table)

    console.print("\n[green]✅ Configuration is valid![/green]")


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
