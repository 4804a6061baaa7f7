"""Dependency injection container configuration."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from pathlib import Path

from dependency_injector import containers, providers

from youtube_pubsub.application.scheduler import Scheduler
from youtube_pubsub.application.services.channel_sync import ChannelSyncPipeline
from youtube_pubsub.application.services.feed_ingestion import FeedIngestionQueue
from youtube_pubsub.application.services.pubsub_service import PubSubHubService
from youtube_pubsub.application.services.stream_sync import StreamStatusSyncPipeline
from youtube_pubsub.application.services.subscription_manager import SubscriptionManager
from youtube_pubsub.domain.models.channel import ChannelConfig
from youtube_pubsub.domain.services.configuration_provider import ConfigurationProvider
from youtube_pubsub.domain.services.feed_store import FeedStore
from youtube_pubsub.infrastructure.config.yaml_provider import YamlConfigurationProvider
from youtube_pubsub.infrastructure.storage.memory_store import InMemoryFeedStore
from youtube_pubsub.infrastructure.storage.sql_store import SqlFeedStore
from youtube_pubsub.infrastructure.websub.hub_client import WebSubHubClient
from youtube_pubsub.infrastructure.youtube.client import YouTubeDataClient


def _channel_ids(channels: list[ChannelConfig]) -> list[str]:
    return [channel.channel_id for channel in channels]


def _minutes(value: int) -> timedelta:
    return timedelta(minutes=value)


class Container(containers.DeclarativeContainer):
    """
    Dependency injection container for the YouTube PubSub application.

    Every component is a singleton built from the settings of the
    configuration provider, so the webhook app, the scheduler and the CLI
    commands share one store and one sweep gate.
    """

    # Configuration
    config_file_path = providers.Configuration()

    # Configuration Provider
    configuration_provider = providers.Singleton(
        YamlConfigurationProvider,
        config_path=config_file_path,
    )

    push_settings = configuration_provider.provided.get_push_settings.call()
    youtube_api_config = configuration_provider.provided.get_youtube_api_config.call()
    sync_settings = configuration_provider.provided.get_sync_settings.call()
    schedule_settings = configuration_provider.provided.get_schedule_settings.call()
    storage_settings = configuration_provider.provided.get_storage_settings.call()
    channels = configuration_provider.provided.get_channels.call()

    # Process-wide lock serialising renewal, ingestion flushes and cleanup
    gate = providers.Singleton(asyncio.Lock)

    feed_store = providers.Selector(
        storage_settings.provided.backend,
        sql=providers.Singleton(
            SqlFeedStore,
            url=storage_settings.provided.url,
            echo=storage_settings.provided.echo,
        ),
        memory=providers.Singleton(InMemoryFeedStore),
    )

    hub_client = providers.Singleton(
        WebSubHubClient,
        hub_url=push_settings.provided.hub_url,
        callback_url=push_settings.provided.callback_url,
        lease_seconds=push_settings.provided.lease_seconds,
        secret=push_settings.provided.secret,
        verify=push_settings.provided.verify,
        timeout_seconds=push_settings.provided.timeout_seconds,
    )

    platform_client = providers.Singleton(
        YouTubeDataClient,
        api_key=youtube_api_config.provided.api_key,
        timeout_seconds=youtube_api_config.provided.timeout_seconds,
    )

    subscription_manager = providers.Singleton(
        SubscriptionManager,
        store=feed_store,
        hub_client=hub_client,
        gate=gate,
        lease_seconds=push_settings.provided.lease_seconds,
        renew_before=providers.Callable(_minutes, sync_settings.provided.renew_before_minutes),
        claim_timeout=providers.Callable(
            _minutes, sync_settings.provided.subscription_timeout_minutes
        ),
        page_size=sync_settings.provided.page_size,
        concurrency=sync_settings.provided.concurrency,
    )

    ingestion_queue = providers.Singleton(
        FeedIngestionQueue,
        store=feed_store,
        gate=gate,
        window=providers.Callable(
            timedelta, days=sync_settings.provided.ingestion_window_days
        ),
        flush_delay=sync_settings.provided.flush_delay_seconds,
    )

    channel_sync = providers.Singleton(
        ChannelSyncPipeline,
        store=feed_store,
        platform_client=platform_client,
        sync_interval=providers.Callable(
            _minutes, sync_settings.provided.channel_sync_interval_minutes
        ),
        claim_timeout=providers.Callable(
            _minutes, sync_settings.provided.channel_sync_timeout_minutes
        ),
        page_size=sync_settings.provided.page_size,
        concurrency=sync_settings.provided.concurrency,
    )

    stream_sync = providers.Singleton(
        StreamStatusSyncPipeline,
        store=feed_store,
        platform_client=platform_client,
        claim_timeout=providers.Callable(
            _minutes, sync_settings.provided.feed_sync_timeout_minutes
        ),
        page_size=sync_settings.provided.page_size,
        concurrency=sync_settings.provided.concurrency,
    )

    scheduler = providers.Singleton(Scheduler)

    pubsub_service = providers.Singleton(
        PubSubHubService,
        store=feed_store,
        subscription_manager=subscription_manager,
        ingestion_queue=ingestion_queue,
        channel_sync=channel_sync,
        stream_sync=stream_sync,
        gate=gate,
        scheduler=scheduler,
        channel_ids=providers.Callable(_channel_ids, channels),
        feed_retention=providers.Callable(
            timedelta, days=storage_settings.provided.feed_retention_days
        ),
        renew_every=providers.Callable(
            _minutes, schedule_settings.provided.renew_every_minutes
        ),
        clean_every=providers.Callable(
            timedelta, hours=schedule_settings.provided.clean_every_hours
        ),
    )


def create_container(config_path: str | Path) -> Container:
    """
    Create and configure the dependency injection container.

    Args:
        config_path: Path to the configuration file

    Returns:
        Configured container instance
    """
    container = Container()
    container.config_file_path.override(str(config_path))
    return container


def get_configuration_provider(container: Container) -> ConfigurationProvider:
    """
    Get the configuration provider from the container.

    Args:
        container: The dependency injection container

    Returns:
        Configuration provider instance
    """
    return container.configuration_provider()


def get_feed_store(container: Container) -> FeedStore:
    """Get the feed store selected by the storage settings."""
    return container.feed_store()


def get_pubsub_service(container: Container) -> PubSubHubService:
    """Get the main PubSub hub service."""
    return container.pubsub_service()
