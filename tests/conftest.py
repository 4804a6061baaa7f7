"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest
import yaml

from helpers import CHANNEL_ID, OTHER_CHANNEL_ID, FakeClock
from youtube_pubsub.application.scheduler import Scheduler
from youtube_pubsub.application.services import (
    ChannelSyncPipeline,
    FeedIngestionQueue,
    PubSubHubService,
    StreamStatusSyncPipeline,
    SubscriptionManager,
)
from youtube_pubsub.domain.models.channel import Channel
from youtube_pubsub.infrastructure.config.models import AppConfig
from youtube_pubsub.infrastructure.storage.memory_store import InMemoryFeedStore


@pytest.fixture
def sample_config_data() -> dict[str, Any]:
    """Sample configuration data for testing."""
    return {
        "push": {
            "callback_url": "https://hooks.example.com/websub/youtube",
            "host": "127.0.0.1",
            "port": 8080,
            "secret": "s3cret",
            "lease_seconds": 86400,
        },
        "youtube_api": {
            "api_key": "test-api-key",
            "timeout_seconds": 20,
        },
        "channels": [
            {"channel_id": CHANNEL_ID, "name": "Test Channel 1", "enabled": True},
            {"channel_id": OTHER_CHANNEL_ID, "name": "Test Channel 2", "enabled": True},
            {"channel_id": "UCTestChannelID000000003", "name": "Test Channel 3", "enabled": False},
        ],
        "sync": {
            "channel_sync_interval_minutes": 240,
            "concurrency": 10,
        },
        "schedule": {
            "renew_every_minutes": 60,
            "clean_every_hours": 24,
        },
        "storage": {
            "backend": "memory",
            "feed_retention_days": 14,
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file_path": None,
        },
    }


@pytest.fixture
def temp_config_file(sample_config_data: dict[str, Any]) -> Path:
    """Create a temporary configuration file for testing."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yml", delete=False) as f:
        yaml.dump(sample_config_data, f)
        return Path(f.name)


@pytest.fixture
def app_config(sample_config_data: dict[str, Any]) -> AppConfig:
    """Create an AppConfig instance for testing."""
    return AppConfig(**sample_config_data)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryFeedStore:
    """In-memory store with one tracked channel."""
    store = InMemoryFeedStore()
    store._channels[CHANNEL_ID] = Channel(id=CHANNEL_ID)
    return store


@pytest.fixture
def mock_hub_client() -> AsyncMock:
    """Create a mock hub client."""
    mock = AsyncMock()
    mock.subscribe.return_value = None
    mock.unsubscribe.return_value = None
    return mock


@pytest.fixture
def mock_platform_client() -> AsyncMock:
    """Create a mock platform client."""
    mock = AsyncMock()
    mock.get_video_snippets_by_channel.return_value = {}
    mock.get_live_details_by_video_ids.return_value = {}
    return mock


@pytest.fixture
def pubsub_service(
    store: InMemoryFeedStore,
    mock_hub_client: AsyncMock,
    mock_platform_client: AsyncMock,
    clock: FakeClock,
) -> PubSubHubService:
    """Service wired to the in-memory store and mock clients."""
    gate = asyncio.Lock()
    return PubSubHubService(
        store=store,
        subscription_manager=SubscriptionManager(store, mock_hub_client, gate, clock=clock),
        ingestion_queue=FeedIngestionQueue(store, gate, flush_delay=0.01, clock=clock),
        channel_sync=ChannelSyncPipeline(store, mock_platform_client, clock=clock),
        stream_sync=StreamStatusSyncPipeline(store, mock_platform_client, clock=clock),
        gate=gate,
        scheduler=Scheduler(),
        channel_ids=[OTHER_CHANNEL_ID],
        clock=clock,
    )
