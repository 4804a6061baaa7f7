"""Tests for ChannelSyncPipeline."""

from __future__ import annotations

import logging
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from helpers import CHANNEL_ID, OTHER_CHANNEL_ID, FakeClock, make_feed
from youtube_pubsub.application.feed_events import EVENTS_LOGGER_NAME
from youtube_pubsub.application.services.channel_sync import ChannelSyncPipeline
from youtube_pubsub.domain.exceptions import APIError
from youtube_pubsub.domain.models.channel import Channel
from youtube_pubsub.domain.models.feed import VideoSnippet
from youtube_pubsub.infrastructure.storage.memory_store import InMemoryFeedStore

LIVE = {"live0000001": VideoSnippet("Live", CHANNEL_ID, "Test Channel")}
UPCOMING = {"upco0000001": VideoSnippet("Soon", CHANNEL_ID, "Test Channel")}


def _pipeline(
    store: InMemoryFeedStore, platform_client: AsyncMock, clock: FakeClock, **kwargs
) -> ChannelSyncPipeline:
    return ChannelSyncPipeline(store=store, platform_client=platform_client, clock=clock, **kwargs)


def _snippets(live: dict, upcoming: dict | Exception, regular_error: Exception | None = None):
    async def get_video_snippets_by_channel(channel_id: str, upcoming_only: bool = False):
        if upcoming_only:
            if isinstance(upcoming, Exception):
                raise upcoming
            return upcoming
        if regular_error is not None:
            raise regular_error
        return live

    return get_video_snippets_by_channel


def _events(caplog: pytest.LogCaptureFixture) -> list[str]:
    return [r.getMessage() for r in caplog.records if r.name == EVENTS_LOGGER_NAME]


class TestChannelSyncPipeline:
    """Tests for ChannelSyncPipeline."""

    @pytest.mark.asyncio
    async def test_first_sync_requests_upcoming_and_live(
        self,
        store: InMemoryFeedStore,
        mock_platform_client: AsyncMock,
        clock: FakeClock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        caplog.set_level(logging.INFO, logger=EVENTS_LOGGER_NAME)
        mock_platform_client.get_video_snippets_by_channel.side_effect = _snippets(LIVE, UPCOMING)

        skipped = await _pipeline(store, mock_platform_client, clock).sync_channels([CHANNEL_ID], [])

        assert skipped == []
        assert mock_platform_client.get_video_snippets_by_channel.await_count == 2
        feeds = await store.get_feeds_by_ids(["live0000001", "upco0000001"])
        assert {feed.id for feed in feeds} == {"live0000001", "upco0000001"}
        assert all(feed.is_stream is None for feed in feeds)

        (channel,) = await store.get_channels_by_ids([CHANNEL_ID])
        assert channel.is_upcoming_checked is True
        assert channel.last_sync_at == clock.now
        assert sorted(_events(caplog)) == [
            f"[insert full] {CHANNEL_ID} live0000001",
            f"[insert full] {CHANNEL_ID} upco0000001",
        ]

    @pytest.mark.asyncio
    async def test_upcoming_checked_once(
        self, store: InMemoryFeedStore, mock_platform_client: AsyncMock, clock: FakeClock
    ) -> None:
        await store.ensure_channels([Channel(id=OTHER_CHANNEL_ID, is_upcoming_checked=True)])
        mock_platform_client.get_video_snippets_by_channel.return_value = {}

        await _pipeline(store, mock_platform_client, clock).sync_channels([OTHER_CHANNEL_ID], [])

        mock_platform_client.get_video_snippets_by_channel.assert_awaited_once_with(
            OTHER_CHANNEL_ID
        )

    @pytest.mark.asyncio
    async def test_upcoming_failure_keeps_flag(
        self, store: InMemoryFeedStore, mock_platform_client: AsyncMock, clock: FakeClock
    ) -> None:
        """Test that a failed upcoming request is retried on the next sync."""
        mock_platform_client.get_video_snippets_by_channel.side_effect = _snippets(
            LIVE, APIError("quota")
        )

        skipped = await _pipeline(store, mock_platform_client, clock).sync_channels([CHANNEL_ID], [])

        assert skipped == []
        (channel,) = await store.get_channels_by_ids([CHANNEL_ID])
        assert channel.is_upcoming_checked is False
        assert channel.last_sync_at == clock.now
        assert len(await store.get_feeds_by_ids(["live0000001"])) == 1

    @pytest.mark.asyncio
    async def test_regular_failure_skips_channel(
        self, store: InMemoryFeedStore, mock_platform_client: AsyncMock, clock: FakeClock
    ) -> None:
        mock_platform_client.get_video_snippets_by_channel.side_effect = _snippets(
            LIVE, UPCOMING, regular_error=APIError("boom")
        )
        skipped = ["UCAlreadySkipped"]

        result = await _pipeline(store, mock_platform_client, clock).sync_channels(
            [CHANNEL_ID], skipped
        )

        assert result is skipped
        assert skipped == ["UCAlreadySkipped", CHANNEL_ID]
        (channel,) = await store.get_channels_by_ids([CHANNEL_ID])
        assert channel.last_sync_at == clock.now
        assert channel.is_upcoming_checked is False
        assert await store.get_feeds_by_ids(["live0000001", "upco0000001"]) == []

    @pytest.mark.asyncio
    async def test_failed_channel_waits_for_next_interval(
        self, store: InMemoryFeedStore, mock_platform_client: AsyncMock, clock: FakeClock
    ) -> None:
        """Test that a failed channel is not polled again before the sync interval."""
        mock_platform_client.get_video_snippets_by_channel.side_effect = _snippets(
            LIVE, UPCOMING, regular_error=APIError("boom")
        )
        pipeline = _pipeline(store, mock_platform_client, clock)

        assert await pipeline.sync_channels([CHANNEL_ID], []) == [CHANNEL_ID]
        calls = mock_platform_client.get_video_snippets_by_channel.await_count

        clock.advance(timedelta(minutes=6))
        assert await pipeline.sync_channels([CHANNEL_ID], []) == []

        assert mock_platform_client.get_video_snippets_by_channel.await_count == calls

    @pytest.mark.asyncio
    async def test_recently_synced_channel_is_not_polled(
        self, store: InMemoryFeedStore, mock_platform_client: AsyncMock, clock: FakeClock
    ) -> None:
        await store.set_channels_last_sync_at([CHANNEL_ID], clock.now - timedelta(hours=1))

        await _pipeline(store, mock_platform_client, clock).sync_channels([CHANNEL_ID], [])

        mock_platform_client.get_video_snippets_by_channel.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_claimed_channel_is_not_polled(
        self, store: InMemoryFeedStore, mock_platform_client: AsyncMock, clock: FakeClock
    ) -> None:
        await store.claim_channels_for_sync(
            [CHANNEL_ID],
            now=clock.now,
            synced_before=clock.now,
            claim_until=clock.now + timedelta(minutes=5),
        )

        await _pipeline(store, mock_platform_client, clock).sync_channels([CHANNEL_ID], [])

        mock_platform_client.get_video_snippets_by_channel.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reconcile_existing_feeds(
        self,
        store: InMemoryFeedStore,
        mock_platform_client: AsyncMock,
        clock: FakeClock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that a known non-stream is reopened and a stream is kept."""
        caplog.set_level(logging.INFO, logger=EVENTS_LOGGER_NAME)
        await store.put_feeds([
            make_feed("live0000001", is_stream=False),
            make_feed("upco0000001", is_stream=True),
        ])
        mock_platform_client.get_video_snippets_by_channel.side_effect = _snippets(LIVE, UPCOMING)

        await _pipeline(store, mock_platform_client, clock).sync_channels([CHANNEL_ID], [])

        states = await store.get_feed_states(["live0000001", "upco0000001"])
        assert states == {"live0000001": None, "upco0000001": True}
        assert _events(caplog) == [f"[fixed] {CHANNEL_ID} live0000001"]

    @pytest.mark.asyncio
    async def test_unknown_channel_is_ignored(
        self, store: InMemoryFeedStore, mock_platform_client: AsyncMock, clock: FakeClock
    ) -> None:
        skipped = await _pipeline(store, mock_platform_client, clock).sync_channels(
            ["UCNotTracked"], []
        )

        assert skipped == []
        mock_platform_client.get_video_snippets_by_channel.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_channels_are_paged(
        self, mock_platform_client: AsyncMock, clock: FakeClock
    ) -> None:
        store = InMemoryFeedStore()
        channel_ids = [f"UCTestChannelID{i:09d}" for i in range(5)]
        await store.ensure_channels([Channel(id=cid, is_upcoming_checked=True) for cid in channel_ids])

        await _pipeline(store, mock_platform_client, clock, page_size=2).sync_channels(
            channel_ids, []
        )

        assert mock_platform_client.get_video_snippets_by_channel.await_count == 5
        channels = await store.get_channels_by_ids(channel_ids)
        assert all(channel.last_sync_at == clock.now for channel in channels)
