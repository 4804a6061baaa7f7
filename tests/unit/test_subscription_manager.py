"""Tests for SubscriptionManager."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from helpers import CHANNEL_ID, OTHER_CHANNEL_ID, FakeClock
from youtube_pubsub.application.services.subscription_manager import SubscriptionManager
from youtube_pubsub.domain.exceptions import HubError
from youtube_pubsub.domain.models.channel import Channel, build_topic_url
from youtube_pubsub.infrastructure.storage.memory_store import InMemoryFeedStore


def _manager(
    store: InMemoryFeedStore, hub_client: AsyncMock, clock: FakeClock, **kwargs
) -> SubscriptionManager:
    return SubscriptionManager(
        store=store,
        hub_client=hub_client,
        gate=asyncio.Lock(),
        lease_seconds=86400,
        clock=clock,
        **kwargs,
    )


class TestSubscriptionManager:
    """Tests for SubscriptionManager."""

    @pytest.mark.asyncio
    async def test_subscribe_uses_topic_url(
        self, store: InMemoryFeedStore, mock_hub_client: AsyncMock, clock: FakeClock
    ) -> None:
        manager = _manager(store, mock_hub_client, clock)

        await manager.subscribe(CHANNEL_ID)
        await manager.unsubscribe(CHANNEL_ID)

        mock_hub_client.subscribe.assert_awaited_once_with(build_topic_url(CHANNEL_ID))
        mock_hub_client.unsubscribe.assert_awaited_once_with(build_topic_url(CHANNEL_ID))

    @pytest.mark.asyncio
    async def test_renew_counts_successes_and_failures(
        self, mock_hub_client: AsyncMock, clock: FakeClock
    ) -> None:
        """Test one accepted and one rejected subscription."""
        store = InMemoryFeedStore()
        await store.ensure_channels([Channel(id=CHANNEL_ID), Channel(id=OTHER_CHANNEL_ID)])

        async def subscribe(topic_url: str) -> None:
            if topic_url == build_topic_url(OTHER_CHANNEL_ID):
                raise HubError("subscribe", topic_url, status_code=500)

        mock_hub_client.subscribe.side_effect = subscribe
        manager = _manager(store, mock_hub_client, clock)

        result = await manager.renew_expiring()

        assert result.subscribe_count == 1
        assert result.error_count == 1
        renewed, failed = await store.get_channels_by_ids([CHANNEL_ID, OTHER_CHANNEL_ID])
        assert renewed.subscription_expires_at == clock.now + timedelta(seconds=86400)
        assert failed.subscription_expires_at is None
        # the failed channel keeps its claim until it lapses
        assert failed.subscription_timeout_expires_at == clock.now + timedelta(minutes=5)

    @pytest.mark.asyncio
    async def test_renew_skips_fresh_leases(
        self, mock_hub_client: AsyncMock, clock: FakeClock
    ) -> None:
        store = InMemoryFeedStore()
        await store.ensure_channels([
            Channel(id=CHANNEL_ID, subscription_expires_at=clock.now + timedelta(hours=5)),
            Channel(id=OTHER_CHANNEL_ID, subscription_expires_at=clock.now + timedelta(minutes=30)),
        ])
        manager = _manager(store, mock_hub_client, clock)

        result = await manager.renew_expiring()

        assert result.subscribe_count == 1
        mock_hub_client.subscribe.assert_awaited_once_with(build_topic_url(OTHER_CHANNEL_ID))

    @pytest.mark.asyncio
    async def test_renew_pages_until_empty(
        self, mock_hub_client: AsyncMock, clock: FakeClock
    ) -> None:
        store = InMemoryFeedStore()
        channel_ids = [f"UCTestChannelID{i:09d}" for i in range(7)]
        await store.ensure_channels([Channel(id=cid) for cid in channel_ids])
        manager = _manager(store, mock_hub_client, clock, page_size=3, concurrency=2)

        result = await manager.renew_expiring()

        assert result.subscribe_count == 7
        assert mock_hub_client.subscribe.await_count == 7

    @pytest.mark.asyncio
    async def test_renew_skips_claimed_channels(
        self, mock_hub_client: AsyncMock, clock: FakeClock
    ) -> None:
        """Test that a channel under an active claim is not subscribed again."""
        store = InMemoryFeedStore()
        await store.ensure_channels([
            Channel(
                id=CHANNEL_ID,
                subscription_timeout_expires_at=clock.now + timedelta(minutes=1),
            )
        ])
        manager = _manager(store, mock_hub_client, clock)

        result = await manager.renew_expiring()

        assert result.subscribe_count == 0
        mock_hub_client.subscribe.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_renew_retries_after_claim_lapses(
        self, mock_hub_client: AsyncMock, clock: FakeClock
    ) -> None:
        store = InMemoryFeedStore()
        await store.ensure_channels([Channel(id=CHANNEL_ID)])
        mock_hub_client.subscribe.side_effect = [HubError("subscribe", "topic"), None]
        manager = _manager(store, mock_hub_client, clock)

        first = await manager.renew_expiring()
        clock.advance(timedelta(minutes=1))
        second = await manager.renew_expiring()
        clock.advance(timedelta(minutes=5))
        third = await manager.renew_expiring()

        assert (first.error_count, second.subscribe_count, third.subscribe_count) == (1, 0, 1)

    @pytest.mark.asyncio
    async def test_concurrent_renewals_subscribe_once(
        self, mock_hub_client: AsyncMock, clock: FakeClock
    ) -> None:
        """Test that two overlapping sweeps never subscribe a channel twice."""
        store = InMemoryFeedStore()
        await store.ensure_channels([Channel(id=CHANNEL_ID), Channel(id=OTHER_CHANNEL_ID)])
        first = _manager(store, mock_hub_client, clock)
        second = _manager(store, mock_hub_client, clock)

        results = await asyncio.gather(first.renew_expiring(), second.renew_expiring())

        assert sum(result.subscribe_count for result in results) == 2
        assert mock_hub_client.subscribe.await_count == 2

    @pytest.mark.asyncio
    async def test_renew_outliving_claims_reaches_every_channel(
        self, mock_hub_client: AsyncMock, clock: FakeClock
    ) -> None:
        """Test that failed channels whose claims lapsed mid-sweep do not end the sweep."""
        store = InMemoryFeedStore()
        channel_ids = [f"UCTestChannelID{i:09d}" for i in range(4)]
        await store.ensure_channels([Channel(id=cid) for cid in channel_ids])
        failing = {build_topic_url(cid) for cid in channel_ids[:2]}

        async def subscribe(topic_url: str) -> None:
            if topic_url in failing:
                clock.advance(timedelta(minutes=10))
                raise HubError("subscribe", topic_url, status_code=500)

        mock_hub_client.subscribe.side_effect = subscribe
        manager = _manager(store, mock_hub_client, clock, page_size=2)

        result = await manager.renew_expiring()

        assert (result.subscribe_count, result.error_count) == (2, 2)
        assert mock_hub_client.subscribe.await_count == 4
        renewed = await store.get_channels_by_ids(channel_ids[2:])
        assert all(channel.subscription_expires_at is not None for channel in renewed)
