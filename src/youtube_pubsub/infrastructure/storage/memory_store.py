"""In-process feed store."""

from __future__ import annotations

import asyncio
from collections.abc import Collection
from dataclasses import replace
from datetime import datetime, timezone

from youtube_pubsub.domain.models.channel import Channel
from youtube_pubsub.domain.models.feed import Feed
from youtube_pubsub.domain.services.feed_store import FeedStore


class InMemoryFeedStore(FeedStore):
    """
    Feed store that keeps all rows in memory.

    State does not survive a restart, so claims only guard against
    overlapping work inside one process. Useful for tests and for running
    without a database.
    """

    def __init__(self) -> None:
        self._channels: dict[str, Channel] = {}
        self._feeds: dict[str, Feed] = {}
        self._lock = asyncio.Lock()

    # Channels

    async def get_missing_channel_ids(self, channel_ids: list[str]) -> list[str]:
        return [cid for cid in dict.fromkeys(channel_ids) if cid not in self._channels]

    async def ensure_channels(self, channels: list[Channel]) -> None:
        async with self._lock:
            for channel in channels:
                self._channels.setdefault(channel.id, channel)

    async def get_channels_by_ids(self, channel_ids: list[str]) -> list[Channel]:
        return [self._channels[cid] for cid in dict.fromkeys(channel_ids) if cid in self._channels]

    async def get_existing_channel_ids(self, channel_ids: list[str]) -> set[str]:
        return {cid for cid in channel_ids if cid in self._channels}

    async def claim_channels_for_renewal(
        self,
        *,
        now: datetime,
        expires_before: datetime,
        claim_until: datetime,
        limit: int,
        exclude_ids: Collection[str] = (),
    ) -> list[str]:
        async with self._lock:
            claimed: list[str] = []
            for channel in self._channels.values():
                if len(claimed) >= limit:
                    break
                if channel.id in exclude_ids or channel.is_subscription_claimed(now):
                    continue
                expires_at = channel.subscription_expires_at
                if expires_at is not None and expires_at >= expires_before:
                    continue
                claimed.append(channel.id)

            for cid in claimed:
                self._channels[cid] = replace(
                    self._channels[cid], subscription_timeout_expires_at=claim_until
                )
            return claimed

    async def set_subscription_expires_at(
        self, channel_ids: list[str], expires_at: datetime
    ) -> None:
        async with self._lock:
            for cid in channel_ids:
                if cid in self._channels:
                    self._channels[cid] = replace(
                        self._channels[cid], subscription_expires_at=expires_at
                    )

    def _is_due_for_sync(self, channel: Channel, now: datetime, synced_before: datetime) -> bool:
        if channel.is_sync_claimed(now):
            return False
        return channel.last_sync_at is None or channel.last_sync_at < synced_before

    async def get_channel_ids_for_sync(
        self, channel_ids: list[str], *, now: datetime, synced_before: datetime
    ) -> list[str]:
        return [
            channel.id
            for channel in await self.get_channels_by_ids(channel_ids)
            if self._is_due_for_sync(channel, now, synced_before)
        ]

    async def claim_channels_for_sync(
        self,
        channel_ids: list[str],
        *,
        now: datetime,
        synced_before: datetime,
        claim_until: datetime,
    ) -> list[Channel]:
        async with self._lock:
            claimed: list[Channel] = []
            for channel in await self.get_channels_by_ids(channel_ids):
                if not self._is_due_for_sync(channel, now, synced_before):
                    continue
                channel = replace(channel, sync_timeout_expires_at=claim_until)
                self._channels[channel.id] = channel
                claimed.append(channel)
            return claimed

    async def set_channels_last_sync_at(self, channel_ids: list[str], synced_at: datetime) -> None:
        async with self._lock:
            for cid in channel_ids:
                if cid in self._channels:
                    self._channels[cid] = replace(self._channels[cid], last_sync_at=synced_at)

    async def set_channels_upcoming_checked(self, channel_ids: list[str]) -> None:
        async with self._lock:
            for cid in channel_ids:
                if cid in self._channels:
                    self._channels[cid] = replace(self._channels[cid], is_upcoming_checked=True)

    # Feeds

    async def get_feed_states(self, feed_ids: list[str]) -> dict[str, bool | None]:
        return {fid: self._feeds[fid].is_stream for fid in feed_ids if fid in self._feeds}

    async def put_feeds(self, feeds: list[Feed]) -> None:
        async with self._lock:
            for feed in feeds:
                existing = self._feeds.get(feed.id)
                if existing is None:
                    self._feeds[feed.id] = replace(
                        feed,
                        sync_timeout_expires_at=None,
                        created_at=datetime.now(timezone.utc),
                    )
                    continue
                self._feeds[feed.id] = replace(
                    existing,
                    title=feed.title,
                    channel_id=feed.channel_id,
                    channel_title=feed.channel_title,
                    published_at=feed.published_at or existing.published_at,
                    is_stream=True if existing.is_stream is True else feed.is_stream,
                )

    async def get_feeds_by_ids(self, feed_ids: list[str]) -> list[Feed]:
        return [self._feeds[fid] for fid in dict.fromkeys(feed_ids) if fid in self._feeds]

    def _is_feed_due(self, feed: Feed, now: datetime) -> bool:
        if feed.sync_timeout_expires_at is not None and feed.sync_timeout_expires_at > now:
            return False
        return feed.is_stream is None or (feed.is_stream is True and not feed.is_ended)

    async def get_feed_ids_for_sync(self, channel_ids: list[str], *, now: datetime) -> list[str]:
        wanted = set(channel_ids)
        return [
            feed.id
            for feed in self._feeds.values()
            if feed.channel_id in wanted and self._is_feed_due(feed, now)
        ]

    async def claim_feeds_for_sync(
        self, feed_ids: list[str], *, now: datetime, claim_until: datetime
    ) -> list[Feed]:
        async with self._lock:
            claimed: list[Feed] = []
            for feed in await self.get_feeds_by_ids(feed_ids):
                if not self._is_feed_due(feed, now):
                    continue
                feed = replace(feed, sync_timeout_expires_at=claim_until)
                self._feeds[feed.id] = feed
                claimed.append(feed)
            return claimed

    async def update_feeds(self, feeds: list[Feed]) -> None:
        async with self._lock:
            for feed in feeds:
                existing = self._feeds.get(feed.id)
                if existing is None:
                    continue
                self._feeds[feed.id] = replace(
                    existing,
                    is_stream=feed.is_stream,
                    viewers=feed.viewers,
                    scheduled_start_at=feed.scheduled_start_at,
                    actual_start_at=feed.actual_start_at,
                    actual_end_at=feed.actual_end_at,
                )

    async def get_stream_feeds_by_channel_ids(self, channel_ids: list[str]) -> list[Feed]:
        wanted = set(channel_ids)
        return [
            feed
            for feed in self._feeds.values()
            if feed.channel_id in wanted and feed.is_stream is True
        ]

    async def clean(self, created_before: datetime) -> int:
        async with self._lock:
            removed = [
                fid
                for fid, feed in self._feeds.items()
                if feed.created_at is not None
                and feed.created_at < created_before
                and not (feed.is_stream is True and not feed.is_offline)
            ]
            for fid in removed:
                del self._feeds[fid]
            return len(removed)
