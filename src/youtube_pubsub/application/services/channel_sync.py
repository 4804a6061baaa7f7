"""Reconciliation of tracked channels against their current broadcasts."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from youtube_pubsub.application.clock import Clock, utc_now
from youtube_pubsub.application.concurrency import chunked, gather_limited
from youtube_pubsub.application.feed_events import FeedEvent, log_feed_event
from youtube_pubsub.domain.models.channel import Channel
from youtube_pubsub.domain.models.feed import Feed, VideoSnippet
from youtube_pubsub.domain.services.feed_store import FeedStore
from youtube_pubsub.domain.services.platform_client import PlatformClient

logger = logging.getLogger(__name__)


@dataclass
class ChannelPoll:
    """Broadcasts found for one channel."""

    channel_id: str
    snippets: dict[str, VideoSnippet] = field(default_factory=dict)
    upcoming_checked: bool = False


class ChannelSyncPipeline:
    """
    Polls channels for live and upcoming broadcasts.

    Push deliveries are best effort, so every channel is enumerated on the
    platform at most once per sync interval to catch broadcasts the hub
    never announced.
    """

    def __init__(
        self,
        store: FeedStore,
        platform_client: PlatformClient,
        sync_interval: timedelta = timedelta(hours=4),
        claim_timeout: timedelta = timedelta(minutes=5),
        page_size: int = 50,
        concurrency: int = 10,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.platform_client = platform_client
        self.sync_interval = sync_interval
        self.claim_timeout = claim_timeout
        self.page_size = page_size
        self.concurrency = concurrency
        self._clock = clock

    async def sync_channels(
        self, channel_ids: list[str], skipped_channel_ids: list[str]
    ) -> list[str]:
        """
        Enumerate the due channels among ``channel_ids``.

        Args:
            channel_ids: Channels the caller is interested in
            skipped_channel_ids: Receives the channels whose poll failed

        Returns:
            ``skipped_channel_ids``, extended in place
        """
        now = self._clock()
        due_ids = await self.store.get_channel_ids_for_sync(
            channel_ids, now=now, synced_before=now - self.sync_interval
        )
        if not due_ids:
            return skipped_channel_ids

        logger.debug(f"Syncing {len(due_ids)} channels")
        for page in chunked(due_ids, self.page_size):
            try:
                await self._sync_page(page, skipped_channel_ids)
            except Exception:
                logger.exception(f"Channel sync page of {len(page)} channels failed")
        return skipped_channel_ids

    async def _sync_page(self, page: list[str], skipped_channel_ids: list[str]) -> None:
        now = self._clock()
        channels = await self.store.claim_channels_for_sync(
            page,
            now=now,
            synced_before=now - self.sync_interval,
            claim_until=now + self.claim_timeout,
        )
        if not channels:
            return

        outcomes = await gather_limited(self.concurrency, channels, self._poll_channel)

        discovered: dict[str, VideoSnippet] = {}
        upcoming_checked_ids: list[str] = []
        for channel, outcome in zip(channels, outcomes):
            if isinstance(outcome, BaseException):
                logger.debug(f"Channel {channel.id} sync skipped, cause: {outcome}")
                skipped_channel_ids.append(channel.id)
                continue
            if outcome.upcoming_checked:
                upcoming_checked_ids.append(channel.id)
            discovered.update(outcome.snippets)

        states = await self.store.get_feed_states(list(discovered))
        inserted: list[Feed] = []
        fixed: list[Feed] = []
        feeds: list[Feed] = []
        for video_id, snippet in discovered.items():
            feed = Feed.from_snippet(video_id, snippet)
            if video_id not in states:
                inserted.append(feed)
            elif states[video_id] is False:
                fixed.append(feed)
            feeds.append(feed)

        await self.store.put_feeds(feeds)
        await self.store.set_channels_last_sync_at([channel.id for channel in channels], now)
        await self.store.set_channels_upcoming_checked(upcoming_checked_ids)

        for feed in inserted:
            log_feed_event(FeedEvent.INSERT_FULL, feed.channel_id, feed.id)
        for feed in fixed:
            log_feed_event(FeedEvent.FIXED, feed.channel_id, feed.id)

    async def _poll_channel(self, channel: Channel) -> ChannelPoll:
        poll = ChannelPoll(channel.id)

        if not channel.is_upcoming_checked:
            try:
                poll.snippets.update(
                    await self.platform_client.get_video_snippets_by_channel(
                        channel.id, upcoming_only=True
                    )
                )
                poll.upcoming_checked = True
            except Exception as e:
                logger.debug(f"Get upcoming feeds {channel.id} error: {e}")

        # a failure here fails the whole channel
        poll.snippets.update(await self.platform_client.get_video_snippets_by_channel(channel.id))
        return poll
