"""Classification of feeds as live broadcasts."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import timedelta

from youtube_pubsub.application.clock import Clock, utc_now
from youtube_pubsub.application.concurrency import chunked, gather_limited
from youtube_pubsub.application.feed_events import FeedEvent, log_feed_event
from youtube_pubsub.domain.models.feed import Feed
from youtube_pubsub.domain.services.feed_store import FeedStore
from youtube_pubsub.domain.services.platform_client import PlatformClient

logger = logging.getLogger(__name__)


class StreamStatusSyncPipeline:
    """
    Asks the platform which feeds are broadcasts and refreshes their state.

    Only feeds that are unclassified, or broadcasts that have not ended, are
    polled. The platform is the ground truth: a feed it does not report is
    not a stream.
    """

    def __init__(
        self,
        store: FeedStore,
        platform_client: PlatformClient,
        claim_timeout: timedelta = timedelta(minutes=1),
        page_size: int = 50,
        concurrency: int = 10,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.platform_client = platform_client
        self.claim_timeout = claim_timeout
        self.page_size = page_size
        self.concurrency = concurrency
        self._clock = clock

    async def sync_streams(self, channel_ids: list[str]) -> int:
        """
        Refresh the stream state of the due feeds of ``channel_ids``.

        Returns:
            Number of feeds updated
        """
        feed_ids = await self.store.get_feed_ids_for_sync(channel_ids, now=self._clock())
        if not feed_ids:
            return 0

        pages = list(chunked(feed_ids, self.page_size))
        outcomes = await gather_limited(self.concurrency, pages, self._sync_page)

        updated = 0
        for page, outcome in zip(pages, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(f"Stream sync of {len(page)} feeds failed: {outcome}")
            else:
                updated += outcome
        return updated

    async def _sync_page(self, page: list[str]) -> int:
        now = self._clock()
        feeds = await self.store.claim_feeds_for_sync(
            page, now=now, claim_until=now + self.claim_timeout
        )
        if not feeds:
            return 0

        live_details = await self.platform_client.get_live_details_by_video_ids(
            [feed.id for feed in feeds]
        )

        changes: list[Feed] = []
        for feed in feeds:
            details = live_details.get(feed.id)
            if details is not None:
                changes.append(feed.with_live_details(details))
                continue
            if feed.is_stream:
                log_feed_event(FeedEvent.NOT_FOUND, feed.channel_id, feed.id)
            changes.append(replace(feed, is_stream=False))

        await self.store.update_feeds(changes)
        return len(changes)
