"""Default implementation of the PubSub hub service."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from youtube_pubsub.application.clock import Clock, utc_now
from youtube_pubsub.application.scheduler import Scheduler
from youtube_pubsub.application.services.channel_sync import ChannelSyncPipeline
from youtube_pubsub.application.services.feed_ingestion import FeedIngestionQueue
from youtube_pubsub.application.services.stream_sync import StreamStatusSyncPipeline
from youtube_pubsub.application.services.subscription_manager import SubscriptionManager
from youtube_pubsub.domain.feed_document import FeedParseFailure, parse_feed_document
from youtube_pubsub.domain.models.channel import Channel
from youtube_pubsub.domain.models.feed import Feed
from youtube_pubsub.domain.models.results import CleanResult, RenewalResult
from youtube_pubsub.domain.services.feed_store import FeedStore

logger = logging.getLogger(__name__)


class PubSubHubService:
    """
    Entry point of the hub client.

    Ties the subscription manager, the ingestion queue and the two sync
    pipelines together around one feed store, and owns the recurring
    renewal and cleanup jobs.
    """

    def __init__(
        self,
        store: FeedStore,
        subscription_manager: SubscriptionManager,
        ingestion_queue: FeedIngestionQueue,
        channel_sync: ChannelSyncPipeline,
        stream_sync: StreamStatusSyncPipeline,
        gate: asyncio.Lock,
        scheduler: Scheduler | None = None,
        channel_ids: list[str] | None = None,
        feed_retention: timedelta = timedelta(days=14),
        renew_every: timedelta = timedelta(minutes=60),
        clean_every: timedelta = timedelta(hours=24),
        clock: Clock = utc_now,
    ) -> None:
        """
        Initialize the service.

        Args:
            store: Feed store shared by all components
            subscription_manager: Hub subscription manager
            ingestion_queue: Queue for pushed entries
            channel_sync: Channel enumeration pipeline
            stream_sync: Stream status pipeline
            gate: Process-wide lock serialising sweeps
            scheduler: Owner of the recurring jobs
            channel_ids: Channels registered when the service starts
            feed_retention: Feeds first seen longer ago are cleaned
            renew_every: Renewal sweep cadence
            clean_every: Cleanup sweep cadence
            clock: Time source
        """
        self.store = store
        self.subscription_manager = subscription_manager
        self.ingestion_queue = ingestion_queue
        self.channel_sync = channel_sync
        self.stream_sync = stream_sync
        self.gate = gate
        self.scheduler = scheduler or Scheduler()
        self.channel_ids = list(channel_ids or [])
        self.feed_retention = feed_retention
        self.renew_every = renew_every
        self.clean_every = clean_every
        self._clock = clock
        self._initialized = False

    async def init(self) -> None:
        """Open the store and register the configured channels."""
        if self._initialized:
            return
        await self.store.init()
        self._initialized = True
        new_ids = await self.register_channels(self.channel_ids)
        if new_ids:
            logger.info(f"Registered {len(new_ids)} configured channels")

    async def start(self) -> None:
        """Start ingestion and the recurring renewal and cleanup jobs."""
        await self.init()
        self.ingestion_queue.start()
        if not self.scheduler.jobs:
            self.scheduler.add_job(
                "renew-subscriptions",
                self.renew_every.total_seconds(),
                self.update_subscriptions,
                run_immediately=True,
            )
            self.scheduler.add_job("clean-feeds", self.clean_every.total_seconds(), self.clean)
        self.scheduler.start()
        logger.info("PubSub hub service started")

    async def stop(self) -> None:
        """Stop the jobs, flush pending deliveries and close the store."""
        await self.scheduler.stop()
        if self._initialized:
            await self.ingestion_queue.stop()
            await self.store.close()
            self._initialized = False
        logger.info("PubSub hub service stopped")

    async def register_channels(self, channel_ids: list[str]) -> list[str]:
        """
        Start tracking the channels among ``channel_ids`` that are new.

        Returns:
            The ids that were not tracked before
        """
        if not channel_ids:
            return []
        new_ids = await self.store.get_missing_channel_ids(channel_ids)
        if new_ids:
            await self.store.ensure_channels([Channel(id=cid) for cid in new_ids])
        return new_ids

    async def get_streams(
        self, channel_ids: list[str], skipped_channel_ids: list[str] | None = None
    ) -> list[Feed]:
        """
        Reconcile and return the stream feeds of ``channel_ids``.

        Channels seen for the first time are registered and subscribed, then
        both sync pipelines run before the stored streams are read.

        Args:
            channel_ids: Channels to report on
            skipped_channel_ids: Receives the channels whose poll failed

        Returns:
            Stream feeds of the channels, ended ones included
        """
        if skipped_channel_ids is None:
            skipped_channel_ids = []

        if await self.register_channels(channel_ids):
            await self.update_subscriptions()

        await self.channel_sync.sync_channels(channel_ids, skipped_channel_ids)
        await self.stream_sync.sync_streams(channel_ids)
        return await self.store.get_stream_feeds_by_channel_ids(channel_ids)

    async def get_live_streams(self, channel_ids: list[str]) -> list[Feed]:
        """Return the stored streams of ``channel_ids`` that are on air."""
        feeds = await self.store.get_stream_feeds_by_channel_ids(channel_ids)
        return [feed for feed in feeds if not feed.is_offline]

    async def update_subscriptions(self) -> RenewalResult:
        return await self.subscription_manager.renew_expiring()

    async def clean(self) -> CleanResult:
        """Remove feeds older than the retention window that are not on air."""
        async with self.gate:
            removed = await self.store.clean(self._clock() - self.feed_retention)
        if removed:
            logger.info(f"Cleaned {removed} feeds")
        return CleanResult(removed_feed_count=removed)

    async def subscribe(self, channel_id: str) -> None:
        await self.subscription_manager.subscribe(channel_id)

    async def unsubscribe(self, channel_id: str) -> None:
        await self.subscription_manager.unsubscribe(channel_id)

    def handle_delivery(self, body: bytes | str) -> bool:
        """
        Parse a pushed feed document and queue its entry.

        Returns:
            True if an entry was queued
        """
        result = parse_feed_document(body)
        if isinstance(result, FeedParseFailure):
            if not result.is_deleted:
                logger.debug(f"Feed document skipped, cause: {result.code.value} {result.message}")
            return False
        return self.ingestion_queue.on_delivery(result)
