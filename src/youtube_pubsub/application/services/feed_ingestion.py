"""Buffered ingestion of pushed feed entries."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import timedelta

from youtube_pubsub.application.clock import Clock, utc_now
from youtube_pubsub.application.feed_events import FeedEvent, log_feed_event
from youtube_pubsub.domain.models.feed import Feed, FeedEntry
from youtube_pubsub.domain.services.feed_store import FeedStore

logger = logging.getLogger(__name__)


class FeedIngestionQueue:
    """
    Coalesces webhook deliveries into batched store writes.

    Deliveries are appended to an in-memory buffer. A single consumer task
    wakes on the first pending entry, waits out the flush delay so a burst
    of deliveries lands in one batch, then flushes everything pending.
    Entries of channels that are not tracked are dropped at flush time.
    """

    def __init__(
        self,
        store: FeedStore,
        gate: asyncio.Lock,
        window: timedelta = timedelta(days=7),
        flush_delay: float = 1.0,
        clock: Clock = utc_now,
    ) -> None:
        """
        Initialize the ingestion queue.

        Args:
            store: Feed store receiving the entries
            gate: Process-wide lock serialising sweeps
            window: Entries published longer ago are dropped on delivery
            flush_delay: Seconds to coalesce deliveries before flushing
            clock: Time source
        """
        self.store = store
        self.gate = gate
        self.window = window
        self.flush_delay = flush_delay
        self._clock = clock
        self._pending: list[FeedEntry] = []
        self._wakeup = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def on_delivery(self, entry: FeedEntry) -> bool:
        """
        Queue a pushed entry for the next flush.

        Returns:
            True if the entry was queued, False if it was too old
        """
        if entry.published_at <= self._clock() - self.window:
            logger.debug(f"Dropping old feed entry {entry.id} published {entry.published_at}")
            return False

        self._pending.append(entry)
        self._wakeup.set()
        return True

    async def flush(self) -> int:
        """
        Write all pending entries to the store.

        Entries queued while a batch is being written are picked up by the
        same call.

        Returns:
            Number of feeds that were not known before
        """
        inserted = 0
        while self._pending:
            self._wakeup.clear()
            batch, self._pending = self._pending, []
            inserted += await self._commit(batch)
        return inserted

    async def _commit(self, batch: list[FeedEntry]) -> int:
        # last delivery of a video wins
        entries = {entry.id: entry for entry in batch}

        async with self.gate:
            channel_ids = list({entry.channel_id for entry in entries.values()})
            tracked_channel_ids = await self.store.get_existing_channel_ids(channel_ids)

            tracked = [e for e in entries.values() if e.channel_id in tracked_channel_ids]
            if len(tracked) < len(entries):
                logger.debug(f"Dropped {len(entries) - len(tracked)} entries of untracked channels")
            if not tracked:
                return 0

            states = await self.store.get_feed_states([entry.id for entry in tracked])
            await self.store.put_feeds([Feed.from_entry(entry) for entry in tracked])

        new_entries = [entry for entry in tracked if entry.id not in states]
        for entry in new_entries:
            log_feed_event(FeedEvent.INSERT, entry.channel_id, entry.id)
        return len(new_entries)

    async def _run(self) -> None:
        while True:
            await self._wakeup.wait()
            await asyncio.sleep(self.flush_delay)
            try:
                await self.flush()
            except Exception:
                logger.exception("Feed ingestion flush failed")

    def start(self) -> None:
        """Start the consumer task."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="feed-ingestion")

    async def stop(self) -> None:
        """Stop the consumer task and flush whatever is still pending."""
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        await self.flush()
