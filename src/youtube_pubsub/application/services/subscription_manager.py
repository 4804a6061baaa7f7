"""Default implementation of hub subscription management."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from youtube_pubsub.application.clock import Clock, utc_now
from youtube_pubsub.application.concurrency import gather_limited
from youtube_pubsub.domain.models.channel import build_topic_url
from youtube_pubsub.domain.models.results import RenewalResult
from youtube_pubsub.domain.services.feed_store import FeedStore
from youtube_pubsub.domain.services.hub_client import HubClient

logger = logging.getLogger(__name__)


class SubscriptionManager:
    """
    Keeps hub subscriptions of tracked channels alive.

    Renewal is claim based: a channel is only handed to one renewal attempt
    at a time, and a failed attempt simply lets its claim lapse so the next
    sweep picks it up again.
    """

    def __init__(
        self,
        store: FeedStore,
        hub_client: HubClient,
        gate: asyncio.Lock,
        lease_seconds: int = 86400,
        renew_before: timedelta = timedelta(hours=1),
        claim_timeout: timedelta = timedelta(minutes=5),
        page_size: int = 50,
        concurrency: int = 10,
        clock: Clock = utc_now,
    ) -> None:
        """
        Initialize the subscription manager.

        Args:
            store: Feed store holding channel subscription state
            hub_client: Client for the WebSub hub
            gate: Process-wide lock serialising sweeps
            lease_seconds: Lease requested from the hub
            renew_before: Renew leases expiring within this margin
            claim_timeout: How long a renewal claim holds a channel
            page_size: Channels claimed per round
            concurrency: Parallel hub requests
            clock: Time source
        """
        self.store = store
        self.hub_client = hub_client
        self.gate = gate
        self.lease_seconds = lease_seconds
        self.renew_before = renew_before
        self.claim_timeout = claim_timeout
        self.page_size = page_size
        self.concurrency = concurrency
        self._clock = clock

    async def subscribe(self, channel_id: str) -> None:
        """
        Subscribe to a channel's feed topic.

        Raises:
            HubError: If the hub does not acknowledge the request
        """
        await self.hub_client.subscribe(build_topic_url(channel_id))

    async def unsubscribe(self, channel_id: str) -> None:
        """
        Unsubscribe from a channel's feed topic.

        Raises:
            HubError: If the hub does not acknowledge the request
        """
        await self.hub_client.unsubscribe(build_topic_url(channel_id))

    async def renew_expiring(self) -> RenewalResult:
        """
        Renew every lease that is missing or about to expire.

        Claims pages of due channels until none are left, subscribes each
        claimed channel and records the new lease expiry for the ones the hub
        accepted. Failures are counted and logged, never raised.

        Returns:
            RenewalResult with the number of renewed and failed channels
        """
        result = RenewalResult()
        attempted: set[str] = set()

        async with self.gate:
            while True:
                now = self._clock()
                channel_ids = await self.store.claim_channels_for_renewal(
                    now=now,
                    expires_before=now + self.renew_before,
                    claim_until=now + self.claim_timeout,
                    limit=self.page_size,
                    # a sweep outliving the claim window must not retry its own channels
                    exclude_ids=attempted,
                )
                if not channel_ids:
                    break
                attempted.update(channel_ids)

                expires_at = now + timedelta(seconds=self.lease_seconds)
                outcomes = await gather_limited(self.concurrency, channel_ids, self.subscribe)

                subscribed: list[str] = []
                for channel_id, outcome in zip(channel_ids, outcomes):
                    if isinstance(outcome, BaseException):
                        logger.warning(f"Subscribe channel {channel_id} skipped: {outcome}")
                        result.error_count += 1
                    else:
                        subscribed.append(channel_id)

                await self.store.set_subscription_expires_at(subscribed, expires_at)
                result.subscribe_count += len(subscribed)

        if result.subscribe_count or result.error_count:
            logger.info(f"Subscription renewal complete: {result}")
        return result
