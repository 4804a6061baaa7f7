"""Abstract base class for persisted channel subscription and feed state."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Collection
from datetime import datetime

from youtube_pubsub.domain.models.channel import Channel
from youtube_pubsub.domain.models.feed import Feed


class FeedStore(ABC):
    """
    Durable state of the hub client.

    The store is the only source of truth shared between workers and
    processes. Every ``claim_*`` operation must select the due rows and stamp
    their claim as one atomic step, so that two concurrent callers never
    receive the same row while its claim is in the future.
    """

    async def init(self) -> None:
        """Prepare the store for use (create tables, open connections)."""

    async def close(self) -> None:
        """Release resources held by the store."""

    # Channels

    @abstractmethod
    async def get_missing_channel_ids(self, channel_ids: list[str]) -> list[str]:
        """Return the ids from ``channel_ids`` that are not tracked yet."""
        pass

    @abstractmethod
    async def ensure_channels(self, channels: list[Channel]) -> None:
        """Insert channels that are not tracked yet, leaving existing rows untouched."""
        pass

    @abstractmethod
    async def get_channels_by_ids(self, channel_ids: list[str]) -> list[Channel]:
        """Return the tracked channels among ``channel_ids``."""
        pass

    @abstractmethod
    async def get_existing_channel_ids(self, channel_ids: list[str]) -> set[str]:
        """Return the ids from ``channel_ids`` that are tracked."""
        pass

    @abstractmethod
    async def claim_channels_for_renewal(
        self,
        *,
        now: datetime,
        expires_before: datetime,
        claim_until: datetime,
        limit: int,
        exclude_ids: Collection[str] = (),
    ) -> list[str]:
        """
        Claim channels whose hub lease needs renewing.

        A channel is due when it was never subscribed or its lease expires
        before ``expires_before``, and no renewal claim is active at ``now``.
        Channels in ``exclude_ids`` are never claimed.
        Up to ``limit`` due channels get ``subscription_timeout_expires_at =
        claim_until``.

        Returns:
            The ids of the claimed channels
        """
        pass

    @abstractmethod
    async def set_subscription_expires_at(
        self, channel_ids: list[str], expires_at: datetime
    ) -> None:
        """Record a new lease expiry for the given channels."""
        pass

    @abstractmethod
    async def get_channel_ids_for_sync(
        self, channel_ids: list[str], *, now: datetime, synced_before: datetime
    ) -> list[str]:
        """
        Return the channels among ``channel_ids`` that are due for a sync poll.

        A channel is due when it was never synced or was last synced before
        ``synced_before``, and no sync claim is active at ``now``.
        """
        pass

    @abstractmethod
    async def claim_channels_for_sync(
        self,
        channel_ids: list[str],
        *,
        now: datetime,
        synced_before: datetime,
        claim_until: datetime,
    ) -> list[Channel]:
        """
        Claim the channels among ``channel_ids`` that are still due for sync.

        Returns:
            The claimed channels, with ``sync_timeout_expires_at = claim_until``
        """
        pass

    @abstractmethod
    async def set_channels_last_sync_at(self, channel_ids: list[str], synced_at: datetime) -> None:
        """Stamp a successful sync poll."""
        pass

    @abstractmethod
    async def set_channels_upcoming_checked(self, channel_ids: list[str]) -> None:
        """Mark the upcoming enumeration as done for the given channels."""
        pass

    # Feeds

    @abstractmethod
    async def get_feed_states(self, feed_ids: list[str]) -> dict[str, bool | None]:
        """
        Return the stream classification of the known feeds among ``feed_ids``.

        Unknown feed ids are absent from the result.
        """
        pass

    @abstractmethod
    async def put_feeds(self, feeds: list[Feed]) -> None:
        """
        Insert or update feeds discovered by push or channel poll.

        New feeds are stored with the given ``is_stream``. For known feeds the
        descriptive fields are updated and ``is_stream`` is re-read in the same
        atomic step: a confirmed stream stays ``True``, anything else takes the
        given value (``None`` for a rediscovered feed). A ``None``
        ``published_at`` does not overwrite a stored value. Live metadata and
        sync claims are left untouched.
        """
        pass

    @abstractmethod
    async def get_feeds_by_ids(self, feed_ids: list[str]) -> list[Feed]:
        """Return the known feeds among ``feed_ids``."""
        pass

    @abstractmethod
    async def get_feed_ids_for_sync(self, channel_ids: list[str], *, now: datetime) -> list[str]:
        """
        Return the feeds of ``channel_ids`` that are due for a status sync.

        A feed is due when it is unclassified, or a stream that has not
        ended, and no sync claim is active at ``now``.
        """
        pass

    @abstractmethod
    async def claim_feeds_for_sync(
        self, feed_ids: list[str], *, now: datetime, claim_until: datetime
    ) -> list[Feed]:
        """
        Claim the feeds among ``feed_ids`` that are still due for a status sync.

        Returns:
            The claimed feeds, with ``sync_timeout_expires_at = claim_until``
        """
        pass

    @abstractmethod
    async def update_feeds(self, feeds: list[Feed]) -> None:
        """Write stream classification and live metadata of existing feeds."""
        pass

    @abstractmethod
    async def get_stream_feeds_by_channel_ids(self, channel_ids: list[str]) -> list[Feed]:
        """Return the feeds of ``channel_ids`` confirmed as streams."""
        pass

    @abstractmethod
    async def clean(self, created_before: datetime) -> int:
        """
        Remove feeds first seen before ``created_before``.

        Streams that are on air are kept.

        Returns:
            Number of removed feeds
        """
        pass
