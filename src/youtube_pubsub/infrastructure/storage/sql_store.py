"""Durable feed store on SQLAlchemy asyncio."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator, Callable, Collection
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import and_, case, delete, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from youtube_pubsub.domain.exceptions import StoreError
from youtube_pubsub.domain.models.channel import Channel
from youtube_pubsub.domain.models.feed import Feed
from youtube_pubsub.domain.services.feed_store import FeedStore
from youtube_pubsub.infrastructure.storage.tables import channel_table, feed_table, metadata

logger = logging.getLogger(__name__)


def _is_memory_url(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.rstrip("/").endswith(":"))


class SqlFeedStore(FeedStore):
    """
    Feed store backed by any async SQLAlchemy database.

    Every claim is a single ``UPDATE ... RETURNING`` statement whose WHERE
    clause re-checks the due condition, so concurrent workers (in this
    process or another one sharing the database) never receive the same row.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        """
        Initialize the store.

        Args:
            url: SQLAlchemy async database URL, e.g. ``sqlite+aiosqlite:///feeds.db``
            echo: Log every SQL statement
        """
        self.url = url
        self.echo = echo
        self._engine: AsyncEngine | None = None

    async def init(self) -> None:
        if self._engine is not None:
            logger.debug("Feed store already initialized, skipping reinitialization")
            return

        kwargs: dict[str, Any] = {"echo": self.echo}
        if _is_memory_url(self.url):
            # every connection must see the same in-memory database
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
        self._engine = create_async_engine(self.url, **kwargs)

        async with self._connect() as conn:
            await conn.run_sync(metadata.create_all)
        logger.debug(f"Feed store connected to {self.url}")

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        logger.debug("Feed store closed")

    @contextlib.asynccontextmanager
    async def _connect(self) -> AsyncIterator[AsyncConnection]:
        if self._engine is None:
            raise StoreError("Feed store is not initialized")

        try:
            async with self._engine.begin() as connection:
                yield connection
        except SQLAlchemyError as e:
            raise StoreError(f"Feed store operation failed: {e}", e) from e

    # Channels

    async def get_missing_channel_ids(self, channel_ids: list[str]) -> list[str]:
        existing = await self.get_existing_channel_ids(channel_ids)
        return [cid for cid in dict.fromkeys(channel_ids) if cid not in existing]

    async def ensure_channels(self, channels: list[Channel]) -> None:
        if not channels:
            return
        rows = {channel.id: _channel_row(channel) for channel in channels}
        async with self._connect() as conn:
            stmt = _dialect_insert(conn)(channel_table).on_conflict_do_nothing(
                index_elements=[channel_table.c.id]
            )
            await conn.execute(stmt, list(rows.values()))

    async def get_channels_by_ids(self, channel_ids: list[str]) -> list[Channel]:
        if not channel_ids:
            return []
        async with self._connect() as conn:
            result = await conn.execute(
                select(channel_table).where(channel_table.c.id.in_(channel_ids))
            )
            return [Channel(**row._mapping) for row in result]

    async def get_existing_channel_ids(self, channel_ids: list[str]) -> set[str]:
        if not channel_ids:
            return set()
        async with self._connect() as conn:
            result = await conn.execute(
                select(channel_table.c.id).where(channel_table.c.id.in_(channel_ids))
            )
            return set(result.scalars())

    async def claim_channels_for_renewal(
        self,
        *,
        now: datetime,
        expires_before: datetime,
        claim_until: datetime,
        limit: int,
        exclude_ids: Collection[str] = (),
    ) -> list[str]:
        c = channel_table.c
        due = and_(
            or_(c.subscription_timeout_expires_at.is_(None), c.subscription_timeout_expires_at <= now),
            or_(c.subscription_expires_at.is_(None), c.subscription_expires_at < expires_before),
        )
        if exclude_ids:
            due = and_(due, c.id.not_in(list(exclude_ids)))
        page = select(c.id).where(due).order_by(c.subscription_expires_at).limit(limit)
        stmt = (
            update(channel_table)
            .where(c.id.in_(page), due)
            .values(subscription_timeout_expires_at=claim_until)
            .returning(c.id)
        )
        async with self._connect() as conn:
            result = await conn.execute(stmt)
            return list(result.scalars())

    async def set_subscription_expires_at(
        self, channel_ids: list[str], expires_at: datetime
    ) -> None:
        if not channel_ids:
            return
        async with self._connect() as conn:
            await conn.execute(
                update(channel_table)
                .where(channel_table.c.id.in_(channel_ids))
                .values(subscription_expires_at=expires_at)
            )

    @staticmethod
    def _channel_sync_due(now: datetime, synced_before: datetime) -> Any:
        c = channel_table.c
        return and_(
            or_(c.sync_timeout_expires_at.is_(None), c.sync_timeout_expires_at <= now),
            or_(c.last_sync_at.is_(None), c.last_sync_at < synced_before),
        )

    async def get_channel_ids_for_sync(
        self, channel_ids: list[str], *, now: datetime, synced_before: datetime
    ) -> list[str]:
        if not channel_ids:
            return []
        async with self._connect() as conn:
            result = await conn.execute(
                select(channel_table.c.id)
                .where(
                    channel_table.c.id.in_(channel_ids),
                    self._channel_sync_due(now, synced_before),
                )
                .order_by(channel_table.c.id)
            )
            return list(result.scalars())

    async def claim_channels_for_sync(
        self,
        channel_ids: list[str],
        *,
        now: datetime,
        synced_before: datetime,
        claim_until: datetime,
    ) -> list[Channel]:
        if not channel_ids:
            return []
        stmt = (
            update(channel_table)
            .where(
                channel_table.c.id.in_(channel_ids),
                self._channel_sync_due(now, synced_before),
            )
            .values(sync_timeout_expires_at=claim_until)
            .returning(*channel_table.c)
        )
        async with self._connect() as conn:
            result = await conn.execute(stmt)
            return [Channel(**row._mapping) for row in result]

    async def set_channels_last_sync_at(self, channel_ids: list[str], synced_at: datetime) -> None:
        if not channel_ids:
            return
        async with self._connect() as conn:
            await conn.execute(
                update(channel_table)
                .where(channel_table.c.id.in_(channel_ids))
                .values(last_sync_at=synced_at)
            )

    async def set_channels_upcoming_checked(self, channel_ids: list[str]) -> None:
        if not channel_ids:
            return
        async with self._connect() as conn:
            await conn.execute(
                update(channel_table)
                .where(channel_table.c.id.in_(channel_ids))
                .values(is_upcoming_checked=True)
            )

    # Feeds

    async def get_feed_states(self, feed_ids: list[str]) -> dict[str, bool | None]:
        if not feed_ids:
            return {}
        async with self._connect() as conn:
            result = await conn.execute(
                select(feed_table.c.id, feed_table.c.is_stream).where(feed_table.c.id.in_(feed_ids))
            )
            return {row.id: row.is_stream for row in result}

    async def put_feeds(self, feeds: list[Feed]) -> None:
        if not feeds:
            return
        created_at = datetime.now(timezone.utc)
        # one row per id, a statement may not touch the same row twice
        rows = [_new_feed_row(feed, created_at) for feed in {f.id: f for f in feeds}.values()]
        async with self._connect() as conn:
            stmt = _dialect_insert(conn)(feed_table)
            c = feed_table.c
            stmt = stmt.on_conflict_do_update(
                index_elements=[c.id],
                set_={
                    "title": stmt.excluded.title,
                    "channel_id": stmt.excluded.channel_id,
                    "channel_title": stmt.excluded.channel_title,
                    "published_at": func.coalesce(stmt.excluded.published_at, c.published_at),
                    "is_stream": case(
                        (c.is_stream.is_(True), True), else_=stmt.excluded.is_stream
                    ),
                },
            )
            await conn.execute(stmt, rows)

    async def get_feeds_by_ids(self, feed_ids: list[str]) -> list[Feed]:
        if not feed_ids:
            return []
        async with self._connect() as conn:
            result = await conn.execute(select(feed_table).where(feed_table.c.id.in_(feed_ids)))
            return [Feed(**row._mapping) for row in result]

    @staticmethod
    def _feed_sync_due(now: datetime) -> Any:
        c = feed_table.c
        return and_(
            or_(c.sync_timeout_expires_at.is_(None), c.sync_timeout_expires_at <= now),
            or_(
                c.is_stream.is_(None),
                and_(c.is_stream.is_(True), c.actual_end_at.is_(None)),
            ),
        )

    async def get_feed_ids_for_sync(self, channel_ids: list[str], *, now: datetime) -> list[str]:
        if not channel_ids:
            return []
        async with self._connect() as conn:
            result = await conn.execute(
                select(feed_table.c.id)
                .where(feed_table.c.channel_id.in_(channel_ids), self._feed_sync_due(now))
                .order_by(feed_table.c.created_at, feed_table.c.id)
            )
            return list(result.scalars())

    async def claim_feeds_for_sync(
        self, feed_ids: list[str], *, now: datetime, claim_until: datetime
    ) -> list[Feed]:
        if not feed_ids:
            return []
        stmt = (
            update(feed_table)
            .where(feed_table.c.id.in_(feed_ids), self._feed_sync_due(now))
            .values(sync_timeout_expires_at=claim_until)
            .returning(*feed_table.c)
        )
        async with self._connect() as conn:
            result = await conn.execute(stmt)
            return [Feed(**row._mapping) for row in result]

    async def update_feeds(self, feeds: list[Feed]) -> None:
        if not feeds:
            return
        async with self._connect() as conn:
            for feed in feeds:
                await conn.execute(
                    update(feed_table)
                    .where(feed_table.c.id == feed.id)
                    .values(
                        is_stream=feed.is_stream,
                        viewers=feed.viewers,
                        scheduled_start_at=feed.scheduled_start_at,
                        actual_start_at=feed.actual_start_at,
                        actual_end_at=feed.actual_end_at,
                    )
                )

    async def get_stream_feeds_by_channel_ids(self, channel_ids: list[str]) -> list[Feed]:
        if not channel_ids:
            return []
        async with self._connect() as conn:
            result = await conn.execute(
                select(feed_table)
                .where(feed_table.c.channel_id.in_(channel_ids), feed_table.c.is_stream.is_(True))
                .order_by(feed_table.c.created_at)
            )
            return [Feed(**row._mapping) for row in result]

    async def clean(self, created_before: datetime) -> int:
        c = feed_table.c
        on_air = and_(
            c.is_stream.is_(True),
            c.actual_start_at.is_not(None),
            c.actual_end_at.is_(None),
        )
        stmt = delete(feed_table).where(c.created_at < created_before, ~on_air)
        async with self._connect() as conn:
            result = await conn.execute(stmt)
            return result.rowcount or 0


def _dialect_insert(conn: AsyncConnection) -> Callable[..., Any]:
    """Return the ``INSERT`` construct that supports ``ON CONFLICT`` for this database."""
    dialect = conn.dialect.name
    if dialect == "sqlite":
        return sqlite_insert
    if dialect == "postgresql":
        return pg_insert
    raise StoreError(f"Unsupported database dialect: {dialect}")


def _channel_row(channel: Channel) -> dict[str, Any]:
    return {
        "id": channel.id,
        "wrapped_id": channel.wrapped_id,
        "subscription_expires_at": channel.subscription_expires_at,
        "subscription_timeout_expires_at": channel.subscription_timeout_expires_at,
        "last_sync_at": channel.last_sync_at,
        "sync_timeout_expires_at": channel.sync_timeout_expires_at,
        "is_upcoming_checked": channel.is_upcoming_checked,
    }


def _new_feed_row(feed: Feed, created_at: datetime) -> dict[str, Any]:
    return {
        "id": feed.id,
        "title": feed.title,
        "channel_id": feed.channel_id,
        "channel_title": feed.channel_title,
        "published_at": feed.published_at,
        "is_stream": feed.is_stream,
        "sync_timeout_expires_at": None,
        "viewers": None,
        "scheduled_start_at": None,
        "actual_start_at": None,
        "actual_end_at": None,
        "created_at": created_at,
    }
