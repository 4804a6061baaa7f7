"""SQLAlchemy table definitions for the feed store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)
from sqlalchemy.types import TypeDecorator

metadata = MetaData()


class UtcDateTime(TypeDecorator):
    """
    Timestamp stored as naive UTC and read back as timezone-aware UTC.

    SQLite has no timezone support, so every value is normalised before it
    is written and comparisons inside SQL stay consistent.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


channel_table = Table(
    "channels",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("wrapped_id", String(80), nullable=False, unique=True),
    Column("subscription_expires_at", UtcDateTime, nullable=True, index=True),
    Column("subscription_timeout_expires_at", UtcDateTime, nullable=True),
    Column("last_sync_at", UtcDateTime, nullable=True),
    Column("sync_timeout_expires_at", UtcDateTime, nullable=True),
    Column("is_upcoming_checked", Boolean, nullable=False, default=False),
)

feed_table = Table(
    "feeds",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("title", Text, nullable=False),
    Column("channel_id", String(64), nullable=False, index=True),
    Column("channel_title", Text, nullable=False),
    Column("published_at", UtcDateTime, nullable=True),
    Column("is_stream", Boolean, nullable=True),
    Column("sync_timeout_expires_at", UtcDateTime, nullable=True),
    Column("viewers", Integer, nullable=True),
    Column("scheduled_start_at", UtcDateTime, nullable=True),
    Column("actual_start_at", UtcDateTime, nullable=True),
    Column("actual_end_at", UtcDateTime, nullable=True),
    Column("created_at", UtcDateTime, nullable=False, index=True),
)
