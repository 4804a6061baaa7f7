"""Feed domain model and the values produced by feed sources."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class FeedEntry:
    """A video announced by a pushed Atom feed document."""

    id: str
    title: str
    channel_id: str
    channel_title: str
    published_at: datetime


@dataclass(frozen=True)
class VideoSnippet:
    """Descriptive metadata of a video returned by a channel enumeration."""

    title: str
    channel_id: str
    channel_title: str


@dataclass(frozen=True)
class LiveDetails:
    """Live broadcast details of a video."""

    viewers: int | None = None
    scheduled_start_at: datetime | None = None
    actual_start_at: datetime | None = None
    actual_end_at: datetime | None = None


@dataclass(frozen=True)
class Feed:
    """
    A video or broadcast discovered for a tracked channel.

    ``is_stream`` is tri-state: ``None`` means not classified yet, ``True``
    a confirmed live broadcast, ``False`` a video the platform does not
    report as a broadcast.
    """

    id: str
    title: str
    channel_id: str
    channel_title: str
    published_at: datetime | None = None
    is_stream: bool | None = None
    sync_timeout_expires_at: datetime | None = None
    viewers: int | None = None
    scheduled_start_at: datetime | None = None
    actual_start_at: datetime | None = None
    actual_end_at: datetime | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate feed data after initialization."""
        if not self.id:
            raise ValueError("Feed ID cannot be empty")
        if not self.channel_id:
            raise ValueError("Channel ID cannot be empty")

    @classmethod
    def from_entry(cls, entry: FeedEntry, is_stream: bool | None = None) -> Feed:
        """Create a feed row from a pushed entry."""
        return cls(
            id=entry.id,
            title=entry.title,
            channel_id=entry.channel_id,
            channel_title=entry.channel_title,
            published_at=entry.published_at,
            is_stream=is_stream,
        )

    @classmethod
    def from_snippet(
        cls, video_id: str, snippet: VideoSnippet, is_stream: bool | None = None
    ) -> Feed:
        """Create a feed row from a channel enumeration result."""
        return cls(
            id=video_id,
            title=snippet.title,
            channel_id=snippet.channel_id,
            channel_title=snippet.channel_title,
            is_stream=is_stream,
        )

    @property
    def is_ended(self) -> bool:
        """Whether the broadcast has finished."""
        return self.actual_end_at is not None

    @property
    def is_offline(self) -> bool:
        """Whether the stream is not on air right now."""
        return self.actual_start_at is None or self.actual_end_at is not None

    def with_live_details(self, details: LiveDetails) -> Feed:
        """Create a new Feed confirmed as a stream with the given details."""
        return Feed(
            id=self.id,
            title=self.title,
            channel_id=self.channel_id,
            channel_title=self.channel_title,
            published_at=self.published_at,
            is_stream=True,
            sync_timeout_expires_at=self.sync_timeout_expires_at,
            viewers=details.viewers,
            scheduled_start_at=details.scheduled_start_at,
            actual_start_at=details.actual_start_at,
            actual_end_at=details.actual_end_at,
            created_at=self.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise for the read API."""

        def iso(value: datetime | None) -> str | None:
            return value.isoformat() if value else None

        return {
            "id": self.id,
            "title": self.title,
            "channelId": self.channel_id,
            "channelTitle": self.channel_title,
            "url": f"https://youtu.be/{self.id}",
            "publishedAt": iso(self.published_at),
            "viewers": self.viewers,
            "scheduledStartAt": iso(self.scheduled_start_at),
            "actualStartAt": iso(self.actual_start_at),
            "actualEndAt": iso(self.actual_end_at),
            "isOffline": self.is_offline,
        }

    def __str__(self) -> str:
        """Human-readable string representation."""
        return f"Feed(id={self.id}, channel_id={self.channel_id}, is_stream={self.is_stream})"
