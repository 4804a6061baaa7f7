"""Channel domain model and configuration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field, field_validator

SERVICE_TAG = "yt"

TOPIC_BASE_URL = "https://www.youtube.com/xml/feeds/videos.xml"


def wrap_channel_id(channel_id: str) -> str:
    """Build the cross-service key for a YouTube channel id."""
    return f"{SERVICE_TAG}:{channel_id}"


def build_topic_url(channel_id: str) -> str:
    """Return the hub topic of a channel's video feed."""
    return f"{TOPIC_BASE_URL}?{urlencode({'channel_id': channel_id})}"


@dataclass(frozen=True)
class Channel:
    """
    A YouTube channel tracked through the PubSub hub.

    The two ``*_timeout_expires_at`` fields are exclusive claims: while one
    of them is in the future, no other worker may act on the channel for
    that purpose. Claims are never released explicitly, they lapse.
    """

    id: str
    wrapped_id: str = ""
    subscription_expires_at: datetime | None = None
    subscription_timeout_expires_at: datetime | None = None
    last_sync_at: datetime | None = None
    sync_timeout_expires_at: datetime | None = None
    is_upcoming_checked: bool = False

    def __post_init__(self) -> None:
        """Validate channel data after initialization."""
        if not self.id:
            raise ValueError("Channel ID cannot be empty")
        if not self.wrapped_id:
            object.__setattr__(self, "wrapped_id", wrap_channel_id(self.id))

    def is_subscription_claimed(self, now: datetime) -> bool:
        """Whether a renewal attempt currently holds this channel."""
        return (
            self.subscription_timeout_expires_at is not None
            and self.subscription_timeout_expires_at > now
        )

    def is_sync_claimed(self, now: datetime) -> bool:
        """Whether a reconciliation poll currently holds this channel."""
        return self.sync_timeout_expires_at is not None and self.sync_timeout_expires_at > now

    def __str__(self) -> str:
        """Human-readable string representation."""
        return f"Channel(id={self.id})"


class ChannelConfig(BaseModel):
    """
    A channel listed in the configuration file.

    Configured channels are registered with the store when the service
    starts, so their subscriptions are kept alive without waiting for a
    first live status request.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    channel_id: str = Field(..., min_length=1, description="YouTube channel ID")
    name: str | None = Field(default=None, description="Human-readable label")
    enabled: bool = Field(default=True, description="Whether to track this channel")

    @field_validator("channel_id")
    @classmethod
    def validate_channel_id(cls, v: str) -> str:
        """Validate YouTube channel ID format."""
        if not v.startswith("UC"):
            raise ValueError(f"Invalid YouTube channel ID format: {v}")
        if len(v) != 24:
            raise ValueError(f"YouTube channel ID must be 24 characters long: {v}")
        return v
