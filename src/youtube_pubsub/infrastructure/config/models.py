"""Pydantic configuration models for application settings."""

from __future__ import annotations

from typing import Any, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from youtube_pubsub.domain.models.channel import ChannelConfig

DEFAULT_HUB_URL = "https://pubsubhubbub.appspot.com/subscribe"


class PushSettings(BaseModel):
    """Configuration for hub subscriptions and the webhook server."""

    model_config = ConfigDict(extra="forbid")

    hub_url: str = Field(default=DEFAULT_HUB_URL, description="WebSub hub endpoint")
    callback_url: str = Field(..., min_length=1, description="Public URL the hub delivers to")
    path: str | None = Field(
        default=None, description="Callback route served locally (defaults to the callback URL path)"
    )
    host: str = Field(default="127.0.0.1", description="Interface the webhook server binds to")
    port: int = Field(default=8080, ge=1, le=65535, description="Port the webhook server binds to")
    secret: str | None = Field(default=None, description="HMAC secret for signed deliveries")
    lease_seconds: int = Field(default=86400, ge=60, le=864000, description="Requested lease")
    verify: Literal["async", "sync"] = Field(default="async", description="Hub verification mode")
    timeout_seconds: float = Field(default=10.0, gt=0, description="Hub request timeout")

    @field_validator("callback_url", "hub_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate that URLs are absolute http(s) URLs."""
        parsed = urlparse(v)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(f"Invalid URL: {v}")
        return v

    @field_validator("secret")
    @classmethod
    def empty_secret_is_none(cls, v: str | None) -> str | None:
        """Treat an empty secret (e.g. an unset env var) as no secret."""
        return v or None

    @property
    def callback_path(self) -> str:
        """The local route the hub delivers to."""
        if self.path:
            return self.path if self.path.startswith("/") else f"/{self.path}"
        return urlparse(self.callback_url).path or "/"


class YouTubeAPIConfig(BaseModel):
    """Configuration for YouTube Data API access."""

    model_config = ConfigDict(extra="forbid")

    api_key: str = Field(..., min_length=1, description="YouTube Data API v3 key")
    timeout_seconds: float = Field(default=20.0, gt=0, description="Per-request timeout")


class SyncSettings(BaseModel):
    """Configuration for claims and the polling sync passes."""

    model_config = ConfigDict(extra="forbid")

    channel_sync_interval_minutes: int = Field(
        default=240, ge=1, description="Minimum time between channel enumerations"
    )
    channel_sync_timeout_minutes: int = Field(
        default=5, ge=1, description="Channel sync claim window"
    )
    feed_sync_timeout_minutes: int = Field(
        default=1, ge=1, description="Feed status sync claim window"
    )
    subscription_timeout_minutes: int = Field(
        default=5, ge=1, description="Subscription renewal claim window"
    )
    renew_before_minutes: int = Field(
        default=60, ge=0, description="Renew leases expiring within this margin"
    )
    page_size: int = Field(default=50, ge=1, le=50, description="Rows per claimed page")
    concurrency: int = Field(default=10, ge=1, le=50, description="Bounded fan-out")
    ingestion_window_days: int = Field(
        default=7, ge=1, description="Pushed entries older than this are dropped"
    )
    flush_delay_seconds: float = Field(
        default=1.0, ge=0, description="Coalescing window of the ingestion flush"
    )


class ScheduleSettings(BaseModel):
    """Configuration for the recurring sweeps."""

    model_config = ConfigDict(extra="forbid")

    renew_every_minutes: int = Field(default=60, ge=1, description="Renewal sweep cadence")
    clean_every_hours: int = Field(default=24, ge=1, description="Cleanup sweep cadence")


class StorageSettings(BaseModel):
    """Configuration for the feed store."""

    model_config = ConfigDict(extra="forbid")

    backend: Literal["sql", "memory"] = Field(default="sql", description="Feed store backend")
    url: str = Field(
        default="sqlite+aiosqlite:///youtube_pubsub.db",
        description="SQLAlchemy async database URL",
    )
    feed_retention_days: int = Field(
        default=14, ge=1, description="Feeds first seen longer ago are cleaned"
    )
    echo: bool = Field(default=False, description="Log SQL statements")


class LoggingConfig(BaseModel):
    """Configuration for application logging."""

    model_config = ConfigDict(extra="forbid")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
    )
    file_path: str | None = Field(default=None, description="Log file path (None for console only)")
    events_file_path: str | None = Field(
        default=None, description="Separate file for feed state events"
    )
    max_file_size: int = Field(default=10485760, ge=1024, description="Max log file size in bytes (10MB)")
    backup_count: int = Field(default=5, ge=1, description="Number of backup log files to keep")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class AppConfig(BaseModel):
    """
    Main application configuration model.

    This is the root configuration object that contains all application settings,
    validated using Pydantic for type safety and runtime validation.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    push: PushSettings
    youtube_api: YouTubeAPIConfig
    channels: list[ChannelConfig] = Field(default_factory=list, description="Channels tracked from startup")
    sync: SyncSettings = Field(default_factory=SyncSettings)
    schedule: ScheduleSettings = Field(default_factory=ScheduleSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def validate_channels(self) -> AppConfig:
        """Reject duplicate channel IDs."""
        channel_ids = [channel.channel_id for channel in self.channels]
        if len(channel_ids) != len(set(channel_ids)):
            raise ValueError("Duplicate channel IDs found in configuration")
        return self

    def get_enabled_channels(self) -> list[ChannelConfig]:
        """Get only the enabled channels."""
        return [channel for channel in self.channels if channel.enabled]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return self.model_dump()
