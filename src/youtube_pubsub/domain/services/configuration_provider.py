"""Abstract base class for configuration management."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from youtube_pubsub.domain.models.channel import ChannelConfig

if TYPE_CHECKING:
    from youtube_pubsub.infrastructure.config.models import (
        LoggingConfig,
        PushSettings,
        ScheduleSettings,
        StorageSettings,
        SyncSettings,
        YouTubeAPIConfig,
    )


class ConfigurationProvider(ABC):
    """
    Abstract service for providing application configuration.

    This interface defines the contract for loading and validating
    configuration data from various sources (files, environment variables,
    remote configuration services, etc.).
    """

    @abstractmethod
    def get_channels(self) -> list[ChannelConfig]:
        """
        Get the channels to track from startup.

        Returns:
            List of validated channel configurations

        Raises:
            ConfigurationError: If configuration is invalid or cannot be loaded
        """
        pass

    @abstractmethod
    def get_push_settings(self) -> PushSettings:
        """Get the hub subscription and webhook server settings."""
        pass

    @abstractmethod
    def get_youtube_api_config(self) -> YouTubeAPIConfig:
        """Get the YouTube Data API access settings."""
        pass

    @abstractmethod
    def get_sync_settings(self) -> SyncSettings:
        """Get claim windows, intervals and fan-out of the sync passes."""
        pass

    @abstractmethod
    def get_schedule_settings(self) -> ScheduleSettings:
        """Get the cadence of the recurring renewal and cleanup sweeps."""
        pass

    @abstractmethod
    def get_storage_settings(self) -> StorageSettings:
        """Get the feed store settings."""
        pass

    @abstractmethod
    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration."""
        pass

    @abstractmethod
    def reload(self) -> None:
        """
        Reload configuration from source.

        Raises:
            ConfigurationError: If configuration cannot be reloaded or is invalid
        """
        pass
