"""Abstract base classes for domain services."""

from youtube_pubsub.domain.services.configuration_provider import ConfigurationProvider
from youtube_pubsub.domain.services.feed_store import FeedStore
from youtube_pubsub.domain.services.hub_client import HubClient
from youtube_pubsub.domain.services.platform_client import PlatformClient

__all__ = [
    "ConfigurationProvider",
    "FeedStore",
    "HubClient",
    "PlatformClient",
]
