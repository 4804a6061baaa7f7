"""YouTube Data API integration."""

from youtube_pubsub.infrastructure.youtube.client import YouTubeDataClient

__all__ = [
    "YouTubeDataClient",
]
