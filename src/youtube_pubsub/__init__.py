"""YouTube PubSub - WebSub feed ingestion and live status reconciliation for YouTube channels."""

__version__ = "0.1.0"
__description__ = (
    "Keeps YouTube PubSubHubbub subscriptions alive, ingests pushed feed "
    "notifications and reconciles them against the YouTube Data API"
)

from youtube_pubsub.domain.models import Channel, Feed, FeedEntry

__all__ = ["Channel", "Feed", "FeedEntry"]
