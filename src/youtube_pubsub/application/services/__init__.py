"""Application services."""

from youtube_pubsub.application.services.channel_sync import ChannelSyncPipeline
from youtube_pubsub.application.services.feed_ingestion import FeedIngestionQueue
from youtube_pubsub.application.services.pubsub_service import PubSubHubService
from youtube_pubsub.application.services.stream_sync import StreamStatusSyncPipeline
from youtube_pubsub.application.services.subscription_manager import SubscriptionManager

__all__ = [
    "ChannelSyncPipeline",
    "FeedIngestionQueue",
    "PubSubHubService",
    "StreamStatusSyncPipeline",
    "SubscriptionManager",
]
