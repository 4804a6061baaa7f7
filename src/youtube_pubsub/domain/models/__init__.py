"""Domain models for the YouTube PubSub application."""

from youtube_pubsub.domain.models.channel import (
    Channel,
    ChannelConfig,
    build_topic_url,
    wrap_channel_id,
)
from youtube_pubsub.domain.models.feed import (
    Feed,
    FeedEntry,
    LiveDetails,
    VideoSnippet,
)
from youtube_pubsub.domain.models.results import CleanResult, RenewalResult

__all__ = [
    "Channel",
    "ChannelConfig",
    "build_topic_url",
    "wrap_channel_id",
    "Feed",
    "FeedEntry",
    "LiveDetails",
    "VideoSnippet",
    "CleanResult",
    "RenewalResult",
]
