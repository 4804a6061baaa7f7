"""Feed store implementations."""

from youtube_pubsub.infrastructure.storage.memory_store import InMemoryFeedStore
from youtube_pubsub.infrastructure.storage.sql_store import SqlFeedStore

__all__ = [
    "InMemoryFeedStore",
    "SqlFeedStore",
]
