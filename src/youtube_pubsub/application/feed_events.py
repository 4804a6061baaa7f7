"""Log of feed state transitions."""

from __future__ import annotations

import logging
from enum import Enum

EVENTS_LOGGER_NAME = "youtube_pubsub.events"

event_logger = logging.getLogger(EVENTS_LOGGER_NAME)


class FeedEvent(str, Enum):
    """Feed state transitions worth keeping a record of."""

    INSERT = "insert"
    INSERT_FULL = "insert full"
    FIXED = "fixed"
    NOT_FOUND = "not found"


def log_feed_event(event: FeedEvent, channel_id: str, feed_id: str) -> None:
    """Write one transition line, e.g. ``[insert] UC... dQw4w9WgXcQ``."""
    event_logger.info("[%s] %s %s", event.value, channel_id, feed_id)
