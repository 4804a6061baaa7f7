"""Parser for the Atom documents the PubSub hub delivers for YouTube channels."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from xml.parsers.expat import ExpatError

import xmltodict

from youtube_pubsub.domain.models.feed import FeedEntry


class FeedParseFailureCode(str, Enum):
    """Why a delivered document did not yield an entry."""

    ENTRY_NOT_FOUND = "ENTRY_NOT_FOUND"
    ENTRY_DELETED = "ENTRY_DELETED"
    FIELDS_MISSING = "FIELDS_MISSING"


@dataclass(frozen=True)
class FeedParseFailure:
    """A typed parse failure."""

    code: FeedParseFailureCode
    message: str = ""

    @property
    def is_deleted(self) -> bool:
        """Deletion notices are expected and not worth reporting."""
        return self.code == FeedParseFailureCode.ENTRY_DELETED


_REQUIRED_FIELDS = ("yt:videoId", "yt:channelId", "title", "author", "published")


def parse_feed_document(raw: bytes | str) -> FeedEntry | FeedParseFailure:
    """
    Parse a pushed Atom feed document.

    Only the first ``entry`` of the feed is considered. Any input, including
    malformed XML, produces either a FeedEntry or a FeedParseFailure.

    Args:
        raw: The request body delivered by the hub

    Returns:
        The announced entry, or the reason there is none
    """
    try:
        document = xmltodict.parse(raw)
    except (ExpatError, ValueError, TypeError, AttributeError) as e:
        return FeedParseFailure(FeedParseFailureCode.ENTRY_NOT_FOUND, f"Invalid XML: {e}")

    feed = document.get("feed") if isinstance(document, dict) else None
    if not isinstance(feed, dict):
        return FeedParseFailure(FeedParseFailureCode.ENTRY_NOT_FOUND, "Feed element is not found")

    entry = feed.get("entry")
    if isinstance(entry, list):
        entry = entry[0] if entry else None

    if entry is None:
        if "at:deleted-entry" in feed:
            return FeedParseFailure(FeedParseFailureCode.ENTRY_DELETED, "Entry deleted")
        return FeedParseFailure(FeedParseFailureCode.ENTRY_NOT_FOUND, "Entry is not found")

    if not isinstance(entry, dict):
        return FeedParseFailure(FeedParseFailureCode.FIELDS_MISSING, "Entry has no fields")

    values: dict[str, str] = {}
    for field in _REQUIRED_FIELDS:
        node = entry.get(field)
        if field == "author":
            node = node.get("name") if isinstance(node, dict) else None
        text = _text(node)
        if text is None:
            return FeedParseFailure(
                FeedParseFailureCode.FIELDS_MISSING, f"Field {field} is not found"
            )
        values[field] = text

    published_at = _parse_timestamp(values["published"])
    if published_at is None:
        return FeedParseFailure(
            FeedParseFailureCode.FIELDS_MISSING,
            f"Field published is not a timestamp: {values['published']}",
        )

    return FeedEntry(
        id=values["yt:videoId"],
        title=values["title"],
        channel_id=values["yt:channelId"],
        channel_title=values["author"],
        published_at=published_at,
    )


def _text(node: Any) -> str | None:
    # Elements with attributes come back as {"@attr": ..., "#text": ...}
    if isinstance(node, dict):
        node = node.get("#text")
    if isinstance(node, str) and node.strip():
        return node.strip()
    return None


def _parse_timestamp(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
