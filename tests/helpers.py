"""Builders shared by the test suites."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from youtube_pubsub.domain.models.feed import Feed, FeedEntry

CHANNEL_ID = "UCTestChannelID000000001"
OTHER_CHANNEL_ID = "UCTestChannelID000000002"

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for the application services."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def entry_document(
    video_id: str = "vid00000001",
    channel_id: str = CHANNEL_ID,
    title: str = "Live now",
    author: str = "Test Channel",
    published: str = "2024-05-01T11:00:00+00:00",
) -> str:
    """Build an Atom document as delivered by the hub."""
    return f"""<?xml version='1.0' encoding='UTF-8'?>
<feed xmlns:yt="http://www.youtube.com/xml/schemas/2015" xmlns="http://www.w3.org/2005/Atom">
  <link rel="hub" href="https://pubsubhubbub.appspot.com"/>
  <title>YouTube video feed</title>
  <updated>2024-05-01T11:00:05.000000+00:00</updated>
  <entry>
    <id>yt:video:{video_id}</id>
    <yt:videoId>{video_id}</yt:videoId>
    <yt:channelId>{channel_id}</yt:channelId>
    <title>{title}</title>
    <link rel="alternate" href="https://www.youtube.com/watch?v={video_id}"/>
    <author>
      <name>{author}</name>
      <uri>https://www.youtube.com/channel/{channel_id}</uri>
    </author>
    <published>{published}</published>
    <updated>2024-05-01T11:00:05.000000+00:00</updated>
  </entry>
</feed>"""


def make_entry(
    video_id: str = "vid00000001",
    channel_id: str = CHANNEL_ID,
    published_at: datetime | None = None,
    title: str = "Live now",
) -> FeedEntry:
    return FeedEntry(
        id=video_id,
        title=title,
        channel_id=channel_id,
        channel_title="Test Channel",
        published_at=published_at or NOW - timedelta(hours=1),
    )


def make_feed(video_id: str = "vid00000001", channel_id: str = CHANNEL_ID, **kwargs: Any) -> Feed:
    return Feed(
        id=video_id,
        title=kwargs.pop("title", "Stream"),
        channel_id=channel_id,
        channel_title="Test Channel",
        **kwargs,
    )
