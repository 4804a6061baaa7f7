"""YouTube Data API implementation of the platform client."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

import httplib2
from googleapiclient.discovery import Resource, build
from googleapiclient.errors import HttpError

from youtube_pubsub.domain.exceptions import APIError, ChannelNotFoundError, RateLimitError
from youtube_pubsub.domain.models.feed import LiveDetails, VideoSnippet
from youtube_pubsub.domain.services.platform_client import PlatformClient

logger = logging.getLogger(__name__)

MAX_RESULTS = 50


class YouTubeDataClient(PlatformClient):
    """
    YouTube Data API v3 implementation of the platform client.

    Only public data is read, so an API key is enough. The discovery-based
    client is synchronous; every request runs in a worker thread on its own
    ``httplib2.Http`` because that object is not thread-safe.
    """

    def __init__(self, api_key: str, timeout_seconds: float = 20.0) -> None:
        """
        Initialize the YouTube client.

        Args:
            api_key: YouTube Data API v3 key
            timeout_seconds: Per-request HTTP timeout
        """
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._service: Resource | None = None

    def get_service(self) -> Resource:
        """Return the (lazily built) YouTube service resource."""
        if self._service is None:
            self._service = build(
                "youtube", "v3", developerKey=self.api_key, cache_discovery=False
            )
        return self._service

    async def _execute(self, request: Any) -> dict[str, Any]:
        http = httplib2.Http(timeout=self.timeout_seconds)
        return await asyncio.to_thread(request.execute, http=http)

    async def get_video_snippets_by_channel(
        self, channel_id: str, upcoming_only: bool = False
    ) -> dict[str, VideoSnippet]:
        """
        Enumerate the live (or upcoming) broadcasts of a channel.

        Args:
            channel_id: YouTube channel ID
            upcoming_only: Enumerate scheduled broadcasts instead of live ones

        Returns:
            Mapping of video ID to its snippet

        Raises:
            ChannelNotFoundError: If the channel doesn't exist or isn't accessible
            RateLimitError: If the API quota is exhausted
            APIError: If the API call fails
        """
        event_type = "upcoming" if upcoming_only else "live"
        try:
            request = self.get_service().search().list(
                part="snippet",
                channelId=channel_id,
                eventType=event_type,
                type="video",
                maxResults=MAX_RESULTS,
            )
            response = await self._execute(request)
        except HttpError as e:
            raise _map_http_error(e, channel_id) from e
        except (OSError, httplib2.HttpLib2Error) as e:
            raise APIError(f"Failed to search {event_type} videos of {channel_id}: {e}", cause=e) from e

        snippets: dict[str, VideoSnippet] = {}
        for item in response.get("items", []):
            video_id = item.get("id", {}).get("videoId")
            snippet = item.get("snippet", {})
            if not video_id:
                continue
            snippets[video_id] = VideoSnippet(
                title=snippet.get("title", ""),
                channel_id=snippet.get("channelId", channel_id),
                channel_title=snippet.get("channelTitle", ""),
            )

        logger.debug(f"Found {len(snippets)} {event_type} videos for channel {channel_id}")
        return snippets

    async def get_live_details_by_video_ids(
        self, video_ids: list[str]
    ) -> dict[str, LiveDetails]:
        """
        Fetch live broadcast details for up to 50 videos.

        Args:
            video_ids: YouTube video IDs

        Returns:
            Mapping of video ID to live details, broadcasts only

        Raises:
            RateLimitError: If the API quota is exhausted
            APIError: If the API call fails
        """
        if not video_ids:
            return {}
        if len(video_ids) > MAX_RESULTS:
            raise ValueError(f"At most {MAX_RESULTS} video IDs per request")

        try:
            request = self.get_service().videos().list(
                part="liveStreamingDetails,snippet",
                id=",".join(video_ids),
            )
            response = await self._execute(request)
        except HttpError as e:
            raise _map_http_error(e) from e
        except (OSError, httplib2.HttpLib2Error) as e:
            raise APIError(f"Failed to get live details: {e}", cause=e) from e

        details: dict[str, LiveDetails] = {}
        for item in response.get("items", []):
            live = item.get("liveStreamingDetails")
            if not live or not item.get("id"):
                continue
            details[item["id"]] = _parse_live_details(live)
        return details


def _map_http_error(error: HttpError, channel_id: str | None = None) -> Exception:
    status = error.resp.status
    if status == 404 and channel_id:
        return ChannelNotFoundError(channel_id, error)
    if status == 403 and ("quotaExceeded" in str(error) or "rateLimitExceeded" in str(error)):
        return RateLimitError("YouTube API quota exceeded", cause=error)
    if status == 429:
        return RateLimitError(cause=error)
    return APIError(f"YouTube API error: {error}", status, error)


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Ignoring unparseable timestamp: {value}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_live_details(live: dict[str, Any]) -> LiveDetails:
    viewers = live.get("concurrentViewers")
    return LiveDetails(
        viewers=int(viewers) if viewers is not None and str(viewers).isdigit() else None,
        scheduled_start_at=_parse_time(live.get("scheduledStartTime")),
        actual_start_at=_parse_time(live.get("actualStartTime")),
        actual_end_at=_parse_time(live.get("actualEndTime")),
    )
