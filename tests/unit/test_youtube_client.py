"""Tests for YouTubeDataClient."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httplib2
import pytest
from googleapiclient.errors import HttpError

from helpers import CHANNEL_ID
from youtube_pubsub.domain.exceptions import APIError, ChannelNotFoundError, RateLimitError
from youtube_pubsub.domain.models.feed import LiveDetails, VideoSnippet
from youtube_pubsub.infrastructure.youtube.client import YouTubeDataClient


def _http_error(status: int, message: str = "failure") -> HttpError:
    content = json.dumps({"error": {"code": status, "message": message}}).encode()
    return HttpError(httplib2.Response({"status": status}), content)


@pytest.fixture
def client() -> YouTubeDataClient:
    youtube_client = YouTubeDataClient(api_key="test-api-key")
    youtube_client._service = MagicMock()
    return youtube_client


class TestYouTubeDataClient:
    """Tests for YouTubeDataClient."""

    def test_get_service_uses_api_key(self) -> None:
        with patch("youtube_pubsub.infrastructure.youtube.client.build") as mock_build:
            youtube_client = YouTubeDataClient(api_key="test-api-key")

            service = youtube_client.get_service()
            assert youtube_client.get_service() is service

        mock_build.assert_called_once_with(
            "youtube", "v3", developerKey="test-api-key", cache_discovery=False
        )

    @pytest.mark.asyncio
    async def test_video_snippets(self, client: YouTubeDataClient) -> None:
        response = {
            "items": [
                {
                    "id": {"kind": "youtube#video", "videoId": "live0000001"},
                    "snippet": {
                        "title": "Live now",
                        "channelId": CHANNEL_ID,
                        "channelTitle": "Test Channel",
                    },
                },
                {"id": {"kind": "youtube#video"}, "snippet": {}},
            ]
        }

        with patch.object(client, "_execute", AsyncMock(return_value=response)):
            snippets = await client.get_video_snippets_by_channel(CHANNEL_ID, upcoming_only=True)

        assert snippets == {
            "live0000001": VideoSnippet("Live now", CHANNEL_ID, "Test Channel"),
        }
        client._service.search.return_value.list.assert_called_once_with(
            part="snippet",
            channelId=CHANNEL_ID,
            eventType="upcoming",
            type="video",
            maxResults=50,
        )

    @pytest.mark.asyncio
    async def test_live_details(self, client: YouTubeDataClient) -> None:
        response = {
            "items": [
                {
                    "id": "stream00001",
                    "liveStreamingDetails": {
                        "concurrentViewers": "42",
                        "scheduledStartTime": "2024-05-01T10:00:00Z",
                        "actualStartTime": "2024-05-01T10:05:00Z",
                    },
                },
                {"id": "video000001", "snippet": {"title": "Plain upload"}},
            ]
        }

        with patch.object(client, "_execute", AsyncMock(return_value=response)):
            details = await client.get_live_details_by_video_ids(["stream00001", "video000001"])

        assert details == {
            "stream00001": LiveDetails(
                viewers=42,
                scheduled_start_at=datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc),
                actual_start_at=datetime(2024, 5, 1, 10, 5, tzinfo=timezone.utc),
            )
        }
        client._service.videos.return_value.list.assert_called_once_with(
            part="liveStreamingDetails,snippet",
            id="stream00001,video000001",
        )

    @pytest.mark.asyncio
    async def test_live_details_empty_and_oversized(self, client: YouTubeDataClient) -> None:
        assert await client.get_live_details_by_video_ids([]) == {}

        with pytest.raises(ValueError):
            await client.get_live_details_by_video_ids([f"vid{i:08d}" for i in range(51)])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (_http_error(404), ChannelNotFoundError),
            (_http_error(403, "quotaExceeded: daily limit reached"), RateLimitError),
            (_http_error(429), RateLimitError),
            (_http_error(500), APIError),
            (OSError("network down"), APIError),
        ],
    )
    async def test_error_mapping(
        self, client: YouTubeDataClient, error: Exception, expected: type[Exception]
    ) -> None:
        with patch.object(client, "_execute", AsyncMock(side_effect=error)):
            with pytest.raises(expected):
                await client.get_video_snippets_by_channel(CHANNEL_ID)

    @pytest.mark.asyncio
    async def test_not_found_without_channel(self, client: YouTubeDataClient) -> None:
        """A 404 on the videos endpoint is a plain API error."""
        with patch.object(client, "_execute", AsyncMock(side_effect=_http_error(404))):
            with pytest.raises(APIError) as exc_info:
                await client.get_live_details_by_video_ids(["stream00001"])

        assert exc_info.value.status_code == 404
