"""Abstract base class for the video platform reads used by the sync passes."""

from abc import ABC, abstractmethod

from youtube_pubsub.domain.models.feed import LiveDetails, VideoSnippet


class PlatformClient(ABC):
    """
    Read access to the video platform.

    The sync pipelines only need two operations: enumerate the broadcasts of
    a channel and fetch live details for a batch of videos.
    """

    @abstractmethod
    async def get_video_snippets_by_channel(
        self, channel_id: str, upcoming_only: bool = False
    ) -> dict[str, VideoSnippet]:
        """
        Enumerate the current broadcasts of a channel.

        Args:
            channel_id: YouTube channel ID
            upcoming_only: Enumerate scheduled (upcoming) broadcasts instead of live ones

        Returns:
            Mapping of video ID to its snippet

        Raises:
            ChannelNotFoundError: If the channel doesn't exist or isn't accessible
            RateLimitError: If the API quota is exhausted
            APIError: If the API call fails
        """
        pass

    @abstractmethod
    async def get_live_details_by_video_ids(
        self, video_ids: list[str]
    ) -> dict[str, LiveDetails]:
        """
        Fetch live broadcast details for a batch of videos.

        Videos that are not broadcasts, or no longer exist, are absent from
        the result.

        Args:
            video_ids: YouTube video IDs (at most 50)

        Returns:
            Mapping of video ID to live details

        Raises:
            RateLimitError: If the API quota is exhausted
            APIError: If the API call fails
        """
        pass
