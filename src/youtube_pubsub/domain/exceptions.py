"""Domain-specific exceptions for the YouTube PubSub application."""

from typing import Optional


class YouTubePubSubError(Exception):
    """Base exception for all YouTube PubSub errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConfigurationError(YouTubePubSubError):
    """Raised when there are configuration-related errors."""

    pass


class APIError(YouTubePubSubError):
    """Raised when YouTube API calls fail."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, cause)
        self.status_code = status_code


class RateLimitError(APIError):
    """Raised when YouTube API quota or rate limits are exceeded."""

    def __init__(
        self,
        message: str = "YouTube API rate limit exceeded",
        retry_after: Optional[int] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, 429, cause)
        self.retry_after = retry_after


class ChannelNotFoundError(YouTubePubSubError):
    """Raised when a channel cannot be found or accessed."""

    def __init__(self, channel_id: str, cause: Optional[Exception] = None) -> None:
        message = f"Channel not found or not accessible: {channel_id}"
        super().__init__(message, cause)
        self.channel_id = channel_id


class HubError(YouTubePubSubError):
    """Raised when the PubSub hub does not acknowledge a (un)subscribe request."""

    def __init__(
        self,
        mode: str,
        topic_url: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        message = f"Hub rejected {mode} for topic: {topic_url}"
        if status_code is not None:
            message = f"{message} (HTTP {status_code})"
        super().__init__(message, cause)
        self.mode = mode
        self.topic_url = topic_url
        self.status_code = status_code


class StoreError(YouTubePubSubError):
    """Raised when the feed store cannot complete an operation."""

    pass
