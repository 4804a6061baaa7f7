"""WebSub (PubSubHubbub) protocol support."""

from youtube_pubsub.infrastructure.websub.hub_client import WebSubHubClient
from youtube_pubsub.infrastructure.websub.signature import verify_signature

__all__ = [
    "WebSubHubClient",
    "verify_signature",
]
