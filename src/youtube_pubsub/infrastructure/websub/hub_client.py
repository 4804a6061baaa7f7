"""WebSub hub client on httpx."""

from __future__ import annotations

import logging

import httpx

from youtube_pubsub.domain.exceptions import HubError
from youtube_pubsub.domain.services.hub_client import HubClient

logger = logging.getLogger(__name__)

# 202 when the hub verifies asynchronously, 204 when it already verified
_ACCEPTED_STATUS_CODES = {202, 204}


class WebSubHubClient(HubClient):
    """
    Sends subscription requests to a WebSub hub.

    The hub answers the request itself with 202/204 and later calls our
    callback to verify intent; that handshake is served by the webhook app.
    """

    def __init__(
        self,
        hub_url: str,
        callback_url: str,
        lease_seconds: int,
        secret: str | None = None,
        verify: str = "async",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the hub client.

        Args:
            hub_url: Hub subscription endpoint
            callback_url: Public URL the hub delivers notifications to
            lease_seconds: Requested subscription lifetime
            secret: Shared secret the hub signs deliveries with
            verify: ``async`` or ``sync`` intent verification
            timeout_seconds: Request timeout
            transport: Optional httpx transport (used by tests)
        """
        self.hub_url = hub_url
        self.callback_url = callback_url
        self.lease_seconds = lease_seconds
        self.secret = secret
        self.verify = verify
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def subscribe(self, topic_url: str) -> None:
        await self._request("subscribe", topic_url)

    async def unsubscribe(self, topic_url: str) -> None:
        await self._request("unsubscribe", topic_url)

    def _form(self, mode: str, topic_url: str) -> dict[str, str]:
        form = {
            "hub.mode": mode,
            "hub.topic": topic_url,
            "hub.callback": self.callback_url,
            "hub.verify": self.verify,
        }
        if mode == "subscribe":
            form["hub.lease_seconds"] = str(self.lease_seconds)
            if self.secret:
                form["hub.secret"] = self.secret
        return form

    async def _request(self, mode: str, topic_url: str) -> None:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(self.hub_url, data=self._form(mode, topic_url))
        except httpx.HTTPError as e:
            raise HubError(mode, topic_url, cause=e) from e

        if response.status_code not in _ACCEPTED_STATUS_CODES:
            logger.debug(f"Hub answered {response.status_code} to {mode}: {response.text[:200]}")
            raise HubError(mode, topic_url, status_code=response.status_code)

        logger.debug(f"Hub accepted {mode} for {topic_url}")
