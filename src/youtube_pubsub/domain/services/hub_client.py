"""Abstract base class for the PubSub hub protocol client."""

from abc import ABC, abstractmethod


class HubClient(ABC):
    """Issues subscription requests to a WebSub (PubSubHubbub) hub."""

    @abstractmethod
    async def subscribe(self, topic_url: str) -> None:
        """
        Ask the hub to deliver notifications for a topic to our callback.

        Raises:
            HubError: If the hub does not acknowledge the request
        """
        pass

    @abstractmethod
    async def unsubscribe(self, topic_url: str) -> None:
        """
        Ask the hub to stop delivering notifications for a topic.

        Raises:
            HubError: If the hub does not acknowledge the request
        """
        pass
