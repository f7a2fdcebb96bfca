"""Core interfaces for adapters."""

from abc import ABC, abstractmethod

from magnet_watch.core.entities import Feed, TaskHandle


class FeedSource(ABC):
    """Interface for fetching and parsing one feed document."""

    @abstractmethod
    async def fetch(self, url: str) -> Feed:
        """Fetch feed at URL. Raises FetchError on failure."""
        pass


class DownloadBackend(ABC):
    """Interface for the offline download service."""

    @abstractmethod
    async def submit(self, display_name: str, retrieval_link: str) -> TaskHandle:
        """Create an offline download task. Raises DownloadSubmitError."""
        pass


class Notifier(ABC):
    """Interface for a chat notification transport."""

    name: str = "notifier"

    @abstractmethod
    def recipients(self) -> list[str]:
        """Recipient identifiers this transport delivers to."""
        pass

    @abstractmethod
    async def send(self, recipient_id: str, message: str) -> str:
        """Send message to one recipient and return the response body.

        Raises NotificationError on delivery failure.
        """
        pass
