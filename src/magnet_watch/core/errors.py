"""Error taxonomy for the monitoring engine.

None of these are fatal to the polling loop: each is caught at the level
where skipping one feed, entry or recipient is the right recovery.
"""


class MagnetWatchError(Exception):
    """Base class for all errors raised by magnet_watch."""


class FetchError(MagnetWatchError):
    """Feed could not be downloaded or parsed."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class TimeParseError(MagnetWatchError):
    """Publish timestamp matched none of the known formats."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Unrecognized publish time format: {value!r}")
        self.value = value


class DownloadBackendError(MagnetWatchError):
    """Offline download backend is unavailable or misconfigured."""


class DownloadSubmitError(DownloadBackendError):
    """Backend rejected an offline download task."""


class NotificationError(MagnetWatchError):
    """Notification transport failed to deliver a message."""

    def __init__(self, recipient_id: str, reason: str) -> None:
        super().__init__(f"recipient {recipient_id}: {reason}")
        self.recipient_id = recipient_id
        self.reason = reason
