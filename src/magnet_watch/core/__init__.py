"""Core domain layer."""

from magnet_watch.core.classifier import classify_link, extract_link, passes, sanitize_name
from magnet_watch.core.entities import (
    CycleReport,
    DownloadTrigger,
    Feed,
    FeedEntry,
    FilterRules,
    LinkKind,
    TaskHandle,
)
from magnet_watch.core.errors import (
    DownloadBackendError,
    DownloadSubmitError,
    FetchError,
    MagnetWatchError,
    NotificationError,
    TimeParseError,
)
from magnet_watch.core.interfaces import DownloadBackend, FeedSource, Notifier
from magnet_watch.core.seen_tracker import SeenItemsTracker
from magnet_watch.core.timestamps import parse_publish_time

__all__ = [
    "Feed",
    "FeedEntry",
    "FilterRules",
    "DownloadTrigger",
    "LinkKind",
    "TaskHandle",
    "CycleReport",
    "MagnetWatchError",
    "FetchError",
    "TimeParseError",
    "DownloadBackendError",
    "DownloadSubmitError",
    "NotificationError",
    "FeedSource",
    "DownloadBackend",
    "Notifier",
    "SeenItemsTracker",
    "passes",
    "extract_link",
    "sanitize_name",
    "classify_link",
    "parse_publish_time",
]
