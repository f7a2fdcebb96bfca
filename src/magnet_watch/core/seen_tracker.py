"""Tracker for already seen feed entries to avoid duplicate downloads."""

import threading
from datetime import datetime, timezone
from typing import Iterable, Optional


class SeenItemsTracker:
    """In-memory set of seen entry identifiers plus the baseline timestamp.

    The set only grows for the lifetime of the process. All mutations go
    through a lock so that check-and-mark stays atomic when several fetches
    observe the same identifier.
    """

    def __init__(self, baseline: Optional[datetime] = None) -> None:
        self._seen: set[str] = set()
        self._lock = threading.Lock()
        self.baseline = _as_utc(baseline) if baseline else datetime.now(timezone.utc)

    def initialize(self, now: Optional[datetime] = None) -> datetime:
        """Fix the baseline separating feed backlog from new entries."""
        self.baseline = _as_utc(now) if now else datetime.now(timezone.utc)
        return self.baseline

    def is_new(self, identifier: str) -> bool:
        """Check if identifier was never recorded."""
        with self._lock:
            return identifier not in self._seen

    def mark_seen(self, identifier: str) -> None:
        """Record identifier as seen."""
        with self._lock:
            self._seen.add(identifier)

    def check_and_mark(self, identifier: str) -> bool:
        """Record identifier and report whether this call saw it first."""
        with self._lock:
            if identifier in self._seen:
                return False
            self._seen.add(identifier)
            return True

    def bulk_seed(self, identifiers: Iterable[str]) -> int:
        """Mark identifiers as seen without dispatching them.

        Returns:
            Number of identifiers that were not already recorded
        """
        with self._lock:
            before = len(self._seen)
            self._seen.update(identifiers)
            return len(self._seen) - before

    def is_after_baseline(self, timestamp: datetime) -> bool:
        """Check if timestamp is strictly later than the baseline."""
        return _as_utc(timestamp) > self.baseline

    def get_stats(self) -> dict:
        """Get statistics about seen items."""
        with self._lock:
            total = len(self._seen)
        return {
            "total_seen": total,
            "baseline": self.baseline.isoformat(),
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._seen


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
