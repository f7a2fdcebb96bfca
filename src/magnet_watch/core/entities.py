"""Core domain entities."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class LinkKind(str, Enum):
    """Kind of retrieval link handed to the download backend."""

    MAGNET = "magnet"
    TORRENT = "torrent"
    GENERIC = "generic"


@dataclass(frozen=True)
class FeedEntry:
    """Single item parsed from a syndication feed."""

    title: str
    link: str = ""
    description: str = ""
    published: str = ""
    guid: str = ""
    enclosure_url: Optional[str] = None

    @property
    def unique_identifier(self) -> str:
        """Identity used for deduplication (guid, then link, then title)."""
        return self.guid or self.link or self.title


@dataclass(frozen=True)
class Feed:
    """Parsed feed document."""

    url: str
    title: str = ""
    description: str = ""
    entries: tuple[FeedEntry, ...] = ()


@dataclass(frozen=True)
class FilterRules:
    """Keyword, exclusion and resolution rules applied to entry titles."""

    include_keywords: tuple[str, ...] = ()
    exclude_keywords: tuple[str, ...] = ()
    required_resolutions: tuple[str, ...] = ()

    @classmethod
    def from_lists(
        cls,
        keywords: Optional[list[str]] = None,
        exclude_keywords: Optional[list[str]] = None,
        resolutions: Optional[list[str]] = None,
    ) -> "FilterRules":
        """Build rules from raw config lists, dropping blank values."""
        def clean(values: Optional[list[str]]) -> tuple[str, ...]:
            return tuple(str(v).strip() for v in values or [] if str(v).strip())

        return cls(
            include_keywords=clean(keywords),
            exclude_keywords=clean(exclude_keywords),
            required_resolutions=clean(resolutions),
        )


@dataclass(frozen=True)
class DownloadTrigger:
    """Download request derived from an entry that passed filtering."""

    display_name: str
    retrieval_link: str


@dataclass(frozen=True)
class TaskHandle:
    """Offline download task created by the backend."""

    task_id: str
    name: str
    phase: str = ""


@dataclass
class CycleReport:
    """Counters collected during one monitoring cycle."""

    feeds_checked: int = 0
    feeds_failed: int = 0
    entries_seen: int = 0
    dispatched: int = 0
    skipped_old: int = 0
    filtered_out: int = 0
    missing_link: int = 0
    submit_failed: int = 0
    failed_feeds: list[str] = field(default_factory=list)
