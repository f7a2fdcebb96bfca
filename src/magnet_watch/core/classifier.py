"""Entry classification: keyword filtering, link extraction, name cleanup."""

import logging
import re
from typing import Optional

from magnet_watch.core.entities import FeedEntry, FilterRules, LinkKind

logger = logging.getLogger(__name__)

MAGNET_PREFIX = "magnet:"
MAGNET_PATTERN = re.compile(r"magnet:\?[^\"'\s<>]+")

MAX_NAME_LENGTH = 200

_TAG_PATTERN = re.compile(r"<[^>]*>")
_SEPARATOR_PATTERN = re.compile(r"[/\\]")
_ILLEGAL_PATTERN = re.compile(r"[<>:\"|?*]")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def _first_match(title: str, keywords: tuple[str, ...]) -> Optional[str]:
    return next((kw for kw in keywords if kw.lower() in title), None)


def passes(entry: FeedEntry, rules: FilterRules) -> bool:
    """
    Check entry title against include, exclude and resolution rules.

    Args:
        entry: Parsed feed entry
        rules: Filter rules; an empty category means no constraint

    Returns:
        True if the entry should be downloaded
    """
    title = entry.title.lower()

    if rules.include_keywords and _first_match(title, rules.include_keywords) is None:
        logger.info("🔍 Skipped (no matching keyword): %s", entry.title)
        return False

    excluded = _first_match(title, rules.exclude_keywords)
    if excluded is not None:
        logger.info("🚫 Skipped (matched exclusion '%s'): %s", excluded, entry.title)
        return False

    if rules.required_resolutions and _first_match(title, rules.required_resolutions) is None:
        logger.info("📺 Skipped (no matching resolution): %s", entry.title)
        return False

    return True


def extract_link(entry: FeedEntry) -> Optional[str]:
    """Find a magnet link in description, link or enclosure (in that order)."""
    for text in (entry.description, entry.link):
        match = MAGNET_PATTERN.search(text or "")
        if match:
            return match.group(0)

    enclosure = entry.enclosure_url or ""
    if enclosure.startswith(MAGNET_PREFIX):
        return enclosure
    match = MAGNET_PATTERN.search(enclosure)
    return match.group(0) if match else None


def sanitize_name(title: str) -> str:
    """Turn an entry title into a safe display and file name.

    Tags are stripped, path separators become underscores, the remaining
    filesystem-illegal characters are dropped, whitespace is collapsed.
    """
    cleaned = _TAG_PATTERN.sub("", title)
    cleaned = _SEPARATOR_PATTERN.sub("_", cleaned)
    cleaned = _ILLEGAL_PATTERN.sub("", cleaned)
    cleaned = _WHITESPACE_PATTERN.sub(" ", cleaned).strip()
    return cleaned[:MAX_NAME_LENGTH]


def classify_link(link: str) -> LinkKind:
    """Tell magnet URIs, torrent file URLs and plain download URLs apart."""
    if link.startswith(MAGNET_PREFIX):
        return LinkKind.MAGNET
    path = link.split("?", 1)[0].split("#", 1)[0]
    if path.lower().endswith(".torrent"):
        return LinkKind.TORRENT
    return LinkKind.GENERIC
