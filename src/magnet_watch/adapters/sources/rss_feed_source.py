"""RSS 2.0 feed source."""

import logging
from typing import Optional
from xml.etree import ElementTree as ET

import httpx

from magnet_watch.core import Feed, FeedEntry, FeedSource, FetchError

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class RSSFeedSource(FeedSource):
    """Fetch and parse RSS feeds over HTTP."""

    def __init__(self, timeout: float = 30.0, user_agent: str = USER_AGENT) -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    async def fetch(self, url: str) -> Feed:
        """Fetch feed document and parse its items."""
        headers = {"User-Agent": self.user_agent}

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            try:
                response = await client.get(url, headers=headers)
            except httpx.HTTPError as e:
                raise FetchError(url, f"request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise FetchError(url, f"HTTP {response.status_code}")

        return self._parse_feed(url, response.text)

    def _parse_feed(self, url: str, xml_content: str) -> Feed:
        """Parse RSS 2.0 feed XML."""
        try:
            root = ET.fromstring(xml_content)
        except ET.ParseError as e:
            raise FetchError(url, f"malformed XML: {e}") from e

        channel = root if root.tag == "channel" else root.find("channel")
        if channel is None:
            raise FetchError(url, "document has no channel element")

        entries = tuple(self._parse_item(item) for item in channel.findall("item"))
        logger.debug("Parsed %d items from %s", len(entries), url)

        return Feed(
            url=url,
            title=_text(channel, "title"),
            description=_text(channel, "description"),
            entries=entries,
        )

    def _parse_item(self, item: ET.Element) -> FeedEntry:
        enclosure_url: Optional[str] = None
        enclosure = item.find("enclosure")
        if enclosure is not None:
            enclosure_url = (enclosure.get("url") or "").strip() or None

        return FeedEntry(
            title=_text(item, "title"),
            link=_text(item, "link"),
            description=_text(item, "description"),
            published=_text(item, "pubDate"),
            guid=_text(item, "guid"),
            enclosure_url=enclosure_url,
        )


def _text(element: ET.Element, tag: str) -> str:
    child = element.find(tag)
    if child is None or not child.text:
        return ""
    return child.text.strip()
