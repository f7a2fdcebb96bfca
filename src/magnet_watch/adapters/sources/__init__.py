"""Source adapters for fetching feeds."""

from magnet_watch.adapters.sources.rss_feed_source import RSSFeedSource

__all__ = ["RSSFeedSource"]
