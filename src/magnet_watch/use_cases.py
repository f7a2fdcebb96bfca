"""Business logic use cases."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from magnet_watch.core import (
    CycleReport,
    DownloadBackend,
    DownloadBackendError,
    DownloadTrigger,
    FeedEntry,
    FeedSource,
    FetchError,
    FilterRules,
    NotificationError,
    Notifier,
    SeenItemsTracker,
    TimeParseError,
    extract_link,
    parse_publish_time,
    passes,
    sanitize_name,
)

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 5 * 60

MESSAGE_TEMPLATE = (
    "🎬 New download started\n\n"
    "📺 Title: {title}\n"
    "📁 File name: {name}\n"
    "⏰ Time: {time}"
)


class NotificationService:
    """Fan a download alert out to every recipient of every transport."""

    def __init__(self, notifiers: Optional[list[Notifier]] = None) -> None:
        self.notifiers = notifiers or []

    @property
    def enabled(self) -> bool:
        return bool(self.notifiers)

    def format_message(self, display_name: str, original_title: str, now: Optional[datetime] = None) -> str:
        now = now or datetime.now()
        return MESSAGE_TEMPLATE.format(
            title=original_title,
            name=display_name,
            time=now.strftime("%Y-%m-%d %H:%M:%S"),
        )

    async def notify(self, display_name: str, original_title: str) -> int:
        """Send download alert.

        Returns:
            Number of successful deliveries
        """
        if not self.enabled:
            return 0

        message = self.format_message(display_name, original_title)
        delivered = 0

        for notifier in self.notifiers:
            for recipient in notifier.recipients():
                try:
                    response = await notifier.send(recipient, message)
                except Exception as e:
                    reason = e.reason if isinstance(e, NotificationError) else e
                    logger.error("❌ %s notification failed (%s): %s", notifier.name, recipient, reason)
                    continue

                delivered += 1
                logger.info("✅ %s notification sent (%s): %s", notifier.name, recipient, display_name)
                logger.debug("📱 Response: %s", response)

        return delivered


class MonitoringService:
    """Poll feeds and dispatch each new matching entry exactly once."""

    def __init__(
        self,
        feed_urls: list[str],
        source: FeedSource,
        downloader: DownloadBackend,
        rules: Optional[FilterRules] = None,
        notification_service: Optional[NotificationService] = None,
        seen_tracker: Optional[SeenItemsTracker] = None,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        self.feed_urls = list(feed_urls)
        self.source = source
        self.downloader = downloader
        self.rules = rules or FilterRules()
        self.notification_service = notification_service or NotificationService()
        self.seen_tracker = seen_tracker or SeenItemsTracker()
        self.interval_seconds = interval_seconds or DEFAULT_INTERVAL_SECONDS
        self.cycles_completed = 0
        self._stop_event: Optional[asyncio.Event] = None

    def show_config(self) -> None:
        """Log the active configuration."""
        logger.info("⚙️  Configuration:")
        logger.info("   📡 Feeds: %d", len(self.feed_urls))
        for i, url in enumerate(self.feed_urls, 1):
            logger.info("      %d. %s", i, url)
        logger.info("   ⏱️  Check interval: %s min", f"{self.interval_seconds / 60:g}")

        if self.rules.include_keywords:
            logger.info("   🔍 Keywords: %s", ", ".join(self.rules.include_keywords))
        if self.rules.exclude_keywords:
            logger.info("   🚫 Exclude keywords: %s", ", ".join(self.rules.exclude_keywords))
        if self.rules.required_resolutions:
            logger.info("   📺 Resolutions: %s", ", ".join(self.rules.required_resolutions))

        if self.notification_service.enabled:
            transports = ", ".join(n.name for n in self.notification_service.notifiers)
            logger.info("   📱 Notifications: %s", transports)
        else:
            logger.info("   📱 Notifications: disabled")

    async def initialize(self) -> int:
        """Fix the baseline and mark every entry currently in the feeds as seen.

        Returns:
            Number of identifiers seeded
        """
        logger.info("🔄 Initializing seen items...")
        self.seen_tracker.initialize()

        total = 0
        for i, url in enumerate(self.feed_urls, 1):
            logger.info("📡 Initializing feed %d/%d: %s", i, len(self.feed_urls), url)
            try:
                feed = await self.source.fetch(url)
            except FetchError as e:
                logger.error("❌ Failed to initialize feed: %s", e)
                continue

            total += self.seen_tracker.bulk_seed(entry.unique_identifier for entry in feed.entries)
            logger.info("✅ Marked %d existing items", len(feed.entries))

        logger.info("🎯 Initialization done, %d existing items marked", total)
        return total

    async def run_cycle(self) -> CycleReport:
        """Check every feed once, in configured order."""
        report = CycleReport()

        for url in self.feed_urls:
            report.feeds_checked += 1
            try:
                await self._check_feed(url, report)
            except FetchError as e:
                report.feeds_failed += 1
                report.failed_feeds.append(url)
                logger.error("❌ Feed check failed: %s", e)

        self.cycles_completed += 1
        return report

    async def _check_feed(self, url: str, report: CycleReport) -> None:
        logger.info("🔍 Checking feed: %s", url)
        feed = await self.source.fetch(url)
        logger.info("📡 Got %d feed items", len(feed.entries))

        dispatched_before = report.dispatched
        for entry in feed.entries:
            if not self.seen_tracker.check_and_mark(entry.unique_identifier):
                continue
            report.entries_seen += 1
            await self._process_new_entry(entry, report)

        added = report.dispatched - dispatched_before
        if added:
            logger.info("📥 Added %d new download tasks from %s", added, url)
        else:
            logger.info("📭 No new download tasks")

    async def _process_new_entry(self, entry: FeedEntry, report: CycleReport) -> None:
        try:
            published = parse_publish_time(entry.published)
        except TimeParseError as e:
            logger.warning("⚠️  %s, using current time", e)
            published = datetime.now(timezone.utc)

        if not self.seen_tracker.is_after_baseline(published):
            report.skipped_old += 1
            logger.info("⏰ Skipping old item: %s (published %s)", entry.title, published.strftime("%Y-%m-%d %H:%M:%S"))
            return

        logger.info("🆕 New item: %s", entry.title)

        if not passes(entry, self.rules):
            report.filtered_out += 1
            return

        link = extract_link(entry)
        if link is None:
            report.missing_link += 1
            logger.warning("⚠️  No magnet link found: %s", entry.title)
            return

        trigger = DownloadTrigger(display_name=sanitize_name(entry.title), retrieval_link=link)
        if await self._dispatch(trigger, entry.title):
            report.dispatched += 1
        else:
            report.submit_failed += 1

    async def _dispatch(self, trigger: DownloadTrigger, original_title: str) -> bool:
        logger.info("🎬 Preparing download: %s", original_title)
        try:
            await self.downloader.submit(trigger.display_name, trigger.retrieval_link)
        except DownloadBackendError as e:
            logger.error("❌ Failed to add download task: %s", e)
            return False

        logger.info("✅ Download task added: %s", trigger.display_name)
        await self.notification_service.notify(trigger.display_name, original_title)
        return True

    async def run_forever(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Initialize, then run cycles every interval until stopped."""
        self._stop_event = stop_event or asyncio.Event()

        logger.info("🚀 Starting feed monitor...")
        self.show_config()
        await self.initialize()
        logger.info("🎬 Watching feeds for new releases...")

        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
            if self._stop_event.is_set():
                break

            try:
                report = await self.run_cycle()
            except Exception:
                logger.exception("💥 Monitoring cycle failed")
                continue

            logger.info(
                "🔁 Cycle %d done: %d dispatched, %d/%d feeds failed, %d seen in total",
                self.cycles_completed,
                report.dispatched,
                report.feeds_failed,
                report.feeds_checked,
                len(self.seen_tracker),
            )

        logger.info("🛑 Feed monitor stopped")

    def stop(self) -> None:
        """Ask run_forever to exit after the current cycle."""
        if self._stop_event is not None:
            self._stop_event.set()
