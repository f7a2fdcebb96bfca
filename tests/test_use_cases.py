"""Tests for use cases."""

import asyncio
import logging
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from magnet_watch.core import (
    DownloadSubmitError,
    Feed,
    FeedEntry,
    FetchError,
    FilterRules,
    NotificationError,
    Notifier,
    SeenItemsTracker,
    TaskHandle,
)
from magnet_watch.use_cases import MonitoringService, NotificationService

FEED_A = "https://feeds.example.com/a"
FEED_B = "https://feeds.example.com/b"

BASELINE = datetime(2024, 1, 1, tzinfo=timezone.utc)
NEW_DATE = "Sat, 01 Jun 2024 10:00:00 +0000"
OLD_DATE = "Fri, 01 Dec 2023 10:00:00 +0000"


def make_entry(guid: str, title: str = "Show S01E05 1080p", published: str = NEW_DATE, magnet: bool = True) -> FeedEntry:
    description = f'<a href="magnet:?xt=urn:btih:{guid}">download</a>' if magnet else "no link"
    return FeedEntry(title=title, guid=guid, published=published, description=description)


class FakeSource:
    """Feed source that serves canned feeds per URL."""

    def __init__(self, feeds: dict) -> None:
        self.feeds = feeds
        self.calls: list[str] = []

    async def fetch(self, url: str) -> Feed:
        self.calls.append(url)
        result = self.feeds[url]
        if isinstance(result, Exception):
            raise result
        return Feed(url=url, entries=tuple(result))


class RecordingNotifier(Notifier):
    """Notifier that records messages and can fail for chosen recipients."""

    name = "Fake"

    def __init__(self, users: list[str], failing: set[str] = frozenset()) -> None:
        self.users = users
        self.failing = failing
        self.sent: list[tuple[str, str]] = []

    def recipients(self) -> list[str]:
        return list(self.users)

    async def send(self, recipient_id: str, message: str) -> str:
        if recipient_id in self.failing:
            raise NotificationError(recipient_id, "blocked")
        self.sent.append((recipient_id, message))
        return "ok"


def make_downloader() -> AsyncMock:
    downloader = AsyncMock()
    downloader.submit.return_value = TaskHandle(task_id="t1", name="x")
    return downloader


def make_service(source, downloader=None, rules=None, notifiers=None, urls=(FEED_A,)) -> MonitoringService:
    return MonitoringService(
        feed_urls=list(urls),
        source=source,
        downloader=downloader or make_downloader(),
        rules=rules,
        notification_service=NotificationService(notifiers or []),
        seen_tracker=SeenItemsTracker(baseline=BASELINE),
        interval_seconds=0.01,
    )


@pytest.mark.asyncio
async def test_cycle_dispatches_new_entry() -> None:
    """New matching entry is submitted and announced."""
    notifier = RecordingNotifier(["10001"])
    downloader = make_downloader()
    source = FakeSource({FEED_A: [make_entry("g1", title="<b>My:Show?</b>   Episode/1")]})
    service = make_service(source, downloader, notifiers=[notifier])

    report = await service.run_cycle()

    assert report.dispatched == 1
    downloader.submit.assert_awaited_once_with("MyShow Episode_1", "magnet:?xt=urn:btih:g1")
    assert len(notifier.sent) == 1
    recipient, message = notifier.sent[0]
    assert recipient == "10001"
    assert "<b>My:Show?</b>   Episode/1" in message
    assert "MyShow Episode_1" in message


@pytest.mark.asyncio
async def test_same_identifier_dispatches_once() -> None:
    """Duplicates inside a feed and across cycles are dispatched once."""
    downloader = make_downloader()
    source = FakeSource({FEED_A: [make_entry("g1"), make_entry("g1")]})
    service = make_service(source, downloader)

    first = await service.run_cycle()
    second = await service.run_cycle()
    third = await service.run_cycle()

    assert first.dispatched == 1
    assert second.dispatched == 0
    assert third.dispatched == 0
    assert downloader.submit.await_count == 1
    assert service.cycles_completed == 3


@pytest.mark.asyncio
async def test_initialize_suppresses_existing_entries() -> None:
    """Entries present at startup never dispatch."""
    downloader = make_downloader()
    source = FakeSource({
        FEED_A: [make_entry("g1"), make_entry("g2")],
        FEED_B: [make_entry("g3")],
    })
    service = make_service(source, downloader, urls=(FEED_A, FEED_B))

    seeded = await service.initialize()
    report = await service.run_cycle()

    assert seeded == 3
    assert report.dispatched == 0
    assert report.entries_seen == 0
    downloader.submit.assert_not_called()


@pytest.mark.asyncio
async def test_initialize_skips_failing_feed(caplog) -> None:
    """One broken feed does not block seeding of the others."""
    caplog.set_level(logging.INFO, logger="magnet_watch")
    source = FakeSource({
        FEED_A: FetchError(FEED_A, "HTTP 500"),
        FEED_B: [make_entry("g1")],
    })
    service = make_service(source, urls=(FEED_A, FEED_B))

    seeded = await service.initialize()

    assert seeded == 1
    assert "g1" in service.seen_tracker
    assert "HTTP 500" in caplog.text


@pytest.mark.asyncio
async def test_initialize_fixes_baseline() -> None:
    """Initialization moves the baseline to now."""
    service = make_service(FakeSource({FEED_A: []}))
    before = datetime.now(timezone.utc)

    await service.initialize()

    assert service.seen_tracker.baseline >= before


@pytest.mark.asyncio
async def test_old_entries_are_not_dispatched() -> None:
    """Entries at or before the baseline are skipped but remembered."""
    downloader = make_downloader()
    source = FakeSource({FEED_A: [
        make_entry("old", published=OLD_DATE),
        make_entry("edge", published="Mon, 01 Jan 2024 00:00:00 +0000"),
        make_entry("new", published=NEW_DATE),
    ]})
    service = make_service(source, downloader)

    report = await service.run_cycle()

    assert report.skipped_old == 2
    assert report.dispatched == 1
    downloader.submit.assert_awaited_once_with("Show S01E05 1080p", "magnet:?xt=urn:btih:new")
    assert "old" in service.seen_tracker


@pytest.mark.asyncio
async def test_unparseable_time_counts_as_new() -> None:
    """Entries with unknown date formats are treated as published now."""
    downloader = make_downloader()
    source = FakeSource({FEED_A: [make_entry("g1", published="sometime last week")]})
    service = make_service(source, downloader)

    report = await service.run_cycle()

    assert report.dispatched == 1


@pytest.mark.asyncio
async def test_filtered_and_linkless_entries_are_skipped() -> None:
    """Rejected entries and entries without a link stay seen, never submitted."""
    downloader = make_downloader()
    source = FakeSource({FEED_A: [
        make_entry("cam", title="Show S01E05 CAM 1080p"),
        make_entry("nolink", magnet=False),
    ]})
    rules = FilterRules(include_keywords=("show",), exclude_keywords=("cam",), required_resolutions=("1080p",))
    service = make_service(source, downloader, rules=rules)

    report = await service.run_cycle()
    again = await service.run_cycle()

    assert report.filtered_out == 1
    assert report.missing_link == 1
    assert again.entries_seen == 0
    downloader.submit.assert_not_called()


@pytest.mark.asyncio
async def test_submit_failure_is_not_retried() -> None:
    """Failed submit is logged, no notification, no retry next cycle."""
    notifier = RecordingNotifier(["10001"])
    downloader = make_downloader()
    downloader.submit.side_effect = DownloadSubmitError("quota exceeded")
    source = FakeSource({FEED_A: [make_entry("g1"), make_entry("g2")]})
    service = make_service(source, downloader, notifiers=[notifier])

    report = await service.run_cycle()
    await service.run_cycle()

    assert report.submit_failed == 2
    assert report.dispatched == 0
    assert downloader.submit.await_count == 2
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_cycle_survives_fetch_error(caplog) -> None:
    """One feed failing does not abort the cycle."""
    caplog.set_level(logging.INFO, logger="magnet_watch")
    notifier = RecordingNotifier(["10001"])
    downloader = make_downloader()
    source = FakeSource({
        FEED_A: [make_entry("g1")],
        FEED_B: FetchError(FEED_B, "request failed: timed out"),
    })
    rules = FilterRules(include_keywords=("show",), exclude_keywords=("cam",), required_resolutions=("1080p",))
    service = make_service(source, downloader, rules=rules, notifiers=[notifier], urls=(FEED_A, FEED_B))

    report = await service.run_cycle()

    assert source.calls == [FEED_A, FEED_B]
    assert report.feeds_checked == 2
    assert report.feeds_failed == 1
    assert report.failed_feeds == [FEED_B]
    assert report.dispatched == 1
    assert downloader.submit.await_count == 1
    assert len(notifier.sent) == 1
    assert FEED_B in caplog.text
    assert "timed out" in caplog.text


@pytest.mark.asyncio
async def test_notification_failure_continues_with_other_recipients(caplog) -> None:
    """Delivery failure to one recipient does not stop the rest."""
    caplog.set_level(logging.INFO, logger="magnet_watch")
    qq = RecordingNotifier(["1", "2", "3"], failing={"2"})
    telegram = RecordingNotifier(["chat"])
    service = NotificationService([qq, telegram])

    delivered = await service.notify("Show 05", "[Group] Show - 05")

    assert delivered == 3
    assert [r for r, _ in qq.sent] == ["1", "3"]
    assert [r for r, _ in telegram.sent] == ["chat"]
    assert "blocked" in caplog.text


@pytest.mark.asyncio
async def test_notification_service_without_transports() -> None:
    """Disabled notifications are a no-op."""
    service = NotificationService()

    assert not service.enabled
    assert await service.notify("Show 05", "Show 05") == 0


def test_show_config_lists_transports(caplog) -> None:
    caplog.set_level(logging.INFO, logger="magnet_watch")
    service = make_service(FakeSource({}), notifiers=[RecordingNotifier(["1"])])

    service.show_config()

    assert service.notification_service.enabled
    assert "Notifications: Fake" in caplog.text


def test_show_config_without_transports(caplog) -> None:
    """No configured transports are reported as disabled."""
    caplog.set_level(logging.INFO, logger="magnet_watch")
    service = make_service(FakeSource({}))

    service.show_config()

    assert "Notifications: disabled" in caplog.text


def test_format_message() -> None:
    """Message template embeds title, file name and time."""
    service = NotificationService()

    message = service.format_message("Show 05", "[Group] Show - 05", now=datetime(2024, 6, 1, 8, 30, 0))

    assert "[Group] Show - 05" in message
    assert "Show 05" in message
    assert "2024-06-01 08:30:00" in message


@pytest.mark.asyncio
async def test_run_forever_repeats_until_stopped() -> None:
    """Periodic loop keeps running cycles and exits on stop."""
    source = FakeSource({FEED_A: []})
    service = make_service(source)
    stop_event = asyncio.Event()

    task = asyncio.create_task(service.run_forever(stop_event))
    for _ in range(200):
        if service.cycles_completed >= 3:
            break
        await asyncio.sleep(0.01)
    service.stop()
    await asyncio.wait_for(task, timeout=1)

    assert service.cycles_completed >= 3
    # One fetch for initialization plus one per cycle
    assert len(source.calls) >= 4


@pytest.mark.asyncio
async def test_run_forever_survives_unexpected_error() -> None:
    """A crashing cycle is logged and the loop continues."""
    service = make_service(FakeSource({FEED_A: []}))
    calls = 0
    original = service.run_cycle

    async def flaky_cycle():
        nonlocal calls
        calls += 1
        if calls == 1:
            raise RuntimeError("unexpected")
        return await original()

    service.run_cycle = flaky_cycle
    stop_event = asyncio.Event()

    task = asyncio.create_task(service.run_forever(stop_event))
    for _ in range(200):
        if service.cycles_completed >= 1:
            break
        await asyncio.sleep(0.01)
    stop_event.set()
    await asyncio.wait_for(task, timeout=1)

    assert calls >= 2
    assert service.cycles_completed >= 1


@pytest.mark.asyncio
async def test_stop_before_first_cycle() -> None:
    """Stopping during the first wait skips all cycles."""
    service = make_service(FakeSource({FEED_A: []}))
    service.interval_seconds = 60
    stop_event = asyncio.Event()

    task = asyncio.create_task(service.run_forever(stop_event))
    await asyncio.sleep(0.05)
    service.stop()
    await asyncio.wait_for(task, timeout=1)

    assert service.cycles_completed == 0
