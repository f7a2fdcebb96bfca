"""CLI entry point for magnet watch."""

import asyncio
import logging
import signal
from pathlib import Path

import typer

from magnet_watch.adapters.downloads import PikPakDownloader
from magnet_watch.adapters.notifications import QQBotNotifier, TelegramNotifier
from magnet_watch.adapters.sources import RSSFeedSource
from magnet_watch.config import Settings, get_settings
from magnet_watch.core import DownloadBackendError, Notifier
from magnet_watch.logging_setup import setup_logging
from magnet_watch.use_cases import MonitoringService, NotificationService

logger = logging.getLogger("magnet_watch.cli")


def main(
    config: Path = typer.Option(Path("config.yaml"), "--config", "-c", help="Path to YAML/JSON config"),
    once: bool = typer.Option(False, "--once", help="Initialize, run a single cycle and exit"),
    check_connection: bool = typer.Option(False, "--check-connection", help="Test the PikPak account and exit"),
    no_notify: bool = typer.Option(False, "--no-notify", help="Disable all notifications"),
    debug: bool = False,
) -> None:
    """Watch RSS feeds and send new magnet links to PikPak offline download."""
    settings = get_settings(config)
    setup_logging("DEBUG" if debug else settings.logging.level, settings.logging.file)

    try:
        asyncio.run(async_run(settings, once, check_connection, no_notify))
    except DownloadBackendError as e:
        logger.error("❌ %s", e)
        raise typer.Exit(code=1)


def app() -> None:
    """CLI entry point."""
    typer.run(main)


def build_notifiers(settings: Settings) -> list[Notifier]:
    """Create a transport for every enabled notification channel."""
    notifiers: list[Notifier] = []
    if settings.qq_enabled:
        notifiers.append(QQBotNotifier(settings.qq.bot_url, settings.qq.token, settings.qq.notify_users))
    if settings.telegram_enabled:
        notifiers.append(TelegramNotifier(settings.telegram.token, settings.telegram.chat_id))
    return notifiers


async def async_run(settings: Settings, once: bool, check_connection: bool, no_notify: bool) -> None:
    """Async implementation of the run command."""
    if not settings.feed_urls and not check_connection:
        logger.error("❌ No feed URLs configured (rss.urls)")
        raise typer.Exit(code=1)

    downloader = PikPakDownloader(
        user=settings.pikpak.user,
        password=settings.pikpak.passwd,
        folder_id=settings.pikpak.folder_id,
        folder_path=settings.pikpak.folder_path,
    )
    await downloader.connect()

    if check_connection:
        await downloader.test_connection()
        return

    notifiers = [] if no_notify else build_notifiers(settings)

    service = MonitoringService(
        feed_urls=settings.feed_urls,
        source=RSSFeedSource(),
        downloader=downloader,
        rules=settings.filter_rules,
        notification_service=NotificationService(notifiers),
        interval_seconds=settings.check_interval.total_seconds(),
    )

    if once:
        service.show_config()
        await service.initialize()
        report = await service.run_cycle()
        logger.info("✅ Done: %d dispatched, %d feeds failed", report.dispatched, report.feeds_failed)
        return

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Not supported on Windows event loops; Ctrl+C still raises KeyboardInterrupt
            pass

    await service.run_forever(stop_event)


if __name__ == "__main__":
    app()
