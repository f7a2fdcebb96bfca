"""Notification transport adapters."""

from magnet_watch.adapters.notifications.qq_notifier import QQBotNotifier
from magnet_watch.adapters.notifications.telegram_notifier import TelegramNotifier

__all__ = ["QQBotNotifier", "TelegramNotifier"]
