"""Configuration management."""

import os
from dataclasses import dataclass, field, fields
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

import yaml

from magnet_watch.core import FilterRules

DEFAULT_CHECK_INTERVAL_MINUTES = 5


@dataclass
class PikPakConfig:
    """PikPak account settings."""
    user: str = ""
    passwd: str = ""
    folder_id: str = ""
    folder_path: str = ""


@dataclass
class RSSConfig:
    """Feed polling and filter settings."""
    urls: list[str] = field(default_factory=list)
    check_interval_minutes: int = DEFAULT_CHECK_INTERVAL_MINUTES
    keywords: list[str] = field(default_factory=list)
    exclude_keywords: list[str] = field(default_factory=list)
    resolutions: list[str] = field(default_factory=list)


@dataclass
class QQConfig:
    """QQ bot notification settings."""
    enabled: bool = False
    bot_url: str = ""
    token: str = ""
    notify_users: list[str] = field(default_factory=list)


@dataclass
class TelegramConfig:
    """Telegram bot notification settings."""
    enabled: bool = False
    token: str = ""
    chat_id: str = ""


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    file: Optional[Path] = None


@dataclass
class Settings:
    """Application settings."""

    pikpak: PikPakConfig = field(default_factory=PikPakConfig)
    rss: RSSConfig = field(default_factory=RSSConfig)
    qq: QQConfig = field(default_factory=QQConfig)
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def feed_urls(self) -> list[str]:
        return self.rss.urls

    @property
    def check_interval(self) -> timedelta:
        minutes = self.rss.check_interval_minutes or DEFAULT_CHECK_INTERVAL_MINUTES
        return timedelta(minutes=minutes)

    @property
    def filter_rules(self) -> FilterRules:
        return FilterRules.from_lists(
            keywords=self.rss.keywords,
            exclude_keywords=self.rss.exclude_keywords,
            resolutions=self.rss.resolutions,
        )

    @property
    def qq_enabled(self) -> bool:
        return self.qq.enabled and bool(self.qq.bot_url)

    @property
    def telegram_enabled(self) -> bool:
        return self.telegram.enabled and bool(self.telegram.token) and bool(self.telegram.chat_id)


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML (or JSON) file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _apply_section(target: Any, values: Optional[dict]) -> None:
    """Copy known keys from a config section onto a dataclass."""
    if not values:
        return
    known = {f.name for f in fields(target)}
    for key, value in values.items():
        if key in known and value is not None:
            setattr(target, key, value)


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    config = load_config(config_path)

    settings = Settings()

    for section in ("pikpak", "rss", "qq", "telegram", "logging"):
        _apply_section(getattr(settings, section), config.get(section))

    # Secrets from environment take precedence over the file
    settings.pikpak.user = os.getenv("PIKPAK_USER", settings.pikpak.user)
    settings.pikpak.passwd = os.getenv("PIKPAK_PASSWD", settings.pikpak.passwd)
    settings.qq.token = os.getenv("QQ_BOT_TOKEN", settings.qq.token)
    settings.telegram.token = os.getenv("TELEGRAM_BOT_TOKEN", settings.telegram.token)

    # Normalize values that may come in as numbers or null
    settings.rss.check_interval_minutes = int(settings.rss.check_interval_minutes or 0)
    settings.qq.notify_users = [str(user) for user in settings.qq.notify_users]
    settings.telegram.chat_id = str(settings.telegram.chat_id or "")
    if settings.logging.file:
        settings.logging.file = Path(settings.logging.file)

    return settings
