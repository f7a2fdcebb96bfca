"""Download backend adapters."""

from magnet_watch.adapters.downloads.pikpak_downloader import PikPakDownloader

__all__ = ["PikPakDownloader"]
