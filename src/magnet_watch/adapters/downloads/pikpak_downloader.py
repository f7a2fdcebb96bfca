"""PikPak offline download backend."""

import logging
from typing import Any, Optional

from pikpakapi import PikPakApi

from magnet_watch.core import (
    DownloadBackend,
    DownloadBackendError,
    DownloadSubmitError,
    LinkKind,
    TaskHandle,
    classify_link,
)

logger = logging.getLogger(__name__)

_GIB = 1024 ** 3

_LINK_LOG = {
    LinkKind.MAGNET: "🧲 Magnet link: %s",
    LinkKind.TORRENT: "📄 Torrent file link: %s",
    LinkKind.GENERIC: "🔗 Download link: %s",
}


class PikPakDownloader(DownloadBackend):
    """Submit offline download tasks to a PikPak account."""

    def __init__(
        self,
        user: str,
        password: str,
        folder_id: str = "",
        folder_path: str = "",
        client: Optional[PikPakApi] = None,
    ) -> None:
        self.user = user
        self.folder_id = folder_id
        self.folder_path = folder_path
        self._client = client or PikPakApi(username=user, password=password)
        self._logged_in = False

    async def connect(self) -> None:
        """Log in and resolve the target folder.

        Raises:
            DownloadBackendError: if login fails
        """
        try:
            await self._client.login()
        except Exception as e:
            raise DownloadBackendError(f"PikPak login failed for {self.user}: {e}") from e

        self._logged_in = True
        logger.info("✅ PikPak login succeeded: %s", self.user)

        try:
            await self._resolve_target_folder()
        except Exception as e:
            logger.warning("⚠️  Could not resolve target folder: %s", e)

    async def _resolve_target_folder(self) -> None:
        if self.folder_id:
            logger.info("📁 Using configured folder id: %s", self.folder_id)
            return

        if not self.folder_path:
            logger.info("📁 Downloads go to the root folder")
            return

        logger.info("📁 Resolving folder path: %s", self.folder_path)
        path_ids = await self._client.path_to_id(self.folder_path, create=True)
        if not path_ids:
            raise DownloadBackendError(f"folder path not found: {self.folder_path}")

        self.folder_id = path_ids[-1]["id"]
        logger.info("✅ Folder id resolved: %s", self.folder_id)

    async def submit(self, display_name: str, retrieval_link: str) -> TaskHandle:
        """Create an offline download task in the target folder."""
        if not self._logged_in:
            try:
                await self.connect()
            except DownloadBackendError as e:
                raise DownloadSubmitError(str(e)) from e

        logger.info("📥 Adding offline download task: %s", display_name)
        logger.info(_LINK_LOG[classify_link(retrieval_link)], retrieval_link)
        logger.info("📁 Target folder: %s", self.folder_id or "root")

        try:
            result = await self._client.offline_download(
                retrieval_link,
                parent_id=self.folder_id or None,
                name=display_name,
            )
        except Exception as e:
            raise DownloadSubmitError(f"Failed to add offline task '{display_name}': {e}") from e

        task = (result or {}).get("task") or {}
        handle = TaskHandle(
            task_id=str(task.get("id", "")),
            name=task.get("name") or display_name,
            phase=task.get("phase", ""),
        )
        logger.info("   📋 Task id: %s, phase: %s", handle.task_id or "?", handle.phase or "?")
        return handle

    async def test_connection(self) -> dict[str, Any]:
        """Log account and storage information.

        Raises:
            DownloadBackendError: if the account can't be reached
        """
        if not self._logged_in:
            await self.connect()

        logger.info("🧪 Testing PikPak connection...")
        try:
            user_info = self._client.get_user_info() or {}
        except Exception as e:
            raise DownloadBackendError(f"Failed to get user info: {e}") from e

        info: dict[str, Any] = {"username": user_info.get("username", self.user)}
        logger.info("   👤 User: %s", info["username"])

        try:
            quota = (await self._client.get_quota_info() or {}).get("quota", {})
            info["usage_gb"] = int(quota.get("usage", 0)) / _GIB
            info["limit_gb"] = int(quota.get("limit", 0)) / _GIB
            logger.info("   💾 Storage: %.2f GB / %.2f GB", info["usage_gb"], info["limit_gb"])
        except Exception as e:
            logger.warning("⚠️  Could not get storage info: %s", e)

        return info
