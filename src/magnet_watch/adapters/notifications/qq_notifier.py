"""QQ bot notification adapter (OneBot private message API)."""

from typing import Optional

import httpx

from magnet_watch.core import NotificationError, Notifier


class QQBotNotifier(Notifier):
    """Send private messages through a QQ bot HTTP endpoint."""

    name = "QQ"

    def __init__(
        self,
        bot_url: str,
        token: str = "",
        notify_users: Optional[list[str]] = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize QQ notifier.

        Args:
            bot_url: Full URL of the bot's send-private-message endpoint
            token: Value sent in the Authorization header
            notify_users: QQ user ids that receive every notification
        """
        self.bot_url = bot_url
        self.token = token
        self.notify_users = [str(user) for user in notify_users or []]
        self.timeout = timeout

    def recipients(self) -> list[str]:
        return list(self.notify_users)

    def _build_payload(self, user_id: str, message: str) -> dict:
        return {
            "user_id": user_id,
            "message": [
                {"type": "text", "data": {"text": message}},
            ],
        }

    async def send(self, recipient_id: str, message: str) -> str:
        """Send a private text message to one QQ user."""
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = self.token

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(
                    self.bot_url,
                    json=self._build_payload(recipient_id, message),
                    headers=headers,
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise NotificationError(recipient_id, str(e)) from e

        return response.text
