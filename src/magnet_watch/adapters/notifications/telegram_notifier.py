"""Telegram Bot API notification adapter."""

import html

import httpx

from magnet_watch.core import NotificationError, Notifier


class TelegramNotifier(Notifier):
    """Send messages to a Telegram chat via the Bot API."""

    name = "Telegram"

    def __init__(self, bot_token: str, chat_id: str, timeout: float = 30.0) -> None:
        self.bot_token = bot_token
        self.chat_id = str(chat_id)
        self.timeout = timeout

    def _endpoint(self) -> str:
        return f"https://api.telegram.org/bot{self.bot_token}/sendMessage"

    def recipients(self) -> list[str]:
        return [self.chat_id] if self.chat_id else []

    async def send(self, recipient_id: str, message: str) -> str:
        """Send message to a chat as escaped HTML."""
        payload = {
            "chat_id": recipient_id,
            "text": html.escape(message, quote=False),
            "parse_mode": "HTML",
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(self._endpoint(), json=payload)
                response.raise_for_status()
            except httpx.HTTPError as e:
                # Bot token is part of the URL; keep it out of the message
                reason = str(e).replace(self.bot_token, "***") if self.bot_token else str(e)
                raise NotificationError(recipient_id, reason) from e

        return response.text
