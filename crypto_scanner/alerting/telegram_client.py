"""Telegram client for alerts, summaries and command replies."""

import logging
import time
from typing import Optional, Sequence

import httpx

from ..config import settings

logger = logging.getLogger(__name__)


class TelegramClient:
    """Sends messages to the configured chat through the Bot API."""

    _MAX_RETRIES = 3
    _RETRY_BACKOFF_SECONDS = [1, 2, 4]

    def __init__(
        self,
        bot_token: Optional[str] = None,
        chat_id: Optional[str] = None,
        enabled: Optional[bool] = None,
        transport: Optional[httpx.BaseTransport] = None,
        retry_backoff: Optional[Sequence[float]] = None,
    ):
        self.bot_token = bot_token or settings.telegram_bot_token
        self.chat_id = chat_id or settings.telegram_chat_id
        self.enabled = settings.telegram_enabled if enabled is None else enabled
        self.base_url = f"https://api.telegram.org/bot{self.bot_token}"
        self._transport = transport
        self._backoff = list(retry_backoff) if retry_backoff is not None else self._RETRY_BACKOFF_SECONDS

    def send_message_sync(
        self,
        message: str,
        parse_mode: Optional[str] = "HTML",
        chat_id: Optional[str] = None,
    ) -> bool:
        """Send a message with exponential backoff retry.

        Args:
            message: Message text
            parse_mode: 'HTML', 'Markdown' or None for plain text
            chat_id: Target chat; defaults to the configured alert chat

        Returns:
            True if Telegram accepted the message
        """
        if not self.enabled:
            logger.warning("Telegram not configured, message not sent")
            logger.info(message)
            return False

        payload = {"chat_id": chat_id or self.chat_id, "text": message}
        if parse_mode:
            payload["parse_mode"] = parse_mode

        last_error = None
        for attempt in range(self._MAX_RETRIES):
            try:
                with httpx.Client(transport=self._transport) as client:
                    response = client.post(
                        f"{self.base_url}/sendMessage",
                        json=payload,
                        timeout=10.0,
                    )

                    if response.status_code == 200:
                        logger.debug("Telegram message sent")
                        return True
                    else:
                        last_error = f"Telegram API error: {response.status_code} - {response.text}"
                        logger.error(last_error)
                        # Client errors other than rate limiting will not succeed on retry.
                        if 400 <= response.status_code < 500 and response.status_code != 429:
                            break

            except httpx.HTTPError as e:
                last_error = str(e)
                logger.error(f"Failed to send Telegram message (attempt {attempt + 1}/{self._MAX_RETRIES}): {e}")

            if attempt < self._MAX_RETRIES - 1:
                delay = self._backoff[min(attempt, len(self._backoff) - 1)]
                logger.info(f"Retrying Telegram send in {delay}s...")
                time.sleep(delay)

        logger.error(f"Telegram send failed. Last error: {last_error}")
        return False

    def send(self, text: str) -> bool:
        """Send an alert or report to the configured chat."""
        return self.send_message_sync(text, parse_mode="HTML")

    def reply(self, chat_id: str, text: str) -> bool:
        """Answer a command in the chat it came from."""
        return self.send_message_sync(text, parse_mode="HTML", chat_id=chat_id)
