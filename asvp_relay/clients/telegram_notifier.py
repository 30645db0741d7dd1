"""
=============================================================================
TELEGRAM NOTIFIER
=============================================================================

PURPOSE:
    Relay every stored document to a Telegram chat via the Bot API
    `sendDocument` method.

SAFETY:
    - Best effort: deliver() NEVER raises, it returns True/False
    - A failed delivery never removes or changes the stored file
    - Disabled automatically when TG_API_KEY / TG_CHAT_ID are not set

=============================================================================
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol, Union
import logging
import mimetypes

import requests

from asvp_relay.config import Settings

TELEGRAM_API_URL = "https://api.telegram.org"


class Notifier(Protocol):
    """Anything that can take a stored document's bytes and pass them on."""

    enabled: bool

    def deliver(self, path: Union[str, Path], data: bytes) -> bool:
        ...


class NullNotifier:
    """Notifier used when no channel is configured."""

    enabled = False

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(__name__)

    def deliver(self, path: Union[str, Path], data: bytes) -> bool:
        self._logger.debug(f"[NOTIFY] No channel configured, skipping {Path(path).name}")
        return False


class TelegramNotifier:
    """
    Sends documents to one chat through a bot.

    Uses a requests.Session for connection reuse; calls are synchronous and
    meant to be run off the event loop (asyncio.to_thread).
    """

    def __init__(
        self,
        api_key: Optional[str],
        chat_id: Optional[str],
        *,
        timeout: float = 30.0,
        api_url: str = TELEGRAM_API_URL,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.api_key = api_key
        self.chat_id = chat_id
        self.timeout = timeout
        self.api_url = api_url.rstrip("/")
        self.enabled = bool(api_key) and bool(chat_id)
        self._session = session or requests.Session()
        self._logger = logger or logging.getLogger(__name__)

        self._logger.debug(f"[NOTIFY] TelegramNotifier initialized (enabled={self.enabled})")

    def deliver(self, path: Union[str, Path], data: bytes) -> bool:
        """
        Send one document to the configured chat.

        Args:
            path: Stored file path; its base name is used as display name
            data: File bytes

        Returns:
            True if Telegram accepted the document, False otherwise
        """
        if not self.enabled:
            self._logger.debug("[NOTIFY] Telegram disabled, skipping delivery")
            return False

        file_name = Path(path).name
        content_type = mimetypes.guess_type(file_name)[0] or "application/octet-stream"

        try:
            response = self._session.post(
                f"{self.api_url}/bot{self.api_key}/sendDocument",
                data={"chat_id": self.chat_id},
                files={"document": (file_name, data, content_type)},
                timeout=self.timeout,
            )

            if response.status_code == 200:
                self._logger.info(f"[NOTIFY] Delivered {file_name} ({len(data)} bytes)")
                return True

            self._logger.warning(
                f"[NOTIFY] Delivery failed ({response.status_code}): "
                f"{response.text[:200]}"
            )
            return False

        except requests.Timeout:
            self._logger.warning(f"[NOTIFY] Timeout delivering {file_name}")
            return False

        except requests.ConnectionError:
            self._logger.warning("[NOTIFY] Telegram not reachable")
            return False

        except Exception as e:
            self._logger.error(f"[NOTIFY] Delivery error: {e}")
            return False


def build_notifier(settings: Settings, logger: Optional[logging.Logger] = None) -> Notifier:
    """Return a TelegramNotifier when credentials are configured, else a NullNotifier."""
    if settings.notifications_enabled:
        return TelegramNotifier(
            settings.tg_api_key, settings.tg_chat_id,
            timeout=settings.request_timeout, logger=logger,
        )
    return NullNotifier(logger=logger)
