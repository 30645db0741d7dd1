"""
Runtime settings loaded from the environment (and a local .env file).

Secrets such as the Telegram bot key are never hardcoded; they come from
TG_API_KEY / TG_CHAT_ID.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging
import os

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://asvpweb.minjust.gov.ua"
DEFAULT_ENDPOINT = "/sptDataEndpoint"
DEFAULT_OUT_DIR = "./out"
DEFAULT_MAX_CONCURRENCY = 8
DEFAULT_REQUEST_TIMEOUT = 30.0

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/74.0.3729.169 Safari/537.36"
)


@dataclass(frozen=True)
class Settings:
    """
    Effective configuration for one run.

    Attributes:
        base_url: Registry origin, also sent as Origin/Referer
        endpoint: Path of the data endpoint on base_url
        out_dir: Flat output directory for documents and case summaries
        max_concurrency: Upper bound on documents processed at once
        request_timeout: Per-request timeout in seconds
        tg_api_key: Telegram bot token (notifications disabled when missing)
        tg_chat_id: Telegram chat receiving the documents
        log_file: Optional path for rotating JSON logs
    """
    base_url: str = DEFAULT_BASE_URL
    endpoint: str = DEFAULT_ENDPOINT
    out_dir: Path = Path(DEFAULT_OUT_DIR)
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    tg_api_key: Optional[str] = None
    tg_chat_id: Optional[str] = None
    log_file: Optional[str] = None

    @property
    def endpoint_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.endpoint.lstrip('/')}"

    @property
    def notifications_enabled(self) -> bool:
        return bool(self.tg_api_key) and bool(self.tg_chat_id)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"[CONFIG] Invalid {name}={raw!r}, using {default}")
        return default
    if value < 1:
        logger.warning(f"[CONFIG] {name} must be positive, using {default}")
        return default
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"[CONFIG] Invalid {name}={raw!r}, using {default}")
        return default
    if value <= 0:
        logger.warning(f"[CONFIG] {name} must be positive, using {default}")
        return default
    return value


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        env_file: Optional .env path; defaults to python-dotenv's lookup

    Returns:
        Settings for this process
    """
    load_dotenv(env_file)

    return Settings(
        base_url=os.getenv("ASVP_BASE_URL", DEFAULT_BASE_URL),
        endpoint=os.getenv("ASVP_ENDPOINT", DEFAULT_ENDPOINT),
        out_dir=Path(os.getenv("ASVP_OUT_DIR", DEFAULT_OUT_DIR)),
        max_concurrency=_env_int("ASVP_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY),
        request_timeout=_env_float("ASVP_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
        tg_api_key=os.getenv("TG_API_KEY") or None,
        tg_chat_id=os.getenv("TG_CHAT_ID") or None,
        log_file=os.getenv("ASVP_LOG_FILE") or None,
    )
