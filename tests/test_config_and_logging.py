"""Tests for environment settings and logging setup."""

import json
import logging
from pathlib import Path

from asvp_relay.config import DEFAULT_BASE_URL, DEFAULT_MAX_CONCURRENCY, Settings, load_settings
from asvp_relay.logging_setup import LOGGER_NAME, setup_logging

ENV_VARS = [
    "ASVP_BASE_URL", "ASVP_ENDPOINT", "ASVP_OUT_DIR", "ASVP_MAX_CONCURRENCY",
    "ASVP_REQUEST_TIMEOUT", "ASVP_LOG_FILE", "TG_API_KEY", "TG_CHAT_ID",
]


def clear_env(monkeypatch):
    # setenv first so monkeypatch also undoes whatever load_dotenv writes
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


class TestSettings:

    def test_defaults(self, monkeypatch, tmp_path):
        clear_env(monkeypatch)
        monkeypatch.chdir(tmp_path)

        settings = load_settings()

        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.endpoint_url == "https://asvpweb.minjust.gov.ua/sptDataEndpoint"
        assert settings.max_concurrency == DEFAULT_MAX_CONCURRENCY
        assert settings.notifications_enabled is False

    def test_environment_overrides(self, monkeypatch, tmp_path):
        clear_env(monkeypatch)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("ASVP_OUT_DIR", str(tmp_path / "docs"))
        monkeypatch.setenv("ASVP_MAX_CONCURRENCY", "3")
        monkeypatch.setenv("ASVP_REQUEST_TIMEOUT", "2.5")
        monkeypatch.setenv("TG_API_KEY", "KEY")
        monkeypatch.setenv("TG_CHAT_ID", "42")

        settings = load_settings()

        assert settings.out_dir == tmp_path / "docs"
        assert settings.max_concurrency == 3
        assert settings.request_timeout == 2.5
        assert settings.notifications_enabled is True

    def test_env_file(self, monkeypatch, tmp_path):
        clear_env(monkeypatch)
        env_file = tmp_path / "custom.env"
        env_file.write_text("TG_API_KEY=FROMFILE\nTG_CHAT_ID=7\n")

        settings = load_settings(str(env_file))

        assert settings.tg_api_key == "FROMFILE"
        assert settings.tg_chat_id == "7"

    def test_invalid_numbers_fall_back(self, monkeypatch, tmp_path):
        clear_env(monkeypatch)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("ASVP_MAX_CONCURRENCY", "many")
        monkeypatch.setenv("ASVP_REQUEST_TIMEOUT", "-1")

        settings = load_settings()

        assert settings.max_concurrency == DEFAULT_MAX_CONCURRENCY
        assert settings.request_timeout == Settings().request_timeout

    def test_endpoint_url_joins_slashes(self):
        settings = Settings(base_url="https://registry.test/", endpoint="/api")

        assert settings.endpoint_url == "https://registry.test/api"


class TestLogging:

    def test_console_only(self):
        logger = setup_logging(verbose=True)

        assert logger.name == LOGGER_NAME
        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.DEBUG

    def test_quiet_console(self):
        logger = setup_logging(verbose=False)

        assert logger.handlers[0].level == logging.WARNING

    def test_json_log_file(self, tmp_path):
        log_file = tmp_path / "relay.log"
        logger = setup_logging(log_file=str(log_file))

        logger.getChild("store").info("document saved")
        for handler in logger.handlers:
            handler.flush()
            handler.close()

        record = json.loads(Path(log_file).read_text(encoding="utf-8").splitlines()[0])
        assert record["message"] == "document saved"
        assert record["level"] == "INFO"
        assert record["name"] == "asvp_relay.store"
