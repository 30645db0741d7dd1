"""Shared fakes for the registry service and the notification channel."""

import asyncio
import base64
import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from asvp_relay.config import Settings
from asvp_relay.files.document_store import DiskDocumentStore
from asvp_relay.logging_setup import LOGGER_NAME


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class FakeRegistry:
    """
    In-memory stand-in for the registry data endpoint.

    cases:     (case_number, secret) -> mParams dict
    documents: document_id -> mParams dict, or an int HTTP status to fail with
    """

    def __init__(self, delay: float = 0.0):
        self.cases: Dict[Tuple[str, str], Any] = {}
        self.documents: Dict[str, Union[Dict[str, Any], int]] = {}
        self.requests: List[Dict[str, Any]] = []
        self.headers: List[httpx.Headers] = []
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0

    def add_document(self, document_id: str, file_name: str, data: bytes) -> None:
        self.documents[document_id] = {"fileName": file_name, "data": b64(data)}

    def document_queries(self) -> List[str]:
        return [r["filter"]["ID"] for r in self.requests if r["filter"]["dataType"] == "otherDecisionDocument"]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        self.headers.append(request.headers)
        flt = body["filter"]

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)

            if flt["dataType"] == "getSharedInfoByVP":
                params = self.cases.get((flt["VpNum"], flt["SecretNum"]))
                return httpx.Response(200, json={"mParams": params})

            doc = self.documents.get(flt["ID"])
            if isinstance(doc, int):
                return httpx.Response(doc, text="error")
            return httpx.Response(200, json={"mParams": doc})
        finally:
            self.in_flight -= 1

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class RecordingNotifier:
    """Notifier double that records every delivery."""

    enabled = True

    def __init__(self, result: bool = True, raise_error: bool = False):
        self.result = result
        self.raise_error = raise_error
        self.calls: List[Tuple[str, bytes]] = []
        self._lock = threading.Lock()

    def deliver(self, path, data: bytes) -> bool:
        with self._lock:
            self.calls.append((Path(path).name, data))
        if self.raise_error:
            raise RuntimeError("channel down")
        return self.result

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def out_dir(tmp_path) -> Path:
    return tmp_path / "out"


@pytest.fixture
def settings(out_dir) -> Settings:
    return Settings(base_url="https://registry.test", out_dir=out_dir, max_concurrency=4, request_timeout=5.0)


@pytest.fixture
def store(out_dir) -> DiskDocumentStore:
    return DiskDocumentStore(out_dir)


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers = []
    logger.propagate = True
