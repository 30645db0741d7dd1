"""
=============================================================================
REGISTRY CLIENT
=============================================================================

PURPOSE:
    Talk to the ASVP registry data endpoint. Every lookup is a single POST
    with a JSON body naming the query kind and the access token:

        {"filter": {...}, "reCaptchaToken": "", "reCaptchaAction": "view_document"}

    The response envelope carries the result in `mParams`.

SAFETY:
    - Never raises: transport errors, non-2xx responses and malformed bodies
      come back as a failed QueryResult
    - No retries, no caching

USAGE:
    async with RegistryClient(settings) as client:
        result = await client.query_case("12345", "abc")
        if result.ok:
            print(result.value.documents)

=============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar
import logging

import httpx
from pydantic import BaseModel, ValidationError

from asvp_relay.config import Settings, USER_AGENT
from asvp_relay.errors import ErrorKind
from asvp_relay.schemas import (
    CaseFilter, CaseRecord, DocumentFilter, DocumentPayload, QueryEnvelope, QueryRequest
)

T = TypeVar("T")


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """
    Result of one registry query.

    Attributes:
        ok: True if the registry returned usable data
        value: Parsed record when ok
        raw: The raw `mParams` object when the envelope parsed
        status: HTTP status code (0 when no response was received)
        error_kind: Failure classification when not ok
        error: Human readable failure detail
    """
    ok: bool
    value: Optional[T] = None
    raw: Optional[Dict[str, Any]] = None
    status: int = 0
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None

    @staticmethod
    def failure(kind: ErrorKind, error: str, status: int = 0, raw: Optional[Dict[str, Any]] = None) -> "QueryResult[Any]":
        return QueryResult(ok=False, status=status, error_kind=kind, error=error, raw=raw)


def default_headers(settings: Settings) -> Dict[str, str]:
    """Browser-like header set the registry expects."""
    origin = settings.base_url.rstrip("/")
    return {
        "accept": "application/json, text/plain, */*",
        "accept-language": "en-US,en;q=0.5",
        "user-agent": USER_AGENT,
        "origin": origin,
        "referer": f"{origin}/",
        "cache-control": "no-cache",
        "pragma": "no-cache",
        "content-type": "application/json",
    }


class RegistryClient:
    """
    Async HTTP client for the registry data endpoint.

    An httpx client can be injected; otherwise one is created (optionally on
    the given transport, e.g. httpx.MockTransport) and owned here.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        http: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.settings = settings
        self._logger = logger or logging.getLogger(__name__)
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            headers=default_headers(settings),
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "RegistryClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def post_filter(self, query_filter: BaseModel) -> QueryResult[Dict[str, Any]]:
        """
        Send one filtered query and unwrap the `mParams` envelope.

        Args:
            query_filter: CaseFilter or DocumentFilter

        Returns:
            QueryResult whose value is the raw mParams dict
        """
        body = QueryRequest.for_filter(query_filter).model_dump(mode="json")
        url = self.settings.endpoint_url
        self._logger.debug(f"[REGISTRY] POST {url} dataType={body['filter'].get('dataType')}")

        try:
            r = await self._http.post(url, json=body)
        except httpx.TimeoutException:
            self._logger.warning(f"[REGISTRY] Timeout after {self.settings.request_timeout}s: {url}")
            return QueryResult.failure(ErrorKind.TRANSPORT_FAILURE, f"Timeout after {self.settings.request_timeout}s")
        except httpx.HTTPError as e:
            self._logger.warning(f"[REGISTRY] Transport error: {e}")
            return QueryResult.failure(ErrorKind.TRANSPORT_FAILURE, f"Transport error: {e}")

        if not r.is_success:
            self._logger.warning(f"[REGISTRY] Failed: {r.status_code} - {url}")
            return QueryResult.failure(ErrorKind.TRANSPORT_FAILURE, f"HTTP {r.status_code}", status=r.status_code)

        try:
            envelope = QueryEnvelope.model_validate(r.json())
        except (ValueError, ValidationError) as e:
            self._logger.warning(f"[REGISTRY] Malformed envelope: {e}")
            return QueryResult.failure(ErrorKind.MALFORMED_RESPONSE, f"Malformed envelope: {e}", status=r.status_code)

        if envelope.mParams is None:
            self._logger.info("[REGISTRY] Empty result")
            return QueryResult.failure(ErrorKind.NOT_FOUND, "Registry returned no data", status=r.status_code)

        return QueryResult(ok=True, value=envelope.mParams, raw=envelope.mParams, status=r.status_code)

    async def query_case(self, case_number: str, secret_code: str) -> QueryResult[CaseRecord]:
        """Look up a case and parse its document list."""
        self._logger.info(f"[REGISTRY] Querying case {case_number}")
        result = await self.post_filter(CaseFilter(case_number=case_number, secret_code=secret_code))
        return self._parse(result, CaseRecord)

    async def query_document(self, document_id: str, secret_code: str) -> QueryResult[DocumentPayload]:
        """Fetch one document's payload (file name + base64 content)."""
        self._logger.info(f"[REGISTRY] Querying document {document_id}")
        result = await self.post_filter(DocumentFilter(document_id=document_id, secret_code=secret_code))
        return self._parse(result, DocumentPayload)

    def _parse(self, result: QueryResult[Dict[str, Any]], model: type) -> QueryResult[Any]:
        if not result.ok:
            return result
        try:
            value = model.model_validate(result.raw)
        except ValidationError as e:
            self._logger.warning(f"[REGISTRY] {model.__name__} failed validation: {e.error_count()} errors")
            return QueryResult.failure(
                ErrorKind.MALFORMED_RESPONSE,
                f"{model.__name__} failed validation: {e}",
                status=result.status,
                raw=result.raw,
            )
        return QueryResult(ok=True, value=value, raw=result.raw, status=result.status)
