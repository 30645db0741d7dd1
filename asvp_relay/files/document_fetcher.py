"""
Document Fetcher: Per-Document Payload Retrieval

Thin adapter over RegistryClient.query_document that only lets complete
payloads through. A payload without a file name or without content is
reported as MALFORMED_PAYLOAD instead of being passed on half-formed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import logging

from asvp_relay.clients.registry_client import RegistryClient
from asvp_relay.errors import ErrorKind
from asvp_relay.schemas import DocumentPayload


@dataclass(frozen=True)
class FetchResult:
    """
    Result of fetching one document.

    Attributes:
        ok: True if a complete payload was received
        payload: The payload when ok
        status: HTTP status code of the document query
        error_kind: Failure classification when not ok
        error: Failure detail
    """
    ok: bool
    payload: Optional[DocumentPayload] = None
    status: int = 0
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None


class DocumentFetcher:
    def __init__(self, client: RegistryClient, logger: Optional[logging.Logger] = None):
        self.client = client
        self._logger = logger or logging.getLogger(__name__)

    async def fetch(self, document_id: str, secret_code: str) -> FetchResult:
        result = await self.client.query_document(document_id, secret_code)

        if not result.ok:
            self._logger.error(f"[FETCH] Empty response for document {document_id}: {result.error}")
            return FetchResult(ok=False, status=result.status, error_kind=result.error_kind, error=result.error)

        payload = result.value
        if payload is None or not payload.is_complete:
            missing = []
            if payload is None or not payload.file_name:
                missing.append("fileName")
            if payload is None or not payload.data:
                missing.append("data")
            self._logger.error(f"[FETCH] Incomplete payload for document {document_id}: missing {', '.join(missing)}")
            return FetchResult(
                ok=False,
                status=result.status,
                error_kind=ErrorKind.MALFORMED_PAYLOAD,
                error=f"Payload missing {', '.join(missing)}",
            )

        self._logger.info(f"[FETCH] Fetched document {document_id}: {payload.file_name}")
        return FetchResult(ok=True, payload=payload, status=result.status)
