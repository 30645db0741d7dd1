"""
Download Manager: Case Lookup -> Fetch -> Store -> Notify

This module drives the retrieval pipeline:

1. CASE LOOKUP
   - One query for the case; no record means nothing to do
   - The raw response is saved as the case summary file

2. PER-DOCUMENT FAN-OUT
   - One task per document descriptor, bounded by a semaphore
   - Each task: fetch payload -> write to disk -> relay to notifier
   - A failing document never affects its siblings

Only documents actually written during this run are returned, in the order
the case listed them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
import asyncio
import logging

from asvp_relay.clients.registry_client import RegistryClient
from asvp_relay.clients.telegram_notifier import Notifier
from asvp_relay.config import DEFAULT_MAX_CONCURRENCY
from asvp_relay.errors import ErrorKind
from asvp_relay.provenance import Provenance
from asvp_relay.schemas import CaseIdentifier, DocumentDescriptor, QueryKind
from .document_fetcher import DocumentFetcher
from .document_store import DiskDocumentStore, PersistedDocument


class DocumentState(str, Enum):
    PENDING = "PENDING"
    FETCHED = "FETCHED"
    PERSISTED = "PERSISTED"
    NOTIFIED = "NOTIFIED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class DownloadOutcome:
    """
    Result of processing one document.

    Attributes:
        document_id: Registry document identifier (None for an id-less descriptor)
        state: Last state reached
        document: PersistedDocument if written during this run
        error_kind: Why the document stopped short of NOTIFIED, if it did
        error: Failure detail
    """
    document_id: Optional[str]
    state: DocumentState
    document: Optional[PersistedDocument] = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.document is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "document_id": self.document_id,
            "state": self.state.value,
            "document": self.document.to_dict() if self.document else None,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "error": self.error,
        }


@dataclass(frozen=True)
class CaseDownloadResult:
    """
    Result of downloading a whole case.

    Attributes:
        found: False when the case lookup returned no usable record
        documents: Documents written during this run, in case order
        outcomes: One outcome per descriptor, in case order
        summary_path: Where the raw case response was saved
        error_kind: Case lookup failure kind when not found
        error: Case lookup failure detail
    """
    found: bool
    documents: List[PersistedDocument] = field(default_factory=list)
    outcomes: List[DownloadOutcome] = field(default_factory=list)
    summary_path: Optional[Path] = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None


class DownloadManager:
    """
    Orchestrates case and document downloads.

    Usage:
        store = DiskDocumentStore("./out")
        async with RegistryClient(settings) as client:
            dm = DownloadManager(client=client, store=store, notifier=notifier)
            result = await dm.download_case(CaseIdentifier(case_number="12345", secret_code="abc"))
            for doc in result.documents:
                print(doc.path)
    """

    def __init__(
        self,
        *,
        client: RegistryClient,
        store: DiskDocumentStore,
        notifier: Notifier,
        fetcher: Optional[DocumentFetcher] = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize download manager.

        Args:
            client: Registry client used for case lookups
            store: Where documents are written
            notifier: Channel that receives every written document
            fetcher: Document fetcher (built on client when omitted)
            max_concurrency: Documents processed at the same time
            logger: Logger for pipeline progress
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.client = client
        self.store = store
        self.notifier = notifier
        self._logger = logger or logging.getLogger(__name__)
        self.fetcher = fetcher or DocumentFetcher(client, logger=self._logger)
        self.max_concurrency = max_concurrency

    async def download_single(self, document_id: str, secret_code: str) -> DownloadOutcome:
        """
        Fetch and store one document, always replacing any existing file.

        Args:
            document_id: Registry document identifier
            secret_code: Access token

        Returns:
            DownloadOutcome with the PersistedDocument or the failure reason
        """
        return await self._process_safely(document_id, secret_code, force_overwrite=True)

    async def download_case(self, identifier: CaseIdentifier, force_overwrite: bool = False) -> CaseDownloadResult:
        """
        Look up a case and download every document it lists.

        Args:
            identifier: Case number and access token
            force_overwrite: Replace documents already on disk

        Returns:
            CaseDownloadResult; found=False when the case has no record
        """
        result = await self.client.query_case(identifier.case_number, identifier.secret_code)

        if not result.ok or result.value is None:
            self._logger.info(f"[DOWNLOAD] Base result is empty for case {identifier.case_number}: {result.error}")
            return CaseDownloadResult(found=False, error_kind=result.error_kind, error=result.error)

        summary_path = None
        if result.raw is not None:
            try:
                summary_path = await asyncio.to_thread(
                    self.store.save_case_summary, identifier.case_number, identifier.secret_code, result.raw
                )
            except OSError as e:
                self._logger.error(f"[DOWNLOAD] Could not save case summary: {e}")

        outcomes = await self.download_documents(
            result.value.documents,
            identifier.secret_code,
            force_overwrite=force_overwrite,
            case_hint=identifier.case_number,
        )

        documents = [o.document for o in outcomes if o.document is not None]
        self._logger.info(
            f"[DOWNLOAD] Case {identifier.case_number}: {len(documents)}/{len(outcomes)} documents stored"
        )
        return CaseDownloadResult(found=True, documents=documents, outcomes=outcomes, summary_path=summary_path)

    async def download_documents(
        self,
        descriptors: List[DocumentDescriptor],
        secret_code: str,
        *,
        force_overwrite: bool = False,
        case_hint: Optional[str] = None
    ) -> List[DownloadOutcome]:
        """
        Process descriptors concurrently; outcomes keep descriptor order.
        """
        self._logger.info(f"[DOWNLOAD] Start downloading {len(descriptors)} documents")
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(descriptor: DocumentDescriptor) -> DownloadOutcome:
            if not descriptor.is_valid:
                self._logger.warning(f"[DOWNLOAD] Skipping descriptor without id ({descriptor.file_name!r})")
                return DownloadOutcome(
                    document_id=None,
                    state=DocumentState.FAILED,
                    error_kind=ErrorKind.MALFORMED_RESPONSE,
                    error="Descriptor has no document id",
                )
            async with semaphore:
                return await self._process_safely(
                    descriptor.document_id, secret_code,
                    force_overwrite=force_overwrite, case_hint=case_hint
                )

        return list(await asyncio.gather(*(run(d) for d in descriptors)))

    async def _process_safely(
        self,
        document_id: str,
        secret_code: str,
        *,
        force_overwrite: bool,
        case_hint: Optional[str] = None
    ) -> DownloadOutcome:
        try:
            return await self._process(
                document_id, secret_code,
                force_overwrite=force_overwrite, case_hint=case_hint
            )
        except OSError as e:
            self._logger.error(f"[DOWNLOAD] Storage error for document {document_id}: {e}")
            kind = ErrorKind.STORAGE_FAILURE
            error = str(e)
        except Exception as e:
            self._logger.exception(f"[DOWNLOAD] Document {document_id} failed: {e}")
            kind = ErrorKind.INTERNAL_ERROR
            error = f"{type(e).__name__}: {e}"
        return DownloadOutcome(document_id=document_id, state=DocumentState.FAILED, error_kind=kind, error=error)

    async def _process(
        self,
        document_id: str,
        secret_code: str,
        *,
        force_overwrite: bool,
        case_hint: Optional[str] = None
    ) -> DownloadOutcome:
        # 1) fetch
        fetched = await self.fetcher.fetch(document_id, secret_code)
        if not fetched.ok or fetched.payload is None:
            return DownloadOutcome(
                document_id=document_id,
                state=DocumentState.FAILED,
                error_kind=fetched.error_kind,
                error=fetched.error,
            )

        payload = fetched.payload
        prov = Provenance.now(
            source_url=self.client.settings.endpoint_url,
            query_kind=QueryKind.DOCUMENT.value,
            status=fetched.status,
            case_hint=case_hint,
            document_hint=document_id,
        )

        # 2) persist
        name = self.store.storage_name(document_id, payload.file_name)
        written = await asyncio.to_thread(self.store.write, name, payload.data, force_overwrite, prov)
        if written.skipped:
            return DownloadOutcome(
                document_id=document_id,
                state=DocumentState.SKIPPED,
                error_kind=written.error_kind,
                error=written.error,
            )
        if not written.ok or written.document is None:
            return DownloadOutcome(
                document_id=document_id,
                state=DocumentState.FAILED,
                error_kind=written.error_kind,
                error=written.error,
            )

        document = written.document

        # 3) notify (best effort)
        if not self.notifier.enabled:
            self._logger.debug(f"[DOWNLOAD] No notification channel, {document.name} stays PERSISTED")
            return DownloadOutcome(document_id=document_id, state=DocumentState.PERSISTED, document=document)

        delivered = False
        try:
            delivered = await asyncio.to_thread(self.notifier.deliver, document.path, document.data)
        except Exception as e:
            self._logger.warning(f"[DOWNLOAD] Notification error for {document.name}: {e}")

        if not delivered:
            return DownloadOutcome(
                document_id=document_id,
                state=DocumentState.PERSISTED,
                document=document,
                error_kind=ErrorKind.DELIVERY_FAILURE,
                error="Notification not delivered",
            )

        return DownloadOutcome(document_id=document_id, state=DocumentState.NOTIFIED, document=document)
