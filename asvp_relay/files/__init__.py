"""
Files Module: Registry Document Download System

Components:
- DocumentFetcher: Retrieves one document payload from the registry
- DiskDocumentStore: Writes decoded documents idempotently to a flat directory
- DownloadManager: Orchestrates case lookup, fetch, store and notify

Design Philosophy:
1. Idempotent: a stored document is only replaced when explicitly forced
2. Isolated: one failing document never aborts the batch
3. Provenance: every stored document knows which query produced it
"""

from .document_fetcher import DocumentFetcher, FetchResult
from .document_store import DiskDocumentStore, PersistedDocument, WriteOutcome, sanitize_filename
from .download_manager import CaseDownloadResult, DocumentState, DownloadManager, DownloadOutcome

__all__ = [
    "DocumentFetcher",
    "FetchResult",
    "DiskDocumentStore",
    "PersistedDocument",
    "WriteOutcome",
    "sanitize_filename",
    "DownloadManager",
    "DownloadOutcome",
    "DocumentState",
    "CaseDownloadResult",
]
