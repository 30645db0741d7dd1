"""
Provenance: Traceability for Stored Documents

Every document written to the output directory carries a small immutable
record of where it came from:
- When the payload was captured
- Which endpoint and query kind produced it
- SHA-256 hash of the decoded bytes
- The case / document identifiers it belongs to
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
from datetime import datetime, timezone
import hashlib


def sha256_bytes(b: bytes) -> str:
    """Compute SHA-256 hash of raw bytes."""
    return hashlib.sha256(b).hexdigest()


@dataclass(frozen=True)
class Provenance:
    """
    Traceability object for one stored document.

    Attributes:
        captured_at: ISO 8601 timestamp when the payload was stored
        source_url: Endpoint the payload was fetched from
        query_kind: Registry dataType used for the query
        status: HTTP status code returned, if known
        artifact_hash: SHA-256 hash over the decoded file bytes
        case_hint: Case number the document belongs to, if known
        document_hint: Registry document identifier
    """
    captured_at: str  # ISO 8601
    source_url: str
    query_kind: Optional[str] = None
    status: Optional[int] = None

    artifact_hash: Optional[str] = None

    case_hint: Optional[str] = None
    document_hint: Optional[str] = None

    @staticmethod
    def now(source_url: str, **kwargs) -> "Provenance":
        """Create a Provenance object stamped with the current UTC time."""
        ts = datetime.now(timezone.utc).isoformat()
        return Provenance(captured_at=ts, source_url=source_url, **kwargs)

    def with_artifact_hash(self, artifact_bytes: bytes) -> "Provenance":
        """Return a copy with artifact_hash computed from the given bytes."""
        return Provenance(
            captured_at=self.captured_at,
            source_url=self.source_url,
            query_kind=self.query_kind,
            status=self.status,
            artifact_hash=sha256_bytes(artifact_bytes),
            case_hint=self.case_hint,
            document_hint=self.document_hint,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "captured_at": self.captured_at,
            "source_url": self.source_url,
            "query_kind": self.query_kind,
            "status": self.status,
            "artifact_hash": self.artifact_hash,
            "case_hint": self.case_hint,
            "document_hint": self.document_hint,
        }
