"""
Document Store: Idempotent Local Persistence for Registry Documents

Documents land in one flat output directory:

out_dir/
    {document_id}_{safe_file_name}          decoded document bytes
    getSharedInfoByVP_{case}_{secret}.json  raw case lookup response

A document that is already on disk is left alone unless the caller forces an
overwrite. Writes go through a temporary file in the same directory and are
moved into place with os.replace, so a half-written file never shows up under
its final name.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union
import base64
import binascii
import json
import logging
import os
import tempfile

from asvp_relay.errors import ErrorKind
from asvp_relay.provenance import Provenance, sha256_bytes

# NAME_MAX is 255 bytes on common filesystems; leave room for the temp-file affixes
MAX_NAME_BYTES = 200


@dataclass(frozen=True)
class PersistedDocument:
    """
    A document successfully written during this run.

    Attributes:
        path: Final storage path
        data: Decoded bytes that were written
        provenance: Where the bytes came from
    """
    path: Path
    data: bytes
    provenance: Optional[Provenance] = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def sha256(self) -> str:
        return sha256_bytes(self.data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization (bytes omitted)."""
        return {
            "path": str(self.path),
            "size_bytes": self.size_bytes,
            "sha256": self.sha256,
            "provenance": self.provenance.to_dict() if self.provenance else None,
        }


@dataclass(frozen=True)
class WriteOutcome:
    """
    Result of a write attempt.

    Attributes:
        ok: True if the document was written
        skipped: True if the file already existed and overwrite was not forced
        document: PersistedDocument when ok
        error_kind: ALREADY_PERSISTED when skipped, failure kind otherwise
        error: Failure detail
    """
    ok: bool
    skipped: bool = False
    document: Optional[PersistedDocument] = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None


def _truncate_utf8(text: str, max_bytes: int) -> str:
    """Cut text to at most max_bytes of UTF-8 without splitting a character."""
    return text.encode("utf-8")[:max_bytes].decode("utf-8", "ignore")


def sanitize_filename(filename: str) -> str:
    """
    Strip path separators and NUL so a name can't escape the output directory.

    Names are capped by UTF-8 byte length (filesystems limit bytes, not
    characters); the extension is kept when it fits.
    """
    safe = filename.replace("/", "_").replace("\\", "_").replace("\x00", "")
    if safe in (".", ".."):
        safe = safe.replace(".", "_")
    if len(safe.encode("utf-8")) > MAX_NAME_BYTES:
        ext = Path(safe).suffix
        ext_bytes = len(ext.encode("utf-8"))
        if ext_bytes > MAX_NAME_BYTES // 4:
            ext, ext_bytes = "", 0
        stem = safe[:len(safe) - len(ext)] if ext else safe
        safe = _truncate_utf8(stem, MAX_NAME_BYTES - ext_bytes) + ext
    return safe or "document"


class DiskDocumentStore:
    """Filesystem-backed store rooted at a single flat directory."""

    def __init__(self, root_dir: Union[str, Path], logger: Optional[logging.Logger] = None):
        self.root = Path(root_dir)
        self._logger = logger or logging.getLogger(__name__)
        self.root.mkdir(parents=True, exist_ok=True)

        self._logger.debug(f"[STORE] Initialized DiskDocumentStore at {self.root}")

    def storage_name(self, document_id: str, file_name: str) -> str:
        """Deterministic name for a document: `<document_id>_<file_name>`."""
        return sanitize_filename(f"{document_id}_{file_name}")

    def path_for(self, name: str) -> Path:
        return self.root / sanitize_filename(name)

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def write(
        self,
        name: str,
        content_b64: str,
        force_overwrite: bool = False,
        provenance: Optional[Provenance] = None
    ) -> WriteOutcome:
        """
        Decode base64 content and store it under `name`.

        Args:
            name: Storage name (see storage_name)
            content_b64: Transport-encoded document content
            force_overwrite: Replace an existing file instead of skipping
            provenance: Optional provenance; its artifact hash is filled in

        Returns:
            WriteOutcome; skipped=True when the file exists and force is off
        """
        path = self.path_for(name)

        try:
            present = path.exists()
        except OSError as e:
            self._logger.error(f"[STORE] Cannot check {path.name}: {e}")
            return WriteOutcome(ok=False, error_kind=ErrorKind.STORAGE_FAILURE, error=str(e))

        if present:
            self._logger.info(f"[STORE] Document {path.name} already exists.")
            if not force_overwrite:
                self._logger.info("[STORE] Skipping... use force overwrite to replace it")
                return WriteOutcome(
                    ok=False,
                    skipped=True,
                    error_kind=ErrorKind.ALREADY_PERSISTED,
                    error=f"{path.name} already exists",
                )

        try:
            data = base64.b64decode(content_b64)
        except (binascii.Error, ValueError, TypeError) as e:
            self._logger.error(f"[STORE] Could not decode content for {path.name}: {e}")
            return WriteOutcome(ok=False, error_kind=ErrorKind.MALFORMED_PAYLOAD, error=f"Invalid base64: {e}")

        try:
            self._atomic_write(path, data)
        except OSError as e:
            self._logger.error(f"[STORE] Write failed for {path.name}: {e}")
            return WriteOutcome(ok=False, error_kind=ErrorKind.STORAGE_FAILURE, error=str(e))

        if provenance is not None:
            provenance = provenance.with_artifact_hash(data)

        self._logger.info(f"[STORE] Document {path.name} saved ({len(data)} bytes).")
        return WriteOutcome(ok=True, document=PersistedDocument(path=path, data=data, provenance=provenance))

    def read(self, name: str) -> Optional[bytes]:
        path = self.path_for(name)
        if not path.is_file():
            return None
        return path.read_bytes()

    def save_case_summary(self, case_number: str, secret_code: str, raw: Dict[str, Any]) -> Path:
        """
        Write the raw case lookup response as JSON.

        The summary is always rewritten; it reflects the latest lookup.
        """
        name = sanitize_filename(f"getSharedInfoByVP_{case_number}_{secret_code}.json")
        path = self.root / name
        self._atomic_write(path, json.dumps(raw, ensure_ascii=False).encode("utf-8"))

        self._logger.info(f"[STORE] Case result for {case_number} saved to: {path}")
        return path

    def _atomic_write(self, path: Path, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{_truncate_utf8(path.name, 50)}.", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
