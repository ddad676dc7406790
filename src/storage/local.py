from __future__ import annotations

"""Per-user PDF storage on the local filesystem."""

import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path


class StorageError(RuntimeError):
    """Raised when a stored document cannot be written or found."""
    pass


_SAFE_SEGMENT_RE = re.compile(r"[^A-Za-z0-9_.-]")
_DOC_ID_RE = re.compile(r"^[0-9a-f]{32}$")


@dataclass(frozen=True)
class StoredDocument:
    """A stored upload, addressed by its random document ID."""
    doc_id: str
    user_id: str
    name: str
    size: int
    created_at: datetime


class LocalDocumentStorage:
    """Store uploads under ``root/<user_id>/<doc_id>.pdf``."""

    def __init__(self, root: Path, public_base_url: str = "") -> None:
        self._root = root
        self._public_base_url = public_base_url.rstrip("/")

    def save(self, user_id: str, data: bytes, suffix: str = ".pdf") -> StoredDocument:
        """Write bytes under a fresh random name and return its record."""
        doc_id = uuid.uuid4().hex
        folder = self._user_dir(user_id)
        try:
            folder.mkdir(parents=True, exist_ok=True)
            path = folder / f"{doc_id}{suffix}"
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to store document: {exc}") from exc
        return self._describe(user_id, path)

    def list(self, user_id: str) -> list[StoredDocument]:
        """Return the user's documents, newest first."""
        folder = self._user_dir(user_id)
        if not folder.exists():
            return []
        documents = [
            self._describe(user_id, path)
            for path in folder.iterdir()
            if path.is_file() and _DOC_ID_RE.match(path.stem)
        ]
        documents.sort(key=lambda doc: doc.created_at, reverse=True)
        return documents

    def open_path(self, user_id: str, doc_id: str) -> Path:
        """Resolve a document path, refusing malformed or unknown IDs."""
        if not _DOC_ID_RE.match(doc_id):
            raise StorageError("Document not found")
        matches = sorted(self._user_dir(user_id).glob(f"{doc_id}.*"))
        if not matches:
            raise StorageError("Document not found")
        return matches[0]

    def delete(self, user_id: str, doc_id: str) -> None:
        """Remove a stored document; unknown IDs raise StorageError."""
        path = self.open_path(user_id, doc_id)
        try:
            path.unlink()
        except OSError as exc:
            raise StorageError(f"Failed to delete document: {exc}") from exc

    def public_url(self, doc_id: str) -> str:
        return f"{self._public_base_url}/documents/{doc_id}/file"

    def _user_dir(self, user_id: str) -> Path:
        segment = _SAFE_SEGMENT_RE.sub("_", user_id).strip(".") or "anonymous"
        return self._root / segment

    def _describe(self, user_id: str, path: Path) -> StoredDocument:
        stat = path.stat()
        return StoredDocument(
            doc_id=path.stem,
            user_id=user_id,
            name=path.name,
            size=stat.st_size,
            created_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )
