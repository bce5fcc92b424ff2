from __future__ import annotations

import logging
from pathlib import Path

from models.outcome import DocumentNotFound, StorageWriteFailed


logger = logging.getLogger(__name__)


class LocalDocumentStorage:
    """Filesystem stand-in for the résumé bucket; paths are bucket-relative."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        root = self.root.resolve()
        if target != root and root not in target.parents:
            raise ValueError(f"Path escapes storage root: {path}")
        return target

    def download(self, path: str) -> bytes:
        try:
            target = self._resolve(path)
        except ValueError as exc:
            raise DocumentNotFound(str(exc)) from exc
        if not target.is_file():
            raise DocumentNotFound(f"Document not found: {path}")
        return target.read_bytes()

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store bytes under ``path``; an existing object is never overwritten."""
        try:
            target = self._resolve(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("xb") as f:
                f.write(data)
        except FileExistsError as exc:
            raise StorageWriteFailed(f"Document already exists: {path}") from exc
        except (OSError, ValueError) as exc:
            raise StorageWriteFailed(f"Failed to store document {path}: {exc}") from exc
        logger.debug("Document stored", extra={"step": "storage.upload", "status": "ok", "document": path})
        return path
