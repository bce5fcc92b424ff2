from __future__ import annotations

from typing import Protocol


class DocumentStoragePort(Protocol):
    def download(self, path: str) -> bytes:
        ...

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        ...
