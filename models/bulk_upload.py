from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True)
class Document:
    """One uploaded file as handed to the ingestion pipelines."""

    filename: str
    content: bytes
    mime_type: Optional[str] = None


class BulkUploadItemResult(BaseModel):
    """Outcome of one file in a bulk batch; created once, never updated."""

    filename: str
    success: bool
    email: Optional[str] = None
    account_id: Optional[str] = None
    error_reason: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class BulkUploadSummary(BaseModel):
    success_count: int
    failure_count: int

    model_config = ConfigDict(frozen=True)

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count
