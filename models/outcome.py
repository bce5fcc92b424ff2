from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar, Union


T = TypeVar("T")


class FailureKind(str, Enum):
    EXTRACTION_UNAVAILABLE = "ExtractionUnavailable"
    NO_STRUCTURED_OUTPUT = "NoStructuredOutput"
    UNSUPPORTED_DOCUMENT = "UnsupportedDocument"
    DOCUMENT_NOT_FOUND = "DocumentNotFound"
    NO_EMAIL_FOUND = "NoEmailFound"
    ACCOUNT_ALREADY_EXISTS = "AccountAlreadyExists"
    ACCOUNT_CREATION_FAILED = "AccountCreationFailed"
    STORAGE_WRITE_FAILED = "StorageWriteFailed"
    PROFILE_WRITE_FAILED = "ProfileWriteFailed"
    UNEXPECTED = "Unexpected"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: FailureKind
    message: str = ""

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]


class IngestionError(Exception):
    """Base for failures surfaced to an interactive caller."""

    kind: FailureKind = FailureKind.UNEXPECTED

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind.value)
        self.message = message or self.kind.value

    @classmethod
    def from_err(cls, err: Err) -> "IngestionError":
        exc_type = _ERRORS_BY_KIND.get(err.kind, IngestionError)
        return exc_type(err.message)

    def to_err(self) -> Err:
        return Err(self.kind, self.message)


class ExtractionUnavailable(IngestionError):
    """Extraction service unreachable, rate-limited or out of quota (retryable)."""

    kind = FailureKind.EXTRACTION_UNAVAILABLE


class NoStructuredOutput(IngestionError):
    """Service answered but nothing schema-conformant could be recovered."""

    kind = FailureKind.NO_STRUCTURED_OUTPUT


class UnsupportedDocument(IngestionError):
    kind = FailureKind.UNSUPPORTED_DOCUMENT


class DocumentNotFound(IngestionError):
    kind = FailureKind.DOCUMENT_NOT_FOUND


class StorageWriteFailed(IngestionError):
    kind = FailureKind.STORAGE_WRITE_FAILED


class ProfileWriteFailed(IngestionError):
    kind = FailureKind.PROFILE_WRITE_FAILED


class BatchPreconditionError(ValueError):
    """A whole batch cannot start (no files, extraction not configured)."""


_ERRORS_BY_KIND: dict[FailureKind, Any] = {
    cls.kind: cls
    for cls in (
        ExtractionUnavailable,
        NoStructuredOutput,
        UnsupportedDocument,
        DocumentNotFound,
        StorageWriteFailed,
        ProfileWriteFailed,
    )
}


class DuplicateAccount(Exception):
    """Store-level uniqueness violation on the account email."""
