from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from config.settings import Settings
from db.repos.accounts_repo import normalize_email
from models.bulk_upload import BulkUploadItemResult, Document
from models.outcome import BatchPreconditionError, DuplicateAccount, Err, FailureKind, Ok, Result
from models.profile import ExtractedProfileRecord
from ports.repos import AccountsRepoPort, ProfilesRepoPort
from ports.storage import DocumentStoragePort
from services.reconciler import build_profile_update
from services.reporting import summarize
from services.resume_extractor import ResumeExtractor
from utils.documents import resolve_mime_type, safe_filename


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisioningPolicy:
    """How bulk-created accounts are provisioned.

    Every account gets the same placeholder password and is flagged for
    rotation on first login. This is a product decision surfaced as config.
    """

    default_password: str
    role: str = "candidate"
    must_change_password: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProvisioningPolicy":
        if settings.uses_builtin_password:
            logger.warning(
                "Bulk provisioning uses the built-in placeholder password; set BULK_DEFAULT_PASSWORD to override",
                extra={"step": "provisioning", "status": "warning"},
            )
        return cls(default_password=settings.bulk_default_password, role=settings.bulk_account_role)


def _reason(err: Err) -> str:
    if err.kind == FailureKind.UNEXPECTED:
        return err.message or "Unknown error"
    if not err.message or err.message == err.kind.value:
        return err.kind.value
    return f"{err.kind.value}: {err.message}"


class BulkUploadOrchestrator:
    """Provision candidate accounts from a batch of résumés.

    Items run strictly one after another, in input order. Each item's failure
    is recorded as a result and the batch moves on; the returned list always
    holds exactly one result per input document.
    """

    def __init__(
        self,
        extractor: ResumeExtractor,
        accounts: AccountsRepoPort,
        profiles: ProfilesRepoPort,
        storage: DocumentStoragePort,
        policy: ProvisioningPolicy,
        on_progress: Optional[Callable[[int, int, str], None]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.extractor = extractor
        self.accounts = accounts
        self.profiles = profiles
        self.storage = storage
        self.policy = policy
        self.on_progress = on_progress
        self.clock = clock

    def run_batch(self, documents: Sequence[Document]) -> List[BulkUploadItemResult]:
        if not documents:
            raise BatchPreconditionError("No resume files provided")
        if not self.extractor.is_configured:
            raise BatchPreconditionError("Extraction service not configured")

        total = len(documents)
        logger.info(f"Processing {total} resume files", extra={"step": "bulk", "status": "start"})
        results: List[BulkUploadItemResult] = []
        for idx, doc in enumerate(documents, start=1):
            self._notify_progress(idx, total, doc.filename)
            results.append(self._process(doc))

        summary = summarize(results)
        logger.info(
            f"Processed {total} resumes: {summary.success_count} succeeded, {summary.failure_count} failed",
            extra={"step": "bulk", "status": "done"},
        )
        return results

    def _notify_progress(self, idx: int, total: int, filename: str) -> None:
        if not self.on_progress:
            return
        try:
            self.on_progress(idx, total, filename)
        except Exception as exc:
            # A broken progress hook never costs an item its result
            logger.warning(
                "Progress callback failed",
                extra={"step": "bulk.progress", "status": "error", "document": filename, "error": str(exc)},
            )

    def _process(self, doc: Document) -> BulkUploadItemResult:
        t0 = time.time()
        try:
            result = self._process_item(doc)
        except Exception as exc:
            # Item boundary: nothing raised by one file may abort the batch
            logger.exception(
                "Unexpected error while processing resume",
                extra={"step": "bulk.item", "status": "error", "document": doc.filename, "error": str(exc)},
            )
            result = self._failed(doc.filename, Err(FailureKind.UNEXPECTED, str(exc)))
        logger.info(
            "Resume processed" if result.success else f"Resume failed: {result.error_reason}",
            extra={
                "step": "bulk.item",
                "status": "ok" if result.success else "failed",
                "document": doc.filename,
                "duration_ms": int((time.time() - t0) * 1000),
            },
        )
        return result

    def _process_item(self, doc: Document) -> BulkUploadItemResult:
        extracted = self._extract(doc)
        if isinstance(extracted, Err):
            return self._failed(doc.filename, extracted)

        email = self._require_email(extracted.value)
        if isinstance(email, Err):
            return self._failed(doc.filename, email)

        unique = self._ensure_new_account(email.value)
        if isinstance(unique, Err):
            return self._failed(doc.filename, unique, email=email.value)

        account = self._provision(email.value, extracted.value)
        if isinstance(account, Err):
            return self._failed(doc.filename, account, email=email.value)
        account_id = account.value

        stored = self._store_document(account_id, doc)
        resume_path = stored.value if isinstance(stored, Ok) else None

        written = self._write_profile(account_id, email.value, extracted.value, resume_path)
        if isinstance(written, Err):
            # Account is kept; the failed row tells the admin to re-import this file
            return self._failed(doc.filename, written, email=email.value, account_id=account_id)

        return BulkUploadItemResult(filename=doc.filename, success=True, email=email.value, account_id=account_id)

    def _extract(self, doc: Document) -> Result[ExtractedProfileRecord]:
        return self.extractor.try_extract(doc.content, doc.mime_type, filename=doc.filename)

    @staticmethod
    def _require_email(extracted: ExtractedProfileRecord) -> Result[str]:
        email = normalize_email(extracted.email)
        if not email:
            return Err(FailureKind.NO_EMAIL_FOUND)
        return Ok(email)

    def _ensure_new_account(self, email: str) -> Result[str]:
        if self.accounts.find_by_email(email):
            return Err(FailureKind.ACCOUNT_ALREADY_EXISTS)
        return Ok(email)

    def _provision(self, email: str, extracted: ExtractedProfileRecord) -> Result[str]:
        try:
            account_id = self.accounts.create_account(
                email,
                self.policy.default_password,
                self.policy.role,
                full_name=(extracted.full_name or "").strip() or None,
                must_change_password=self.policy.must_change_password,
            )
        except DuplicateAccount:
            return Err(FailureKind.ACCOUNT_ALREADY_EXISTS)
        except Exception as exc:
            logger.error(
                "Account creation failed",
                extra={"step": "bulk.provision", "status": "error", "document": email, "error": str(exc)},
            )
            return Err(FailureKind.ACCOUNT_CREATION_FAILED, str(exc) or "Failed to create user")
        return Ok(account_id)

    def _store_document(self, account_id: str, doc: Document) -> Result[str]:
        path = f"{account_id}/{int(self.clock() * 1000)}_{safe_filename(doc.filename)}"
        content_type = resolve_mime_type(doc.filename, doc.mime_type) or "application/octet-stream"
        try:
            return Ok(self.storage.upload(path, doc.content, content_type))
        except Exception as exc:
            # Degraded-continue: the account and profile are still created
            logger.warning(
                "Resume upload failed; profile will have no document reference",
                extra={"step": "bulk.store", "status": "error", "document": doc.filename, "error": str(exc)},
            )
            return Err(FailureKind.STORAGE_WRITE_FAILED, str(exc))

    def _write_profile(
        self,
        account_id: str,
        email: str,
        extracted: ExtractedProfileRecord,
        resume_path: Optional[str],
    ) -> Result[List[str]]:
        update = build_profile_update(extracted)
        update["email"] = email
        update["user_type"] = self.policy.role
        if resume_path:
            update["resume_path"] = resume_path
        try:
            self.profiles.update_profile(account_id, update)
        except Exception as exc:
            logger.error(
                "Profile update failed after account creation",
                extra={"step": "bulk.profile", "status": "error", "document": email, "error": str(exc)},
            )
            return Err(FailureKind.PROFILE_WRITE_FAILED)
        return Ok(list(update.keys()))

    @staticmethod
    def _failed(
        filename: str,
        err: Err,
        email: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> BulkUploadItemResult:
        return BulkUploadItemResult(
            filename=filename,
            success=False,
            email=email,
            account_id=account_id,
            error_reason=_reason(err),
        )
