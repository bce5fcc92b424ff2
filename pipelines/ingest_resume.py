from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from models.caller import Caller
from models.field_diff import FieldDiff
from models.profile import ExtractedProfileRecord
from pipelines.runner import IngestionState, Pipeline, RunContext
from pipelines.steps import ApplyProfileUpdate, DownloadDocument, ExtractProfile, ReconcileProfile
from ports.repos import ProfilesRepoPort
from ports.storage import DocumentStoragePort
from services.resume_extractor import ResumeExtractor


@dataclass
class IngestionOutcome:
    account_id: str
    state: IngestionState
    parsed: ExtractedProfileRecord
    updated_fields: List[str] = field(default_factory=list)
    diffs: List[FieldDiff] = field(default_factory=list)
    sections_with_changes: int = 0

    def to_response(self) -> dict:
        body: dict = {"success": True, "parsed": self.parsed.to_wire()}
        if self.state == IngestionState.APPLIED:
            body["updated_fields"] = list(self.updated_fields)
        else:
            body["diffs"] = [d.model_dump() for d in self.diffs]
            body["sections_with_changes"] = self.sections_with_changes
        return body


class ResumeIngestionService:
    """Self-service "update my profile from resume" flow.

    Requested -> Downloaded -> Extracted -> Applied (auto-apply) or
    Reconciled (review: diffs returned, nothing persisted). Every failure
    is raised to the interactive caller unchanged.
    """

    def __init__(
        self,
        extractor: ResumeExtractor,
        storage: DocumentStoragePort,
        profiles: ProfilesRepoPort,
        admin_role: str = "admin",
    ) -> None:
        self.extractor = extractor
        self.storage = storage
        self.profiles = profiles
        self.admin_role = admin_role

    def _authorize(self, caller: Caller, account_id: str, resume_path: Optional[str] = None) -> None:
        if caller.has_role(self.admin_role):
            return
        if caller.account_id != account_id:
            raise PermissionError("Cannot update another account's profile")
        if resume_path is not None and not resume_path.startswith(f"{account_id}/"):
            raise PermissionError("Resume does not belong to the caller")

    def _run(self, steps, account_id: str, resume_path: str) -> RunContext:
        ctx = RunContext(account_id=account_id, resume_path=resume_path)
        return Pipeline(steps).run(ctx)

    def parse_and_apply(self, caller: Caller, resume_path: str, account_id: Optional[str] = None) -> IngestionOutcome:
        account_id = account_id or caller.account_id
        self._authorize(caller, account_id, resume_path)
        ctx = self._run(
            [DownloadDocument(self.storage), ExtractProfile(self.extractor), ApplyProfileUpdate(self.profiles)],
            account_id,
            resume_path,
        )
        return IngestionOutcome(
            account_id=account_id,
            state=ctx.state,
            parsed=ctx.extracted,
            updated_fields=ctx.updated_fields,
        )

    def parse_for_review(self, caller: Caller, resume_path: str, account_id: Optional[str] = None) -> IngestionOutcome:
        account_id = account_id or caller.account_id
        self._authorize(caller, account_id, resume_path)
        ctx = self._run(
            [DownloadDocument(self.storage), ExtractProfile(self.extractor), ReconcileProfile(self.profiles)],
            account_id,
            resume_path,
        )
        return IngestionOutcome(
            account_id=account_id,
            state=ctx.state,
            parsed=ctx.extracted,
            diffs=ctx.diffs,
            sections_with_changes=int(ctx.meta.get("sections_with_changes") or 0),
        )

    def apply_reviewed(
        self,
        caller: Caller,
        extracted: ExtractedProfileRecord,
        accepted_fields: Iterable[str],
        account_id: Optional[str] = None,
    ) -> List[str]:
        """Persist the subset of a reviewed extraction the user accepted."""
        account_id = account_id or caller.account_id
        self._authorize(caller, account_id)
        ctx = RunContext(account_id=account_id, resume_path="-", state=IngestionState.RECONCILED, extracted=extracted)
        ctx = Pipeline([ApplyProfileUpdate(self.profiles, accepted_fields)]).run(ctx)
        return ctx.updated_fields
