from __future__ import annotations

import pytest

from db.repos.accounts_repo import AccountsRepo
from db.repos.profiles_repo import ProfilesRepo
from models.profile import ExtractedProfileRecord
from pipelines.runner import IngestionState, Pipeline, RunContext
from pipelines.steps import ApplyProfileUpdate, DownloadDocument, ExtractProfile, ReconcileProfile
from services.document_storage import LocalDocumentStorage
from services.resume_extractor import ResumeExtractor


def test_download_sets_document_and_type(tmp_path):
    storage = LocalDocumentStorage(tmp_path)
    storage.upload("acc/cv.docx", b"PK data", "application/octet-stream")
    ctx = DownloadDocument(storage).run(RunContext(account_id="acc", resume_path="acc/cv.docx"))
    assert ctx.document == b"PK data"
    assert ctx.mime_type.endswith("wordprocessingml.document")
    assert ctx.state == IngestionState.DOWNLOADED


def test_extract_requires_document(scripted_llm):
    with pytest.raises(RuntimeError):
        ExtractProfile(ResumeExtractor(scripted_llm())).run(RunContext(account_id="a", resume_path="a/cv.pdf"))


def test_reconcile_against_missing_profile_flags_everything_extracted(conn):
    ctx = RunContext(
        account_id="ghost",
        resume_path="ghost/cv.pdf",
        extracted=ExtractedProfileRecord(full_name="Ghost", skills=["Haunting"]),
    )
    ctx = ReconcileProfile(ProfilesRepo(conn)).run(ctx)
    assert ctx.state == IngestionState.RECONCILED
    assert {d.field for d in ctx.diffs if d.changed} == {"full_name", "skills"}
    assert ctx.meta["sections_with_changes"] == 2


def test_pipeline_runs_steps_in_order(conn, tmp_path, scripted_llm):
    account_id = AccountsRepo(conn, bcrypt_rounds=4).create_account("fay@example.com", "pw", "candidate")
    storage = LocalDocumentStorage(tmp_path)
    storage.upload(f"{account_id}/cv.pdf", b"%PDF fay", "application/pdf")
    llm = scripted_llm({b"%PDF fay": {"full_name": "Fay", "achievements": ["Award"]}})

    ctx = Pipeline([
        DownloadDocument(storage),
        ExtractProfile(ResumeExtractor(llm)),
        ApplyProfileUpdate(ProfilesRepo(conn)),
    ]).run(RunContext(account_id=account_id, resume_path=f"{account_id}/cv.pdf"))

    assert ctx.state == IngestionState.APPLIED
    assert ctx.updated_fields == ["full_name", "achievements"]
    assert ProfilesRepo(conn).get_profile(account_id).achievements == ["Award"]


def test_apply_with_nothing_accepted_writes_nothing(conn):
    ctx = RunContext(
        account_id="nobody",
        resume_path="-",
        extracted=ExtractedProfileRecord(full_name="Nobody"),
    )
    # No profile row exists, so any write attempt would fail
    ctx = ApplyProfileUpdate(ProfilesRepo(conn), accepted_fields=[]).run(ctx)
    assert ctx.updated_fields == []
    assert ctx.state == IngestionState.APPLIED
