from __future__ import annotations

import pytest

from db.repos.accounts_repo import AccountsRepo
from db.repos.profiles_repo import ProfilesRepo
from models.caller import Caller
from models.outcome import DocumentNotFound, ExtractionUnavailable, NoStructuredOutput, ProfileWriteFailed
from models.profile import ExtractedProfileRecord
from pipelines.ingest_resume import ResumeIngestionService
from pipelines.runner import IngestionState
from ports.llm import LLMResponse
from services.document_storage import LocalDocumentStorage
from services.resume_extractor import ResumeExtractor


RESUME = b"%PDF dana"
PARSED = {
    "full_name": "Dana Doe",
    "email": "dana@example.com",
    "headline": "Data scientist",
    "skills": ["Python", "R"],
    "education": [{"degree": "MSc", "institution": "ETH"}],
}


@pytest.fixture
def account_id(conn):
    return AccountsRepo(conn, bcrypt_rounds=4).create_account("dana@example.com", "pw", "candidate", full_name="Dana Doe")


@pytest.fixture
def storage(tmp_path, account_id):
    store = LocalDocumentStorage(tmp_path / "bucket")
    store.upload(f"{account_id}/cv.pdf", RESUME, "application/pdf")
    return store


def _service(conn, storage, llm, profiles=None):
    return ResumeIngestionService(ResumeExtractor(llm), storage, profiles or ProfilesRepo(conn))


def test_parse_and_apply_writes_non_empty_fields(conn, storage, account_id, scripted_llm):
    ProfilesRepo(conn).update_profile(account_id, {"phone": "+49 30 1234"})
    caller = Caller(account_id=account_id, role="candidate")
    outcome = _service(conn, storage, scripted_llm({RESUME: PARSED})).parse_and_apply(caller, f"{account_id}/cv.pdf")

    assert outcome.state == IngestionState.APPLIED
    assert set(outcome.updated_fields) == {"full_name", "email", "headline", "skills", "education"}
    body = outcome.to_response()
    assert body["success"] is True
    assert body["parsed"]["full_name"] == "Dana Doe"

    profile = ProfilesRepo(conn).get_profile(account_id)
    assert profile.headline == "Data scientist"
    assert profile.skills == ["Python", "R"]
    # Not extracted, so left alone
    assert profile.phone == "+49 30 1234"


def test_review_mode_returns_diffs_without_writing(conn, storage, account_id, scripted_llm):
    caller = Caller(account_id=account_id, role="candidate")
    outcome = _service(conn, storage, scripted_llm({RESUME: PARSED})).parse_for_review(caller, f"{account_id}/cv.pdf")

    assert outcome.state == IngestionState.RECONCILED
    body = outcome.to_response()
    changed = {d["field"] for d in body["diffs"] if d["changed"]}
    assert changed == {"headline", "skills", "education"}
    assert body["sections_with_changes"] == 3
    assert ProfilesRepo(conn).get_profile(account_id).headline is None


def test_apply_reviewed_persists_only_accepted(conn, account_id, storage, scripted_llm):
    caller = Caller(account_id=account_id, role="candidate")
    extracted = ExtractedProfileRecord.model_validate(PARSED)
    updated = _service(conn, storage, scripted_llm()).apply_reviewed(caller, extracted, ["skills"])
    assert updated == ["skills"]
    profile = ProfilesRepo(conn).get_profile(account_id)
    assert profile.skills == ["Python", "R"]
    assert profile.headline is None


def test_missing_document_is_raised(conn, storage, account_id, scripted_llm):
    caller = Caller(account_id=account_id, role="candidate")
    llm = scripted_llm({RESUME: PARSED})
    with pytest.raises(DocumentNotFound):
        _service(conn, storage, llm).parse_and_apply(caller, f"{account_id}/missing.pdf")
    assert llm.calls == []


def test_extraction_errors_reach_the_caller(conn, storage, account_id, scripted_llm):
    caller = Caller(account_id=account_id, role="candidate")
    path = f"{account_id}/cv.pdf"
    with pytest.raises(ExtractionUnavailable):
        _service(conn, storage, scripted_llm(default=ExtractionUnavailable("busy"))).parse_and_apply(caller, path)
    with pytest.raises(NoStructuredOutput):
        _service(conn, storage, scripted_llm(default=LLMResponse(content="sorry"))).parse_and_apply(caller, path)
    assert ProfilesRepo(conn).get_profile(account_id).headline is None


def test_profile_write_failure_is_wrapped(conn, storage, account_id, scripted_llm):
    class _ReadOnlyProfiles:
        def get_profile(self, account_id):
            return None

        def update_profile(self, account_id, fields):
            raise LookupError("no row")

    caller = Caller(account_id=account_id, role="candidate")
    service = _service(conn, storage, scripted_llm({RESUME: PARSED}), profiles=_ReadOnlyProfiles())
    with pytest.raises(ProfileWriteFailed):
        service.parse_and_apply(caller, f"{account_id}/cv.pdf")


def test_callers_are_limited_to_their_own_profile(conn, storage, account_id, scripted_llm):
    service = _service(conn, storage, scripted_llm({RESUME: PARSED}))
    stranger = Caller(account_id="someone-else", role="candidate")
    with pytest.raises(PermissionError):
        service.parse_and_apply(stranger, f"{account_id}/cv.pdf", account_id=account_id)
    with pytest.raises(PermissionError):
        service.parse_and_apply(stranger, f"{account_id}/cv.pdf")

    admin = Caller(account_id="ops", role="admin")
    outcome = service.parse_and_apply(admin, f"{account_id}/cv.pdf", account_id=account_id)
    assert outcome.account_id == account_id
