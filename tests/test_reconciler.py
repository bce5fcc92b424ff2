from __future__ import annotations

import pytest

from models.profile import ExistingProfileRecord, ExtractedProfileRecord
from services.reconciler import (
    build_profile_update,
    changed_fields,
    count_sections_with_changes,
    reconcile,
    sections_with_changes,
)


def _record(**overrides):
    data = {
        "full_name": "Alice Example",
        "role": "Engineer",
        "email": "alice@example.com",
        "professional_summary": "Builds backends",
        "skills": ["Python", "SQL"],
        "experience": [{"title": "Engineer", "company": "Acme", "start_date": "2020"}],
        "education": [{"degree": "BSc", "institution": "TU Berlin"}],
    }
    data.update(overrides)
    return ExtractedProfileRecord.model_validate(data)


def test_record_against_itself_has_no_changes():
    rec = _record()
    existing = ExistingProfileRecord.model_validate(rec.to_wire())
    diffs = reconcile(existing, rec)
    assert changed_fields(diffs) == []
    assert count_sections_with_changes(diffs) == 0


def test_empty_extraction_changes_nothing():
    existing = ExistingProfileRecord.model_validate(_record().to_wire())
    diffs = reconcile(existing, ExtractedProfileRecord())
    assert not any(d.changed for d in diffs)


def test_skill_order_and_text_case_are_ignored():
    existing = ExistingProfileRecord.model_validate(_record().to_wire())
    diffs = reconcile(existing, _record(skills=["SQL", "Python"], full_name="  alice EXAMPLE "))
    assert changed_fields(diffs) == []


def test_new_values_are_flagged_per_section():
    existing = ExistingProfileRecord.model_validate(_record(skills=[]).to_wire())
    extracted = _record(
        headline="Staff engineer",
        skills=["Go"],
        experience=[
            {"title": "Engineer", "company": "Acme", "start_date": "2020"},
            {"title": "Lead", "company": "Beta"},
        ],
    )
    diffs = reconcile(existing, extracted)
    assert set(changed_fields(diffs)) == {"headline", "skills", "experience"}
    flags = sections_with_changes(diffs)
    assert flags["basic"] is True
    assert flags["education"] is False
    assert count_sections_with_changes(diffs) == 3
    exp = next(d for d in diffs if d.field == "experience")
    assert exp.describe() == "2 entries extracted"


def test_section_entry_order_does_not_count_as_change():
    entries = [{"title": "A", "company": "X"}, {"title": "B", "company": "Y"}]
    existing = ExistingProfileRecord.model_validate(_record(experience=entries).to_wire())
    diffs = reconcile(existing, _record(experience=list(reversed(entries))))
    assert "experience" not in changed_fields(diffs)


def test_inputs_are_not_mutated():
    existing = ExistingProfileRecord.model_validate(_record().to_wire())
    extracted = _record(skills=["Go"])
    before = (existing.model_dump(), extracted.model_dump())
    reconcile(existing, extracted)
    assert (existing.model_dump(), extracted.model_dump()) == before


def test_profile_update_holds_only_non_empty_fields():
    update = build_profile_update(_record(headline="  ", skills=[]))
    assert "headline" not in update
    assert "skills" not in update
    assert "phone" not in update
    assert update["professional_summary"] == "Builds backends"
    assert update["experience"][0]["company"] == "Acme"


def test_profile_update_respects_accepted_fields():
    update = build_profile_update(_record(), accepted_fields=["skills", "summary"])
    assert set(update) == {"skills", "professional_summary"}
    with pytest.raises(ValueError):
        build_profile_update(_record(), accepted_fields=["password"])
