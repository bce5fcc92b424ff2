from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from models.field_diff import FieldDiff
from models.profile import (
    LIST_FIELDS,
    PROFILE_FIELDS,
    SECTION_FIELDS,
    TEXT_FIELDS,
    ExistingProfileRecord,
    ExtractedProfileRecord,
)


# Review-screen grouping; one boolean per section feeds the summary count.
SECTIONS: Dict[str, tuple[str, ...]] = {
    "basic": ("full_name", "role", "headline", "location", "phone", "email"),
    "summary": ("summary",),
    "skills": ("skills",),
    "achievements": ("achievements",),
    "experience": ("experience",),
    "education": ("education",),
    "publications": ("publications",),
}


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def reconcile(existing: ExistingProfileRecord, extracted: ExtractedProfileRecord) -> List[FieldDiff]:
    """Compare an extracted profile against the stored one, field by field.

    Pure: no I/O, inputs untouched. Composite sections (experience, education,
    publications) are compared as whole sections, not entry by entry.
    """
    diffs: List[FieldDiff] = []
    for name in TEXT_FIELDS:
        diffs.append(FieldDiff(
            field=name,
            kind="text",
            current_value=getattr(existing, name),
            extracted_value=getattr(extracted, name),
        ))
    for name in LIST_FIELDS:
        diffs.append(FieldDiff(
            field=name,
            kind="list",
            current_value=list(getattr(existing, name)),
            extracted_value=list(getattr(extracted, name)),
        ))
    for name in SECTION_FIELDS:
        diffs.append(FieldDiff(
            field=name,
            kind="section",
            current_value=[e.model_dump(exclude_none=True) for e in getattr(existing, name)],
            extracted_value=[e.model_dump(exclude_none=True) for e in getattr(extracted, name)],
        ))
    return diffs


def sections_with_changes(diffs: Iterable[FieldDiff]) -> Dict[str, bool]:
    changed_fields = {d.field for d in diffs if d.changed}
    return {section: any(f in changed_fields for f in fields) for section, fields in SECTIONS.items()}


def count_sections_with_changes(diffs: Iterable[FieldDiff]) -> int:
    return sum(1 for flag in sections_with_changes(diffs).values() if flag)


def changed_fields(diffs: Iterable[FieldDiff]) -> List[str]:
    return [d.field for d in diffs if d.changed]


def build_profile_update(
    extracted: ExtractedProfileRecord,
    accepted_fields: Optional[Iterable[str]] = None,
) -> Dict[str, Any]:
    """Persistence payload holding only non-empty extracted fields.

    Keys are the stored column names (``professional_summary``,
    ``research_papers``); a field left empty by extraction is never present,
    so an update can not null out what is already stored.
    """
    allowed = set(PROFILE_FIELDS if accepted_fields is None else accepted_fields)
    unknown = allowed - set(PROFILE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

    wire = extracted.to_wire()
    update: Dict[str, Any] = {}
    for name in PROFILE_FIELDS:
        if name not in allowed:
            continue
        info = ExtractedProfileRecord.model_fields[name]
        key = info.alias or name
        value = wire.get(key)
        if _is_empty(value):
            continue
        update[key] = value.strip() if isinstance(value, str) else value
    return update
