from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


TEXT_FIELDS = ("full_name", "role", "headline", "summary", "location", "phone", "email")
LIST_FIELDS = ("skills", "achievements")
SECTION_FIELDS = ("experience", "education", "publications")
PROFILE_FIELDS = TEXT_FIELDS + LIST_FIELDS + SECTION_FIELDS


def _keep_entries_with(value: Any, required: tuple[str, ...]) -> Any:
    """Drop list entries that are not objects or miss a required key."""
    if value is None:
        return []
    if not isinstance(value, list):
        return value
    kept = []
    for entry in value:
        if isinstance(entry, BaseModel):
            kept.append(entry)
            continue
        if not isinstance(entry, dict):
            continue
        if all(str(entry.get(key) or "").strip() for key in required):
            kept.append(entry)
    return kept


class _Entry(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)


class ExperienceEntry(_Entry):
    title: str
    company: str
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description: Optional[str] = None
    is_current: Optional[bool] = Field(default=None, alias="current")


class EducationEntry(_Entry):
    degree: str
    institution: str
    field: Optional[str] = None
    start_year: Optional[str] = None
    end_year: Optional[str] = None


class PublicationEntry(_Entry):
    title: str
    journal: Optional[str] = None
    year: Optional[str] = None
    doi: Optional[str] = None
    authors: Optional[str] = None

    @field_validator("authors", mode="before")
    @classmethod
    def _join_authors(cls, value: Any) -> Any:
        if isinstance(value, list):
            return ", ".join(str(a) for a in value if a)
        return value


class ExtractedProfileRecord(BaseModel):
    """Extraction output: the fixed professional-profile schema.

    Field names are the internal ones; the extraction service's wire keys
    (``professional_summary``, ``research_papers``) are accepted as aliases.
    """

    full_name: Optional[str] = None
    role: Optional[str] = None
    headline: Optional[str] = None
    summary: Optional[str] = Field(default=None, alias="professional_summary")
    location: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    experience: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    achievements: List[str] = Field(default_factory=list)
    publications: List[PublicationEntry] = Field(default_factory=list, alias="research_papers")

    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)

    @field_validator("skills", "achievements", mode="before")
    @classmethod
    def _clean_strings(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if isinstance(value, list):
            return [str(v).strip() for v in value if v is not None and str(v).strip()]
        return value

    @field_validator("experience", mode="before")
    @classmethod
    def _valid_experience(cls, value: Any) -> Any:
        return _keep_entries_with(value, ("title", "company"))

    @field_validator("education", mode="before")
    @classmethod
    def _valid_education(cls, value: Any) -> Any:
        return _keep_entries_with(value, ("degree", "institution"))

    @field_validator("publications", mode="before")
    @classmethod
    def _valid_publications(cls, value: Any) -> Any:
        return _keep_entries_with(value, ("title",))

    def capped(self, max_publications: int) -> "ExtractedProfileRecord":
        if len(self.publications) <= max_publications:
            return self
        return self.model_copy(update={"publications": self.publications[:max_publications]})

    def to_wire(self) -> dict:
        """Serialize with the service/storage keys, omitting empty values."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ExistingProfileRecord(ExtractedProfileRecord):
    """Persisted profile being reconciled against."""

    account_id: Optional[str] = None
    resume_path: Optional[str] = None
