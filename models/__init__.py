from .profile import (
    EducationEntry,
    ExistingProfileRecord,
    ExperienceEntry,
    ExtractedProfileRecord,
    PublicationEntry,
)
from .field_diff import FieldDiff
from .bulk_upload import BulkUploadItemResult, BulkUploadSummary, Document

__all__ = [
    "ExperienceEntry",
    "EducationEntry",
    "PublicationEntry",
    "ExtractedProfileRecord",
    "ExistingProfileRecord",
    "FieldDiff",
    "Document",
    "BulkUploadItemResult",
    "BulkUploadSummary",
]
