from __future__ import annotations

from typing import Optional


PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC = "application/msword"

MIME_BY_EXTENSION = {
    "pdf": PDF,
    "docx": DOCX,
    "doc": DOC,
}
SUPPORTED_MIME_TYPES = frozenset(MIME_BY_EXTENSION.values())


def get_file_extension(filename: Optional[str]) -> str:
    """Lowercase extension without the dot, '' when there is none."""
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def guess_mime_type(filename: Optional[str]) -> Optional[str]:
    return MIME_BY_EXTENSION.get(get_file_extension(filename))


def resolve_mime_type(filename: Optional[str], declared: Optional[str] = None) -> Optional[str]:
    """Prefer a supported declared type, otherwise derive it from the extension."""
    if declared in SUPPORTED_MIME_TYPES:
        return declared
    return guess_mime_type(filename)


def safe_filename(filename: str) -> str:
    """Strip directory components so a client filename cannot escape its folder."""
    name = filename.replace("\\", "/").rsplit("/", 1)[-1].strip()
    return name or "resume"
