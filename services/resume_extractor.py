from __future__ import annotations

import base64
import json
import logging
import re
from typing import Any, List, Optional, Protocol, Sequence

from pydantic import ValidationError

from models.outcome import Err, ExtractionUnavailable, FailureKind, IngestionError, Ok, Result
from models.profile import ExtractedProfileRecord
from ports.llm import LLMClientPort, LLMResponse
from utils.documents import MIME_BY_EXTENSION, resolve_mime_type


logger = logging.getLogger(__name__)

USE_CASE = "resume_extraction"
TOOL_NAME = "extract_resume_data"

SYSTEM_PROMPT = (
    "You are an expert resume parser for academic and professional profiles. "
    "Extract structured information from the resume, including the email address, "
    "which is CRITICAL for account creation. Omit fields that cannot be determined "
    'from the resume. Dates should be in "Month Year" or "Year" format. '
    "List at most the {max_publications} most relevant publications."
)
USER_PROMPT = (
    "Parse this resume and extract the profile information using the "
    f"{TOOL_NAME} function. Make sure to extract the email address. "
    "If you cannot call the function, return ONLY valid JSON with the same fields."
)

_STR = {"type": "string"}

RESUME_TOOL = {
    "type": "function",
    "function": {
        "name": TOOL_NAME,
        "description": "Extract structured profile data from a resume",
        "parameters": {
            "type": "object",
            "properties": {
                "full_name": {"type": "string", "description": "Person's full name"},
                "role": {"type": "string", "description": "Current job title or position"},
                "headline": {"type": "string", "description": "Brief professional headline"},
                "professional_summary": {"type": "string", "description": "Professional summary (2-4 sentences)"},
                "location": {"type": "string", "description": "City, State/Country"},
                "phone": {"type": "string", "description": "Phone number"},
                "email": {"type": "string", "description": "Email address - CRITICAL"},
                "skills": {"type": "array", "items": _STR},
                "experience": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "title": _STR,
                            "company": _STR,
                            "location": _STR,
                            "start_date": _STR,
                            "end_date": _STR,
                            "description": _STR,
                            "current": {"type": "boolean"},
                        },
                        "required": ["title", "company"],
                    },
                },
                "education": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "degree": _STR,
                            "institution": _STR,
                            "field": _STR,
                            "start_year": _STR,
                            "end_year": _STR,
                        },
                        "required": ["degree", "institution"],
                    },
                },
                "achievements": {"type": "array", "items": _STR},
                "research_papers": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "title": _STR,
                            "journal": _STR,
                            "year": _STR,
                            "doi": _STR,
                            "authors": _STR,
                        },
                        "required": ["title"],
                    },
                },
            },
            "required": ["full_name", "email"],
        },
    },
}

_FENCE_RE = re.compile(r"```(?:json|JSON)?")


def _to_record(data: Any, source: str) -> Result[ExtractedProfileRecord]:
    if not isinstance(data, dict):
        return Err(FailureKind.NO_STRUCTURED_OUTPUT, f"{source} is not a JSON object")
    try:
        return Ok(ExtractedProfileRecord.model_validate(data))
    except ValidationError as exc:
        return Err(FailureKind.NO_STRUCTURED_OUTPUT, f"{source} does not match the profile schema: {exc.error_count()} errors")


def scan_json_object(text: Optional[str]) -> Optional[dict]:
    """Recover a JSON object from free text: drop code fences, slice first '{' to last '}'."""
    if not text:
        return None
    cleaned = _FENCE_RE.sub("", text)
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        data = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


class StructuredExtractionStrategy(Protocol):
    name: str

    def parse(self, response: LLMResponse) -> Result[ExtractedProfileRecord]:
        ...


class PreferStructured:
    """Read the forced function-call arguments."""

    name = "prefer_structured"

    def parse(self, response: LLMResponse) -> Result[ExtractedProfileRecord]:
        if not response.tool_arguments:
            return Err(FailureKind.NO_STRUCTURED_OUTPUT, "No structured payload in response")
        try:
            data = json.loads(response.tool_arguments)
        except json.JSONDecodeError:
            return Err(FailureKind.NO_STRUCTURED_OUTPUT, "Structured payload is not valid JSON")
        return _to_record(data, "Structured payload")


class FallbackTextScan:
    """Scan the free-text answer for a JSON object."""

    name = "fallback_text_scan"

    def parse(self, response: LLMResponse) -> Result[ExtractedProfileRecord]:
        data = scan_json_object(response.content)
        if data is None:
            return Err(FailureKind.NO_STRUCTURED_OUTPUT, "No JSON object found in response text")
        return _to_record(data, "Response text")


DEFAULT_STRATEGIES: Sequence[StructuredExtractionStrategy] = (PreferStructured(), FallbackTextScan())


class ResumeExtractor:
    def __init__(
        self,
        llm: LLMClientPort,
        max_publications: int = 10,
        strategies: Optional[Sequence[StructuredExtractionStrategy]] = None,
    ) -> None:
        self.llm = llm
        self.max_publications = max_publications
        self.strategies: List[StructuredExtractionStrategy] = list(strategies or DEFAULT_STRATEGIES)

    @property
    def is_configured(self) -> bool:
        return bool(getattr(self.llm, "is_configured", False))

    def try_extract(
        self,
        document_bytes: bytes,
        mime_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> Result[ExtractedProfileRecord]:
        mime = resolve_mime_type(filename, mime_type)
        if mime is None:
            return Err(FailureKind.UNSUPPORTED_DOCUMENT, f"Unsupported document type: {filename or mime_type}")
        if not document_bytes:
            return Err(FailureKind.UNSUPPORTED_DOCUMENT, "Document is empty")

        ext = next(e for e, m in MIME_BY_EXTENSION.items() if m == mime)
        try:
            response = self.llm.complete_with_document(
                use_case=USE_CASE,
                system_prompt=SYSTEM_PROMPT.format(max_publications=self.max_publications),
                user_prompt=USER_PROMPT,
                document_b64=base64.b64encode(document_bytes).decode("ascii"),
                mime_type=mime,
                filename=f"resume.{ext}",
                tools=[RESUME_TOOL],
                tool_name=TOOL_NAME,
            )
        except ExtractionUnavailable as exc:
            return exc.to_err()

        last: Err = Err(FailureKind.NO_STRUCTURED_OUTPUT, "Empty response from extraction service")
        for strategy in self.strategies:
            result = strategy.parse(response)
            if isinstance(result, Ok):
                logger.debug("Profile parsed", extra={"step": strategy.name, "status": "ok", "document": filename or "-"})
                return Ok(result.value.capped(self.max_publications))
            last = result
        return last

    def extract(
        self,
        document_bytes: bytes,
        mime_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> ExtractedProfileRecord:
        """Raise the IngestionError matching the failure kind instead of returning Err."""
        result = self.try_extract(document_bytes, mime_type, filename)
        if isinstance(result, Err):
            raise IngestionError.from_err(result)
        return result.value
