from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol

from models.field_diff import FieldDiff
from models.profile import ExtractedProfileRecord
from utils.logging_setup import init_logging


class IngestionState(str, Enum):
    REQUESTED = "requested"
    DOWNLOADED = "downloaded"
    EXTRACTED = "extracted"
    RECONCILED = "reconciled"
    APPLIED = "applied"


@dataclass
class RunContext:
    account_id: str
    resume_path: str
    state: IngestionState = IngestionState.REQUESTED
    document: Optional[bytes] = None
    mime_type: Optional[str] = None
    extracted: Optional[ExtractedProfileRecord] = None
    diffs: List[FieldDiff] = field(default_factory=list)
    updated_fields: List[str] = field(default_factory=list)
    meta: dict = field(default_factory=dict)


class Step(Protocol):
    def run(self, ctx: RunContext) -> RunContext:
        ...


class Pipeline:
    def __init__(self, steps: List[Step]):
        self.steps = steps

    def run(self, ctx: RunContext) -> RunContext:
        # Make logging idempotent for any direct runner use
        init_logging()
        for step in self.steps:
            ctx = step.run(ctx)
        return ctx
