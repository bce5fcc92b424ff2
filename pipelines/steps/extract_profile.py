from __future__ import annotations

from pipelines.runner import IngestionState, RunContext
from services.resume_extractor import ResumeExtractor


class ExtractProfile:
    """No retry here: interactive callers retry by hand."""

    def __init__(self, extractor: ResumeExtractor) -> None:
        self.extractor = extractor

    def run(self, ctx: RunContext) -> RunContext:
        if ctx.document is None:
            raise RuntimeError("ExtractProfile requires a downloaded document")
        ctx.extracted = self.extractor.extract(ctx.document, ctx.mime_type, filename=ctx.resume_path)
        ctx.state = IngestionState.EXTRACTED
        return ctx
