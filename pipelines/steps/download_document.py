from __future__ import annotations

import logging

from pipelines.runner import IngestionState, RunContext
from ports.storage import DocumentStoragePort
from utils.documents import guess_mime_type


logger = logging.getLogger(__name__)


class DownloadDocument:
    def __init__(self, storage: DocumentStoragePort) -> None:
        self.storage = storage

    def run(self, ctx: RunContext) -> RunContext:
        # DocumentNotFound propagates to the caller as-is
        ctx.document = self.storage.download(ctx.resume_path)
        ctx.mime_type = guess_mime_type(ctx.resume_path)
        ctx.state = IngestionState.DOWNLOADED
        logger.info(
            f"Downloaded {len(ctx.document)} bytes",
            extra={"step": "download", "status": "ok", "document": ctx.resume_path},
        )
        return ctx
