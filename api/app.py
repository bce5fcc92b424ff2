"""
Résumé ingestion API.

FastAPI app exposing the admin bulk upload (JSON results or CSV report) and
the self-service parse/apply flow for a caller's own profile.

Run: uvicorn api.app:create_app --factory
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.dependencies import ServiceContainer
from api.routes import router
from config.settings import Settings, get_settings
from models.outcome import BatchPreconditionError, FailureKind, IngestionError
from utils.logging_setup import init_logging


logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    FailureKind.DOCUMENT_NOT_FOUND: 404,
    FailureKind.EXTRACTION_UNAVAILABLE: 503,
    FailureKind.NO_STRUCTURED_OUTPUT: 422,
    FailureKind.UNSUPPORTED_DOCUMENT: 422,
    FailureKind.PROFILE_WRITE_FAILED: 500,
}


def _ingestion_error(request: Request, exc: IngestionError) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(exc.kind, 500)
    logger.warning(
        f"Resume ingestion failed: {exc.message}",
        extra={"step": "api", "status": exc.kind.value, "error": exc.message},
    )
    return JSONResponse(status_code=status_code, content={"error": exc.message, "kind": exc.kind.value})


def _batch_precondition(request: Request, exc: BatchPreconditionError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


def _forbidden(request: Request, exc: PermissionError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"error": str(exc)})


def create_app(settings: Optional[Settings] = None, container: Optional[ServiceContainer] = None) -> FastAPI:
    settings = settings or (container.settings if container else get_settings())
    init_logging(settings.log_level)
    container = container or ServiceContainer(settings)
    container.bootstrap()

    app = FastAPI(
        title="Resume Ingestion",
        description="Bulk candidate provisioning and profile reconciliation from résumés.",
        version="1.0.0",
    )
    app.state.container = container
    app.add_exception_handler(IngestionError, _ingestion_error)
    app.add_exception_handler(BatchPreconditionError, _batch_precondition)
    app.add_exception_handler(PermissionError, _forbidden)
    app.include_router(router, prefix="/api")

    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "healthy"}

    return app
