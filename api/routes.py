from __future__ import annotations

import logging
import sqlite3
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile
from pydantic import BaseModel, Field

from api.auth import get_current_caller, require_admin
from api.dependencies import ServiceContainer, get_container, get_db
from models.bulk_upload import BulkUploadItemResult, Document
from models.caller import Caller
from models.profile import ExtractedProfileRecord
from services.reporting import batch_message, report_filename, to_csv


logger = logging.getLogger(__name__)

router = APIRouter()


class ParseResumeRequest(BaseModel):
    resume_path: str
    mode: Literal["apply", "review"] = "apply"
    account_id: Optional[str] = None


class ApplyResumeRequest(BaseModel):
    parsed: ExtractedProfileRecord
    accepted_fields: List[str] = Field(default_factory=list)
    account_id: Optional[str] = None


def _read_uploads(resumes: Optional[List[UploadFile]]) -> List[Document]:
    docs: List[Document] = []
    for upload in resumes or []:
        docs.append(
            Document(
                filename=upload.filename or "resume",
                content=upload.file.read(),
                mime_type=upload.content_type,
            )
        )
    return docs


def _run_bulk(
    resumes: Optional[List[UploadFile]],
    container: ServiceContainer,
    conn: sqlite3.Connection,
) -> List[BulkUploadItemResult]:
    documents = _read_uploads(resumes)
    # BatchPreconditionError is mapped to 400 by the app-level handler
    return container.bulk_orchestrator(conn).run_batch(documents)


@router.post("/admin/resumes/bulk")
def bulk_upload(
    resumes: Optional[List[UploadFile]] = File(None),
    caller: Caller = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
    conn: sqlite3.Connection = Depends(get_db),
):
    logger.info(
        f"Bulk upload requested by {caller.account_id}",
        extra={"step": "api.bulk", "status": "start"},
    )
    results = _run_bulk(resumes, container, conn)
    return {
        "success": True,
        "message": batch_message(results),
        "results": [r.model_dump() for r in results],
    }


@router.post("/admin/resumes/bulk/report")
def bulk_upload_report(
    resumes: Optional[List[UploadFile]] = File(None),
    caller: Caller = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
    conn: sqlite3.Connection = Depends(get_db),
):
    results = _run_bulk(resumes, container, conn)
    return Response(
        content=to_csv(results),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{report_filename()}"'},
    )


@router.post("/profile/resume/parse")
def parse_resume(
    body: ParseResumeRequest,
    caller: Caller = Depends(get_current_caller),
    container: ServiceContainer = Depends(get_container),
    conn: sqlite3.Connection = Depends(get_db),
):
    service = container.ingestion_service(conn)
    if body.mode == "review":
        outcome = service.parse_for_review(caller, body.resume_path, body.account_id)
    else:
        outcome = service.parse_and_apply(caller, body.resume_path, body.account_id)
    return outcome.to_response()


@router.post("/profile/resume/apply")
def apply_resume(
    body: ApplyResumeRequest,
    caller: Caller = Depends(get_current_caller),
    container: ServiceContainer = Depends(get_container),
    conn: sqlite3.Connection = Depends(get_db),
):
    service = container.ingestion_service(conn)
    try:
        updated = service.apply_reviewed(caller, body.parsed, body.accepted_fields, body.account_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"success": True, "updated_fields": updated}
