from __future__ import annotations

import sqlite3
from typing import Iterator, Optional

from fastapi import Request

from config.settings import Settings
from db import schema
from db.connection import get_connection
from db.repos.accounts_repo import AccountsRepo
from db.repos.profiles_repo import ProfilesRepo
from pipelines.bulk_upload import BulkUploadOrchestrator, ProvisioningPolicy
from pipelines.ingest_resume import ResumeIngestionService
from ports.llm import LLMClientPort
from ports.storage import DocumentStoragePort
from services.document_storage import LocalDocumentStorage
from services.llm_client import LLMClient
from services.resume_extractor import ResumeExtractor


class ServiceContainer:
    """Composition root: settings in, wired services out.

    The LLM client and storage are long-lived; repositories are bound to a
    per-request SQLite connection.
    """

    def __init__(
        self,
        settings: Settings,
        llm: Optional[LLMClientPort] = None,
        storage: Optional[DocumentStoragePort] = None,
    ) -> None:
        self.settings = settings
        self.llm = llm or LLMClient(settings)
        self.storage = storage or LocalDocumentStorage(settings.storage_root)
        self.policy = ProvisioningPolicy.from_settings(settings)

    def bootstrap(self) -> None:
        conn = self.connect()
        try:
            schema.bootstrap(conn)
        finally:
            conn.close()

    def connect(self) -> sqlite3.Connection:
        return get_connection(self.settings.db_path, check_same_thread=False)

    def extractor(self) -> ResumeExtractor:
        return ResumeExtractor(self.llm, max_publications=self.settings.max_publications)

    def ingestion_service(self, conn: sqlite3.Connection) -> ResumeIngestionService:
        return ResumeIngestionService(
            self.extractor(),
            self.storage,
            ProfilesRepo(conn),
            admin_role=self.settings.admin_role,
        )

    def bulk_orchestrator(self, conn: sqlite3.Connection, on_progress=None) -> BulkUploadOrchestrator:
        return BulkUploadOrchestrator(
            self.extractor(),
            AccountsRepo(conn, bcrypt_rounds=self.settings.bcrypt_rounds),
            ProfilesRepo(conn),
            self.storage,
            self.policy,
            on_progress=on_progress,
        )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_db(request: Request) -> Iterator[sqlite3.Connection]:
    conn = get_container(request).connect()
    try:
        yield conn
    finally:
        conn.close()
