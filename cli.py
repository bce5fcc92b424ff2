import argparse
import json
import os
import uuid as _uuid
from pathlib import Path

from config.settings import get_settings
from db import schema
from db.connection import get_connection
from db.repos.accounts_repo import AccountsRepo
from db.repos.profiles_repo import ProfilesRepo
from models.bulk_upload import Document
from models.caller import Caller
from models.outcome import BatchPreconditionError, IngestionError
from pipelines.bulk_upload import BulkUploadOrchestrator, ProvisioningPolicy
from pipelines.ingest_resume import ResumeIngestionService
from services.document_storage import LocalDocumentStorage
from services.llm_client import LLMClient
from services.reporting import print_summary, to_csv
from services.resume_extractor import ResumeExtractor
from utils.documents import guess_mime_type
from utils.logging_setup import init_logging


def _extractor(settings):
    return ResumeExtractor(LLMClient(settings), max_publications=settings.max_publications)


def cmd_bootstrap(args):
    conn = get_connection(args.db)
    schema.bootstrap(conn)
    print("Schema ready")


def cmd_bulk_upload(args):
    settings = get_settings()
    if not os.getenv("RUN_ID"):
        os.environ["RUN_ID"] = _uuid.uuid4().hex
    conn = get_connection(args.db)
    schema.bootstrap(conn)

    missing = [raw for raw in args.files if not Path(raw).is_file()]
    if missing:
        print(f"Bulk upload aborted: file not found: {', '.join(missing)}")
        raise SystemExit(1)

    documents = []
    for raw in args.files:
        path = Path(raw)
        documents.append(Document(filename=path.name, content=path.read_bytes(), mime_type=guess_mime_type(path.name)))

    def _progress(cur, total, filename):
        print(f"[{cur}/{total}] Processing {filename}")

    orchestrator = BulkUploadOrchestrator(
        _extractor(settings),
        AccountsRepo(conn, bcrypt_rounds=settings.bcrypt_rounds),
        ProfilesRepo(conn),
        LocalDocumentStorage(args.storage or settings.storage_root),
        ProvisioningPolicy.from_settings(settings),
        on_progress=_progress if args.progress else None,
    )
    try:
        results = orchestrator.run_batch(documents)
    except BatchPreconditionError as exc:
        print(f"Bulk upload aborted: {exc}")
        raise SystemExit(1)

    report_path = None
    if args.report:
        report_path = Path(args.report)
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(to_csv(results), encoding="utf-8")
    print_summary(results, report_path)


def cmd_ingest_resume(args):
    settings = get_settings()
    conn = get_connection(args.db)
    schema.bootstrap(conn)
    service = ResumeIngestionService(
        _extractor(settings),
        LocalDocumentStorage(args.storage or settings.storage_root),
        ProfilesRepo(conn),
        admin_role=settings.admin_role,
    )
    # Operator runs act with admin rights on the target account
    operator = Caller(account_id="cli", role=settings.admin_role)
    try:
        if args.review:
            outcome = service.parse_for_review(operator, args.path, args.account_id)
        else:
            outcome = service.parse_and_apply(operator, args.path, args.account_id)
    except IngestionError as exc:
        print(f"{exc.kind.value}: {exc.message}")
        raise SystemExit(1)
    print(json.dumps(outcome.to_response(), indent=2, ensure_ascii=False))


def cmd_report_profile(args):
    conn = get_connection(args.db)
    schema.bootstrap(conn)
    account = AccountsRepo(conn).get(args.account_id)
    profile = ProfilesRepo(conn).get_profile(args.account_id)
    if not account or not profile:
        print("No record found for account")
        return
    result = {"account": account, "profile": profile.to_wire()}
    print(json.dumps(result, indent=2, ensure_ascii=False))


def main():
    settings = get_settings()
    init_logging(settings.log_level)
    parser = argparse.ArgumentParser(description="Resume ingestion CLI")
    parser.add_argument("--db", default=settings.db_path, help="Path to SQLite DB (default from settings)")
    parser.add_argument("--storage", default=None, help="Document storage root (default from settings)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_boot = sub.add_parser("bootstrap", help="Create tables and indexes")
    p_boot.set_defaults(func=cmd_bootstrap)

    p_bulk = sub.add_parser("bulk-upload", help="Provision candidate accounts from resume files")
    p_bulk.add_argument("files", nargs="+", help="PDF/DOC/DOCX resume files")
    p_bulk.add_argument("--report", default=None, help="Write the per-file CSV report to this path")
    p_bulk.add_argument("--progress", action="store_true", help="Print progress for each file")
    p_bulk.set_defaults(func=cmd_bulk_upload)

    p_ing = sub.add_parser("ingest-resume", help="Parse a stored resume into an existing profile")
    p_ing.add_argument("--account-id", required=True, help="Target account id")
    p_ing.add_argument("--path", required=True, help="Storage-relative resume path")
    p_ing.add_argument("--review", action="store_true", help="Only show field diffs, do not write")
    p_ing.set_defaults(func=cmd_ingest_resume)

    p_rp = sub.add_parser("report-profile", help="Show account and stored profile")
    p_rp.add_argument("--account-id", required=True, help="Account id")
    p_rp.set_defaults(func=cmd_report_profile)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
