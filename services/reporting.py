from __future__ import annotations

import csv
import io
import json
import os
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence

from models.bulk_upload import BulkUploadItemResult, BulkUploadSummary


CSV_HEADER = ["Filename", "Status", "Email", "AccountId", "Error"]


def summarize(results: Iterable[BulkUploadItemResult]) -> BulkUploadSummary:
    success = 0
    failure = 0
    for r in results:
        if r.success:
            success += 1
        else:
            failure += 1
    return BulkUploadSummary(success_count=success, failure_count=failure)


def batch_message(results: Sequence[BulkUploadItemResult]) -> str:
    summary = summarize(results)
    return f"Processed {summary.total} resumes: {summary.success_count} succeeded, {summary.failure_count} failed"


def to_csv(results: Iterable[BulkUploadItemResult]) -> str:
    """Render bulk results as CSV, one row per item in input order.

    Every cell is quoted and embedded quotes are doubled, so filenames and
    error messages containing commas or quotes survive a round trip through
    any standard CSV reader.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for r in results:
        writer.writerow([
            r.filename,
            "Success" if r.success else "Failed",
            r.email or "",
            r.account_id or "",
            r.error_reason or "",
        ])
    return buf.getvalue()


def report_filename(day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"mass-upload-report-{day.isoformat()}.csv"


def _llm_usage_for_run(run_id: str) -> Dict[str, Dict[str, int]]:
    """Aggregate LLM usage from the JSONL trace for the given run_id.

    Returns dict like { 'openai': {'calls': N, 'tokens': T} }
    """
    result: Dict[str, Dict[str, int]] = {}
    from config.settings import get_settings
    log_path = Path(get_settings().llm_log_path)
    if not log_path.exists():
        return result
    with log_path.open("r", encoding="utf-8") as f:
        for line in f:
            try:
                rec = json.loads(line)
            except ValueError:
                continue
            if not isinstance(rec, dict) or rec.get("run_id") != run_id:
                continue
            provider = rec.get("provider") or "unknown"
            usage = rec.get("usage") or {}
            bucket = result.setdefault(provider, {"calls": 0, "tokens": 0})
            bucket["calls"] += 1
            try:
                bucket["tokens"] += int(usage.get("total_tokens") or 0)
            except (TypeError, ValueError):
                pass
    return result


def print_summary(results: Sequence[BulkUploadItemResult], output_path: Optional[Path] = None) -> None:
    """Print summary of a bulk upload batch."""
    summary = summarize(results)

    print("\n" + "=" * 60)
    print("RESUME BULK UPLOAD - SUMMARY")
    print("=" * 60)
    print(f"Files Processed: {summary.total}")
    print(f"  Succeeded: {summary.success_count}")
    print(f"  Failed: {summary.failure_count}")
    failed = [r for r in results if not r.success]
    if failed:
        print()
        print("Failures:")
        for r in failed:
            print(f"  {r.filename}: {r.error_reason}")
    # LLM usage summary (per provider) for current RUN_ID if tracing enabled
    from config.settings import get_settings
    run_id = os.getenv("RUN_ID")
    if run_id and get_settings().llm_trace:
        usage = _llm_usage_for_run(run_id)
        if usage:
            print()
            print("LLM Usage:")
            for provider, stats in usage.items():
                print(f"  {provider}: calls={stats.get('calls', 0)}, tokens={stats.get('tokens', 0)}")
    if output_path:
        print(f"Report File: {output_path}")
    print("=" * 60)
