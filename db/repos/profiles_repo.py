from __future__ import annotations

import json
import sqlite3
from typing import Any, Dict, Optional

from models.profile import ExistingProfileRecord


# Payload key -> column. List/section payloads are stored as JSON text.
_COLUMNS: Dict[str, str] = {
    "full_name": "full_name",
    "role": "role",
    "headline": "headline",
    "professional_summary": "professional_summary",
    "location": "location",
    "phone": "phone",
    "email": "email",
    "skills": "skills_json",
    "experience": "experience_json",
    "education": "education_json",
    "achievements": "achievements_json",
    "research_papers": "research_papers_json",
    "user_type": "user_type",
    "resume_path": "resume_path",
}
_JSON_COLUMNS = {c for c in _COLUMNS.values() if c.endswith("_json")}


def _loads(raw: Optional[str]) -> list:
    if not raw:
        return []
    value = json.loads(raw)
    return value if isinstance(value, list) else []


class ProfilesRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get_profile(self, account_id: str) -> Optional[ExistingProfileRecord]:
        cols = list(_COLUMNS.values())
        cur = self.conn.cursor()
        cur.execute(f"SELECT {', '.join(cols)} FROM profiles WHERE account_id = ?", (account_id,))
        row = cur.fetchone()
        if not row:
            return None
        data: Dict[str, Any] = {"account_id": account_id}
        for key, col, value in zip(_COLUMNS.keys(), cols, row):
            data[key] = _loads(value) if col in _JSON_COLUMNS else value
        return ExistingProfileRecord.model_validate(data)

    def update_profile(self, account_id: str, fields: Dict[str, Any]) -> None:
        """Write only the given keys; other stored columns stay as they are.

        Raises KeyError for unknown keys and LookupError when the profile row is missing.
        """
        if not fields:
            return
        unknown = set(fields) - set(_COLUMNS)
        if unknown:
            raise KeyError(f"Unknown profile columns: {', '.join(sorted(unknown))}")
        assignments = []
        params = []
        for key, value in fields.items():
            col = _COLUMNS[key]
            assignments.append(f"{col} = ?")
            params.append(json.dumps(value, ensure_ascii=False) if col in _JSON_COLUMNS else value)
        sql = f"UPDATE profiles SET {', '.join(assignments)}, updated_at = datetime('now') WHERE account_id = ?"
        with self.conn:
            cur = self.conn.execute(sql, (*params, account_id))
        if cur.rowcount == 0:
            raise LookupError(f"No profile for account {account_id}")
