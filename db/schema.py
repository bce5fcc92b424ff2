from __future__ import annotations

import sqlite3


def bootstrap(conn: sqlite3.Connection) -> None:
    """Create accounts/profiles tables, indexes, and views (idempotent)."""
    cur = conn.cursor()

    # Accounts (login identity); email is the idempotency key for bulk provisioning
    cur.execute(
        (
            "CREATE TABLE IF NOT EXISTS accounts (\n"
            "  id TEXT PRIMARY KEY,\n"
            "  email TEXT NOT NULL UNIQUE,\n"
            "  password_hash TEXT NOT NULL,\n"
            "  role TEXT NOT NULL,\n"
            "  must_change_password INTEGER NOT NULL DEFAULT 0,\n"
            "  created_at TEXT NOT NULL DEFAULT (datetime('now'))\n"
            ")"
        )
    )

    # Profiles: one per account; list/section fields stored as JSON text
    cur.execute(
        (
            "CREATE TABLE IF NOT EXISTS profiles (\n"
            "  account_id TEXT PRIMARY KEY,\n"
            "  full_name TEXT,\n"
            "  role TEXT,\n"
            "  headline TEXT,\n"
            "  professional_summary TEXT,\n"
            "  location TEXT,\n"
            "  phone TEXT,\n"
            "  email TEXT,\n"
            "  skills_json TEXT,\n"
            "  experience_json TEXT,\n"
            "  education_json TEXT,\n"
            "  achievements_json TEXT,\n"
            "  research_papers_json TEXT,\n"
            "  user_type TEXT,\n"
            "  resume_path TEXT,\n"
            "  updated_at TEXT NOT NULL DEFAULT (datetime('now')),\n"
            "  FOREIGN KEY(account_id) REFERENCES accounts(id) ON DELETE CASCADE\n"
            ")"
        )
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_profiles_email ON profiles(email);")

    # Accounts needing first-login credential rotation (bulk-provisioned)
    cur.execute(
        (
            "CREATE VIEW IF NOT EXISTS v_pending_password_rotation AS\n"
            "SELECT a.id AS account_id, a.email, a.created_at, p.full_name\n"
            "FROM accounts a LEFT JOIN profiles p ON p.account_id = a.id\n"
            "WHERE a.must_change_password = 1"
        )
    )
    conn.commit()
