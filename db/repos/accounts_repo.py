from __future__ import annotations

import sqlite3
import uuid
from typing import Any, Dict, Optional

import bcrypt

from models.outcome import DuplicateAccount


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class AccountsRepo:
    def __init__(self, conn: sqlite3.Connection, bcrypt_rounds: int = 12):
        self.conn = conn
        self.bcrypt_rounds = bcrypt_rounds

    def find_by_email(self, email: str) -> Optional[str]:
        """Return the account id registered for ``email`` (case-insensitive), if any."""
        cur = self.conn.cursor()
        cur.execute("SELECT id FROM accounts WHERE email = ?", (normalize_email(email),))
        row = cur.fetchone()
        return str(row[0]) if row else None

    def get(self, account_id: str) -> Optional[Dict[str, Any]]:
        cur = self.conn.cursor()
        cur.execute(
            "SELECT id, email, role, must_change_password, created_at FROM accounts WHERE id = ?",
            (account_id,),
        )
        row = cur.fetchone()
        if not row:
            return None
        return {
            "id": row[0],
            "email": row[1],
            "role": row[2],
            "must_change_password": bool(row[3]),
            "created_at": row[4],
        }

    def create_account(
        self,
        email: str,
        password: str,
        role: str,
        full_name: Optional[str] = None,
        must_change_password: bool = True,
    ) -> str:
        """Insert an account plus its empty profile row; returns the new account id.

        Raises DuplicateAccount when the email is already registered.
        """
        account_id = uuid.uuid4().hex
        normalized = normalize_email(email)
        password_hash = bcrypt.hashpw(
            password.encode("utf-8"), bcrypt.gensalt(rounds=self.bcrypt_rounds)
        ).decode("ascii")
        try:
            with self.conn:
                self.conn.execute(
                    "INSERT INTO accounts (id, email, password_hash, role, must_change_password) VALUES (?, ?, ?, ?, ?)",
                    (account_id, normalized, password_hash, role, 1 if must_change_password else 0),
                )
                self.conn.execute(
                    "INSERT INTO profiles (account_id, full_name, email, user_type) VALUES (?, ?, ?, ?)",
                    (account_id, full_name or normalized.split("@")[0], normalized, role),
                )
        except sqlite3.IntegrityError as exc:
            raise DuplicateAccount(normalized) from exc
        return account_id

    def check_password(self, account_id: str, password: str) -> bool:
        cur = self.conn.cursor()
        cur.execute("SELECT password_hash FROM accounts WHERE id = ?", (account_id,))
        row = cur.fetchone()
        if not row:
            return False
        return bcrypt.checkpw(password.encode("utf-8"), str(row[0]).encode("ascii"))
