from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Caller:
    """Verified identity handed over by the session layer."""

    account_id: str
    role: str

    def has_role(self, role: str) -> bool:
        return self.role == role
