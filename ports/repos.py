from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from models.profile import ExistingProfileRecord


class AccountsRepoPort(Protocol):
    def find_by_email(self, email: str) -> Optional[str]:
        ...

    def create_account(
        self,
        email: str,
        password: str,
        role: str,
        full_name: Optional[str] = None,
        must_change_password: bool = True,
    ) -> str:
        ...


class ProfilesRepoPort(Protocol):
    def get_profile(self, account_id: str) -> Optional[ExistingProfileRecord]:
        ...

    def update_profile(self, account_id: str, fields: Dict[str, Any]) -> None:
        ...
