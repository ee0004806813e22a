from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import EmployeeInvite


class InviteRepository(Protocol):
    def create(
        self,
        *,
        company_id: int,
        code: str,
        created_at: datetime,
        full_name: Optional[str] = None,
        position: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> int:
        """Raises ConflictError when ``code`` is already taken."""

        raise NotImplementedError

    def get_by_code(self, code: str, *, for_update: bool = False) -> Optional[EmployeeInvite]:
        """``for_update`` locks the row until the surrounding transaction ends."""

        raise NotImplementedError

    def claim(self, *, code: str, employee_id: int, used_at: datetime) -> bool:
        """Mark the invite used only if nobody claimed it yet."""

        raise NotImplementedError

    def list_by_company(self, company_id: int, *, unused_only: bool = False) -> Sequence[EmployeeInvite]:
        raise NotImplementedError

    def delete_expired(self, *, created_before: datetime, now: datetime) -> int:
        """Delete unused invites created before ``created_before`` or past ``expires_at``."""

        raise NotImplementedError
