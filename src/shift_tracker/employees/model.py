from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EmployeeStatus


@dataclass(frozen=True)
class Employee:
    """Thực thể miền (domain): Nhân viên.

    Lưu ý: Đây là đối tượng dữ liệu thuần (không chứa code truy cập DB).
    """

    employee_id: int
    company_id: int
    full_name: str
    position: Optional[str] = None
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    telegram_user_id: Optional[str] = None
    timezone: Optional[str] = None
    created_at: Optional[datetime] = None
