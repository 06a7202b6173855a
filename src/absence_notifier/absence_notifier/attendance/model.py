from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance row per (student, date, tenant)."""

    attendance_id: int
    student_id: int
    tenant_id: int
    work_date: date
    check_in_time: Optional[datetime]
    status: AttendanceStatus
    is_system_generated: bool = False
    note: Optional[str] = None
