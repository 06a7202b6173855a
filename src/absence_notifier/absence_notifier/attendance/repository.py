from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_student_and_date(self, student_id: int, work_date: date, *, tenant_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def insert_absent(
        self,
        *,
        student_id: int,
        tenant_id: int,
        work_date: date,
        check_in_time: datetime,
        note: Optional[str] = None,
    ) -> bool:
        """Insert a system-generated absent row unless one already exists.

        Returns True when a row was inserted, False when it was a no-op.
        """

        raise NotImplementedError
