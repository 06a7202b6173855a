from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ..core.enums import AttendanceStatus
from .model import NotificationLogEntry


class NotificationLogRepository(Protocol):
    def find_existing(
        self,
        *,
        dedup_key: str,
        student_id: int,
        status: AttendanceStatus,
        notification_date: date,
    ) -> Optional[NotificationLogEntry]:
        """Delivered row for the same recipient/student/status/day, if any."""

        raise NotImplementedError

    def append(self, entry: NotificationLogEntry) -> None:
        raise NotImplementedError
