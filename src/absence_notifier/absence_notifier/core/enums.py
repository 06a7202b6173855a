from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Attendance status values stored in attendance_logs and notification_logs."""

    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"
    LEAVE = "leave"


class NotificationChannel(str, Enum):
    """Delivery channel recorded on each notification log row."""

    PRIMARY = "primary"
    FALLBACK = "fallback"
