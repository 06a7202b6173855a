from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Union

from ..core.enums import AttendanceStatus, NotificationChannel


@dataclass(frozen=True)
class NotificationRequest:
    """One logical guardian notification, as accepted by the dispatcher."""

    recipient: Optional[str]
    student_name: Optional[str]
    student_id: Optional[int]
    status: Union[AttendanceStatus, str]
    tenant_id: Optional[int] = None
    tenant_name: Optional[str] = None
    display_time: Optional[str] = None
    notification_date: Optional[date] = None


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    message_id: Optional[str] = None
    channel: Optional[NotificationChannel] = None
    skipped: bool = False
    reason: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class NotificationLogEntry:
    """Append-only delivery log row. ``delivered`` rows take part in dedup."""

    dedup_key: str
    student_id: int
    status: AttendanceStatus
    notification_date: date
    sent_at: datetime
    tenant_id: Optional[int] = None
    student_name: Optional[str] = None
    channel: Optional[NotificationChannel] = None
    message_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return self.message_id is not None and self.error is None


@dataclass
class BatchResult:
    """In-memory aggregate of one batch send; never persisted."""

    total: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[dict] = field(default_factory=list)
    chunk_sizes: list[int] = field(default_factory=list)

    def record(self, item: str, outcome: NotificationResult) -> None:
        if outcome.success and outcome.skipped:
            self.skipped += 1
        elif outcome.success:
            self.sent += 1
        else:
            self.record_failure(item, outcome.error or outcome.reason or "unknown error")

    def record_failure(self, item: str, error: str) -> None:
        self.failed += 1
        self.errors.append({"item": item, "error": error})


@dataclass(frozen=True)
class TemplateMessage:
    """Parameters for a pre-approved channel template: header {{1}}, body {{1}}..{{3}}."""

    status: AttendanceStatus
    header: str
    body: tuple[str, ...]
