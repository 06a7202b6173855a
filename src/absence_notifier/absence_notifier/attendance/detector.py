from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional

from ..common.datetime_utils import check_timestamp, format_display_time
from ..core.constants import DEFAULT_ROSTER_PAGE_SIZE
from ..core.enums import AttendanceStatus
from ..core.logging import get_logger, mask_phone
from ..notifications.batch import BatchSender
from ..notifications.dispatcher import NotificationDispatcher
from ..notifications.model import NotificationRequest
from ..students.model import StudentContact
from ..students.repository import RosterRepository
from ..tenants.model import TenantPolicy
from .repository import AttendanceRepository

logger = get_logger(__name__)


@dataclass
class TenantSummary:
    tenant_id: int
    tenant_name: str
    students_seen: int = 0
    marked_absent: int = 0
    notified: int = 0
    already_notified: int = 0
    no_contact: int = 0
    errors: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


class AbsenceDetector:
    """Marks unmarked students absent for one tenant and notifies guardians."""

    def __init__(
        self,
        roster: RosterRepository,
        attendance: AttendanceRepository,
        dispatcher: NotificationDispatcher,
        *,
        page_size: int = DEFAULT_ROSTER_PAGE_SIZE,
        batch_sender: Optional[BatchSender] = None,
    ):
        self._roster = roster
        self._attendance = attendance
        self._dispatcher = dispatcher
        self._page_size = int(page_size)
        self._batch_sender = batch_sender

    def run_for_tenant(self, tenant: TenantPolicy, *, today: date) -> TenantSummary:
        summary = TenantSummary(tenant_id=tenant.tenant_id, tenant_name=tenant.name)
        logger.info(
            "Checking %s (id=%s): check time %s, grace %sh",
            tenant.name,
            tenant.tenant_id,
            tenant.check_time.strftime("%H:%M"),
            tenant.grace_period_hours,
        )

        offset = 0
        while True:
            # Read failures propagate: they abort this tenant only.
            page = list(self._roster.list_active_students(tenant.tenant_id, page_size=self._page_size, offset=offset))
            if page:
                logger.debug("Page %d: %d students (offset %d)", offset // self._page_size + 1, len(page), offset)

            pending: list[NotificationRequest] = []
            for student in page:
                summary.students_seen += 1
                request = self._mark_absent(tenant, student, today, summary)
                if request is None:
                    continue
                if self._batch_sender is not None:
                    pending.append(request)
                else:
                    self._notify(request, summary)

            if pending:
                self._notify_batch(pending, summary)

            if len(page) < self._page_size:
                break
            offset += self._page_size

        logger.info(
            "%s complete: %d/%d absent, %d notified, %d already notified, %d without contact, %d errors",
            tenant.name,
            summary.marked_absent,
            summary.students_seen,
            summary.notified,
            summary.already_notified,
            summary.no_contact,
            summary.errors,
        )
        return summary

    def _mark_absent(
        self, tenant: TenantPolicy, student: StudentContact, today: date, summary: TenantSummary
    ) -> Optional[NotificationRequest]:
        try:
            existing = self._attendance.get_for_student_and_date(student.student_id, today, tenant_id=tenant.tenant_id)
            if existing is not None:
                logger.debug(
                    "%s already %s (%s)",
                    student.full_name,
                    existing.status.value,
                    "system" if existing.is_system_generated else "scan/teacher",
                )
                return None

            check = tenant.check_time.strftime("%H:%M:%S")
            inserted = self._attendance.insert_absent(
                student_id=student.student_id,
                tenant_id=tenant.tenant_id,
                work_date=today,
                check_in_time=check_timestamp(today, tenant.check_time),
                note=f"Auto-marked absent by system: no scan recorded by {check} ({tenant.grace_period_hours}h grace period)",
            )
        except Exception:
            summary.errors += 1
            logger.exception("Error processing %s (id=%s)", student.full_name, student.student_id)
            return None

        if not inserted:
            # Marked concurrently by a scan, a teacher or another pass.
            return None

        summary.marked_absent += 1
        logger.info("ABSENT: %s", student.display)

        contact = student.resolve_contact()
        if contact is None:
            summary.no_contact += 1
            logger.warning("No phone number for %s (tried guardian/parent/mother)", student.full_name)
            return None

        logger.debug("Contact for %s: %s %s", student.full_name, contact.label, mask_phone(contact.phone))
        return NotificationRequest(
            recipient=contact.phone,
            student_name=student.full_name,
            student_id=student.student_id,
            status=AttendanceStatus.ABSENT,
            tenant_id=tenant.tenant_id,
            tenant_name=tenant.name,
            display_time=format_display_time(tenant.check_time),
            notification_date=today,
        )

    def _notify(self, request: NotificationRequest, summary: TenantSummary) -> None:
        try:
            result = self._dispatcher.send(request)
        except Exception:
            summary.errors += 1
            logger.exception("Notification for %s raised", request.student_name)
            return

        if result.success and result.skipped:
            summary.already_notified += 1
        elif result.success:
            summary.notified += 1
        else:
            summary.errors += 1
            logger.error("Notification failed for %s: %s", request.student_name, result.error or result.reason)

    def _notify_batch(self, requests: list[NotificationRequest], summary: TenantSummary) -> None:
        try:
            result = self._batch_sender.send_all(requests, label=lambda r: f"{r.student_name} (id={r.student_id})")
        except Exception:
            summary.errors += len(requests)
            logger.exception("Batch notification for %s raised", summary.tenant_name)
            return

        summary.notified += result.sent
        summary.already_notified += result.skipped
        summary.errors += result.failed
        for err in result.errors:
            logger.error("Notification failed for %s: %s", err["item"], err["error"])
