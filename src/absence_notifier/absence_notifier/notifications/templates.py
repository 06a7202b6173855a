from __future__ import annotations

from datetime import date
from typing import Mapping

from ..core.enums import AttendanceStatus, NotificationChannel
from .model import TemplateMessage

# Rich WhatsApp bodies (markdown-style bold supported by the channel).
PRIMARY_TEMPLATES: Mapping[AttendanceStatus, str] = {
    AttendanceStatus.PRESENT: (
        "*{tenant_name}*\n\n"
        "Dear Parent,\n"
        "{student_name} has arrived at school at {time} on {date}.\n\n"
        "Thank you."
    ),
    AttendanceStatus.LATE: (
        "*{tenant_name}*\n\n"
        "Dear Parent,\n"
        "{student_name} arrived *late* at {time} on {date}.\n\n"
        "Please ensure timely arrival."
    ),
    AttendanceStatus.ABSENT: (
        "*{tenant_name}*\n\n"
        "Dear Parent,\n"
        "{student_name} has been marked *ABSENT* today, {date}. "
        "No attendance was recorded by {time}.\n\n"
        "Please contact the school if this is unexpected."
    ),
    AttendanceStatus.LEAVE: (
        "*{tenant_name}*\n\n"
        "Dear Parent,\n"
        "{student_name} is on approved leave today, {date}.\n\n"
        "Thank you."
    ),
}

# Plain SMS bodies, kept short to stay within one segment where possible.
FALLBACK_TEMPLATES: Mapping[AttendanceStatus, str] = {
    AttendanceStatus.PRESENT: "{tenant_name}: {student_name} arrived at {time} on {date}.",
    AttendanceStatus.LATE: "{tenant_name}: {student_name} arrived LATE at {time} on {date}.",
    AttendanceStatus.ABSENT: "{tenant_name}: {student_name} marked ABSENT on {date} (no scan by {time}).",
    AttendanceStatus.LEAVE: "{tenant_name}: {student_name} is on leave on {date}.",
}

_TABLES = {
    NotificationChannel.PRIMARY: (PRIMARY_TEMPLATES, "%A, %d %b %Y"),
    NotificationChannel.FALLBACK: (FALLBACK_TEMPLATES, "%d-%m-%Y"),
}


def compose_message(
    status: AttendanceStatus,
    channel: NotificationChannel,
    *,
    student_name: str,
    tenant_name: str,
    display_time: str,
    day: date,
) -> str:
    templates, date_format = _TABLES[channel]
    return templates[status].format(
        tenant_name=tenant_name,
        student_name=student_name,
        time=display_time,
        date=day.strftime(date_format),
    )


def template_message(
    status: AttendanceStatus,
    *,
    student_name: str,
    tenant_name: str,
    display_time: str,
    day: date,
) -> TemplateMessage:
    """Header is the school name; body is (student name, time, date)."""
    _, date_format = _TABLES[NotificationChannel.PRIMARY]
    return TemplateMessage(
        status=status,
        header=tenant_name,
        body=(student_name, display_time, day.strftime(date_format)),
    )
