from __future__ import annotations

from types import SimpleNamespace

from src.absence_notifier.absence_notifier.container import _template_names
from src.absence_notifier.absence_notifier.core.enums import AttendanceStatus


def test_template_names_default_per_status():
    names = _template_names(SimpleNamespace(WHATSAPP_TEMPLATE_LATE="late_v2"))

    assert names[AttendanceStatus.ABSENT] == "attendance_absent"
    assert names[AttendanceStatus.LATE] == "late_v2"


def test_shared_template_name_applies_to_every_status():
    names = _template_names(SimpleNamespace(WHATSAPP_TEMPLATE_NAME="attendance_alert", WHATSAPP_TEMPLATE_LATE="late_v2"))

    assert set(names.values()) == {"attendance_alert"}
    assert set(names) == set(AttendanceStatus)


def test_templates_can_be_turned_off():
    assert _template_names(SimpleNamespace(WHATSAPP_USE_TEMPLATES=False)) is None
