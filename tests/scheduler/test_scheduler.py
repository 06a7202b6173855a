from __future__ import annotations

import threading
from datetime import date, datetime, time

import pytest
import pytz

from src.absence_notifier.absence_notifier.attendance.detector import TenantSummary
from src.absence_notifier.absence_notifier.core.exceptions import ConfigurationError
from src.absence_notifier.absence_notifier.scheduler.service import (
    ALREADY_RUNNING_MESSAGE,
    SKIP_HOLIDAY,
    SKIP_OFF_DAY,
    AbsenceScheduler,
)
from src.absence_notifier.absence_notifier.tenants.model import TenantPolicy

IST = pytz.timezone("Asia/Kolkata")
MONDAY_11 = IST.localize(datetime(2024, 1, 15, 11, 0))
SUNDAY_11 = IST.localize(datetime(2024, 1, 14, 11, 0))


def _tenant(tid: int, *, check_hour: int = 11, enabled: bool = True) -> TenantPolicy:
    return TenantPolicy(
        tenant_id=tid,
        name=f"School {tid}",
        enabled=enabled,
        grace_period_hours=2,
        school_start_time=time(9, 0),
        check_time=time(check_hour, 0),
    )


class InMemoryTenants:
    def __init__(self, tenants):
        self.tenants = list(tenants)

    def get_eligible_tenants(self):
        return list(self.tenants)


class InMemoryHolidays:
    def __init__(self, *, shared=(), by_tenant=None):
        self.shared = set(shared)
        self.by_tenant = by_tenant or {}

    def is_holiday(self, day: date, *, tenant_id=None) -> bool:
        if tenant_id is None:
            return day in self.shared
        return day in self.by_tenant.get(tenant_id, set())


class FakeDetector:
    def __init__(self, *, failing=(), marked=1):
        self.failing = set(failing)
        self.marked = marked
        self.calls: list[tuple[int, date]] = []
        self._lock = threading.Lock()

    def run_for_tenant(self, tenant: TenantPolicy, *, today: date) -> TenantSummary:
        with self._lock:
            self.calls.append((tenant.tenant_id, today))
        if tenant.tenant_id in self.failing:
            raise RuntimeError(f"database down for {tenant.name}")
        return TenantSummary(
            tenant_id=tenant.tenant_id,
            tenant_name=tenant.name,
            students_seen=10,
            marked_absent=self.marked,
            notified=self.marked,
        )


class BlockingDetector(FakeDetector):
    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def run_for_tenant(self, tenant, *, today):
        self.entered.set()
        self.release.wait(5)
        return super().run_for_tenant(tenant, today=today)


def _scheduler(tenants, detector, *, holidays=None, now=MONDAY_11, **kwargs) -> AbsenceScheduler:
    return AbsenceScheduler(
        InMemoryTenants(tenants),
        holidays or InMemoryHolidays(),
        detector,
        clock=lambda: now,
        **kwargs,
    )


def test_scheduled_pass_only_takes_tenants_due_this_hour():
    detector = FakeDetector()
    s = _scheduler([_tenant(1, check_hour=11), _tenant(2, check_hour=12), _tenant(3, enabled=False)], detector)

    report = s.tick()

    assert [tid for tid, _ in detector.calls] == [1]
    assert report.tenants_processed == 1
    assert report.run_date == date(2024, 1, 15)


def test_off_day_processes_nothing():
    detector = FakeDetector()
    s = _scheduler([_tenant(1), _tenant(2)], detector, now=SUNDAY_11)

    report = s.tick()

    assert detector.calls == []
    assert report.skipped_reason == SKIP_OFF_DAY
    assert report.tenants_processed == 0


def test_shared_holiday_processes_nothing():
    detector = FakeDetector()
    holidays = InMemoryHolidays(shared={date(2024, 1, 15)})
    s = _scheduler([_tenant(1)], detector, holidays=holidays)

    report = s.tick()

    assert detector.calls == []
    assert report.skipped_reason == SKIP_HOLIDAY


def test_tenant_holiday_skips_only_that_tenant():
    detector = FakeDetector()
    holidays = InMemoryHolidays(by_tenant={2: {date(2024, 1, 15)}})
    s = _scheduler([_tenant(1), _tenant(2), _tenant(3)], detector, holidays=holidays)

    report = s.tick()

    assert sorted(tid for tid, _ in detector.calls) == [1, 3]
    assert report.failed_tenants == []


def test_forced_run_ignores_day_holiday_and_hour():
    detector = FakeDetector()
    holidays = InMemoryHolidays(shared={date(2024, 1, 14)}, by_tenant={1: {date(2024, 1, 14)}})
    s = _scheduler(
        [_tenant(1, check_hour=8), _tenant(2, check_hour=15), _tenant(3, enabled=False)],
        detector,
        holidays=holidays,
        now=SUNDAY_11,
    )

    result = s.run_now()

    assert result["success"] is True
    assert result["message"].startswith("Manual check completed")
    assert sorted(tid for tid, _ in detector.calls) == [1, 2]


def test_failing_tenant_does_not_stop_the_others():
    detector = FakeDetector(failing={2})
    s = _scheduler([_tenant(1), _tenant(2), _tenant(3)], detector)

    report = s.tick()

    assert [tid for tid, _ in detector.calls] == [1, 2, 3]
    assert report.failed_tenants == [2]
    assert report.tenants_processed == 2
    assert report.totals()["marked_absent"] == 2


def test_tenant_pool_processes_every_tenant():
    detector = FakeDetector(failing={4})
    s = _scheduler([_tenant(i) for i in range(1, 7)], detector, tenant_workers=3)

    report = s.tick()

    assert sorted(tid for tid, _ in detector.calls) == [1, 2, 3, 4, 5, 6]
    assert report.failed_tenants == [4]
    assert report.tenants_processed == 5


def test_overlapping_trigger_is_refused_while_a_pass_runs():
    detector = BlockingDetector()
    s = _scheduler([_tenant(1)], detector)

    worker = threading.Thread(target=s.run_now)
    worker.start()
    try:
        assert detector.entered.wait(5)
        assert s.is_processing
        assert s.tick() is None
        assert s.run_now() == {"success": False, "message": ALREADY_RUNNING_MESSAGE}
    finally:
        detector.release.set()
        worker.join(5)

    assert not s.is_processing
    assert len(detector.calls) == 1


def test_guard_is_released_after_a_crashed_pass():
    class BrokenTenants:
        def get_eligible_tenants(self):
            raise RuntimeError("tenant table missing")

    s = AbsenceScheduler(BrokenTenants(), InMemoryHolidays(), FakeDetector(), clock=lambda: MONDAY_11)

    assert s.tick() is None
    result = s.run_now()

    assert result == {"success": False, "message": "tenant table missing"}
    assert not s.is_processing


def test_status_reports_last_run():
    s = _scheduler([_tenant(1)], FakeDetector())
    assert s.status()["last_run"] is None

    s.tick()
    status = s.status()

    assert status["running"] is False
    assert status["processing"] is False
    assert status["timezone"] == "Asia/Kolkata"
    assert status["interval_seconds"] == 3600
    assert status["last_run"]["tenants"][0]["tenant_id"] == 1
    assert status["last_run"]["totals"]["marked_absent"] == 1


def test_next_tick_is_aligned_to_the_top_of_the_hour():
    now = IST.localize(datetime(2024, 1, 15, 10, 45, 30))
    s = _scheduler([], FakeDetector(), now=now)

    assert s.seconds_until_next_tick() == pytest.approx(14 * 60 + 30)


def test_unknown_timezone_is_rejected():
    with pytest.raises(ConfigurationError):
        _scheduler([], FakeDetector(), timezone="Mars/Olympus")


def test_start_and_stop_background_thread():
    s = _scheduler([], FakeDetector())

    s.start()
    try:
        assert s.status()["running"] is True
    finally:
        s.stop()

    assert s.status()["running"] is False
