"""Hourly gate for the absence detector.

One daemon thread wakes at the top of every interval in the configured
timezone. A single-slot lock guards the pass: overlapping ticks are skipped,
and the manual ``run_now`` entry point reports "already in progress" instead
of queuing.
"""
from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Optional, Sequence

import pytz

from ..attendance.detector import AbsenceDetector, TenantSummary
from ..common.datetime_utils import now_in_timezone
from ..core.constants import DEFAULT_INTERVAL_SECONDS, DEFAULT_OFF_DAYS, DEFAULT_TIMEZONE
from ..core.exceptions import ConfigurationError
from ..core.logging import get_logger
from ..holidays.repository import HolidayCalendar
from ..tenants.model import TenantPolicy
from ..tenants.repository import TenantPolicyRepository

logger = get_logger(__name__)

ALREADY_RUNNING_MESSAGE = "Absence check already in progress"

SKIP_OFF_DAY = "weekly off-day"
SKIP_HOLIDAY = "holiday"

_TOTAL_FIELDS = ("students_seen", "marked_absent", "notified", "already_notified", "no_contact", "errors")


@dataclass
class RunReport:
    forced: bool
    run_date: date
    hour: int
    skipped_reason: Optional[str] = None
    summaries: list[TenantSummary] = field(default_factory=list)
    failed_tenants: list[int] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def tenants_processed(self) -> int:
        return len(self.summaries)

    def totals(self) -> dict:
        return {name: sum(getattr(s, name) for s in self.summaries) for name in _TOTAL_FIELDS}

    def describe(self) -> str:
        if self.skipped_reason:
            return f"skipped ({self.skipped_reason})"
        t = self.totals()
        text = (
            f"{self.tenants_processed} tenant(s), {t['students_seen']} students checked, "
            f"{t['marked_absent']} marked absent, {t['notified']} notified, {t['errors']} errors"
        )
        if self.failed_tenants:
            text += f", {len(self.failed_tenants)} tenant(s) failed"
        return text

    def as_dict(self) -> dict:
        return {
            "forced": self.forced,
            "date": self.run_date.isoformat(),
            "hour": self.hour,
            "skipped_reason": self.skipped_reason,
            "tenants": [s.as_dict() for s in self.summaries],
            "failed_tenants": list(self.failed_tenants),
            "totals": self.totals(),
            "duration_seconds": round(self.duration_seconds, 2),
        }


class AbsenceScheduler:
    def __init__(
        self,
        tenants: TenantPolicyRepository,
        holidays: HolidayCalendar,
        detector: AbsenceDetector,
        *,
        timezone: str = DEFAULT_TIMEZONE,
        interval_seconds: int = DEFAULT_INTERVAL_SECONDS,
        off_days: Sequence[int] = DEFAULT_OFF_DAYS,
        tenant_workers: int = 1,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        try:
            pytz.timezone(timezone)
        except pytz.UnknownTimeZoneError as e:
            raise ConfigurationError(f"Unknown timezone: {timezone}") from e
        if int(interval_seconds) <= 0:
            raise ConfigurationError("interval_seconds must be positive")

        self._tenants = tenants
        self._holidays = holidays
        self._detector = detector
        self._timezone = timezone
        self._interval = int(interval_seconds)
        self._off_days = frozenset(int(d) for d in off_days)
        self._tenant_workers = max(1, int(tenant_workers))
        self._clock = clock or (lambda: now_in_timezone(timezone))

        self._guard = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_report: Optional[RunReport] = None

    # ----- timer -----

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            logger.warning("Absence scheduler already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="absence-scheduler", daemon=True)
        self._thread.start()
        logger.info(
            "Absence scheduler started: every %ss, timezone %s, off days %s",
            self._interval,
            self._timezone,
            sorted(self._off_days),
        )

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            logger.info("Absence scheduler stopped")

    def _loop(self) -> None:
        while not self._stop_event.wait(self.seconds_until_next_tick()):
            self.tick()

    def seconds_until_next_tick(self) -> float:
        now = self._clock()
        since_midnight = now.hour * 3600 + now.minute * 60 + now.second + now.microsecond / 1_000_000
        return self._interval - (since_midnight % self._interval)

    # ----- entry points -----

    @property
    def is_processing(self) -> bool:
        return self._guard.locked()

    def tick(self) -> Optional[RunReport]:
        """Scheduled entry point. Never raises; returns None when skipped or crashed."""
        if not self._guard.acquire(blocking=False):
            logger.info("Absence check already running, skipping tick")
            return None
        try:
            return self._run_pass(force=False)
        except Exception:
            logger.exception("Scheduled absence check failed")
            return None
        finally:
            self._guard.release()

    def run_now(self) -> dict:
        """Manual trigger: every enabled tenant, no day/holiday/hour gating."""
        if not self._guard.acquire(blocking=False):
            logger.warning(ALREADY_RUNNING_MESSAGE)
            return {"success": False, "message": ALREADY_RUNNING_MESSAGE}
        try:
            logger.info("Manual absence check triggered (all enabled tenants)")
            report = self._run_pass(force=True)
        except Exception as e:
            logger.exception("Manual absence check failed")
            return {"success": False, "message": str(e) or e.__class__.__name__}
        finally:
            self._guard.release()
        return {"success": True, "message": f"Manual check completed: {report.describe()}"}

    def status(self) -> dict:
        return {
            "running": self._thread is not None and self._thread.is_alive(),
            "processing": self.is_processing,
            "interval_seconds": self._interval,
            "timezone": self._timezone,
            "off_days": sorted(self._off_days),
            "last_run": self._last_report.as_dict() if self._last_report else None,
        }

    # ----- pass -----

    def _run_pass(self, *, force: bool) -> RunReport:
        started = time.monotonic()
        now = self._clock()
        report = RunReport(forced=force, run_date=now.date(), hour=now.hour)

        if not force:
            report.skipped_reason = self._day_skip_reason(report.run_date)
            if report.skipped_reason:
                logger.info("Skipping absence check on %s: %s", report.run_date, report.skipped_reason)
                self._last_report = report
                return report

        policies = self._tenants.get_eligible_tenants()
        selected = [t for t in policies if t.enabled and (force or t.check_hour == report.hour)]
        logger.info(
            "Absence check %s at %02d:00 (%s): %d of %d tenant(s) selected",
            report.run_date,
            report.hour,
            "forced" if force else "scheduled",
            len(selected),
            len(policies),
        )

        if self._tenant_workers > 1 and len(selected) > 1:
            with ThreadPoolExecutor(max_workers=self._tenant_workers, thread_name_prefix="absence-tenant") as pool:
                outcomes = list(pool.map(lambda t: self._process_tenant(t, report.run_date, force), selected))
        else:
            outcomes = [self._process_tenant(t, report.run_date, force) for t in selected]

        for tenant, outcome in zip(selected, outcomes):
            if isinstance(outcome, TenantSummary):
                report.summaries.append(outcome)
            elif outcome is False:
                report.failed_tenants.append(tenant.tenant_id)

        report.duration_seconds = time.monotonic() - started
        logger.info("Absence check complete in %.2fs: %s", report.duration_seconds, report.describe())
        self._last_report = report
        return report

    def _day_skip_reason(self, day: date) -> Optional[str]:
        if day.weekday() in self._off_days:
            return SKIP_OFF_DAY
        if self._holidays.is_holiday(day):
            return SKIP_HOLIDAY
        return None

    def _process_tenant(self, tenant: TenantPolicy, day: date, force: bool):
        """TenantSummary on success, None when the tenant's own calendar skips it, False on failure."""
        try:
            if not force and self._holidays.is_holiday(day, tenant_id=tenant.tenant_id):
                logger.info("Skipping %s: tenant holiday on %s", tenant.name, day)
                return None
            return self._detector.run_for_tenant(tenant, today=day)
        except Exception:
            logger.exception("Absence check failed for %s (id=%s)", tenant.name, tenant.tenant_id)
            return False
