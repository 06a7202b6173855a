from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

import pytz


def now_in_timezone(tz_name: str) -> datetime:
    """Current aware time in the given timezone.

    Note: Wrapped so services can take a clock callable and tests can pin it.
    """
    return datetime.now(pytz.timezone(tz_name))


def check_timestamp(day: date, at: time) -> datetime:
    return datetime.combine(day, at)


def format_display_time(value: Optional[time]) -> str:
    if value is None:
        return "-"
    return value.strftime("%I:%M %p")


def parse_clock_time(value: str) -> time:
    """Parse HH:MM or HH:MM:SS into time."""
    fmt = "%H:%M:%S" if value.count(":") == 2 else "%H:%M"
    return datetime.strptime(value.strip(), fmt).time()
