from __future__ import annotations

from datetime import date
from typing import Optional, Protocol


class HolidayCalendar(Protocol):
    def is_holiday(self, day: date, *, tenant_id: Optional[int] = None) -> bool:
        """True when ``day`` is an active holiday.

        ``tenant_id=None`` asks the shared calendar; otherwise only the
        tenant's own holiday rows are consulted.
        """

        raise NotImplementedError
