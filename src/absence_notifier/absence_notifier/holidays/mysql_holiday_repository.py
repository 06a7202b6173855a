from __future__ import annotations

from datetime import date
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .repository import HolidayCalendar


class MySQLHolidayCalendar(HolidayCalendar):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def is_holiday(self, day: date, *, tenant_id: Optional[int] = None) -> bool:
        if tenant_id is None:
            clause, params = "school_id IS NULL", (day,)
        else:
            clause, params = "school_id=%s", (day, int(tenant_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS cnt
                FROM holidays
                WHERE holiday_date=%s AND is_active=1 AND {clause}
                """,
                params,
            )
            r = fetchone(cur)
            return bool(r and int(r["cnt"]) > 0)
