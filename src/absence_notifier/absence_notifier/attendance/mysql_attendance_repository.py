from __future__ import annotations

from datetime import date, datetime
from typing import Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_student_and_date(self, student_id: int, work_date: date, *, tenant_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, student_id, school_id, attendance_date, check_in_time, status, is_system_generated, notes
                FROM attendance_logs
                WHERE student_id=%s AND attendance_date=%s AND school_id=%s
                LIMIT 1
                """,
                (int(student_id), work_date, int(tenant_id)),
            )
            r = fetchone(cur)
            if not r:
                return None
            return AttendanceRecord(
                attendance_id=int(r["id"]),
                student_id=int(r["student_id"]),
                tenant_id=int(r["school_id"]),
                work_date=r["attendance_date"],
                check_in_time=r.get("check_in_time"),
                status=AttendanceStatus(r["status"]),
                is_system_generated=bool(r.get("is_system_generated")),
                note=r.get("notes"),
            )

    def insert_absent(
        self,
        *,
        student_id: int,
        tenant_id: int,
        work_date: date,
        check_in_time: datetime,
        note: Optional[str] = None,
    ) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_logs(student_id, school_id, attendance_date, check_in_time, status, is_system_generated, notes)
                    VALUES(%s,%s,%s,%s,%s,1,%s)
                    """,
                    (int(student_id), int(tenant_id), work_date, check_in_time, AttendanceStatus.ABSENT.value, note),
                )
            return True
        except mysql.connector.IntegrityError as e:
            # Unique (student_id, attendance_date, school_id): someone else marked the day first.
            if e.errno == errorcode.ER_DUP_ENTRY:
                return False
            raise
