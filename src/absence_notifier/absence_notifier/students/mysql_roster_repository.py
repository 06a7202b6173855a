from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import StudentContact
from .repository import RosterRepository


class MySQLRosterRepository(RosterRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active_students(self, tenant_id: int, *, page_size: int, offset: int) -> Sequence[StudentContact]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    s.id, s.full_name, s.roll_number,
                    c.class_name, sec.section_name,
                    s.guardian_phone, s.parent_phone, s.mother_phone,
                    s.guardian_name, s.parent_name
                FROM students s
                LEFT JOIN classes c ON c.id = s.class_id
                LEFT JOIN sections sec ON sec.id = s.section_id
                WHERE s.school_id=%s AND s.is_active=1
                ORDER BY s.id ASC
                LIMIT %s OFFSET %s
                """,
                (int(tenant_id), int(page_size), int(offset)),
            )
            rows = fetchall(cur)

        return [
            StudentContact(
                student_id=int(r["id"]),
                full_name=r["full_name"],
                roll_number=r.get("roll_number"),
                class_name=r.get("class_name"),
                section_name=r.get("section_name"),
                guardian_phone=r.get("guardian_phone"),
                parent_phone=r.get("parent_phone"),
                mother_phone=r.get("mother_phone"),
                guardian_name=r.get("guardian_name"),
                parent_name=r.get("parent_name"),
            )
            for r in rows
        ]
