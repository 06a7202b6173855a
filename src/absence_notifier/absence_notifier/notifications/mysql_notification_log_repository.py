from __future__ import annotations

from datetime import date
from typing import Optional

from ..core.enums import AttendanceStatus, NotificationChannel
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import NotificationLogEntry
from .repository import NotificationLogRepository


class MySQLNotificationLogRepository(NotificationLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_existing(
        self,
        *,
        dedup_key: str,
        student_id: int,
        status: AttendanceStatus,
        notification_date: date,
    ) -> Optional[NotificationLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT dedup_key, student_id, school_id, student_name, status, channel,
                       message_id, error_message, notification_date, sent_at
                FROM notification_logs
                WHERE dedup_key=%s AND student_id=%s AND status=%s AND notification_date=%s AND delivered=1
                ORDER BY id ASC
                LIMIT 1
                """,
                (dedup_key, int(student_id), AttendanceStatus(status).value, notification_date),
            )
            r = fetchone(cur)
            if not r:
                return None
            return NotificationLogEntry(
                dedup_key=r["dedup_key"],
                student_id=int(r["student_id"]),
                tenant_id=int(r["school_id"]) if r.get("school_id") is not None else None,
                student_name=r.get("student_name"),
                status=AttendanceStatus(r["status"]),
                channel=NotificationChannel(r["channel"]) if r.get("channel") else None,
                message_id=r.get("message_id"),
                error=r.get("error_message"),
                notification_date=r["notification_date"],
                sent_at=r["sent_at"],
            )

    def append(self, entry: NotificationLogEntry) -> None:
        # delivered is 1 or NULL: the unique dedup index ignores failed rows.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notification_logs(
                    dedup_key, student_id, school_id, student_name, status, channel,
                    message_id, error_message, delivered, notification_date, sent_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.dedup_key,
                    int(entry.student_id),
                    entry.tenant_id,
                    entry.student_name,
                    entry.status.value,
                    entry.channel.value if entry.channel else None,
                    entry.message_id,
                    entry.error,
                    1 if entry.delivered else None,
                    entry.notification_date,
                    entry.sent_at,
                ),
            )
