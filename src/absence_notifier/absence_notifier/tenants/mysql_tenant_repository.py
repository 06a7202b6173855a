from __future__ import annotations

from typing import Optional, Sequence

from ..common.datetime_utils import parse_clock_time
from ..core.constants import DEFAULT_CHECK_TIME, DEFAULT_GRACE_PERIOD_HOURS, DEFAULT_SCHOOL_START
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, mysql_time
from .model import TenantPolicy
from .repository import TenantPolicyRepository


class MySQLTenantPolicyRepository(TenantPolicyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_eligible_tenants(self) -> Sequence[TenantPolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Schools without a settings row fall back to the defaults.
            cur.execute(
                """
                SELECT
                    s.id AS school_id,
                    s.name AS school_name,
                    ss.auto_absence_enabled,
                    ss.absence_grace_period_hours,
                    ss.school_open_time,
                    ss.absence_check_time
                FROM schools s
                LEFT JOIN school_settings ss ON ss.school_id = s.id
                ORDER BY s.id ASC
                """
            )
            rows = fetchall(cur)

        return [
            TenantPolicy(
                tenant_id=int(r["school_id"]),
                name=r["school_name"],
                enabled=bool(r["auto_absence_enabled"]) if r.get("auto_absence_enabled") is not None else True,
                grace_period_hours=int(
                    r["absence_grace_period_hours"]
                    if r.get("absence_grace_period_hours") is not None
                    else DEFAULT_GRACE_PERIOD_HOURS
                ),
                school_start_time=mysql_time(r.get("school_open_time"), parse_clock_time(DEFAULT_SCHOOL_START)),
                check_time=mysql_time(r.get("absence_check_time"), parse_clock_time(DEFAULT_CHECK_TIME)),
            )
            for r in rows
        ]

    def get_whatsapp_api_key(self, tenant_id: int) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT whatsapp_api_key, whatsapp_use_own_key FROM schools WHERE id=%s",
                (int(tenant_id),),
            )
            r = fetchone(cur)
        if not r or not r.get("whatsapp_use_own_key"):
            return None
        key = (r.get("whatsapp_api_key") or "").strip()
        return key or None
