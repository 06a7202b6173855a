from __future__ import annotations

from datetime import time, timedelta
from pathlib import Path

import pytest

from src.absence_notifier.absence_notifier.database.bootstrap import split_statements
from src.absence_notifier.absence_notifier.database.mysql_base import mysql_time

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_split_ignores_semicolons_inside_quotes():
    sql = "INSERT INTO t VALUES('a;b'); INSERT INTO t VALUES(\"c;d\");\nSELECT `x;y` FROM t"

    assert list(split_statements(sql)) == [
        "INSERT INTO t VALUES('a;b')",
        'INSERT INTO t VALUES("c;d")',
        "SELECT `x;y` FROM t",
    ]


def test_split_handles_escaped_quote():
    sql = r"INSERT INTO t VALUES('it\'s; fine'); SELECT 1;"

    assert list(split_statements(sql)) == [r"INSERT INTO t VALUES('it\'s; fine')", "SELECT 1"]


def test_schema_file_declares_every_table():
    statements = list(split_statements(SCHEMA.read_text(encoding="utf-8")))
    created = [s for s in statements if "CREATE TABLE" in s]

    for table in ("schools", "school_settings", "students", "attendance_logs", "holidays", "notification_logs"):
        assert any(f"CREATE TABLE IF NOT EXISTS {table} " in s for s in created)


@pytest.mark.parametrize(
    "value, expected",
    [
        (time(11, 0), time(11, 0)),
        (timedelta(hours=11, minutes=30), time(11, 30)),
        ("09:15:00", time(9, 15)),
        ("09:15", time(9, 15)),
    ],
)
def test_mysql_time_variants(value, expected):
    assert mysql_time(value) == expected


def test_mysql_time_default_for_null():
    assert mysql_time(None, time(11, 0)) == time(11, 0)
