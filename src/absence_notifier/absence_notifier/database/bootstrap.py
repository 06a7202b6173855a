"""Schema bootstrap for ``database/schema.sql``.

The schema file names its own database (``CREATE DATABASE`` / ``USE``); both
are dropped so the statements land in whatever database ``DB_CONFIG`` names.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator, Union

import mysql.connector

from ..core.logging import get_logger
from .connection import DBConfig

logger = get_logger(__name__)

_PREAMBLE = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;\s*$")
_LINE_COMMENT = re.compile(r"(?m)^\s*--.*$")


def split_statements(sql: str) -> Iterator[str]:
    """Split on ``;`` outside quoted strings and identifiers."""
    buf: list[str] = []
    quote = None
    chars = iter(sql)
    for ch in chars:
        if quote is None and ch == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue
        buf.append(ch)
        if quote is None:
            if ch in ("'", '"', "`"):
                quote = ch
        elif ch == "\\":
            buf.append(next(chars, ""))
        elif ch == quote:
            quote = None

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        connection_timeout=target.connection_timeout,
    )
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: Union[str, Path]) -> int:
    """Apply every statement of the schema file. Returns the statement count."""
    ensure_database_exists(db_config)
    raw = Path(schema_path).read_text(encoding="utf-8")
    statements = list(split_statements(_LINE_COMMENT.sub("", _PREAMBLE.sub("", raw))))

    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()

    logger.info("Applied %d schema statement(s) from %s", len(statements), Path(schema_path).name)
    return len(statements)


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
