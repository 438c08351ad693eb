from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator

from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

# Scripts name a database for manual use; the configured one wins at runtime.
_DB_SELECTION_RE = re.compile(r"(?im)^\s*(?:CREATE\s+DATABASE|USE)\b[^;]*;[ \t]*$")


def without_db_selection(sql: str) -> str:
    return _DB_SELECTION_RE.sub("", sql)


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Split a script on ``;``, ignoring ones inside quotes and ``--`` comments."""

    start = 0
    i = 0
    quote = None
    n = len(sql)
    pieces: list[str] = []

    while i < n:
        ch = sql[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
        elif ch == "-" and sql.startswith("--", i):
            pieces.append(sql[start:i])
            eol = sql.find("\n", i)
            i = n if eol < 0 else eol
            start = i
            continue
        elif ch == ";":
            pieces.append(sql[start:i])
            stmt = "".join(pieces).strip()
            pieces = []
            if stmt:
                yield stmt
            start = i + 1
        i += 1

    pieces.append(sql[start:])
    tail = "".join(pieces).strip()
    if tail:
        yield tail


def _run_script(conn_factory: DatabaseConnection, path: str | Path) -> int:
    sql = without_db_selection(Path(path).read_text(encoding="utf-8"))
    conn = conn_factory.connect()
    count = 0
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    return count


def ensure_database_exists(conn_factory: DatabaseConnection, database: str) -> None:
    conn = conn_factory.connect(with_database=False)
    try:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(conn_factory: DatabaseConnection, *, database: str, schema_path: str | Path) -> int:
    """Apply schema.sql (idempotent CREATE ... IF NOT EXISTS); return statements run."""

    ensure_database_exists(conn_factory, database)
    count = _run_script(conn_factory, schema_path)
    logger.info("Applied %d schema statements to %s", count, database)
    return count


def apply_seed_sql(conn_factory: DatabaseConnection, *, seed_path: str | Path) -> int:
    count = _run_script(conn_factory, seed_path)
    logger.info("Applied %d seed statements", count)
    return count


def list_tables(conn_factory: DatabaseConnection) -> list[str]:
    conn = conn_factory.connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
