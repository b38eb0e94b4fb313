from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator

from ..core.constants import COLLECTION_POINT_RULES, COLLECTION_USERS
from ..core.enums import Role
from ..points.catalog import DEFAULT_RULES
from ..storage.mysql_store import MySQLRecordStore
from .connection import DBConfig, DatabaseConnection
from .mysql_base import quote_identifier

logger = logging.getLogger(__name__)

DEMO_USERS = (
    {"id": "admin", "name": "Admin User", "role": Role.ADMIN.value, "language": "de"},
    {"id": "maria", "name": "Maria Schmidt", "role": Role.STAFF.value, "language": "de"},
    {"id": "john", "name": "John Doe", "role": Role.STAFF.value, "language": "en"},
)

# Quoted strings, comments, or a statement separator.
_SQL_TOKEN = re.compile(r"""'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|--[^\n]*|;""", re.S)
_DB_SELECTION = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;")


def _connection(db_config: dict) -> DatabaseConnection:
    # Own factory: bootstrap may target a database the app singleton does not know yet.
    return DatabaseConnection(DBConfig.from_dict(db_config))


def split_sql(sql: str) -> Iterator[str]:
    """Yield statements, ignoring `;` inside quotes and `--` comments."""
    start = 0
    for match in _SQL_TOKEN.finditer(sql):
        if match.group() != ";":
            continue
        stmt = _strip_comments(sql[start:match.start()])
        start = match.end()
        if stmt:
            yield stmt
    tail = _strip_comments(sql[start:])
    if tail:
        yield tail


def _strip_comments(chunk: str) -> str:
    lines = [ln for ln in chunk.splitlines() if not ln.strip().startswith("--")]
    return "\n".join(lines).strip()


def ensure_database_exists(db_config: dict) -> None:
    factory = _connection(db_config)
    conn = factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS {quote_identifier(factory.config.database)} "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    """Create the database (if missing) and run schema.sql against it.

    Any CREATE DATABASE / USE lines in the file are dropped so the configured
    database name always wins.
    """
    ensure_database_exists(db_config)
    sql = _DB_SELECTION.sub("", Path(schema_path).read_text(encoding="utf-8"))

    conn = _connection(db_config).connect()
    try:
        cur = conn.cursor()
        for stmt in split_sql(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Schema applied from %s", schema_path)


def list_tables(db_config: dict) -> list[str]:
    conn = _connection(db_config).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()


def ensure_demo_users(db_config: dict) -> None:
    """Upsert one admin and two staff users plus the default point rules."""
    store = MySQLRecordStore(_connection(db_config))
    store.save(COLLECTION_USERS, [dict(u) for u in DEMO_USERS])
    store.save(
        COLLECTION_POINT_RULES,
        [
            {
                "id": r.id,
                "name": r.name,
                "base_points": r.base_points,
                "category": r.category.value,
                "description": r.description,
                "repeatable": r.repeatable,
            }
            for r in DEFAULT_RULES
        ],
    )
    logger.info("Demo users and default point rules ready")
