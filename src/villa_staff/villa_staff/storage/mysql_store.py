from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional, Sequence

import mysql.connector

from ..common.datetime_utils import parse_iso, to_iso
from ..core.constants import (
    COLLECTION_POINT_ENTRIES,
    COLLECTION_POINT_RULES,
    COLLECTION_TASKS,
    COLLECTION_USERS,
    COLLECTION_VIOLATIONS,
)
from ..core.exceptions import StoreUnavailableError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, quote_identifier
from .base import Record


@dataclass(frozen=True)
class TableSpec:
    table: str
    columns: tuple[str, ...]
    datetime_columns: frozenset[str] = field(default_factory=frozenset)
    bool_columns: frozenset[str] = field(default_factory=frozenset)


TABLES: Mapping[str, TableSpec] = {
    COLLECTION_USERS: TableSpec(
        table="users",
        columns=("id", "name", "role", "language", "created_at"),
        datetime_columns=frozenset({"created_at"}),
    ),
    COLLECTION_POINT_RULES: TableSpec(
        table="point_rules",
        columns=("id", "name", "base_points", "category", "description", "repeatable"),
        bool_columns=frozenset({"repeatable"}),
    ),
    COLLECTION_POINT_ENTRIES: TableSpec(
        table="point_entries",
        columns=(
            "id", "user_id", "rule_id", "points", "reason", "custom_reason",
            "assigned_by", "assigned_at", "multiplier",
        ),
        datetime_columns=frozenset({"assigned_at"}),
    ),
    COLLECTION_TASKS: TableSpec(
        table="tasks",
        columns=(
            "id", "task_type", "title", "room", "description", "assigned_to", "assigned_to2",
            "assigned_by", "status", "duration", "points", "deadline", "created_at",
            "completed_at", "approved_at", "rejected_at", "rejection_reason",
            "requires_completion_photo", "completion_photo", "completion_notes",
            "completed_by", "second_worker_involved", "completion_count",
            "is_template", "is_recurring",
        ),
        datetime_columns=frozenset({"deadline", "created_at", "completed_at", "approved_at", "rejected_at"}),
        bool_columns=frozenset({"requires_completion_photo", "is_template", "is_recurring"}),
    ),
    COLLECTION_VIOLATIONS: TableSpec(
        table="user_violations",
        columns=("id", "user_id", "rule_id", "count", "last_occurrence"),
        datetime_columns=frozenset({"last_occurrence"}),
    ),
}

# Connection-level failures; programming errors still propagate as-is.
_UNAVAILABLE_ERRORS = (
    mysql.connector.errors.InterfaceError,
    mysql.connector.errors.OperationalError,
)


class MySQLRecordStore:
    """Remote store: one MySQL table per collection, upserts by primary key `id`."""

    def __init__(self, conn_factory: DatabaseConnection, *, tables: Optional[Mapping[str, TableSpec]] = None):
        self._conn_factory = conn_factory
        self._tables = dict(tables or TABLES)

    def _spec(self, collection: str) -> TableSpec:
        spec = self._tables.get(collection)
        if spec is None:
            raise KeyError(f"No MySQL table mapped for collection {collection!r}")
        return spec

    def load(self, collection: str) -> list[Record]:
        spec = self._spec(collection)
        cols = ", ".join(quote_identifier(c) for c in spec.columns)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"SELECT {cols} FROM {quote_identifier(spec.table)}")
                rows = fetchall(cur)
        except _UNAVAILABLE_ERRORS as e:
            raise StoreUnavailableError(f"Cannot load {collection}: {e}") from e
        return [self._to_record(spec, r) for r in rows]

    def save(self, collection: str, records: Sequence[Record]) -> None:
        if not records:
            return
        spec = self._spec(collection)
        cols = ", ".join(quote_identifier(c) for c in spec.columns)
        placeholders = ", ".join(["%s"] * len(spec.columns))
        updates = ", ".join(
            f"{quote_identifier(c)}=VALUES({quote_identifier(c)})" for c in spec.columns if c != "id"
        )
        sql = (
            f"INSERT INTO {quote_identifier(spec.table)} ({cols}) VALUES ({placeholders}) "
            f"ON DUPLICATE KEY UPDATE {updates}"
        )
        params = [self._to_params(spec, r) for r in records]
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.executemany(sql, params)
        except _UNAVAILABLE_ERRORS as e:
            raise StoreUnavailableError(f"Cannot save {collection}: {e}") from e

    def delete(self, collection: str, record_id: str) -> bool:
        spec = self._spec(collection)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"DELETE FROM {quote_identifier(spec.table)} WHERE `id`=%s", (str(record_id),))
                return cur.rowcount > 0
        except _UNAVAILABLE_ERRORS as e:
            raise StoreUnavailableError(f"Cannot delete from {collection}: {e}") from e

    @staticmethod
    def _to_record(spec: TableSpec, row: dict) -> Record:
        out: Record = {}
        for c in spec.columns:
            value = row.get(c)
            if c in spec.datetime_columns and isinstance(value, datetime):
                value = to_iso(value)
            elif c in spec.bool_columns and value is not None:
                value = bool(value)
            out[c] = value
        return out

    @staticmethod
    def _to_params(spec: TableSpec, record: Record) -> tuple:
        values = []
        for c in spec.columns:
            value = record.get(c)
            if c in spec.datetime_columns:
                value = parse_iso(value)
            elif c in spec.bool_columns and value is not None:
                value = 1 if value else 0
            values.append(value)
        return tuple(values)
