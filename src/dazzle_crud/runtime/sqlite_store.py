"""
SQLite store - a Store implementation backed by a SQLite database file.

Tables are auto-created from the registered EntitySpecs. Relation fields
are stored as JSON text holding the link reference(s), e.g. ``{"id": "..."}``
or ``[{"id": "..."}, ...]``, so a stored value can be used directly as a
lookup criterion on the related entity.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any
from uuid import UUID

from dazzle_crud.runtime.exceptions import ConstraintViolationError, InvalidInputError
from dazzle_crud.runtime.logging import get_store_logger, log_with_context
from dazzle_crud.runtime.registry import IDENTIFIER_FIELD, EntityRegistry
from dazzle_crud.runtime.store import Record, Store, new_id
from dazzle_crud.specs.entity import EntitySpec, FieldSpec, FieldType, ScalarType

logger = get_store_logger()


def quote_identifier(name: str) -> str:
    """Quote a table or column name for SQLite."""
    return '"' + name.replace('"', '""') + '"'


def _parse_constraint_error(exc: Exception) -> tuple[str, str | None]:
    """
    Parse a SQLite integrity error into (constraint_type, field_or_none).

    Examples:
        "UNIQUE constraint failed: Book.isbn" -> ("unique", "isbn")
        "NOT NULL constraint failed: Book.title" -> ("not_null", "title")
    """
    err = str(exc)
    for marker, kind in (
        ("UNIQUE constraint failed:", "unique"),
        ("NOT NULL constraint failed:", "not_null"),
    ):
        if marker in err:
            parts = err.split(marker)[-1].strip()
            field_name = parts.split(".")[-1].strip() if parts else None
            return kind, field_name or None
    if "FOREIGN KEY constraint failed" in err:
        return "foreign_key", None
    return "integrity", None


# =============================================================================
# SQLite Type Mapping
# =============================================================================


def _scalar_type_to_sqlite(scalar_type: ScalarType) -> str:
    """Map scalar types to SQLite types."""
    mapping: dict[ScalarType, str] = {
        ScalarType.STR: "TEXT",
        ScalarType.TEXT: "TEXT",
        ScalarType.INT: "INTEGER",
        ScalarType.FLOAT: "REAL",
        ScalarType.DECIMAL: "TEXT",  # exact decimal as string
        ScalarType.BOOL: "INTEGER",  # SQLite uses 0/1 for bool
        ScalarType.DATE: "TEXT",  # ISO format
        ScalarType.DATETIME: "TEXT",  # ISO format
        ScalarType.UUID: "TEXT",
        ScalarType.JSON: "TEXT",
    }
    return mapping.get(scalar_type, "TEXT")


def _field_type_to_sqlite(field_type: FieldType) -> str:
    """Convert FieldType to SQLite column type."""
    if field_type.kind == "scalar" and field_type.scalar_type:
        return _scalar_type_to_sqlite(field_type.scalar_type)
    return "TEXT"


def _is_json_column(field_type: FieldType | None) -> bool:
    if field_type is None:
        return False
    return field_type.kind == "ref" or field_type.scalar_type == ScalarType.JSON


def _python_to_sqlite(value: Any, field_type: FieldType | None = None) -> Any:
    """Convert Python value to SQLite-compatible value."""
    if value is None:
        return None
    if _is_json_column(field_type) or isinstance(value, dict | list):
        return json.dumps(value, sort_keys=True, default=str)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, bool):
        return 1 if value else 0
    return value


def _sqlite_to_python(value: Any, field_type: FieldType | None = None) -> Any:
    """Convert SQLite value to Python type based on field type."""
    if value is None or field_type is None:
        return value

    if _is_json_column(field_type):
        return json.loads(value)
    if field_type.kind == "scalar":
        scalar = field_type.scalar_type
        if scalar == ScalarType.DATETIME:
            return datetime.fromisoformat(value)
        elif scalar == ScalarType.DATE:
            return date.fromisoformat(value)
        elif scalar == ScalarType.DECIMAL:
            return Decimal(str(value))
        elif scalar == ScalarType.BOOL:
            return bool(value)
    return value


# =============================================================================
# Database Manager
# =============================================================================


class DatabaseManager:
    """
    Manages the SQLite database file and its schema.
    """

    def __init__(self, db_path: str | Path = ".dazzle/crud.db"):
        """
        Initialize the database manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """
        Get a database connection context manager.

        Commits on success, rolls back on error.
        """
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def create_table(self, entity: EntitySpec) -> None:
        """Create a table for an entity if it doesn't exist."""
        columns = ", ".join(self._build_column(f) for f in entity.fields)
        sql = f"CREATE TABLE IF NOT EXISTS {quote_identifier(entity.name)} ({columns})"
        with self.connection() as conn:
            conn.execute(sql)

    def _build_column(self, field: FieldSpec) -> str:
        """Build a single column definition."""
        parts = [quote_identifier(field.name), _field_type_to_sqlite(field.type)]
        if field.name == IDENTIFIER_FIELD:
            parts.append("PRIMARY KEY")
        elif field.required:
            parts.append("NOT NULL")
        return " ".join(parts)

    def create_all_tables(self, registry: EntityRegistry) -> None:
        """Create tables for every registered entity."""
        for entity in registry:
            self.create_table(entity)

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists."""
        with self.connection() as conn:
            cursor = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table_name,)
            )
            return cursor.fetchone() is not None

    def get_table_columns(self, table_name: str) -> list[str]:
        """Get column names for a table."""
        with self.connection() as conn:
            cursor = conn.execute(f"PRAGMA table_info({quote_identifier(table_name)})")
            return [row[1] for row in cursor.fetchall()]


# =============================================================================
# Store
# =============================================================================


class _NoMatch(Exception):
    """A criterion names a column the table does not have."""


class _Result:
    """Rows and rowcount captured before the connection closes."""

    def __init__(self, rows: list[sqlite3.Row] | None, rowcount: int):
        self.rows = rows
        self.rowcount = rowcount


class SQLiteStore(Store):
    """
    Store backed by SQLite.

    Each call opens its own connection; SQLite serializes writers.
    """

    def __init__(self, db_manager: DatabaseManager, registry: EntityRegistry):
        self.db = db_manager
        self.registry = registry
        self._field_types: dict[str, dict[str, FieldType]] = {
            entity.name: {f.name: f.type for f in entity.fields} for entity in registry
        }

    @classmethod
    def open(cls, db_path: str | Path, registry: EntityRegistry) -> SQLiteStore:
        """Open (and initialize) a database for the registry's entities."""
        db = DatabaseManager(db_path)
        db.create_all_tables(registry)
        return cls(db, registry)

    def _types(self, entity_name: str) -> dict[str, FieldType]:
        self.registry.get(entity_name)
        return self._field_types[entity_name]

    def _to_row(self, entity_name: str, data: Record) -> dict[str, Any]:
        types = self._types(entity_name)
        unknown = [k for k in data if k not in types]
        if unknown:
            raise InvalidInputError(
                f"Unknown field(s) for {entity_name}: {', '.join(sorted(unknown))}"
            )
        return {k: _python_to_sqlite(v, types[k]) for k, v in data.items()}

    def _from_row(self, entity_name: str, row: sqlite3.Row) -> Record:
        types = self._types(entity_name)
        return {k: _sqlite_to_python(row[k], types.get(k)) for k in row.keys()}

    def _where_clause(self, entity_name: str, where: Record | None) -> tuple[str, list[Any]]:
        if not where:
            return "", []
        types = self._types(entity_name)
        clauses: list[str] = []
        params: list[Any] = []
        for key, value in where.items():
            if key not in types:
                raise _NoMatch(key)
            col = quote_identifier(key)
            if value is None:
                clauses.append(f"{col} IS NULL")
            else:
                clauses.append(f"{col} = ?")
                params.append(_python_to_sqlite(value, types[key]))
        return " WHERE " + " AND ".join(clauses), params

    def _execute(self, sql: str, params: list[Any], entity_name: str) -> _Result:
        start = time.perf_counter()
        try:
            with self.db.connection() as conn:
                cursor = conn.execute(sql, params)
                rows = cursor.fetchall() if cursor.description else None
                rowcount = cursor.rowcount
        except sqlite3.IntegrityError as exc:
            ctype, field = _parse_constraint_error(exc)
            if ctype == "unique":
                msg = (
                    f"A {entity_name} with this {field} already exists"
                    if field
                    else f"Duplicate value violates unique constraint on {entity_name}"
                )
            elif ctype == "not_null":
                msg = f"Field '{field}' is required on {entity_name}"
            else:
                msg = f"Integrity constraint violated on {entity_name}: {exc}"
            raise ConstraintViolationError(msg, field=field, constraint_type=ctype) from exc
        latency_ms = (time.perf_counter() - start) * 1000
        log_with_context(
            logger,
            logging.DEBUG,
            sql.split(" ", 1)[0].lower(),
            table=entity_name,
            latency_ms=round(latency_ms, 3),
        )
        return _Result(rows, rowcount)

    async def find(self, entity_name: str, where: Record | None) -> list[Record] | None:
        try:
            clause, params = self._where_clause(entity_name, where)
        except _NoMatch:
            return []
        sql = f"SELECT * FROM {quote_identifier(entity_name)}{clause} ORDER BY rowid"
        result = self._execute(sql, params, entity_name)
        return [self._from_row(entity_name, row) for row in result.rows or []]

    async def find_one(self, entity_name: str, where: Record | None) -> Record | None:
        try:
            clause, params = self._where_clause(entity_name, where)
        except _NoMatch:
            return None
        sql = f"SELECT * FROM {quote_identifier(entity_name)}{clause} ORDER BY rowid LIMIT 1"
        result = self._execute(sql, params, entity_name)
        if not result.rows:
            return None
        return self._from_row(entity_name, result.rows[0])

    async def create(self, entity_name: str, data: Record) -> Record:
        record = {**data, IDENTIFIER_FIELD: new_id()}
        row = self._to_row(entity_name, record)
        columns = ", ".join(quote_identifier(k) for k in row)
        placeholders = ", ".join("?" for _ in row)
        sql = f"INSERT INTO {quote_identifier(entity_name)} ({columns}) VALUES ({placeholders})"
        self._execute(sql, list(row.values()), entity_name)
        created = await self.find_one(entity_name, {IDENTIFIER_FIELD: record[IDENTIFIER_FIELD]})
        return created if created is not None else record

    async def update(
        self,
        entity_name: str,
        where: Record | None,
        data: Record,
        upsert: bool = False,
    ) -> bool:
        changes = {k: v for k, v in data.items() if k != IDENTIFIER_FIELD}
        try:
            clause, params = self._where_clause(entity_name, where)
        except _NoMatch:
            clause = None

        matched = 0
        if clause is not None:
            if changes:
                row = self._to_row(entity_name, changes)
                set_clause = ", ".join(f"{quote_identifier(k)} = ?" for k in row)
                sql = f"UPDATE {quote_identifier(entity_name)} SET {set_clause}{clause}"
                matched = self._execute(sql, [*row.values(), *params], entity_name).rowcount
            else:
                matched = len(await self.find(entity_name, where) or [])

        if matched > 0:
            return True
        if not upsert:
            return False

        seed = {k: v for k, v in {**(where or {}), **changes}.items() if k != IDENTIFIER_FIELD}
        await self.create(entity_name, seed)
        return True

    async def remove(self, entity_name: str, where: Record | None) -> bool:
        try:
            clause, params = self._where_clause(entity_name, where)
        except _NoMatch:
            return False
        sql = f"DELETE FROM {quote_identifier(entity_name)}{clause}"
        return self._execute(sql, params, entity_name).rowcount > 0

