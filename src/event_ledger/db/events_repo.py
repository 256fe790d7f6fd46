"""Event repository operations for the SQLite backend.

The ``events`` table is append-only: this module exposes an insert, two
reads, and an ad-hoc read-only query. There is no update or delete
path.
"""

from __future__ import annotations

import sqlite3
import time
from collections.abc import Sequence
from typing import Any, NoReturn

from event_ledger.db.connection import connection_scope
from event_ledger.db.constants import DEFAULT_SCAN_LIMIT, MAX_SCAN_LIMIT
from event_ledger.db.errors import (
    DatabaseConflictError,
    DatabaseError,
    DatabaseOperationContext,
    DatabaseQueryError,
    DatabaseReadError,
    DatabaseWriteError,
)
from event_ledger.db.types import EventFilters, EventRecord, RawQueryResult

# SQLite reports statement-level problems (syntax errors, unknown tables,
# multiple statements, writes on a read-only connection) with these types.
# OverflowError and UnicodeEncodeError come from binding an integer wider than
# 64 bits or text holding lone surrogates.
_STATEMENT_ERRORS = (
    sqlite3.OperationalError,
    sqlite3.ProgrammingError,
    sqlite3.Warning,
    OverflowError,
    UnicodeEncodeError,
)


def _raise_read_error(operation: str, exc: Exception, *, details: str | None = None) -> NoReturn:
    """Raise a typed repository read error while preserving chained cause."""
    if isinstance(exc, DatabaseError):
        raise exc
    raise DatabaseReadError(
        context=DatabaseOperationContext(operation=operation, details=details),
        cause=exc,
    ) from exc


def _raise_write_error(operation: str, exc: Exception, *, details: str | None = None) -> NoReturn:
    """Raise a typed repository write error while preserving chained cause."""
    if isinstance(exc, DatabaseError):
        raise exc
    raise DatabaseWriteError(
        context=DatabaseOperationContext(operation=operation, details=details),
        cause=exc,
    ) from exc


def _is_primary_key_violation(exc: sqlite3.IntegrityError) -> bool:
    """Return True when ``exc`` was raised by the ``events.id`` uniqueness check."""
    if getattr(exc, "sqlite_errorname", None) == "SQLITE_CONSTRAINT_PRIMARYKEY":
        return True
    return "UNIQUE constraint failed" in str(exc)


def _json_row(row: sqlite3.Row) -> dict[str, Any]:
    """Return ``row`` as a dict of JSON-safe values; BLOB columns become hex text."""
    return {
        key: value.hex() if isinstance(value, bytes) else value
        for key, value in zip(row.keys(), row)
    }


def clamp_limit(limit: int | None, *, max_limit: int = MAX_SCAN_LIMIT) -> int:
    """Return a usable scan limit: default when unset, never above ``max_limit``."""
    if limit is None:
        return min(DEFAULT_SCAN_LIMIT, max_limit)
    return max(1, min(int(limit), max_limit))


def insert_event(event_id: str, ts: str, payload_text: str) -> None:
    """Append one event row.

    Raises:
        DatabaseConflictError: If a row with ``event_id`` already exists.
        DatabaseWriteError: On any other SQLite failure, including a
            ``json_valid`` check rejection.
    """
    try:
        with connection_scope(write=True) as conn:
            conn.execute(
                "INSERT INTO events (id, ts, payload) VALUES (?, ?, ?)",
                (event_id, ts, payload_text),
            )
    except sqlite3.IntegrityError as exc:
        if _is_primary_key_violation(exc):
            raise DatabaseConflictError(
                context=DatabaseOperationContext(
                    operation="events.insert_event",
                    details=f"duplicate id {event_id!r}",
                ),
                cause=exc,
            ) from exc
        _raise_write_error("events.insert_event", exc, details=f"id={event_id!r}")
    except Exception as exc:
        _raise_write_error("events.insert_event", exc, details=f"id={event_id!r}")


def scan_events(filters: EventFilters, *, max_limit: int = MAX_SCAN_LIMIT) -> list[EventRecord]:
    """Return events matching every supplied filter, newest first.

    ``after``/``before`` are exclusive and compared as strings, which is
    correct for the canonical ``...Z`` timestamps the ledger writes.
    """
    conditions: list[str] = []
    values: list[Any] = []

    if filters.id:
        conditions.append("id = ?")
        values.append(filters.id)
    if filters.after:
        conditions.append("ts > ?")
        values.append(filters.after)
    if filters.before:
        conditions.append("ts < ?")
        values.append(filters.before)

    query = "SELECT id, ts, payload FROM events"
    if conditions:
        query += " WHERE " + " AND ".join(conditions)
    query += " ORDER BY ts DESC, id DESC LIMIT ?"
    values.append(clamp_limit(filters.limit, max_limit=max_limit))

    try:
        with connection_scope() as conn:
            rows = conn.execute(query, values).fetchall()
    except Exception as exc:
        _raise_read_error("events.scan_events", exc, details=repr(filters))

    return [EventRecord(id=row[0], ts=row[1], payload_text=row[2]) for row in rows]


def get_event(event_id: str) -> EventRecord | None:
    """Return one event by id, or ``None`` when it does not exist."""
    try:
        with connection_scope() as conn:
            row = conn.execute(
                "SELECT id, ts, payload FROM events WHERE id = ?",
                (event_id,),
            ).fetchone()
    except Exception as exc:
        _raise_read_error("events.get_event", exc, details=f"id={event_id!r}")

    if row is None:
        return None
    return EventRecord(id=row[0], ts=row[1], payload_text=row[2])


def run_read_query(sql: str, params: Sequence[Any] = ()) -> RawQueryResult:
    """Execute one caller-supplied statement on a read-only connection.

    The connection is opened with ``mode=ro`` so SQLite itself refuses any
    write, independent of the keyword screening done by the query service.

    Raises:
        DatabaseQueryError: The statement itself was rejected by SQLite.
        DatabaseReadError: The database could not be opened or read.
    """
    try:
        with connection_scope(read_only=True) as conn:
            conn.row_factory = sqlite3.Row
            started = time.perf_counter()
            try:
                cursor = conn.execute(sql, tuple(params))
                rows = [_json_row(row) for row in cursor.fetchall()]
            except _STATEMENT_ERRORS as exc:
                raise DatabaseQueryError(
                    context=DatabaseOperationContext(
                        operation="events.run_read_query",
                        details=str(exc),
                    ),
                    cause=exc,
                ) from exc
            duration_ms = (time.perf_counter() - started) * 1000.0
    except Exception as exc:
        _raise_read_error("events.run_read_query", exc)

    return RawQueryResult(rows=rows, rows_read=len(rows), duration_ms=round(duration_ms, 3))
