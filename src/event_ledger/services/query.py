"""Event reads: filtered scans and the restricted ad-hoc query path.

Ad-hoc query policy
-------------------
A statement is accepted only when, after trimming and lower-casing, it starts
with ``select`` and contains none of :data:`FORBIDDEN_KEYWORDS` anywhere in
its text. This is a substring screen, not a parser: it rejects harmless
statements that merely mention a blocked word (a column called
``created_at`` contains ``create``) and cannot see through every
obfuscation. The store runs accepted statements on a read-only SQLite
connection, so anything the screen misses is still refused by the database.
"""

from __future__ import annotations

import logging
from typing import Any

from event_ledger.clock import is_iso_timestamp
from event_ledger.codec import decode_payload
from event_ledger.db.constants import DEFAULT_SCAN_LIMIT, MAX_SCAN_LIMIT
from event_ledger.db.errors import DatabaseError, DatabaseQueryError
from event_ledger.db.store import EventStore
from event_ledger.db.types import EventFilters, EventRecord
from event_ledger.errors import NotFoundError, StoreError, ValidationError

logger = logging.getLogger(__name__)

FORBIDDEN_KEYWORDS = (
    "insert",
    "update",
    "delete",
    "drop",
    "alter",
    "create",
    "truncate",
    "replace",
)

_SCALAR_TYPES = (str, int, float, bool, type(None))


def check_read_only_statement(sql: Any) -> str:
    """Apply the ad-hoc query policy and return the trimmed statement.

    Raises:
        ValidationError: Empty or non-string input, a statement that does not
            start with ``select``, or one containing a forbidden keyword.
    """
    if not isinstance(sql, str) or not sql.strip():
        raise ValidationError("sql must be a non-empty string")

    statement = sql.strip()
    normalized = statement.lower()
    if not normalized.startswith("select"):
        raise ValidationError("Only SELECT queries are allowed")

    for keyword in FORBIDDEN_KEYWORDS:
        if keyword in normalized:
            raise ValidationError(f"Query contains forbidden keyword: {keyword.upper()}")

    return statement


def check_query_params(params: Any) -> list[Any]:
    """Return ``params`` as a list of scalars for positional binding.

    ``None`` means no parameters.

    Raises:
        ValidationError: ``params`` is not a list, or holds an object/array.
    """
    if params is None:
        return []
    if not isinstance(params, list):
        raise ValidationError("params must be an array")
    for index, value in enumerate(params):
        if not isinstance(value, _SCALAR_TYPES):
            raise ValidationError(f"params[{index}] must be a string, number, boolean or null")
    return list(params)


def parse_limit(raw: Any, *, default: int = DEFAULT_SCAN_LIMIT, max_limit: int = MAX_SCAN_LIMIT) -> int:
    """Parse a ``limit`` query value and clamp it to ``max_limit``.

    Raises:
        ValidationError: The value is not a positive integer.
    """
    if raw is None or raw == "":
        return min(default, max_limit)
    if isinstance(raw, bool):
        raise ValidationError("limit must be a positive integer")
    try:
        value = int(raw.strip()) if isinstance(raw, str) else int(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError("limit must be a positive integer") from exc
    if value <= 0:
        raise ValidationError("limit must be a positive integer")
    return min(value, max_limit)


def serialize_event(record: EventRecord) -> dict[str, Any]:
    """Return the client-facing ``{id, ts, payload}`` form of a stored row."""
    return {
        "id": record.id,
        "ts": record.ts,
        "payload": decode_payload(record.payload_text),
    }


class EventQueryService:
    """Read paths over an :class:`EventStore`."""

    def __init__(
        self,
        store: EventStore,
        *,
        default_limit: int = DEFAULT_SCAN_LIMIT,
        max_limit: int = MAX_SCAN_LIMIT,
    ) -> None:
        self.store = store
        self.default_limit = default_limit
        self.max_limit = max_limit

    def list_events(
        self,
        *,
        event_id: str | None = None,
        after: str | None = None,
        before: str | None = None,
        limit: Any = None,
    ) -> list[dict[str, Any]]:
        """Return events matching every supplied filter, newest first.

        Empty-string filters are treated as absent.

        Raises:
            ValidationError: Bad ``limit``, ``after`` or ``before``.
            StoreError: The store read failed.
        """
        parsed_limit = parse_limit(limit, default=self.default_limit, max_limit=self.max_limit)

        if after and not is_iso_timestamp(after):
            raise ValidationError("after must be a valid ISO timestamp")
        if before and not is_iso_timestamp(before):
            raise ValidationError("before must be a valid ISO timestamp")

        filters = EventFilters(
            id=event_id or None,
            after=after or None,
            before=before or None,
            limit=parsed_limit,
        )
        try:
            records = self.store.scan(filters)
        except DatabaseError as exc:
            logger.error("Event scan failed for %r", filters, exc_info=True)
            raise StoreError("Failed to fetch events") from exc

        return [serialize_event(record) for record in records]

    def get_event(self, event_id: str) -> dict[str, Any]:
        """Return one event by id.

        Raises:
            NotFoundError: No event has this id.
            StoreError: The store read failed.
        """
        try:
            record = self.store.get(event_id)
        except DatabaseError as exc:
            logger.error("Event lookup failed for %s", event_id, exc_info=True)
            raise StoreError("Failed to fetch event") from exc
        if record is None:
            raise NotFoundError("Event not found")
        return serialize_event(record)

    def run_query(self, sql: Any, params: Any = None) -> dict[str, Any]:
        """Run one screened read-only statement.

        Returns:
            ``{"results": [...], "meta": {"rows_read": n, "duration_ms": t}}``

        Raises:
            ValidationError: The statement or parameters break the policy, or
                SQLite rejects the statement.
            StoreError: The database could not be read.
        """
        try:
            statement = check_read_only_statement(sql)
        except ValidationError as exc:
            logger.warning("Rejected ad-hoc query: %s", exc.message)
            raise
        bound = check_query_params(params)

        try:
            result = self.store.raw_query(statement, bound)
        except DatabaseQueryError as exc:
            raise ValidationError(f"Query failed: {exc.context.details}") from exc
        except DatabaseError as exc:
            logger.error("Ad-hoc query failed", exc_info=True)
            raise StoreError("Failed to run query") from exc

        return {
            "results": result.rows,
            "meta": {"rows_read": result.rows_read, "duration_ms": result.duration_ms},
        }
