"""Row-store adapter consumed by the ledger services.

Services depend on the :class:`EventStore` protocol rather than on
``events_repo`` directly, so tests and alternative backends can hand in any
object with the same four methods.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from event_ledger.db import events_repo
from event_ledger.db.constants import MAX_SCAN_LIMIT
from event_ledger.db.types import EventFilters, EventRecord, RawQueryResult


class EventStore(Protocol):
    """Durable append-only event table."""

    def insert(self, event_id: str, ts: str, payload_text: str) -> None: ...

    def scan(self, filters: EventFilters) -> list[EventRecord]: ...

    def get(self, event_id: str) -> EventRecord | None: ...

    def raw_query(self, sql: str, params: Sequence[Any]) -> RawQueryResult: ...


class SQLiteEventStore:
    """:class:`EventStore` backed by the configured SQLite database.

    Every call opens and closes its own connection, so one instance can be
    shared by concurrent requests.
    """

    def __init__(self, *, max_limit: int = MAX_SCAN_LIMIT) -> None:
        self.max_limit = max_limit

    def insert(self, event_id: str, ts: str, payload_text: str) -> None:
        events_repo.insert_event(event_id, ts, payload_text)

    def scan(self, filters: EventFilters) -> list[EventRecord]:
        return events_repo.scan_events(filters, max_limit=self.max_limit)

    def get(self, event_id: str) -> EventRecord | None:
        return events_repo.get_event(event_id)

    def raw_query(self, sql: str, params: Sequence[Any]) -> RawQueryResult:
        return events_repo.run_read_query(sql, params)
