"""Shared DB-layer dataclasses for repository contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class EventRecord:
    """
    One row of the ``events`` table exactly as stored.

    Attributes:
        id: Primary key.
        ts: Server-assigned ISO-8601 UTC timestamp.
        payload_text: Payload JSON text as written by the codec.
    """

    id: str
    ts: str
    payload_text: str


@dataclass(frozen=True, slots=True)
class EventFilters:
    """
    Conjunctive filters for an event scan.

    ``after`` and ``before`` are exclusive bounds compared as strings against
    ``ts``. ``limit`` is clamped by the repository, never rejected.
    """

    id: str | None = None
    after: str | None = None
    before: str | None = None
    limit: int = 100


@dataclass(slots=True)
class RawQueryResult:
    """
    Result of an ad-hoc read-only statement.

    Attributes:
        rows: Result rows keyed by column name.
        rows_read: Number of rows returned.
        duration_ms: Wall-clock execution time in milliseconds.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    rows_read: int = 0
    duration_ms: float = 0.0
