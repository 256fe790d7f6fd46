"""
Pydantic models for API requests and responses.

Request models document and validate bodies sent by clients. ``POST /events``
is the exception: its handler reads the raw body so it can tell an absent
``payload`` from ``"payload": null``; :class:`CreateEventRequest` only feeds
the generated OpenAPI schema for that route.
"""

from typing import Any

from pydantic import BaseModel, Field

# ============================================================================
# REQUEST MODELS (Client → Server)
# ============================================================================


class CreateEventRequest(BaseModel):
    """
    Body of ``POST /events``.

    Attributes:
        id: Optional caller-chosen primary key. Trimmed; must be non-empty.
            Generated (UUID v4) when omitted.
        payload: Any JSON value. Required, but may be ``{}`` or ``null``.
    """

    id: str | None = Field(default=None, examples=["evt_123"])
    payload: Any = Field(examples=[{"type": "user.signup", "user_id": "user_42"}])


class EventQueryRequest(BaseModel):
    """
    Body of ``POST /events/query``.

    Attributes:
        sql: A single read-only ``SELECT`` statement.
        params: Positional values bound to ``?`` placeholders.
    """

    sql: str = Field(examples=["SELECT id, ts FROM events WHERE ts > ? ORDER BY ts DESC"])
    params: list[str | int | float | bool | None] | None = Field(
        default=None, examples=[["2026-01-01T00:00:00.000Z"]]
    )


# ============================================================================
# RESPONSE MODELS (Server → Client)
# ============================================================================


class CreateEventResponse(BaseModel):
    """
    Result of a successful append.

    Attributes:
        success: Always True.
        id: Stored event id.
        pointers: Blob keys written for this event; omitted when nothing
            was offloaded.
    """

    success: bool = True
    id: str
    pointers: dict[str, str] | None = None


class Event(BaseModel):
    """One ledger event with its payload decoded."""

    id: str
    ts: str
    payload: Any = None


class EventsResponse(BaseModel):
    """Events ordered by ``ts`` descending."""

    events: list[Event]


class QueryMeta(BaseModel):
    """Execution statistics for an ad-hoc query."""

    rows_read: int
    duration_ms: float


class EventQueryResponse(BaseModel):
    """Rows returned by an ad-hoc query."""

    results: list[dict[str, Any]]
    meta: QueryMeta


class ErrorResponse(BaseModel):
    """Error body shared by every failing route."""

    error: str
    deprecated: bool | None = None


class HealthResponse(BaseModel):
    """Liveness check result."""

    status: str
    database: str
    blob_storage: str
