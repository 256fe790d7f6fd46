"""Domain exceptions raised by the ledger services.

Every exception carries the HTTP status the API boundary maps it to, so the
single exception handler in :mod:`event_ledger.api.server` can render
``{"error": message}`` without knowing about individual error types.

Adapter-level failures (:mod:`event_ledger.db.errors`,
:mod:`event_ledger.blob`) are translated into these types by the services;
they never reach the HTTP layer directly.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base exception for ledger service failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Missing or malformed client input."""

    status_code = 400


class MalformedBodyError(ValidationError):
    """Request body is not a parseable JSON object."""


class ConflictError(LedgerError):
    """An event with the requested id already exists."""

    status_code = 409

    def __init__(self, event_id: str, message: str = "Event with this id already exists") -> None:
        super().__init__(message)
        self.event_id = event_id


class NotFoundError(LedgerError):
    """Lookup by key found nothing."""

    status_code = 404


class StoreError(LedgerError):
    """Backing row store or blob store failed."""

    status_code = 500


class UnauthorizedError(LedgerError):
    """Missing or wrong API key."""

    status_code = 401


class GoneError(LedgerError):
    """Route belongs to a retired API surface."""

    status_code = 410
