"""Health and root endpoints."""

import logging

from fastapi import APIRouter

from event_ledger import __version__
from event_ledger.api.models import HealthResponse
from event_ledger.blob import BlobStore
from event_ledger.db.errors import DatabaseError
from event_ledger.db.store import EventStore

logger = logging.getLogger(__name__)


def router(store: EventStore, blob_store: BlobStore | None) -> APIRouter:
    """Build the health router around the active adapters."""
    api = APIRouter(tags=["health"])

    @api.get("/")
    def root():
        """API identity and installed package version."""
        return {"message": "Event Ledger API", "version": __version__}

    @api.get("/health", response_model=HealthResponse)
    def health_check():
        """Liveness check; probes the row store with a trivial read."""
        try:
            store.raw_query("SELECT 1", [])
            database = "ok"
        except DatabaseError:
            logger.warning("Health check could not read the database", exc_info=True)
            database = "error"
        return HealthResponse(
            status="ok" if database == "ok" else "degraded",
            database=database,
            blob_storage="enabled" if blob_store is not None else "disabled",
        )

    return api
