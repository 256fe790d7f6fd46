"""
Route registration entry point for the FastAPI application.

Every router is mounted behind the API key dependency. FastAPI's own
``/docs`` and ``/openapi.json`` routes are not routers and stay open.
"""

from fastapi import Depends, FastAPI

from event_ledger.api.auth import build_api_key_dependency
from event_ledger.api.routes import blobs, deprecated, events, health
from event_ledger.blob import BlobStore
from event_ledger.db.store import EventStore
from event_ledger.services import EventIngestor, EventQueryService


def register_routes(
    app: FastAPI,
    *,
    store: EventStore,
    ingestor: EventIngestor,
    query_service: EventQueryService,
    blob_store: BlobStore | None,
    api_key: str | None,
) -> None:
    """Register all API routes with the FastAPI app."""
    guard = [Depends(build_api_key_dependency(api_key))]
    app.include_router(health.router(store, blob_store), dependencies=guard)
    app.include_router(events.router(ingestor, query_service), dependencies=guard)
    app.include_router(blobs.router(blob_store), dependencies=guard)
    app.include_router(deprecated.router, dependencies=guard)
