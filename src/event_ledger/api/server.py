"""
FastAPI application for the event ledger.

:func:`create_app` wires configuration, storage adapters, services, CORS,
exception handlers and routes into one application. Adapters may be injected
(tests hand in a temp-database store and an in-memory blob store); otherwise
they are built from ``config``:

- ``SQLiteEventStore`` over ``database.path``; the schema is created on
  startup.
- ``FilesystemBlobStore`` under ``blob.root`` when ``blob.enabled`` is true,
  otherwise no blob store (inline-only mode).

The module-level ``app`` is what ``uvicorn event_ledger.api.server:app``
serves.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from event_ledger import __version__
from event_ledger.api.exception_handlers import register_exception_handlers
from event_ledger.api.routes import register_routes
from event_ledger.blob import BlobStore, FilesystemBlobStore
from event_ledger.config import ServerConfig, config
from event_ledger.db.schema import init_database
from event_ledger.db.store import EventStore, SQLiteEventStore
from event_ledger.services import EventIngestor, EventQueryService

logger = logging.getLogger(__name__)


def create_app(
    *,
    store: EventStore | None = None,
    blob_store: BlobStore | None = None,
    cfg: ServerConfig | None = None,
) -> FastAPI:
    """
    Build a configured application.

    Args:
        store: Row store. Defaults to SQLite at the configured path.
        blob_store: Blob backend. Defaults to the filesystem store when
            blob storage is enabled, else none.
        cfg: Configuration. Defaults to the process-wide ``config``.
    """
    cfg = cfg or config
    owns_store = store is None

    if store is None:
        store = SQLiteEventStore(max_limit=cfg.query.max_limit)
    if blob_store is None and cfg.blob.enabled:
        blob_store = FilesystemBlobStore(cfg.blob.absolute_root)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if owns_store:
            init_database()
        yield

    docs_enabled = cfg.docs_should_be_enabled
    app = FastAPI(
        title="Event Ledger",
        version=__version__,
        description="Append-only event ledger with optional blob offload.",
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.security.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app, verbose_errors=cfg.features.verbose_errors)

    if not cfg.security.api_key:
        logger.warning("No API key configured; all routes are unauthenticated")

    ingestor = EventIngestor(
        store,
        blob_store,
        offload_field=cfg.blob.offload_field,
        inline_max_bytes=cfg.blob.inline_max_bytes,
    )
    query_service = EventQueryService(
        store,
        default_limit=cfg.query.default_limit,
        max_limit=cfg.query.max_limit,
    )
    register_routes(
        app,
        store=store,
        ingestor=ingestor,
        query_service=query_service,
        blob_store=blob_store,
        api_key=cfg.security.api_key,
    )
    return app


app = create_app()


def start_server(host: str | None = None, port: int | None = None) -> None:
    """Configure logging and serve ``app`` with uvicorn."""
    import uvicorn

    from event_ledger.logging_config import configure_logging

    configure_logging()
    host = host or config.server.host
    port = port or config.server.port
    logger.info("Starting event ledger on %s:%s", host, port)
    uvicorn.run(app, host=host, port=port, log_config=None)
