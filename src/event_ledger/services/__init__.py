"""Ledger services: event ingestion and event queries."""

from event_ledger.services.ingestion import EventIngestor, IngestResult, parse_json_body
from event_ledger.services.query import EventQueryService, check_read_only_statement

__all__ = [
    "EventIngestor",
    "EventQueryService",
    "IngestResult",
    "check_read_only_statement",
    "parse_json_body",
]
