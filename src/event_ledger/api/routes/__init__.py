"""API route modules."""

from event_ledger.api.routes.register import register_routes

__all__ = ["register_routes"]
