"""HTTP API for the event ledger."""
