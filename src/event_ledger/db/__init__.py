"""SQLite persistence for the event ledger."""
