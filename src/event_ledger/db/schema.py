"""Schema creation for the SQLite backend.

The ledger has a single table. ``payload`` carries a ``json_valid`` check so
that text which did not come through the payload codec is refused by the
storage layer itself.
"""

from __future__ import annotations

import sqlite3

from event_ledger.db.connection import connection_scope

EVENTS_TABLE_STATEMENT = """
    CREATE TABLE IF NOT EXISTS events (
        id TEXT PRIMARY KEY,
        ts TEXT NOT NULL,
        payload TEXT NOT NULL CHECK (json_valid(payload))
    )
"""

# Scans always order by ts and filter on ts ranges.
INDEX_STATEMENTS = ("CREATE INDEX IF NOT EXISTS idx_events_ts ON events(ts)",)


def create_schema(conn: sqlite3.Connection) -> None:
    """Create the events table and its indexes if they do not exist."""
    cursor = conn.cursor()
    cursor.execute(EVENTS_TABLE_STATEMENT)
    for statement in INDEX_STATEMENTS:
        cursor.execute(statement)


def init_database() -> None:
    """Initialize the SQLite database file and schema.

    Safe to call repeatedly; every statement is idempotent.

    Side Effects:
        - Creates the database file (and its parent directory) if missing.
        - Creates the ``events`` table and ``idx_events_ts`` index.
    """
    with connection_scope(write=True) as conn:
        create_schema(conn)
