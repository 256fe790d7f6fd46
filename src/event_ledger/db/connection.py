"""SQLite connection primitives for the ledger DB layer.

This module owns connection creation and low-level SQLite runtime pragmas so
repository code can stay focused on queries and transaction intent.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


def get_db_path() -> Path:
    """Resolve the absolute SQLite database path from runtime configuration."""
    from event_ledger.config import config

    return config.database.absolute_path


def configure_connection(connection: sqlite3.Connection) -> sqlite3.Connection:
    """Apply connection-level SQLite pragmas required by the application.

    Notes:
        - ``busy_timeout`` makes concurrent writers wait for the write lock
          instead of failing immediately; duplicate-id races are then settled
          by the primary key rather than by lock contention.
    """
    connection.execute("PRAGMA busy_timeout = 5000")
    return connection


def get_connection(*, read_only: bool = False) -> sqlite3.Connection:
    """Create and configure a new SQLite connection.

    Args:
        read_only: Open the database through a ``mode=ro`` URI. SQLite then
            refuses every write at the storage layer, whatever the SQL text.
    """
    db_path = get_db_path()
    if read_only:
        connection = sqlite3.connect(f"{db_path.as_uri()}?mode=ro", uri=True)
    else:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(str(db_path))
    return configure_connection(connection)


@contextmanager
def connection_scope(*, write: bool = False, read_only: bool = False) -> Iterator[sqlite3.Connection]:
    """Yield a configured connection with guaranteed cleanup semantics.

    Args:
        write: When True, commit on success and rollback on exceptions.
        read_only: Open the connection in SQLite read-only mode.

    Yields:
        Configured SQLite connection ready for cursor operations.

    Behavior:
        - Always closes the connection in ``finally``.
        - For write scopes, commits at the end of a successful block.
        - For write scopes, attempts rollback before re-raising failures.
    """
    connection = get_connection(read_only=read_only)
    try:
        yield connection
        if write:
            connection.commit()
    except Exception:
        if write:
            try:
                connection.rollback()
            except sqlite3.Error:
                # Preserve the original exception while best-effort rolling back.
                pass
        raise
    finally:
        connection.close()
