"""Event Ledger Server.

An append-only HTTP ledger for structured event records. Events are written
once to a SQLite ``events`` table and never mutated; oversized payload bytes
may be off-loaded to a blob store and referenced by pointer.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
``server.py`` and ``health.py`` import ``__version__`` from here.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ---------------------------------------------------------------------------
# Package version, read from pyproject.toml via importlib.metadata.
#
# If the package is imported without being installed (for example straight
# from a source checkout), fall back to the last released version so the
# application can still start.
# ---------------------------------------------------------------------------
try:
    __version__: str = version("event-ledger")
except PackageNotFoundError:
    __version__ = "1.0.0"
