"""Shared database constants for the DB package."""

from __future__ import annotations

# Rows returned by an event scan when the caller gives no limit.
DEFAULT_SCAN_LIMIT = 100

# Hard ceiling on rows returned by one event scan. Larger requests are
# clamped to this value.
MAX_SCAN_LIMIT = 500
