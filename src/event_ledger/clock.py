"""Server-side timestamps for ledger rows.

Every stored ``ts`` is produced by :func:`utc_now_iso`: UTC, millisecond
precision and a ``Z`` suffix (``2026-01-02T03:04:05.678Z``). Strings in this
shape sort lexicographically in time order, which the ``after``/``before``
filters rely on.
"""

from __future__ import annotations

from datetime import UTC, datetime


def format_timestamp(moment: datetime) -> str:
    """Render an aware datetime in the canonical ledger timestamp shape."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    """Return the current UTC time as a canonical ledger timestamp."""
    return format_timestamp(datetime.now(UTC))


def is_iso_timestamp(value: str) -> bool:
    """Return True when ``value`` parses as an ISO-8601 date or datetime.

    Accepts the ``Z`` suffix, explicit offsets and date-only values such as
    ``"2026-01-02"``.
    """
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        datetime.fromisoformat(value.strip())
    except ValueError:
        return False
    return True
