"""Tests for id generation and server timestamps."""

import re
import uuid
from datetime import UTC, datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from event_ledger.clock import format_timestamp, is_iso_timestamp, utc_now_iso
from event_ledger.ids import generate_event_id

_CANONICAL_TS = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")

# ============================================================================
# ID GENERATION
# ============================================================================


@pytest.mark.unit
def test_generated_ids_are_version_4_uuids():
    event_id = generate_event_id()

    parsed = uuid.UUID(event_id)
    assert parsed.version == 4
    assert str(parsed) == event_id


@pytest.mark.unit
def test_generated_ids_are_distinct():
    ids = {generate_event_id() for _ in range(1000)}
    assert len(ids) == 1000


@pytest.mark.unit
def test_generation_falls_back_without_os_entropy():
    with patch("event_ledger.ids.uuid.uuid4", side_effect=NotImplementedError):
        event_id = generate_event_id()

    assert uuid.UUID(event_id).version == 4


# ============================================================================
# TIMESTAMPS
# ============================================================================


@pytest.mark.unit
def test_utc_now_iso_has_canonical_shape():
    assert _CANONICAL_TS.match(utc_now_iso())


@pytest.mark.unit
def test_format_timestamp_converts_to_utc_with_millis():
    moment = datetime(2026, 1, 2, 5, 4, 5, 678901, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(moment) == "2026-01-02T03:04:05.678Z"


@pytest.mark.unit
def test_canonical_timestamps_sort_in_time_order():
    earlier = format_timestamp(datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC))
    later = format_timestamp(datetime(2026, 1, 2, 3, 4, 5, 1000, tzinfo=UTC))
    assert earlier < later


@pytest.mark.unit
@pytest.mark.parametrize(
    "value",
    ["2026-01-02T03:04:05.678Z", "2026-01-02T03:04:05+02:00", "2026-01-02", "2026-01-02T03:04"],
)
def test_is_iso_timestamp_accepts_iso_forms(value):
    assert is_iso_timestamp(value)


@pytest.mark.unit
@pytest.mark.parametrize("value", ["", "  ", "yesterday", "2026-13-40", "1767323045678", None])
def test_is_iso_timestamp_rejects_garbage(value):
    assert not is_iso_timestamp(value)
