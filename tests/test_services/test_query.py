"""Tests for event reads and the ad-hoc query policy (event_ledger/services/query.py)."""

import logging

import pytest

from event_ledger.db.errors import DatabaseOperationContext, DatabaseReadError
from event_ledger.db.store import SQLiteEventStore
from event_ledger.db.types import EventRecord
from event_ledger.errors import NotFoundError, StoreError, ValidationError
from event_ledger.services import EventQueryService, check_read_only_statement
from event_ledger.services.query import check_query_params, parse_limit, serialize_event


class _BrokenStore:
    """Row store whose every read fails."""

    def _fail(self, *args, **kwargs):
        raise DatabaseReadError(context=DatabaseOperationContext(operation="events.read"))

    scan = get = raw_query = _fail


@pytest.fixture
def service(test_db) -> EventQueryService:
    return EventQueryService(SQLiteEventStore())


@pytest.fixture
def seeded(seed_event):
    seed_event("evt_a", "2026-01-01T00:00:00.000Z", {"type": "a"})
    seed_event("evt_b", "2026-01-02T00:00:00.000Z", {"type": "b"})
    seed_event("evt_c", "2026-01-03T00:00:00.000Z", {"type": "c"})


# ============================================================================
# STATEMENT POLICY
# ============================================================================


@pytest.mark.unit
@pytest.mark.parametrize(
    "sql",
    [
        "SELECT * FROM events",
        "  select id from events  ",
        "SeLeCt COUNT(*) AS n FROM events WHERE ts > ?",
    ],
)
def test_select_statements_are_accepted(sql):
    assert check_read_only_statement(sql) == sql.strip()


@pytest.mark.unit
@pytest.mark.parametrize("sql", ["", "   ", None, 42])
def test_empty_or_non_string_sql_is_rejected(sql):
    with pytest.raises(ValidationError, match="sql must be a non-empty string"):
        check_read_only_statement(sql)


@pytest.mark.unit
@pytest.mark.parametrize(
    "sql",
    ["DELETE FROM events", "WITH x AS (SELECT 1) SELECT * FROM x", "PRAGMA table_info(events)"],
)
def test_non_select_statements_are_rejected(sql):
    with pytest.raises(ValidationError, match="Only SELECT queries are allowed"):
        check_read_only_statement(sql)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("sql", "keyword"),
    [
        ("SELECT * FROM events; DROP TABLE events", "DROP"),
        ("SELECT * FROM events; delete from events", "DELETE"),
        ("SELECT 1; INSERT INTO events VALUES (1)", "INSERT"),
        ("SELECT replace(id, 'a', 'b') FROM events", "REPLACE"),
    ],
)
def test_forbidden_keywords_are_rejected(sql, keyword):
    with pytest.raises(ValidationError, match=f"Query contains forbidden keyword: {keyword}"):
        check_read_only_statement(sql)


@pytest.mark.unit
def test_keyword_screen_matches_substrings():
    """Column names containing a blocked word are rejected too."""
    with pytest.raises(ValidationError, match="CREATE"):
        check_read_only_statement("SELECT created_at FROM events")


@pytest.mark.unit
def test_query_params_must_be_a_list_of_scalars():
    assert check_query_params(None) == []
    assert check_query_params(["a", 1, 2.5, True, None]) == ["a", 1, 2.5, True, None]
    with pytest.raises(ValidationError, match="params must be an array"):
        check_query_params({"a": 1})
    with pytest.raises(ValidationError, match=r"params\[1\]"):
        check_query_params(["ok", {"nested": 1}])


# ============================================================================
# LIMIT PARSING
# ============================================================================


@pytest.mark.unit
@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, 100), ("", 100), ("10", 10), (" 7 ", 7), (10, 10), ("500", 500), ("501", 500), ("99999", 500)],
)
def test_parse_limit_defaults_and_clamps(raw, expected):
    assert parse_limit(raw) == expected


@pytest.mark.unit
@pytest.mark.parametrize("raw", ["0", "-5", "abc", "1.5", True, 0])
def test_parse_limit_rejects_non_positive_or_non_integer(raw):
    with pytest.raises(ValidationError, match="limit must be a positive integer"):
        parse_limit(raw)


# ============================================================================
# EVENT READS
# ============================================================================


@pytest.mark.unit
def test_serialize_event_decodes_payload_tolerantly():
    assert serialize_event(EventRecord("a", "t", '{"x":1}')) == {"id": "a", "ts": "t", "payload": {"x": 1}}
    assert serialize_event(EventRecord("a", "t", "{bad"))["payload"] == "{bad"


@pytest.mark.db
def test_list_events_newest_first(service, seeded):
    events = service.list_events()
    assert [e["id"] for e in events] == ["evt_c", "evt_b", "evt_a"]
    assert events[0] == {"id": "evt_c", "ts": "2026-01-03T00:00:00.000Z", "payload": {"type": "c"}}


@pytest.mark.db
def test_list_events_filters(service, seeded):
    assert [e["id"] for e in service.list_events(event_id="evt_b")] == ["evt_b"]
    assert [e["id"] for e in service.list_events(after="2026-01-01T00:00:00.000Z")] == ["evt_c", "evt_b"]
    assert [e["id"] for e in service.list_events(before="2026-01-02T00:00:00.000Z")] == ["evt_a"]
    assert [e["id"] for e in service.list_events(limit="1")] == ["evt_c"]
    assert service.list_events(event_id="missing") == []


@pytest.mark.db
def test_list_events_treats_empty_filters_as_absent(service, seeded):
    assert len(service.list_events(event_id="", after="", before="", limit="")) == 3


@pytest.mark.db
@pytest.mark.parametrize("field", ["after", "before"])
def test_list_events_rejects_invalid_bounds(service, field):
    with pytest.raises(ValidationError, match=f"{field} must be a valid ISO timestamp"):
        service.list_events(**{field: "not-a-date"})


@pytest.mark.db
def test_list_events_respects_configured_limits(test_db, seed_event):
    for i in range(5):
        seed_event(f"evt_{i}", f"2026-01-0{i + 1}T00:00:00.000Z", {})
    service = EventQueryService(SQLiteEventStore(max_limit=3), default_limit=2, max_limit=3)

    assert len(service.list_events()) == 2
    assert len(service.list_events(limit="100")) == 3


@pytest.mark.db
def test_get_event_found_and_missing(service, seeded):
    assert service.get_event("evt_a")["payload"] == {"type": "a"}
    with pytest.raises(NotFoundError, match="Event not found"):
        service.get_event("missing")


@pytest.mark.unit
def test_store_failures_map_to_store_error():
    service = EventQueryService(_BrokenStore())
    with pytest.raises(StoreError, match="Failed to fetch events"):
        service.list_events()
    with pytest.raises(StoreError, match="Failed to fetch event"):
        service.get_event("evt_a")
    with pytest.raises(StoreError, match="Failed to run query"):
        service.run_query("SELECT 1")


# ============================================================================
# AD-HOC QUERIES
# ============================================================================


@pytest.mark.db
def test_run_query_returns_results_and_meta(service, seeded):
    response = service.run_query(
        "SELECT id, json_extract(payload, '$.type') AS type FROM events WHERE ts >= ? ORDER BY ts",
        ["2026-01-02T00:00:00.000Z"],
    )

    assert response["results"] == [{"id": "evt_b", "type": "b"}, {"id": "evt_c", "type": "c"}]
    assert response["meta"]["rows_read"] == 2
    assert response["meta"]["duration_ms"] >= 0


@pytest.mark.db
def test_run_query_sqlite_errors_are_validation_errors(service):
    with pytest.raises(ValidationError, match="Query failed: .*no such table"):
        service.run_query("SELECT * FROM nope")


@pytest.mark.db
def test_run_query_logs_rejections(service, caplog):
    with caplog.at_level(logging.WARNING, logger="event_ledger.services.query"):
        with pytest.raises(ValidationError):
            service.run_query("DROP TABLE events")
    assert "Rejected ad-hoc query" in caplog.text
