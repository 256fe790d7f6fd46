"""API tests for health, blob and retired routes, plus app-level behaviour."""

import pytest

from event_ledger.api.server import create_app
from event_ledger.config import ServerConfig
from event_ledger.db.store import SQLiteEventStore

# ============================================================================
# HEALTH
# ============================================================================


@pytest.mark.api
def test_health_reports_database_and_blob_state(test_client, blob_client):
    assert test_client.get("/health").json() == {
        "status": "ok",
        "database": "ok",
        "blob_storage": "disabled",
    }
    assert blob_client.get("/health").json()["blob_storage"] == "enabled"


@pytest.mark.api
def test_health_degraded_without_database(temp_db_path):
    from fastapi.testclient import TestClient

    client = TestClient(create_app(store=SQLiteEventStore(), cfg=ServerConfig()))
    body = client.get("/health").json()

    assert body["status"] == "degraded"
    assert body["database"] == "error"


# ============================================================================
# BLOB OFFLOAD OVER HTTP
# ============================================================================


@pytest.mark.api
def test_payload_data_is_offloaded_to_blob_store(blob_client, blob_store):
    response = blob_client.post(
        "/events",
        json={
            "id": "evt_blob",
            "payload": {"type": "report.generated", "data": {"rows": [1, 2, 3]}},
        },
    )

    assert response.status_code == 201
    pointer = response.json()["pointers"]["data"]
    assert pointer.startswith("results/report.generated/")
    assert pointer.endswith(".json")

    stored = blob_client.get("/events/evt_blob").json()["payload"]
    assert "data" not in stored
    assert stored["data_pointer"] == pointer
    assert blob_store.get(pointer).data == b'{"rows":[1,2,3]}'


@pytest.mark.api
def test_blob_route_serves_stored_bytes(blob_client, blob_store):
    pointer = blob_client.post(
        "/events", json={"id": "evt_blob", "payload": {"data": {"k": "v"}}}
    ).json()["pointers"]["data"]

    response = blob_client.get(f"/blobs/{pointer}")

    assert response.status_code == 200
    assert response.content == b'{"k":"v"}'
    assert response.headers["content-type"].startswith("application/json")


@pytest.mark.api
def test_blob_route_missing_key(blob_client):
    response = blob_client.get("/blobs/results/missing.json")

    assert response.status_code == 404
    assert response.json() == {"error": "Blob not found: results/missing.json"}


@pytest.mark.api
def test_blob_route_disabled(test_client):
    response = test_client.get("/blobs/results/anything.json")

    assert response.status_code == 404
    assert response.json() == {"error": "Blob storage is disabled"}


@pytest.mark.api
def test_whole_payload_offload_over_http(make_client, blob_store):
    client = make_client(blob_store=blob_store, blob__inline_max_bytes=32)
    response = client.post("/events", json={"id": "evt_big", "payload": {"text": "y" * 100}})

    pointer = response.json()["pointers"]["payload"]
    assert pointer.endswith(".payload.json")
    assert client.get("/events/evt_big").json()["payload"]["payload_pointer"] == pointer
    assert client.get(f"/blobs/{pointer}").json() == {"text": "y" * 100}


@pytest.mark.api
def test_inline_mode_has_no_pointers(test_client):
    response = test_client.post("/events", json={"id": "evt_1", "payload": {"data": {"a": 1}}})

    assert response.json() == {"success": True, "id": "evt_1"}
    assert test_client.get("/events/evt_1").json()["payload"] == {"data": {"a": 1}}


# ============================================================================
# RETIRED JOB ROUTES
# ============================================================================


@pytest.mark.api
@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("GET", "/jobs"),
        ("POST", "/jobs"),
        ("GET", "/jobs/job_1"),
        ("GET", "/runs/run_1/wf_1/exec_1"),
        ("GET", "/runs/run_1/latest"),
        ("DELETE", "/executions/exec_1"),
        ("PUT", "/executions/exec_1/status"),
    ],
)
def test_retired_routes_return_gone(test_client, method, path):
    response = test_client.request(method, path)

    assert response.status_code == 410
    body = response.json()
    assert body["deprecated"] is True
    assert "/events" in body["error"]


# ============================================================================
# APP-LEVEL BEHAVIOUR
# ============================================================================


@pytest.mark.api
def test_unknown_route_uses_error_shape(test_client):
    response = test_client.get("/nope")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


@pytest.mark.api
def test_docs_can_be_disabled(make_client):
    client = make_client(security__docs_enabled="disabled")

    assert client.get("/docs").status_code == 404
    assert client.get("/openapi.json").status_code == 404


@pytest.mark.api
def test_production_hides_docs_in_auto_mode(make_client):
    client = make_client(security__production=True)
    assert client.get("/docs").status_code == 404


@pytest.mark.api
def test_openapi_documents_event_routes(test_client):
    paths = test_client.get("/openapi.json").json()["paths"]

    assert {"/events", "/events/{event_id}", "/events/query", "/health"} <= set(paths)
    assert "/jobs" not in paths
    assert "requestBody" in paths["/events"]["post"]


@pytest.mark.api
@pytest.mark.parametrize(("verbose", "message"), [(False, "Internal server error"), (True, "Internal server error: boom")])
def test_unexpected_errors_are_500(make_client, verbose, message):
    class _ExplodingStore(SQLiteEventStore):
        def scan(self, filters):
            raise RuntimeError("boom")

    client = make_client(
        store=_ExplodingStore(),
        raise_server_exceptions=False,
        features__verbose_errors=verbose,
    )
    response = client.get("/events")

    assert response.status_code == 500
    assert response.json() == {"error": message}
