"""Tests for the HTTP API over in-memory counters."""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import AutoReconnect, DuplicateKeyError, OperationFailure

from sequenceable.app import App
from sequenceable.errors import ConflictError
from sequenceable.web.error_handlers import sequence_error_handler
from sequenceable.web.server import create_fastapi_app


@pytest.fixture
def client(services, config):
    """Client for the FastAPI app; lifespan is not entered so no MongoDB is needed."""
    app_instance = App.__new__(App)
    app_instance._core = SimpleNamespace(config=config, services=services)
    return TestClient(create_fastapi_app(app_instance, config))


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


class TestSequences:
    def test_generate(self, client):
        response = client.post("/api/v1/sequences", json={"namespace": "Ticket", "prefix": "TZ"})
        assert response.status_code == 200
        assert response.json() == {
            "value": "TZ0001",
            "counter": {"namespace": "Ticket", "prefix": "TZ", "suffix": None, "sequence": 1},
        }

    def test_generate_with_record_type_and_separator(self, client):
        body = {"record_type": "Invoice", "prefix": "INV", "suffix": "DSM", "separator": "-", "length": 6}
        client.post("/api/v1/sequences", json=body)
        response = client.post("/api/v1/sequences", json=body)
        assert response.json()["value"] == "INV-000002-DSM"
        assert response.json()["counter"]["namespace"] == "Invoice"

    def test_invalid_increment(self, client):
        response = client.post("/api/v1/sequences", json={"prefix": "TZ", "increment": 0})
        assert response.status_code == 422

    def test_exhausted_retries(self, client, collection):
        collection.errors.extend(DuplicateKeyError("dup", code=11000) for _ in range(5))
        response = client.post("/api/v1/sequences", json={"prefix": "TZ"})
        assert response.status_code == 503
        assert response.json()["type"] == "allocation_timeout"

    def test_store_failure(self, client, collection):
        collection.errors.append(OperationFailure("not authorized", code=13))
        response = client.post("/api/v1/sequences", json={"prefix": "TZ"})
        assert response.status_code == 502
        assert response.json()["type"] == "store_error"

    def test_configuration_error(self, client, services):
        services.sequence.defaults.namespace = ""
        response = client.post("/api/v1/sequences", json={"prefix": "TZ"})
        assert response.status_code == 400
        assert response.json()["type"] == "configuration_error"


class TestCounters:
    def test_get_counter(self, client):
        client.post("/api/v1/sequences", json={"namespace": "Ticket", "prefix": "TZ", "suffix": "A"})
        response = client.get("/api/v1/counters/Ticket/TZ", params={"suffix": "A"})
        assert response.status_code == 200
        assert response.json()["sequence"] == 1

    def test_get_missing_counter(self, client):
        response = client.get("/api/v1/counters/Ticket/TZ")
        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

    def test_list_counters(self, client):
        client.post("/api/v1/sequences", json={"namespace": "Ticket", "prefix": "TZ"})
        client.post("/api/v1/sequences", json={"namespace": "Invoice", "prefix": "TZ"})
        assert [c["namespace"] for c in client.get("/api/v1/counters").json()] == ["Invoice", "Ticket"]
        assert len(client.get("/api/v1/counters", params={"namespace": "Ticket"}).json()) == 1

    def test_seed_then_generate(self, client):
        response = client.post("/api/v1/counters/Ticket/TZ/seed", json={"start": 100})
        assert response.json()["sequence"] == 99
        generated = client.post("/api/v1/sequences", json={"namespace": "Ticket", "prefix": "TZ"})
        assert generated.json()["value"] == "TZ0100"

    def test_reset(self, client):
        for _ in range(3):
            client.post("/api/v1/sequences", json={"namespace": "Ticket", "prefix": "TZ"})
        client.post("/api/v1/counters/Ticket/TZ/reset", json={})
        generated = client.post("/api/v1/sequences", json={"namespace": "Ticket", "prefix": "TZ"})
        assert generated.json()["counter"]["sequence"] == 1

    def test_clear(self, client):
        client.post("/api/v1/sequences", json={"namespace": "Ticket", "prefix": "TZ"})
        assert client.delete("/api/v1/counters/Ticket/TZ").status_code == 204
        assert client.delete("/api/v1/counters/Ticket/TZ").status_code == 404

    def test_clear_namespace(self, client):
        client.post("/api/v1/sequences", json={"namespace": "Ticket", "prefix": "A"})
        client.post("/api/v1/sequences", json={"namespace": "Ticket", "prefix": "B"})
        assert client.delete("/api/v1/counters/Ticket").json() == {"deleted": 2}

    def test_reset_retries_first_insert_race(self, client, collection):
        collection.errors.append(DuplicateKeyError("E11000 duplicate key error", code=11000))
        response = client.post("/api/v1/counters/Ticket/TZ/reset", json={"start": 5})
        assert response.status_code == 200
        assert response.json()["sequence"] == 4

    def test_seed_with_persistent_conflicts(self, client, collection):
        collection.errors.extend(AutoReconnect("no primary") for _ in range(5))
        response = client.post("/api/v1/counters/Ticket/TZ/seed", json={})
        assert response.status_code == 503
        assert response.json()["type"] == "allocation_timeout"

    def test_padded_path_parts_address_the_same_counter(self, client):
        client.post("/api/v1/sequences", json={"namespace": "Ticket", "prefix": "TZ"})
        assert client.get("/api/v1/counters/Ticket/TZ%20").json()["sequence"] == 1


@pytest.mark.asyncio
async def test_unretried_conflict_is_service_unavailable():
    response = await sequence_error_handler(None, ConflictError("write conflict"))
    assert response.status_code == 503
