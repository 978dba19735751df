"""Testes do endpoint de health."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from app.app import create_app
from app.bootstrap import get_connection_orchestrator
from app.bootstrap.dependencies import create_connection_orchestrator
from config.settings import EvolutionSettings
from tests.fakes.fake_gateway import FakeGateway


@pytest.fixture
def client() -> Iterator[TestClient]:
    orchestrator = create_connection_orchestrator(
        settings=EvolutionSettings(api_url="https://evo.test", api_key="k"),
        gateway=FakeGateway(),
    )
    app = create_app()
    app.dependency_overrides[get_connection_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_at_root_and_prefix(client: TestClient) -> None:
    for path in ("/health", "/api/v1/whatsapp/health"):
        response = client.get(path)
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"]
        assert body["timestamp"]
        assert body["sessions"] == 0
        assert body["streams"] == 0
        assert body["pollers"] == 0


def test_health_counts_active_connection(client: TestClient) -> None:
    created = client.post("/api/v1/whatsapp/connect", json={"sessionId": "s-1"})
    assert created.status_code == 200

    body = client.get("/health").json()

    assert body["sessions"] == 1


def test_correlation_id_is_echoed(client: TestClient) -> None:
    response = client.get("/health", headers={"x-correlation-id": "corr-123"})

    assert response.status_code == 200
    assert response.headers["x-correlation-id"] == "corr-123"


def test_correlation_id_is_generated(client: TestClient) -> None:
    response = client.get("/health")
    assert response.headers["x-correlation-id"]
