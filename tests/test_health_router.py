# ============================================================================
# STATUS ROUTER TESTS
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Tests - HTTP status endpoints
# PURPOSE: Verify /livez, /readyz, /status and the application lifespan
# CREATED: 18 OCT 2026
# ============================================================================
"""
Status Router Tests

Covers:
1. /livez always 200
2. /readyz 503 before, during and after a failed run; 200 once all READY
3. /status and /status/{name} (404 for unknown services)
4. main.app lifespan loads a stack file and runs it in the background

Run with:
    pytest tests/test_health_router.py -v
"""

import time
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.config import reset_defaults
from core.models import HealthCheckDefinition, ServiceSpec
from health.prober import HealthProber
from health.probes.process import AlwaysProbe, CallableProbe
from health.registry import ProbeRegistry
from health.router import health_router, set_orchestrator
from orchestrator import Orchestrator, resolve


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def client():
    app = FastAPI()
    app.include_router(health_router)
    yield TestClient(app)
    set_orchestrator(None)


@pytest.fixture
def orchestrator():
    registry = ProbeRegistry()
    registry.register_class(CallableProbe)
    registry.register_class(AlwaysProbe)

    async def no_sleep(delay):
        return None

    orch = Orchestrator(prober=HealthProber(registry=registry), sleep=no_sleep)
    set_orchestrator(orch)
    return orch


def specs(db_ready: bool = True):
    return [
        ServiceSpec(
            name="db",
            health_check=HealthCheckDefinition(type="callable", func=lambda: db_ready),
        ),
        ServiceSpec(name="app", depends_on=["db"]),
    ]


# ============================================================================
# ENDPOINTS
# ============================================================================

class TestLiveness:

    def test_livez_without_orchestrator(self, client):
        response = client.get("/livez")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestReadiness:
    """Test /readyz."""

    def test_not_initialized(self, client):
        response = client.get("/readyz")
        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"

    def test_no_run_yet(self, client, orchestrator):
        response = client.get("/readyz")
        assert response.status_code == 503
        assert response.json()["message"] == "No run completed"

    def test_all_ready(self, client, orchestrator):
        orchestrator.run_sync(resolve(specs()), max_attempts=2)

        response = client.get("/readyz")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["services"] == 2

    def test_failed_run(self, client, orchestrator):
        orchestrator.run_sync(resolve(specs(db_ready=False)), max_attempts=2)

        response = client.get("/readyz")
        assert response.status_code == 503
        assert response.json()["not_ready"] == ["db", "app"]

    def test_while_running(self, client):
        running = MagicMock()
        running.is_running = True
        running.snapshot.return_value = {"run_id": "abc123", "running": True, "services": {}}
        set_orchestrator(running)

        response = client.get("/readyz")
        assert response.status_code == 503
        assert response.json() == {"status": "starting", "run_id": "abc123"}


class TestStatus:
    """Test /status and /status/{name}."""

    def test_status_after_run(self, client, orchestrator):
        result = orchestrator.run_sync(resolve(specs()), max_attempts=2)

        body = client.get("/status").json()
        assert body["running"] is False
        assert body["run_id"] == result.run_id
        assert body["order"] == ["db", "app"]
        assert body["services"]["db"]["status"] == "ready"

    def test_service_status(self, client, orchestrator):
        orchestrator.run_sync(resolve(specs(db_ready=False)), max_attempts=2)

        response = client.get("/status/app")
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "app"
        assert body["status"] == "failed"
        assert "dependency failed" in body["error"]

    def test_unknown_service_404(self, client, orchestrator):
        orchestrator.run_sync(resolve(specs()), max_attempts=2)

        response = client.get("/status/nope")
        assert response.status_code == 404

    def test_status_not_initialized(self, client):
        assert client.get("/status").status_code == 503


# ============================================================================
# APPLICATION LIFESPAN
# ============================================================================

class TestApplication:
    """Test main.app end to end with a stack of noop services."""

    def test_lifespan_runs_stack(self, tmp_path, monkeypatch):
        stack_file = tmp_path / "local.yaml"
        stack_file.write_text(
            "name: local\n"
            "services:\n"
            "  db: {}\n"
            "  app: {depends_on: [db]}\n"
        )
        monkeypatch.setenv("STACKGATE_STACK_FILE", str(stack_file))
        reset_defaults()

        import main

        try:
            with TestClient(main.app) as client:
                assert client.get("/livez").status_code == 200

                deadline = time.monotonic() + 5
                while client.get("/readyz").status_code != 200:
                    assert time.monotonic() < deadline, "stack never became ready"
                    time.sleep(0.05)

                body = client.get("/status").json()
                assert body["stack"] == "local"
                assert body["order"] == ["db", "app"]
                assert client.get("/").json()["service"] == "Stackgate"
        finally:
            set_orchestrator(None)
            reset_defaults()
