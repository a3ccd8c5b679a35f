# ============================================================================
# API ROUTE TESTS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Tests - HTTP surface
# PURPOSE: Verify /api/v1 routes and the root health endpoints
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Route Tests

Uses FastAPI TestClient against the routers wired to an in-memory
runtime. The app lifespan is not run, so no background loop starts and
jobs stay where the test leaves them.

Run with:
    pytest tests/test_api_routes.py -v
"""

import asyncio
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import router, set_services
from core.config import Defaults
from core.contracts import LogLevel
from orchestrator import build_memory_runtime


@pytest.fixture
def runtime():
    rt = build_memory_runtime(Defaults())
    set_services(orchestrator=rt.orchestrator)
    yield rt
    set_services(orchestrator=None)


@pytest.fixture
def client(runtime):
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    return TestClient(app)


ENTRY = {
    "entry_id": "e-1",
    "user_id": "u-1",
    "content": "I will finish the Report by Friday.",
    "date": "2026-01-01",
}


class TestJobRoutes:

    def test_create_and_get(self, client):
        resp = client.post("/api/v1/jobs", json={
            "agent_type": "CommitmentDetector",
            "task": "detect_commitments",
            "payload": ENTRY,
            "ttl_sec": 30,
        })
        assert resp.status_code == 202
        message_id = resp.json()["message_id"]

        resp = client.get(f"/api/v1/jobs/{message_id}")
        assert resp.status_code == 200
        job = resp.json()
        assert job["status"] == "pending"
        assert job["agent_type"] == "CommitmentDetector"
        assert job["intent"] == "execute"
        assert job["attempts"] == 0

    def test_create_with_dependencies(self, client, runtime):
        parent = client.post("/api/v1/jobs", json={
            "agent_type": "EntryClassifier", "task": "a", "payload": {},
        }).json()["message_id"]
        child = client.post("/api/v1/jobs", json={
            "agent_type": "CommitmentDetector",
            "task": "b",
            "payload": {},
            "dependencies": [parent],
            "intent": "analyze",
        }).json()["message_id"]

        job = client.get(f"/api/v1/jobs/{child}").json()
        assert job["dependencies"] == [parent]
        assert job["intent"] == "analyze"

    def test_unknown_agent_type_rejected(self, client):
        resp = client.post("/api/v1/jobs", json={"agent_type": "Nope", "task": "t"})
        assert resp.status_code == 422

    def test_get_unknown_job(self, client):
        assert client.get("/api/v1/jobs/missing").status_code == 404

    def test_cancel(self, client):
        message_id = client.post("/api/v1/jobs", json={
            "agent_type": "EntryClassifier", "task": "t",
        }).json()["message_id"]

        resp = client.post(f"/api/v1/jobs/{message_id}/cancel")
        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"

    def test_cancel_unknown(self, client):
        assert client.post("/api/v1/jobs/missing/cancel").status_code == 404


class TestJournalRoutes:

    def test_submit_entry_enqueues_both_agents(self, client, runtime):
        resp = client.post("/api/v1/journal/entries", json=ENTRY)
        assert resp.status_code == 202
        body = resp.json()
        assert body["entry_id"] == "e-1"
        assert set(body["jobs"]) == {"EntryClassifier", "CommitmentDetector"}

        for agent_type, message_id in body["jobs"].items():
            job = client.get(f"/api/v1/jobs/{message_id}").json()
            assert job["agent_type"] == agent_type
            assert job["payload"]["entry_id"] == "e-1"

    def test_invalid_entry_rejected(self, client):
        resp = client.post("/api/v1/journal/entries", json={"entry_id": "e-1"})
        assert resp.status_code == 422


class TestStatusRoutes:

    def test_orchestrator_status(self, client):
        resp = client.get("/api/v1/orchestrator/status")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "stopped"
        assert set(body["agents"]) == {"EntryClassifier", "CommitmentDetector"}
        assert body["metrics"]["cycles"] == 0

    def test_logs(self, client, runtime):
        asyncio.run(runtime.log_service.log("EntryClassifier", LogLevel.INFO, "hello"))
        asyncio.run(runtime.log_service.log("CommitmentDetector", LogLevel.ERROR, "bad"))

        body = client.get("/api/v1/logs", params={"level": "error"}).json()
        assert body["total"] == 1
        assert body["logs"][0]["message"] == "bad"

        body = client.get("/api/v1/logs", params={"agent_type": "EntryClassifier"}).json()
        assert [r["message"] for r in body["logs"]] == ["hello"]

    def test_uninitialized_services(self):
        set_services(orchestrator=None)
        app = FastAPI()
        app.include_router(router, prefix="/api/v1")
        resp = TestClient(app).get("/api/v1/orchestrator/status")
        assert resp.status_code == 500


class TestHealthRoutes:

    def test_health_and_livez(self, runtime, monkeypatch):
        import main

        monkeypatch.setattr(main, "_runtime", runtime)
        client = TestClient(main.app)

        assert client.get("/livez").json() == {"status": "alive"}

        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["healthy"] is True
        assert resp.json()["agents"]["EntryClassifier"]["jobs_pending"] == 0

    def test_health_unavailable_before_startup(self, monkeypatch):
        import main

        monkeypatch.setattr(main, "_runtime", None)
        resp = TestClient(main.app).get("/health")
        assert resp.status_code == 503
