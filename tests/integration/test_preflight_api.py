"""Integration tests for the HTTP enforcement boundary and the demo transfer."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from guardrails.engine.config import PreflightConfig
from guardrails.engine.preflight import PreflightEngine
from guardrails.presentation.api.dependencies import get_engine
from guardrails.presentation.api.main import app

pytestmark = pytest.mark.integration

ALIGNMENT = "package-lock.json contains xrpl at the same version"


@pytest.fixture
def use_engine() -> Iterator[Callable[[PreflightConfig], TestClient]]:
    def _install(config: PreflightConfig) -> TestClient:
        engine = PreflightEngine(config)
        app.dependency_overrides[get_engine] = lambda: engine
        return TestClient(app)

    yield _install
    app.dependency_overrides.clear()


@pytest.fixture
def healthy(use_engine, make_config) -> TestClient:
    return use_engine(make_config())


@pytest.fixture
def drifted(use_engine, make_config, project_factory) -> TestClient:
    return use_engine(make_config(repo_root=project_factory(locked="2.13.0")))


class TestHealth:
    def test_health(self, healthy: TestClient) -> None:
        resp = healthy.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_request_id_echoed(self, healthy: TestClient) -> None:
        resp = healthy.get("/health", headers={"X-Request-ID": "req-123"})
        assert resp.headers["X-Request-ID"] == "req-123"
        assert healthy.get("/health").headers["X-Request-ID"]


class TestPreflightEndpoint:
    def test_green_enforced(self, healthy: TestClient, project: Path) -> None:
        resp = healthy.post("/api/preflight", params={"mode": "enforced"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["overall"] == "green"
        assert body["bypassEnabled"] is False
        assert body["simulatedScenario"] is None
        artifact = json.loads((project / "apps/web/public/status.json").read_text(encoding="utf-8"))
        assert artifact["overall"] == "green"
        assert "bypassEnabled" not in artifact

    def test_red_enforced_is_locked(self, drifted: TestClient) -> None:
        resp = drifted.post("/api/preflight")
        assert resp.status_code == 423
        body = resp.json()
        assert body["overall"] == "red"
        failing = [c for c in body["checks"] if c["status"] == "fail"]
        assert failing[0]["name"] == ALIGNMENT

    def test_red_bypass_is_ok(self, drifted: TestClient) -> None:
        resp = drifted.post("/api/preflight", params={"mode": "bypass"})
        assert resp.status_code == 200
        assert resp.json()["overall"] == "red"
        assert resp.json()["bypassEnabled"] is True

    def test_mode_aliases(self, drifted: TestClient) -> None:
        assert drifted.post("/api/preflight", params={"mode": "eforce"}).status_code == 423
        assert drifted.post("/api/preflight", params={"mode": "anything"}).status_code == 423

    def test_simulated_mismatch_not_persisted(self, healthy: TestClient, project: Path) -> None:
        resp = healthy.post("/api/preflight", params={"simulate": "version_mismatch"})
        assert resp.status_code == 423
        body = resp.json()
        assert body["simulatedScenario"] == "version_mismatch"
        details = next(c["details"] for c in body["checks"] if c["name"] == ALIGNMENT)
        assert "2.14.1" in details and "2.14.0" in details
        assert not (project / "apps/web/public/status.json").exists()

    def test_unknown_scenario_rejected(self, healthy: TestClient) -> None:
        assert healthy.post("/api/preflight", params={"simulate": "meteor"}).status_code == 422


class TestTransfer:
    def _body(self, **overrides: Any) -> dict[str, Any]:
        body: dict[str, Any] = {"from": "rSender", "to": "rReceiver", "amount": 12.5, "mode": "enforced"}
        body.update(overrides)
        return body

    def test_accepted_when_green(self, healthy: TestClient) -> None:
        resp = healthy.post("/api/transfer", json=self._body())
        assert resp.status_code == 200
        body = resp.json()
        assert body["ok"] is True
        assert body["txId"].startswith("demo_") and len(body["txId"]) == 21
        assert body["from"] == "rSender"
        assert body["guardrails"] == {"overall": "green", "reason": None}

    def test_blocked_when_red_and_enforced(self, drifted: TestClient) -> None:
        resp = drifted.post("/api/transfer", json=self._body())
        assert resp.status_code == 423
        body = resp.json()
        assert body["ok"] is False
        assert body["reason"].startswith(ALIGNMENT)
        assert body["posture"]["overall"] == "red"

    def test_bypass_proceeds_with_reason(self, drifted: TestClient) -> None:
        resp = drifted.post("/api/transfer", json=self._body(mode="bypass"))
        assert resp.status_code == 200
        assert resp.json()["guardrails"]["overall"] == "red"
        assert resp.json()["guardrails"]["reason"].startswith(ALIGNMENT)

    def test_invalid_json(self, healthy: TestClient) -> None:
        resp = healthy.post("/api/transfer", content=b"{nope", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid JSON body"

    @pytest.mark.parametrize(
        "overrides",
        [{"mode": "sideways"}, {"amount": "10"}, {"to": 5}, {"from": None}],
    )
    def test_invalid_body(self, healthy: TestClient, overrides: dict[str, Any]) -> None:
        resp = healthy.post("/api/transfer", json=self._body(**overrides))
        assert resp.status_code == 400
        assert resp.json()["error"] == "Body must include from, to, amount, and mode"

    @pytest.mark.parametrize("amount", [0, -1.5])
    def test_non_positive_amount(self, healthy: TestClient, amount: float) -> None:
        resp = healthy.post("/api/transfer", json=self._body(amount=amount))
        assert resp.status_code == 400
        assert resp.json()["error"] == "Amount must be a positive number"
