"""Tests for REST API."""

import time

import pytest

from zerotrust_gate.api import create_app
from zerotrust_gate.assessment import MemorySink


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture
def app(engine, sink):
    app = create_app(engine, report_sink=sink, monitor_interval=0.01)
    app.config["TESTING"] = True
    yield app
    app.extensions["zerotrust"]["monitor"].stop(timeout=5)


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


class TestAPI:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.get_json()["status"] == "healthy"

    def test_default_app(self):
        app = create_app()
        r = app.test_client().get("/api/v1/policies")
        assert r.get_json()["total_policies"] == 10


class TestAccessAPI:
    def test_evaluate_allow(self, client, full_context):
        r = client.post("/api/v1/access/evaluate", json={
            "subject_id": "alice", "resource_id": "crm", "context": full_context,
        })
        assert r.status_code == 200
        data = r.get_json()
        assert data["outcome"] == "allow"
        assert len(data["domain_results"]) == 5

    def test_evaluate_deny(self, client, full_context):
        r = client.post("/api/v1/access/evaluate", json={
            "subject_id": "alice", "resource_id": "crm",
            "context": {**full_context, "target_segment": "Secure"},
        })
        assert r.status_code == 200
        data = r.get_json()
        assert data["outcome"] == "deny"
        assert data["reason_code"] == "TransitionNotAllowed"

    def test_evaluate_invalid(self, client):
        r = client.post("/api/v1/access/evaluate", json={"resource_id": "crm"})
        assert r.status_code == 400
        assert "subject_id" in r.get_json()["error"]

    def test_evaluate_non_object_body(self, client):
        r = client.post("/api/v1/access/evaluate", json=["alice", "crm"])
        assert r.status_code == 400

    def test_evaluate_non_mapping_context(self, client):
        r = client.post("/api/v1/access/evaluate", json={
            "subject_id": "alice", "resource_id": "crm", "context": "totp",
        })
        assert r.status_code == 400
        assert "context" in r.get_json()["error"]

    def test_decisions_and_stats(self, client, full_context):
        client.post("/api/v1/access/evaluate", json={
            "subject_id": "eve", "resource_id": "crm", "context": full_context,
        })
        r = client.get("/api/v1/access/decisions?n=10")
        assert len(r.get_json()["decisions"]) == 1

        stats = client.get("/api/v1/access/stats").get_json()
        assert stats["deny"] == 1
        assert stats["denials_by_domain"]["identity"] == 1
        assert stats["high_severity_alerts"] == 1


class TestPolicyAPI:
    def test_list(self, client):
        data = client.get("/api/v1/policies").get_json()
        assert data["total_policies"] == 10

    def test_list_by_domain(self, client):
        data = client.get("/api/v1/policies?domain=device").get_json()
        assert {p["policy_id"] for p in data["policies"]} == {"device-compliance", "device-registration"}

    def test_list_unknown_domain(self, client):
        assert client.get("/api/v1/policies?domain=perimeter").status_code == 400

    def test_define(self, client):
        r = client.post("/api/v1/policies", json={
            "policy_id": "custom-geo", "name": "Geo Fencing",
            "domain": "network", "risk_level": "high",
        })
        assert r.status_code == 201
        assert client.get("/api/v1/policies/custom-geo").get_json()["risk_level"] == "high"

    def test_define_duplicate(self, client):
        r = client.post("/api/v1/policies", json={
            "policy_id": "identity-mfa", "name": "Again", "domain": "identity",
        })
        assert r.status_code == 409

    def test_define_invalid(self, client):
        r = client.post("/api/v1/policies", json={
            "policy_id": "p", "name": "P", "domain": "perimeter",
        })
        assert r.status_code == 400

    def test_update(self, client):
        r = client.patch("/api/v1/policies/device-compliance", json={
            "rules": {"min_trust_score": 90}, "risk_level": "critical",
        })
        assert r.status_code == 200
        data = r.get_json()
        assert data["rules"]["min_trust_score"] == 90
        assert data["risk_level"] == "critical"

    def test_update_enforced_string(self, client):
        r = client.patch("/api/v1/policies/identity-mfa", json={"enforced": "false"})
        assert r.status_code == 200
        assert r.get_json()["enforced"] is False

    def test_update_enforced_invalid(self, client):
        r = client.patch("/api/v1/policies/identity-mfa", json={"enforced": "sometimes"})
        assert r.status_code == 400
        assert client.get("/api/v1/policies/identity-mfa").get_json()["enforced"] is True

    def test_update_non_object_body(self, client):
        r = client.patch("/api/v1/policies/identity-mfa", json=["enforced"])
        assert r.status_code == 400

    def test_define_non_object_body(self, client):
        r = client.post("/api/v1/policies", json=["custom-geo"])
        assert r.status_code == 400

    def test_update_immutable(self, client):
        r = client.patch("/api/v1/policies/device-compliance", json={"domain": "data"})
        assert r.status_code == 400

    def test_update_missing(self, client):
        assert client.patch("/api/v1/policies/nope", json={"enforced": False}).status_code == 404

    def test_retire(self, client):
        r = client.post("/api/v1/policies/identity-mfa/retire")
        assert r.status_code == 200
        assert r.get_json()["enforced"] is False

    def test_get_missing(self, client):
        assert client.get("/api/v1/policies/nope").status_code == 404


class TestAssessmentAPI:
    def test_assessment(self, client):
        data = client.get("/api/v1/assessment").get_json()
        assert data["total_policies"] == 10
        assert data["recommendations"]

    def test_monitor_lifecycle(self, client, sink):
        assert client.get("/api/v1/monitor/status").get_json()["running"] is False

        r = client.post("/api/v1/monitor/start")
        assert r.get_json()["started"] is True
        assert client.post("/api/v1/monitor/start").get_json()["started"] is False

        deadline = time.time() + 5
        while not sink.reports and time.time() < deadline:
            time.sleep(0.01)

        r = client.post("/api/v1/monitor/stop")
        data = r.get_json()
        assert data["stopped"] is True
        assert data["running"] is False
        assert data["ticks"] >= 1
