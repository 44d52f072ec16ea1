"""API endpoint tests using FastAPI TestClient.

The app is built with a tmp-path key store and a fake Oura client factory,
testing routing, schemas and error mapping without network access.
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from main import create_app
from oura.webhook import compact_json, compute_signature
from tests.conftest import (
    CLIENT_SECRET,
    VERIFICATION_TOKEN,
    FakeClientFactory,
    FakeOuraClient,
    rate_limited,
)

BASE = "/api/oura"


@pytest.fixture
def factory():
    return FakeClientFactory()


@pytest.fixture
def client(settings, store, factory):
    app = create_app(settings, key_store=store, client_factory=factory)
    with TestClient(app) as c:
        yield c


def _link(c, patient_id: str, api_key: str = "key") -> None:
    resp = c.post(f"{BASE}/link", json={"patientId": patient_id, "apiKey": api_key})
    assert resp.status_code == 200


class TestHealthEndpoint:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["service"] == "oura-service"
        assert datetime.fromisoformat(body["timestamp"])

    def test_request_id_and_security_headers(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert resp.headers["X-Request-ID"] == "req-42"
        assert resp.headers["X-Content-Type-Options"] == "nosniff"

    def test_metrics_exposed(self, client):
        resp = client.get("/metrics/")
        assert resp.status_code == 200
        assert "api_requests_total" in resp.text


class TestLinkEndpoints:
    def test_link_patient(self, client):
        resp = client.post(
            f"{BASE}/link",
            json={"patientId": "P0001", "apiKey": "key", "ouraUserId": "u-1"},
        )
        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "message": "Patient linked to Oura account successfully",
            "patientId": "P0001",
        }

    @pytest.mark.parametrize(
        "body", [{}, {"patientId": "P0001"}, {"apiKey": "key"}, {"patientId": "", "apiKey": "k"}]
    )
    def test_missing_fields_return_400(self, client, body):
        resp = client.post(f"{BASE}/link", json=body)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "patientId and apiKey required"
        assert resp.headers["content-type"] == "application/problem+json"

    def test_link_then_fetch_then_unlink(self, client):
        _link(client, "P0001")
        assert client.get(f"{BASE}/patient/P0001").status_code == 200

        resp = client.delete(f"{BASE}/patient/P0001")
        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "message": "Patient unlinked from Oura account successfully",
        }
        assert client.get(f"{BASE}/patient/P0001").status_code == 404

    def test_unlink_is_idempotent(self, client):
        assert client.delete(f"{BASE}/patient/never-linked").status_code == 200
        assert client.delete(f"{BASE}/patient/never-linked").status_code == 200


class TestPatientDataEndpoint:
    def test_latest_metrics(self, client):
        _link(client, "P0001")
        resp = client.get(f"{BASE}/patient/P0001")
        assert resp.status_code == 200
        body = resp.json()
        assert body["patientId"] == "P0001"
        assert body["hasLinkedOura"] is True
        assert body["data"]["activity"]["steps"] == 9000
        assert body["data"]["sleep"]["efficiency"] == 92
        assert body["data"]["readiness"]["score"] == 78

    def test_not_linked_returns_404(self, client):
        resp = client.get(f"{BASE}/patient/ghost")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Patient not linked to Oura account"

    def test_date_range_passed_through(self, client, factory):
        _link(client, "P0001")
        resp = client.get(
            f"{BASE}/patient/P0001", params={"startDate": "2024-02-01", "endDate": "2024-02-05"}
        )
        assert resp.status_code == 200
        assert {(s.isoformat(), e.isoformat()) for _, s, e in factory.default.calls} == {
            ("2024-02-01", "2024-02-05")
        }

    def test_invalid_date_returns_400(self, client):
        _link(client, "P0001")
        resp = client.get(f"{BASE}/patient/P0001", params={"startDate": "yesterday"})
        assert resp.status_code == 400
        assert resp.json()["title"] == "Validation Error"

    def test_metric_failure_still_200(self, client, factory):
        factory.clients["flaky"] = FakeOuraClient(daily_sleep=rate_limited())
        _link(client, "P0001", "flaky")
        resp = client.get(f"{BASE}/patient/P0001")
        assert resp.status_code == 200
        assert resp.json()["data"]["sleep"]["score"] is None


class TestSummaryEndpoint:
    def test_summary(self, client):
        _link(client, "P0001")
        resp = client.get(f"{BASE}/patient/P0001/summary")
        assert resp.status_code == 200
        body = resp.json()
        assert body["period"] == "7 days"
        assert body["summary"]["averageSteps"] == 8500
        assert body["summary"]["totalDays"] == 2
        assert set(body["dailyData"]) == {"activity", "sleep", "readiness"}

    def test_not_linked_returns_404(self, client):
        assert client.get(f"{BASE}/patient/ghost/summary").status_code == 404

    def test_upstream_failure_returns_500(self, client, factory):
        factory.clients["broken"] = FakeOuraClient(daily_activity=rate_limited())
        _link(client, "P0001", "broken")
        resp = client.get(f"{BASE}/patient/P0001/summary")
        assert resp.status_code == 500
        assert resp.json()["title"] == "Upstream Error"
        assert resp.json()["detail"] == "Rate Limit Exceeded: Too many requests"


class TestHeartRateEndpoint:
    def test_heart_rate(self, client):
        _link(client, "P0001")
        resp = client.get(f"{BASE}/patient/P0001/heartrate")
        assert resp.status_code == 200
        assert resp.json()["data"][1]["bpm"] == 64


class TestBatchSummaryEndpoint:
    def test_multiple_patients(self, client):
        _link(client, "P0001", "key1")
        _link(client, "P0002", "key2")
        resp = client.post(f"{BASE}/patients/batch/summary", json={"patientIds": ["P0001", "P0002"]})
        assert resp.status_code == 200
        body = resp.json()
        assert [d["patientId"] for d in body["data"]] == ["P0001", "P0002"]
        assert body["data"][0]["summary"]["averageSteps"] == 8500
        assert body["errors"] == []

    def test_partial_failures(self, client):
        _link(client, "P0001")
        resp = client.post(
            f"{BASE}/patients/batch/summary", json={"patientIds": ["P0001", "P0002", "P0003"]}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert [d["patientId"] for d in body["data"]] == ["P0001"]
        assert body["errors"] == [
            {"patientId": "P0002", "error": "Patient not linked to Oura account"},
            {"patientId": "P0003", "error": "Patient not linked to Oura account"},
        ]

    def test_upstream_error_for_one_patient(self, client, factory):
        factory.clients["limited"] = FakeOuraClient(daily_activity=rate_limited())
        _link(client, "P0001", "key1")
        _link(client, "P0002", "limited")
        body = client.post(
            f"{BASE}/patients/batch/summary", json={"patientIds": ["P0001", "P0002"]}
        ).json()
        assert [d["patientId"] for d in body["data"]] == ["P0001"]
        assert body["errors"] == [
            {"patientId": "P0002", "error": "Rate Limit Exceeded: Too many requests"}
        ]

    def test_all_failed_still_200(self, client):
        resp = client.post(f"{BASE}/patients/batch/summary", json={"patientIds": ["x", "y"]})
        assert resp.status_code == 200
        assert len(resp.json()["errors"]) == 2

    def test_empty_array_is_valid(self, client):
        resp = client.post(f"{BASE}/patients/batch/summary", json={"patientIds": []})
        assert resp.status_code == 200
        assert resp.json() == {"data": [], "errors": []}

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"patientIds": "P0001"},
            {"patientIds": None},
            {"patientIds": [1, 2]},
            ["P0001"],
            "P0001",
            42,
        ],
    )
    def test_invalid_body_returns_400(self, client, body):
        resp = client.post(f"{BASE}/patients/batch/summary", json=body)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "patientIds array required"

    def test_missing_body_returns_400(self, client):
        resp = client.post(f"{BASE}/patients/batch/summary")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "patientIds array required"


class TestWebhookEndpoints:
    def test_handshake_echoes_challenge(self, client):
        resp = client.get(
            f"{BASE}/webhook",
            params={"verification_token": VERIFICATION_TOKEN, "challenge": "test-challenge-123"},
        )
        assert resp.status_code == 200
        assert resp.json() == {"challenge": "test-challenge-123"}

    def test_handshake_wrong_token(self, client):
        resp = client.get(
            f"{BASE}/webhook", params={"verification_token": "wrong", "challenge": "c"}
        )
        assert resp.status_code == 401
        assert "Invalid verification token" in resp.text

    @pytest.mark.parametrize("event_type", ["create", "update", "delete"])
    @pytest.mark.parametrize(
        "data_type", ["daily_activity", "daily_sleep", "daily_readiness", "heartrate"]
    )
    def test_signed_notification_accepted(self, client, event_type, data_type):
        payload = {
            "event_type": event_type,
            "data_type": data_type,
            "object_id": f"{data_type}-123",
            "user_id": "user-456",
        }
        body = compact_json(payload)
        timestamp = "1700000000"
        resp = client.post(
            f"{BASE}/webhook",
            content=body,
            headers={
                "content-type": "application/json",
                "x-oura-signature": compute_signature(CLIENT_SECRET, timestamp, body),
                "x-oura-timestamp": timestamp,
            },
        )
        assert resp.status_code == 200
        assert resp.text == "OK"

    def test_invalid_signature_rejected(self, client):
        resp = client.post(
            f"{BASE}/webhook",
            json={"event_type": "create"},
            headers={"x-oura-signature": "INVALID_SIGNATURE", "x-oura-timestamp": "1"},
        )
        assert resp.status_code == 401
        assert resp.headers["content-type"].startswith("text/plain")
        assert "Invalid signature" in resp.text

    def test_missing_headers_rejected(self, client):
        resp = client.post(f"{BASE}/webhook", json={"event_type": "create"})
        assert resp.status_code == 401


class TestDemoMode:
    """Patients linked with the demo key get generated data end to end."""

    @pytest.fixture
    def demo_client(self, settings, store):
        with TestClient(create_app(settings, key_store=store)) as c:
            yield c

    def test_demo_latest_values_in_range(self, demo_client):
        _link(demo_client, "demo-001", "OURA_DEMO_KEY")
        data = demo_client.get(f"{BASE}/patient/demo-001").json()["data"]
        assert 6000 <= data["activity"]["steps"] < 11000
        assert 25200 <= data["sleep"]["totalSleep"] < 32400
        assert 85 <= data["sleep"]["efficiency"] < 95
        assert 70 <= data["readiness"]["score"] < 100
        assert -0.5 <= data["readiness"]["temperatureDeviation"] <= 0.5

    def test_demo_summary_covers_window(self, demo_client):
        _link(demo_client, "demo-001", "OURA_DEMO_KEY")
        body = demo_client.get(f"{BASE}/patient/demo-001/summary").json()
        assert body["summary"]["totalDays"] == 8  # both window ends inclusive
        assert body["summary"]["averageSteps"] > 0
        assert body["summary"]["averageSleepScore"] > 0
        assert body["summary"]["averageReadinessScore"] > 0

    def test_demo_batch(self, demo_client):
        _link(demo_client, "demo-001", "OURA_DEMO_KEY")
        _link(demo_client, "demo-002", "OURA_DEMO_KEY")
        body = demo_client.post(
            f"{BASE}/patients/batch/summary", json={"patientIds": ["demo-001", "demo-002"]}
        ).json()
        assert [d["patientId"] for d in body["data"]] == ["demo-001", "demo-002"]
        assert body["errors"] == []


class TestErrorFormat:
    def test_problem_json_fields(self, client):
        resp = client.get(f"{BASE}/patient/ghost")
        body = resp.json()
        for key in ("type", "title", "status", "detail", "instance"):
            assert key in body
        assert body["instance"] == f"{BASE}/patient/ghost"

    def test_unhandled_exception_returns_generic_500(self, settings, store):
        class ExplodingFactory:
            def __call__(self, credential):
                raise RuntimeError("kaboom")

        app = create_app(settings, key_store=store, client_factory=ExplodingFactory())
        with TestClient(app, raise_server_exceptions=False) as c:
            _link(c, "P0001")
            resp = c.get(f"{BASE}/patient/P0001/summary")
        assert resp.status_code == 500
        body = resp.json()
        assert body["detail"] == "Internal server error"
        assert body["details"] == "kaboom"  # development mode exposes details
