"""Tests for API routes."""

import pytest
from fastapi.testclient import TestClient

from triage_api import create_app
from triage_api.app import app_state
from triage_config import SpecialistSeed, TriageConfig


@pytest.fixture
def basic_config():
    """Create an engine configuration with two specialists."""
    return TriageConfig(
        collaborators={"read_timeout_seconds": 0.5, "retry_delay_seconds": 0},
        specialists=[
            SpecialistSeed(id="spec_1", name="Ada", specialties=["billing"], success_rate=0.9),
            SpecialistSeed(id="spec_2", name="Grace", specialties=["network"], success_rate=0.8),
        ],
    )


@pytest.fixture
def reset_app_state():
    """Reset application state before and after tests."""
    app_state.service = None
    app_state.monitor = None
    app_state.config = None
    yield
    app_state.service = None
    app_state.monitor = None
    app_state.config = None


def open_case(client, case_id="case_1", issue="please help", **extra):
    """Open a case through the API and return the escalation payload."""
    response = client.post(
        "/escalations",
        json={"case_id": case_id, "issue": issue, "manual_request": True, **extra},
    )
    assert response.status_code == 200
    return response.json()["escalation"]


class TestEvaluate:
    """Tests for POST /escalations/evaluate endpoint."""

    def test_manual_request_scores_fifty(self, basic_config, reset_app_state):
        """Test a manual request alone scores 50 and is medium."""
        client = TestClient(create_app(config=basic_config))

        response = client.post(
            "/escalations/evaluate",
            json={"case_id": "case_1", "issue": "please help", "manual_request": True},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 50
        assert data["severity"] == "medium"
        assert data["should_escalate"] is True
        assert data["triggers"] == [{"type": "manual", "weight": 50}]

    def test_evaluate_does_not_open_case(self, basic_config, reset_app_state):
        """Test evaluation leaves the queue empty."""
        client = TestClient(create_app(config=basic_config))

        client.post(
            "/escalations/evaluate",
            json={"case_id": "case_1", "issue": "help", "manual_request": True},
        )

        assert client.get("/escalations").json() == []

    def test_malformed_context(self, basic_config, reset_app_state):
        """Test a malformed context is rejected."""
        client = TestClient(create_app(config=basic_config))

        response = client.post(
            "/escalations/evaluate",
            json={"case_id": "case_1", "issue": "help", "context": {"failure_count": "many"}},
        )

        assert response.status_code == 422

    def test_camel_case_context(self, basic_config, reset_app_state):
        """Test camelCase context keys are scored."""
        client = TestClient(create_app(config=basic_config))

        response = client.post(
            "/escalations/evaluate",
            json={
                "case_id": "case_1",
                "issue": "help",
                "context": {"hoursToDeadline": 12, "failureCount": 5},
            },
        )

        assert response.status_code == 200
        assert response.json()["score"] == 75
        assert response.json()["severity"] == "high"

    def test_blank_case_id(self, basic_config, reset_app_state):
        """Test a blank case id is rejected."""
        client = TestClient(create_app(config=basic_config))

        response = client.post("/escalations/evaluate", json={"case_id": " ", "issue": "help"})

        assert response.status_code == 422

    def test_no_engine(self, reset_app_state):
        """Test evaluating when the engine is not configured."""
        client = TestClient(create_app())

        response = client.post("/escalations/evaluate", json={"case_id": "c", "issue": "help"})

        assert response.status_code == 503
        assert "not configured" in response.json()["detail"].lower()


class TestCreateEscalation:
    """Tests for POST /escalations endpoint."""

    def test_manual_request_assigned(self, basic_config, reset_app_state):
        """Test a manual request opens and assigns a case."""
        client = TestClient(create_app(config=basic_config))

        response = client.post(
            "/escalations",
            json={"case_id": "case_1", "issue": "billing is broken", "manual_request": True},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["escalated"] is True
        assert data["escalation"]["status"] == "assigned"
        assert data["escalation"]["assigned_specialist_id"] == "spec_1"
        assert data["escalation"]["case_id"] == "case_1"

    def test_below_threshold(self, basic_config, reset_app_state):
        """Test a quiet issue opens nothing."""
        client = TestClient(create_app(config=basic_config))

        response = client.post("/escalations", json={"case_id": "case_1", "issue": "hello"})

        assert response.status_code == 200
        data = response.json()
        assert data["escalated"] is False
        assert data["escalation"] is None
        assert data["score"] == 0

    def test_empty_issue(self, basic_config, reset_app_state):
        """Test an empty issue is rejected."""
        client = TestClient(create_app(config=basic_config))

        response = client.post(
            "/escalations", json={"case_id": "case_1", "issue": "", "manual_request": True}
        )

        assert response.status_code == 422


class TestGetEscalation:
    """Tests for GET /escalations endpoints."""

    def test_get_escalation(self, basic_config, reset_app_state):
        """Test reading back an opened case."""
        client = TestClient(create_app(config=basic_config))
        escalation = open_case(client)

        response = client.get(f"/escalations/{escalation['id']}")

        assert response.status_code == 200
        assert response.json()["id"] == escalation["id"]

    def test_get_escalation_not_found(self, basic_config, reset_app_state):
        """Test getting a non-existent case."""
        client = TestClient(create_app(config=basic_config))

        response = client.get("/escalations/esc_missing")

        assert response.status_code == 404
        assert "not found" in response.json()["detail"].lower()

    def test_list_by_status(self, basic_config, reset_app_state):
        """Test filtering the list by status."""
        client = TestClient(create_app(config=basic_config))
        first = open_case(client, "case_1")
        open_case(client, "case_2")
        client.post(f"/escalations/{first['id']}/start")

        assigned = client.get("/escalations", params={"status": "assigned"}).json()
        in_progress = client.get("/escalations", params={"status": "in_progress"}).json()

        assert [case["case_id"] for case in assigned] == ["case_2"]
        assert [case["id"] for case in in_progress] == [first["id"]]
        assert len(client.get("/escalations", params={"limit": 1}).json()) == 1

    def test_stats(self, basic_config, reset_app_state):
        """Test queue statistics."""
        client = TestClient(create_app(config=basic_config))
        open_case(client, "case_1")
        open_case(client, "case_2")

        response = client.get("/escalations/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["by_status"] == {"assigned": 2}
        assert data["by_severity"] == {"medium": 2}
        assert data["auto_resolution_rate"] == 0.0


class TestLifecycle:
    """Tests for start and resolve endpoints."""

    def test_start_and_resolve(self, basic_config, reset_app_state):
        """Test the full human lifecycle releases the specialist."""
        client = TestClient(create_app(config=basic_config))
        escalation = open_case(client)

        started = client.post(f"/escalations/{escalation['id']}/start")
        resolved = client.post(
            f"/escalations/{escalation['id']}/resolve",
            json={
                "action": "Refunded the invoice",
                "outcome": "Customer confirmed",
                "prevention_measures": ["Add billing alert", "Add billing alert"],
            },
        )

        assert started.status_code == 200
        assert started.json()["status"] == "in_progress"
        assert resolved.status_code == 200
        data = resolved.json()
        assert data["status"] == "resolved"
        assert data["resolution"]["prevention_measures"] == ["Add billing alert"]
        assert data["resolved_at"] is not None

        specialists = {item["id"]: item for item in client.get("/specialists").json()}
        assert specialists["spec_1"]["current_load"] == 0

    def test_resolve_before_start(self, basic_config, reset_app_state):
        """Test resolving an assigned case is a conflict."""
        client = TestClient(create_app(config=basic_config))
        escalation = open_case(client)

        response = client.post(
            f"/escalations/{escalation['id']}/resolve",
            json={"action": "Fixed", "outcome": "ok"},
        )

        assert response.status_code == 409
        assert client.get(f"/escalations/{escalation['id']}").json()["status"] == "assigned"

    def test_resolve_empty_action(self, basic_config, reset_app_state):
        """Test an empty action is rejected."""
        client = TestClient(create_app(config=basic_config))
        escalation = open_case(client)
        client.post(f"/escalations/{escalation['id']}/start")

        response = client.post(
            f"/escalations/{escalation['id']}/resolve",
            json={"action": "  ", "outcome": "ok"},
        )

        assert response.status_code == 422

    def test_start_unknown_case(self, basic_config, reset_app_state):
        """Test starting a non-existent case."""
        client = TestClient(create_app(config=basic_config))

        response = client.post("/escalations/esc_missing/start")

        assert response.status_code == 404

    def test_start_twice(self, basic_config, reset_app_state):
        """Test starting a case already in progress is a conflict."""
        client = TestClient(create_app(config=basic_config))
        escalation = open_case(client)
        client.post(f"/escalations/{escalation['id']}/start")

        response = client.post(f"/escalations/{escalation['id']}/start")

        assert response.status_code == 409


class TestSpecialists:
    """Tests for GET /specialists endpoint."""

    def test_list_specialists(self, basic_config, reset_app_state):
        """Test specialists report their load."""
        client = TestClient(create_app(config=basic_config))
        open_case(client)

        response = client.get("/specialists")

        assert response.status_code == 200
        loads = {item["id"]: item["current_load"] for item in response.json()}
        assert loads == {"spec_1": 1, "spec_2": 0}

    def test_list_specialists_no_engine(self, reset_app_state):
        """Test listing specialists when the engine is not configured."""
        client = TestClient(create_app())

        assert client.get("/specialists").status_code == 503


class TestMetricsEndpoint:
    """Tests for the Prometheus endpoint."""

    def test_metrics_exposed(self, basic_config, reset_app_state):
        """Test engine counters are exported."""
        client = TestClient(create_app(config=basic_config))
        open_case(client)

        response = client.get("/metrics/")

        assert response.status_code == 200
        assert "triage_escalations_total" in response.text
        assert "triage_http_requests_total" in response.text
