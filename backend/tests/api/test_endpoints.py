"""
API Endpoint Tests

Tests the FastAPI endpoints using TestClient with millisecond stage
timings and a fake HTTP session for the fetch routes.
"""

import time

import pytest
import requests
from fastapi.testclient import TestClient

import api.dependencies
from api.app import create_app
from api.dependencies import AppState
from fetch.client import DataFetcher
from fetch.url_store import UrlStore


ECHO_URL = "http://localhost:5000/echo"


class FakeSession:
    def __init__(self, responses):
        self.responses = responses

    def get(self, url, timeout=None):
        if url not in self.responses:
            raise requests.ConnectionError(f"cannot reach {url}")
        status, body = self.responses[url]
        response = requests.Response()
        response.status_code = status
        response.url = url
        response._content = body.encode("utf-8")
        return response

    def close(self):
        pass


def wait_for_state(client, name, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if client.get("/api/automation/status").json()["state"] == name:
            return True
        time.sleep(0.005)
    return False


@pytest.fixture
def app_state(tmp_path, fast_settings):
    """Fresh AppState with a temp URL list and fake HTTP."""
    state = AppState(urls=UrlStore(tmp_path / "url_list.json"), settings=fast_settings)
    state.fetcher = DataFetcher(
        session=FakeSession({ECHO_URL: (200, '{"echo": "hello"}')}),
        on_problem=state._record_problem,
    )
    api.dependencies._app_state = state
    yield state
    state.controller.dispose()
    api.dependencies._app_state = None


@pytest.fixture
def client(app_state):
    app = create_app()
    with TestClient(app) as client:
        yield client


class TestAutomationEndpoints:

    def test_status_initially_idle(self, client):
        response = client.get("/api/automation/status")
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "Idle"
        assert data["is_running"] is False
        assert data["last_error"] is None
        assert len(data["states"]) == 10

    def test_start_then_stop(self, client):
        response = client.post("/api/automation/start")
        assert response.json()["success"]
        assert response.json()["already_running"] is False

        assert wait_for_state(client, "Processing")

        response = client.post("/api/automation/stop")
        data = response.json()
        assert data["success"]
        assert data["state"] == "Idle"
        assert data["is_running"] is False

    def test_second_start_reports_running(self, client):
        client.post("/api/automation/start")
        response = client.post("/api/automation/start")
        assert response.json()["already_running"] is True

    def test_emergency(self, client, app_state):
        client.post("/api/automation/start")
        assert wait_for_state(client, "Processing")

        response = client.post("/api/automation/emergency")

        assert response.json()["state"] == "Emergency"
        deadline = time.monotonic() + 2.0
        while app_state.controller.is_running and time.monotonic() < deadline:
            time.sleep(0.005)
        assert client.get("/api/automation/status").json()["state"] == "Emergency"

    def test_force_state(self, client):
        response = client.post("/api/automation/force", json={"state": "QUALITY_CHECK"})
        assert response.status_code == 200
        assert response.json()["state"] == "QualityCheck"

    def test_force_unknown_state(self, client):
        response = client.post("/api/automation/force", json={"state": "Paused"})
        assert response.status_code == 400

    def test_log_records_transitions(self, client):
        client.post("/api/automation/force", json={"state": "DataReport"})
        client.post("/api/automation/force", json={"state": "Complete"})

        response = client.get("/api/automation/log?limit=1")
        lines = response.json()["log"]
        assert [line["message"] for line in lines] == ["State changed: Complete"]

    def test_log_zero_limit(self, client):
        client.post("/api/automation/force", json={"state": "Complete"})
        assert client.get("/api/automation/log?limit=0").json()["log"] == []


class TestFetchEndpoints:

    def test_urls_empty(self, client):
        assert client.get("/api/urls").json() == {"urls": {}}

    def test_set_and_list_url(self, client):
        response = client.put("/api/urls/echo", json={"url": ECHO_URL})
        assert response.json()["success"]
        assert client.get("/api/urls").json()["urls"] == {"echo": ECHO_URL}

    def test_set_empty_url_rejected(self, client):
        response = client.put("/api/urls/echo", json={"url": "  "})
        assert response.status_code == 400

    def test_delete_url(self, client):
        client.put("/api/urls/echo", json={"url": ECHO_URL})
        assert client.delete("/api/urls/echo").json()["success"]
        assert client.delete("/api/urls/echo").status_code == 404

    def test_fetch_named_raw(self, client):
        client.put("/api/urls/echo", json={"url": ECHO_URL})

        data = client.get("/api/fetch/echo").json()

        assert data["success"]
        assert data["body"] == '{"echo": "hello"}'

    def test_fetch_unconfigured_name(self, client):
        data = client.get("/api/fetch/echo").json()
        assert data["success"] is False
        assert "No URL named 'echo'" in data["message"]

    def test_fetch_unreachable(self, client):
        client.put("/api/urls/down", json={"url": "http://10.0.0.1/down"})

        data = client.get("/api/fetch/down").json()

        assert data["success"] is False
        assert data["message"].startswith("HTTP request error")
