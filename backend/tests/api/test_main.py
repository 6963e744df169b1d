"""
Entry point tests: health check and lifespan shutdown.
"""

import pytest
from fastapi.testclient import TestClient

import api.dependencies
from api.dependencies import AppState
from fetch.url_store import UrlStore


@pytest.fixture
def app_state(tmp_path, fast_settings):
    urls = UrlStore(tmp_path / "url_list.json")
    urls.set("echo", "http://localhost:5000/echo")
    state = AppState(urls=urls, settings=fast_settings)
    api.dependencies._app_state = state
    yield state
    state.controller.dispose()
    api.dependencies._app_state = None


def test_health(app_state, capsys):
    import main

    with TestClient(main.app) as client:
        data = client.get("/health").json()

    assert data["status"] == "ok"
    assert data["automation"] == {"state": "Idle", "is_running": False}
    assert "URL 'echo'" in capsys.readouterr().out


def test_shutdown_disposes_controller(app_state, wait_for):
    import main

    with TestClient(main.app) as client:
        client.post("/api/automation/start")
        assert wait_for(lambda: app_state.controller.state.value == "Processing")

    assert app_state.controller.is_running is False
    assert app_state.controller.state.value == "Idle"

    # The disposed controller runs again on the next start, and is disposed again
    with TestClient(main.app) as client:
        response = client.post("/api/automation/start")
        assert response.status_code == 200
        assert response.json()["is_running"] is True
    assert app_state.controller.is_running is False
