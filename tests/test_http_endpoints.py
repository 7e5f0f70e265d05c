"""Tests for the FastAPI transport."""

import pytest
from fastapi.testclient import TestClient

from iotdash.config.models import EnvSettings
from iotdash.server.app import DashboardServer
from iotdash.server.http import create_app


@pytest.fixture
def server(catalog, monkeypatch):
    monkeypatch.delenv("IOTDASH_HTTP_TOKEN", raising=False)
    monkeypatch.delenv("IOTDASH_CORS_ORIGINS", raising=False)
    return DashboardServer(catalog, EnvSettings())


@pytest.fixture
def client(server):
    with TestClient(create_app(server=server, run_ticker=False)) as test_client:
        yield test_client


def test_health_and_ready(client):
    """Liveness and readiness report ok once the lifespan has started."""
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/ready").json() == {"status": "ready"}


def test_capabilities(client):
    """Capabilities list every chart type and dashboard."""
    body = client.get("/capabilities").json()
    assert body["http_auth"] == "disabled"
    assert "gauge" in body["chart_types"]
    assert "aligned-series" in body["shapers"]
    assert "navigate_dashboard" in body["interaction_types"]
    assert body["dashboards"] == ["dash-main", "dash-x"]


def test_render_dashboard(client):
    """Rendering returns chart results and the grid layout."""
    resp = client.get("/dashboards/dash-main/render")
    assert resp.status_code == 200
    body = resp.json()
    assert [c["chart_id"] for c in body["charts"]][:2] == ["chart-bar", "chart-kpi"]
    assert body["layout"][1]["i"] == "chart-table"
    assert resp.headers["x-correlation-id"]


def test_render_table_query(client):
    """Table sort and page parameters reach the table chart."""
    resp = client.get(
        "/dashboards/dash-main/render",
        params={"table": "chart-table", "sort_key": "cpu", "sort_direction": "desc", "page": 1},
    )
    table = next(c for c in resp.json()["charts"] if c["chart_id"] == "chart-table")["table"]
    assert table["rows"][0]["name"] == "Sensor-3"
    assert table["page_count"] == 3


def test_render_unknown_dashboard(client):
    """Unknown dashboards return a structured 404."""
    resp = client.get("/dashboards/nope/render")
    assert resp.status_code == 404
    detail = resp.json()["detail"]
    assert detail["error_type"] == "dashboard_not_found"
    assert detail["available_options"] == ["dash-main", "dash-x"]


def test_update_filter(client):
    """Filter-widget changes return the effective filters."""
    resp = client.put("/dashboards/dash-main/filters", json={"key": "status", "value": "online"})
    assert resp.status_code == 200
    assert resp.json() == {"dashboard_id": "dash-main", "filters": {"status": "online"}}


def test_update_filter_validation_error(client):
    """Malformed bodies are rejected with a validation error."""
    resp = client.put("/dashboards/dash-main/filters", json={})
    assert resp.status_code == 400
    assert resp.json()["detail"]["error_type"] == "validation_error"


def test_drill_down_flow(client):
    """Click, render the target, then go back."""
    resp = client.post(
        "/dashboards/dash-main/interactions",
        json={"chart_id": "chart-bar", "payload": {"name": "Gateway", "value": 95}},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["kind"] == "navigate"
    assert body["frame"]["targetDashboardId"] == "dash-x"
    assert body["frame"]["filters"] == {"device_name": "Gateway"}

    nav = client.get("/navigation").json()
    assert nav["active_dashboard_id"] == "dash-x"
    assert nav["depth"] == 1

    render = client.get("/dashboards/dash-x/render").json()
    assert render["drilled_in"] is True
    assert render["charts"][0]["scalar"] == 21.0

    back = client.post("/navigation/back").json()
    assert back["depth"] == 0
    assert back["active_dashboard_id"] == "dash-main"


def test_broken_navigation_returns_404(client):
    """A missing navigation target surfaces as a navigation error."""
    resp = client.post(
        "/dashboards/dash-main/interactions",
        json={"chart_id": "chart-broken-link", "payload": {"name": "Gateway"}},
    )
    assert resp.status_code == 404
    detail = resp.json()["detail"]
    assert detail["error_type"] == "navigation_error"
    assert "missing" in detail["detail"]


def test_interaction_unknown_chart(client):
    """Unknown charts return a structured 404."""
    resp = client.post(
        "/dashboards/dash-main/interactions",
        json={"chart_id": "nope", "payload": {"name": "x"}},
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["error_type"] == "chart_not_found"


def test_menu_navigation(client):
    """Menu navigation clears the stack."""
    client.post(
        "/dashboards/dash-main/interactions",
        json={"chart_id": "chart-bar", "payload": {"name": "Gateway"}},
    )
    body = client.post("/navigation/menu", json={"section": "monitor"}).json()
    assert body["depth"] == 0
    assert body["menu_section"] == "monitor"
    resp = client.post("/navigation/menu", json={"section": "monitor", "dashboard_id": "nope"})
    assert resp.status_code == 404


def test_alarm_events_and_ack(client, server):
    """Fired events are listed and can be acknowledged."""
    (event,) = server.alarms.evaluate(server.devices())
    events = client.get("/alarms/events", params={"status": "active"}).json()
    assert [e["deviceId"] for e in events] == ["DEV-1"]
    acked = client.post(f"/alarms/events/{event.id}/ack").json()
    assert acked["status"] == "acknowledged"
    assert client.get("/alarms/events", params={"status": "active"}).json() == []
    missing = client.post("/alarms/events/nope/ack")
    assert missing.status_code == 404
    assert missing.json()["detail"]["error_type"] == "event_not_found"


def test_devices_snapshot(client):
    """The device snapshot is exposed read-only."""
    body = client.get("/devices").json()
    assert [d["id"] for d in body] == ["DEV-1", "DEV-2", "DEV-3"]


def _client_with(catalog, settings):
    return TestClient(create_app(server=DashboardServer(catalog, settings), run_ticker=False))


def test_bearer_token_auth(catalog):
    """When a token is configured, protected endpoints require it."""
    with _client_with(catalog, EnvSettings(http_token="secret")) as client:
        assert client.get("/devices").status_code == 401
        wrong = client.get("/devices", headers={"Authorization": "Bearer nope"})
        assert wrong.status_code == 403
        ok = client.get("/devices", headers={"Authorization": "Bearer secret"})
        assert ok.status_code == 200
        assert client.get("/health").status_code == 200
        assert client.get("/capabilities").json()["http_auth"] == "enabled"


def test_token_from_env_file(catalog, tmp_path, monkeypatch):
    """A token set only in the .env file enables auth."""
    monkeypatch.delenv("IOTDASH_HTTP_TOKEN", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("IOTDASH_HTTP_TOKEN=from-dotenv\n", encoding="utf-8")
    settings = EnvSettings(_env_file=env_file)
    assert settings.http_token == "from-dotenv"
    with _client_with(catalog, settings) as client:
        assert client.get("/devices").status_code == 401
        ok = client.get("/devices", headers={"Authorization": "Bearer from-dotenv"})
        assert ok.status_code == 200


def test_token_from_environment(catalog, monkeypatch):
    """IOTDASH_HTTP_TOKEN in the environment reaches the auth dependency."""
    monkeypatch.setenv("IOTDASH_HTTP_TOKEN", "env-secret")
    with _client_with(catalog, EnvSettings()) as client:
        assert client.get("/devices").status_code == 401
        ok = client.get("/devices", headers={"Authorization": "Bearer env-secret"})
        assert ok.status_code == 200


def test_cors_origins_from_settings(catalog):
    """Configured origins are allowed and reported."""
    settings = EnvSettings(cors_origins="http://dash.local, http://ops.local")
    with _client_with(catalog, settings) as client:
        resp = client.get("/health", headers={"Origin": "http://dash.local"})
        assert resp.headers["access-control-allow-origin"] == "http://dash.local"
        body = client.get("/capabilities").json()
        assert body["cors_origins"] == ["http://dash.local", "http://ops.local"]
