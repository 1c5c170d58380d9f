"""Tests for the /panel and /simulator HTTP routes against the virtual device."""

import pytest
from fastapi.testclient import TestClient

from snapcap_panel.api.app import build_panel_app
from snapcap_panel.config.models import AppConfig, SimulatorConfig


@pytest.fixture
def client(poll_timer):
    config = AppConfig(simulator=SimulatorConfig(enabled=True, motion_seconds=0.0))
    app = build_panel_app(config, use_simulator=True, poll_timer=poll_timer)

    with TestClient(app) as test_client:
        yield test_client


def connect(client):
    response = client.post("/panel/connect", json={"port": "SIMULATOR"})
    assert response.status_code == 200
    return response.json()


def test_status_when_disconnected(client):
    data = client.get("/panel/status").json()

    assert data["mode"] == "simulator"
    assert data["connected"] is False
    assert not any(data["enablement"].values())


def test_command_when_disconnected_is_conflict(client):
    response = client.post("/panel/open")

    assert response.status_code == 409
    assert response.json()["error"] == "NotConnected"


def test_connect_without_port(client):
    assert client.post("/panel/connect", json={}).status_code == 400


def test_connect_reports_device(client):
    data = connect(client)

    assert data["connected"] is True
    assert data["device_tag"] == "0100"
    assert data["cover_status"] == "CLOSED"
    assert data["cover_label"] == "Closed"
    assert data["enablement"]["open"] is True
    assert data["enablement"]["close"] is False


def test_open_then_refresh(client):
    connect(client)

    assert client.post("/panel/open").json()["poll_pending"] is True

    data = client.get("/panel/status", params={"refresh": True}).json()
    assert data["cover_status"] == "OPEN"
    assert data["enablement"]["close"] is True


def test_light_and_brightness(client):
    connect(client)

    assert client.post("/panel/light-on").json()["light_label"] == "On"

    data = client.put("/panel/brightness", json={"percent": 50}).json()
    assert data["brightness"] == 128
    assert data["brightness_percent"] == 50


def test_brightness_out_of_range(client):
    connect(client)
    assert client.put("/panel/brightness", json={"percent": 150}).status_code == 422


def test_wrong_echo_is_bad_gateway(client):
    connect(client)
    client.put("/simulator/injection", json={"wrong_echo": True})

    response = client.post("/panel/light-on")

    assert response.status_code == 502
    assert response.json()["error"] == "UnexpectedReply"
    assert client.get("/panel/status").json()["recent_errors"]


def test_handshake_failure(client):
    client.put("/simulator/injection", json={"silence": True})

    response = client.post("/panel/connect", json={"port": "SIMULATOR"})

    assert response.status_code == 502
    assert response.json()["error"] == "HandshakeFailed"


def test_unplug_disconnects(client):
    connect(client)
    client.post("/simulator/unplug")

    response = client.post("/panel/abort")

    assert response.status_code == 503
    assert response.json()["error"] == "TransportFault"
    assert client.get("/panel/status").json()["connected"] is False


def test_simulator_fault(client):
    connect(client)
    assert client.post("/simulator/fault", json={"status": "overcurrent"}).status_code == 200

    data = client.get("/panel/status", params={"refresh": True}).json()
    assert data["cover_label"] == "Overcurrent"
    assert data["enablement"]["open"] is False
    assert data["enablement"]["force_open"] is True


def test_simulator_fault_unknown_status(client):
    assert client.post("/simulator/fault", json={"status": "jammed"}).status_code == 400


def test_protocol_log(client):
    client.delete("/panel/protocol-log")
    connect(client)

    data = client.get("/panel/protocol-log", params={"limit": 10}).json()

    assert data["stats"]["tx_count"] >= 1
    assert data["messages"][0]["direction"] == "TX"
    assert data["messages"][0]["decoded"]["cmd"] == "V"
