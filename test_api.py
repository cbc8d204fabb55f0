"""HTTP interface tests."""

import pytest
from fastapi.testclient import TestClient

from tunnel_config import main
from tunnel_config.netcfg.models import RedirectMethod


ROUTE_PRINT = "          0.0.0.0          0.0.0.0      192.168.1.1    192.168.1.100     25\n"

PARAMETERS = {
    "TUNDEV": "tun0",
    "TUNIDX": "12",
    "VPNGATEWAY": "203.0.113.10",
    "INTERNAL_IP4_ADDRESS": "10.1.2.3",
    "INTERNAL_IP4_NETMASK": "255.255.255.0",
}


@pytest.fixture
def commands(monkeypatch):
    ran = []

    def runner(cmd):
        ran.append(" ".join(cmd))
        if cmd == ["route", "print"]:
            return ROUTE_PRINT, 0
        if cmd[:2] == ["route", "add"] and cmd[2] == "203.0.113.10":
            return "The route addition failed: The object already exists.", 5
        return "", 0

    monkeypatch.setattr(main.dispatcher, "runner", runner)
    monkeypatch.setattr(main.dispatcher, "silent_runner", lambda cmd: None)
    monkeypatch.setattr(main.dispatcher, "last_result", None)
    return ran


@pytest.fixture
def client():
    return TestClient(main.app)


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["redirect_method"] in RedirectMethod.__members__


def test_connect_event(client, commands) -> None:
    response = client.post("/events", json={"reason": "connect", "parameters": PARAMETERS})
    assert response.status_code == 200

    report = response.json()
    assert report["reason"] == "connect"
    assert report["status"] == 5
    assert report["succeeded"] is False
    assert report["actions"][0] == {
        "kind": "add-route",
        "command": ["route", "add", "203.0.113.10", "mask", "255.255.255.255", "192.168.1.1"],
        "exit_code": 5,
        "output": "The route addition failed: The object already exists.",
    }
    assert "Legacy IP Internet gateway: 192.168.1.1" in report["log"]
    assert "netsh interface ipv4 delete winsservers 12 all" in commands


def test_pre_init_event(client, commands) -> None:
    response = client.post("/events", json={"reason": "pre-init"})
    assert response.status_code == 200
    assert response.json()["status"] == 0
    assert response.json()["actions"] == []
    assert commands == []


@pytest.mark.parametrize("reason", ["teardown", ""])
def test_rejected_event(client, commands, reason) -> None:
    response = client.post("/events", json={"reason": reason, "parameters": PARAMETERS})
    assert response.status_code == 422
    assert commands == []


def test_malformed_parameter_is_reported(client, commands) -> None:
    parameters = dict(PARAMETERS, INTERNAL_IP4_NBNS="10.0.0.7 wins.corp")
    response = client.post("/events", json={"reason": "disconnect", "parameters": parameters})
    assert response.status_code == 200
    report = response.json()
    assert report["status"] == 1
    assert [a["command"][:2] for a in report["actions"]] == [["route", "delete"], ["netsh", "interface"]]
    assert "INTERNAL_IP4_NBNS entry 'wins.corp' is not a valid IP address, ignored" in report["log"]


def test_last_result(client, commands) -> None:
    assert client.get("/last_result").status_code == 404

    client.post("/events", json={"reason": "disconnect", "parameters": PARAMETERS})
    response = client.get("/last_result")
    assert response.status_code == 200
    assert response.json()["reason"] == "disconnect"
    assert response.json()["actions"][0]["command"] == \
        ["route", "delete", "203.0.113.10", "mask", "255.255.255.255"]
