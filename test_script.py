"""Tests of the vpnc-script entry point."""

import pytest

from tunnel_config import script


def dry_run_lines(capsys):
    # the session log shares stdout
    return [line for line in capsys.readouterr().out.splitlines() if line.startswith("[dry-run]")]


@pytest.fixture
def environment(monkeypatch, tmp_path):
    for key in ("LOG_LEVEL", "LOG2FILE", "TUNNEL_CONFIG_FILE"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("TUNDEV", "tun0")
    monkeypatch.setenv("TUNIDX", "12")
    monkeypatch.setenv("VPNGATEWAY", "203.0.113.10")
    monkeypatch.setenv("INTERNAL_IP4_ADDRESS", "10.1.2.3")
    monkeypatch.setenv("INTERNAL_IP4_NETMASK", "255.255.255.0")
    return str(tmp_path / "missing.conf")


def test_dry_run_connect(monkeypatch, capsys, environment) -> None:
    monkeypatch.setenv("reason", "connect")
    assert script.main(["--config", environment, "--dry-run"]) == 0

    printed = dry_run_lines(capsys)
    assert printed[0] == "[dry-run] route print"
    assert "[dry-run] netsh interface ip set address 12 static 10.1.2.3 255.255.255.0 10.1.2.3 gwmetric=1 " \
           "store=active" in printed
    # no gateway in the (empty) dry-run route table
    assert not any(line.startswith("[dry-run] route add 203.0.113.10") for line in printed)


def test_dry_run_disconnect(monkeypatch, capsys, environment) -> None:
    monkeypatch.setenv("reason", "disconnect")
    assert script.main(["-c", environment, "-n"]) == 0
    printed = dry_run_lines(capsys)
    assert printed[0] == "[dry-run] route delete 203.0.113.10 mask 255.255.255.255"
    assert printed[-1] == "[dry-run] netsh interface ipv4 delete address 12 10.1.2.3 gateway=all"


@pytest.mark.parametrize("reason", [None, "teardown"])
def test_bad_reason_exits_nonzero(monkeypatch, environment, reason) -> None:
    if reason is None:
        monkeypatch.delenv("reason", raising=False)
    else:
        monkeypatch.setenv("reason", reason)
    assert script.main(["-c", environment, "-n"]) == 1


def test_malformed_parameter_does_not_stop_disconnect(monkeypatch, capsys, environment) -> None:
    monkeypatch.setenv("reason", "disconnect")
    monkeypatch.setenv("INTERNAL_IP4_NBNS", "10.0.0.7 wins.corp")
    assert script.main(["-c", environment, "-n"]) == 1
    assert dry_run_lines(capsys) == [
        "[dry-run] route delete 203.0.113.10 mask 255.255.255.255",
        "[dry-run] netsh interface ipv4 delete address 12 10.1.2.3 gateway=all",
    ]


@pytest.mark.parametrize("limit, expected", [(255, 255), (None, 400)])
def test_exit_status_limit(monkeypatch, environment, limit, expected) -> None:
    monkeypatch.setenv("reason", "disconnect")
    monkeypatch.setattr(script, "EXIT_STATUS_LIMIT", limit)
    monkeypatch.setattr(script, "dry_run_command", lambda cmd: ("", 200))
    assert script.main(["-c", environment, "-n"]) == expected
