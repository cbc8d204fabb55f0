"""Unit tests for the command executor, gateway discovery and session log."""

import logging
import re
import sys

import pytest

from tunnel_config.config import LogSettings
from tunnel_config.logging_utility import TRACE, SessionLog
from tunnel_config.netcfg.actions import AddRoute4, ClearWins, SetMtu
from tunnel_config.netcfg.exceptions import CommandError
from tunnel_config.netcfg.executor import CommandExecutor
from tunnel_config.netcfg.gateway import GatewayDiscovery
from tunnel_config.netcfg.models import Ipv6Gateway, Reason, SessionResult
from tunnel_config.netcfg.utils import run_command

ROUTE_PRINT = """\
===========================================================================
IPv4 Route Table
===========================================================================
Active Routes:
Network Destination        Netmask          Gateway       Interface  Metric
          0.0.0.0          0.0.0.0      192.168.1.1    192.168.1.100     25
        127.0.0.0        255.0.0.0         On-link         127.0.0.1    331
      192.168.1.0    255.255.255.0         On-link     192.168.1.100    281
"""

NETSH_ROUTES = """\

Publish  Type      Met  Prefix                    Idx  Gateway/Interface Name
-------  --------  ---  ------------------------  ---  ------------------------
No       Manual    256  ::/0                        7  fe80::1
No       System    256  ::1/128                     1  Loopback Pseudo-Interface 1
"""


class ScriptedRunner:
    """Returns scripted (output, exit code) pairs in call order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.commands = []

    def __call__(self, cmd):
        self.commands.append(cmd)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_executor(runner, level=TRACE):
    session_log = SessionLog(LogSettings(level=level))
    result = SessionResult(reason=Reason.CONNECT)
    return CommandExecutor(session_log, result, runner=runner, silent_runner=lambda cmd: None), session_log


class TestCommandExecutor:
    def test_exit_codes_are_summed(self) -> None:
        runner = ScriptedRunner(("Ok.", 0), ("Element not found.", 1), ("The parameter is incorrect.", 2))
        executor, session_log = make_executor(runner)
        for mtu in (1400, 1300, 1200):
            executor.execute(SetMtu(interface="12", mtu=mtu))
        session_log.close()
        assert executor.result.status == 3
        assert [o.exit_code for o in executor.result.outcomes] == [0, 1, 2]
        assert executor.result.outcomes[0].command == \
            ["netsh", "interface", "ipv4", "set", "subinterface", "12", "mtu=1400", "store=active"]

    def test_failure_is_logged_and_execution_continues(self) -> None:
        runner = ScriptedRunner(("Element not found.", 1), ("Ok.", 0))
        executor, session_log = make_executor(runner, level=logging.ERROR)
        executor.execute(ClearWins(interface="12"))
        outcome = executor.execute(ClearWins(interface="13"))
        session_log.close()
        assert outcome.succeeded
        assert session_log.lines == [
            "\"netsh interface ipv4 delete winsservers 12 all\" returned non-zero exit status: 1",
            "   stdout+stderr dump: Element not found.",
        ]

    def test_success_output_only_at_trace(self) -> None:
        runner = ScriptedRunner(("Ok.", 0))
        executor, session_log = make_executor(runner, level=logging.DEBUG)
        executor.execute(ClearWins(interface="12"))
        session_log.close()
        assert session_log.lines == ["-> netsh interface ipv4 delete winsservers 12 all"]

    def test_missing_executable_counts_as_failure(self) -> None:
        runner = ScriptedRunner(CommandError("Could not run netsh"))
        executor, session_log = make_executor(runner)
        outcome = executor.execute(ClearWins(interface="12"))
        session_log.close()
        assert outcome.exit_code == 1
        assert executor.result.status == 1

    def test_unbuildable_action_counts_as_failure(self) -> None:
        runner = ScriptedRunner()
        executor, session_log = make_executor(runner)
        # route's "if" keyword takes an interface index, not a name
        outcome = executor.execute(AddRoute4(network="10.10.0.0", netmask="255.255.0.0",
                                             gateway="10.1.2.3", interface="tun0"))
        session_log.close()
        assert outcome.exit_code == 1
        assert outcome.command == []
        assert runner.commands == []
        assert executor.result.status == 1

    def test_query_accumulates(self) -> None:
        runner = ScriptedRunner(("", 1))
        executor, session_log = make_executor(runner)
        executor.query(["route", "print"])
        session_log.close()
        assert executor.result.status == 1
        assert executor.result.outcomes == []


class TestGatewayDiscovery:
    def test_snapshot(self) -> None:
        runner = ScriptedRunner((ROUTE_PRINT, 0), (NETSH_ROUTES, 0))
        executor, session_log = make_executor(runner)
        snapshot = GatewayDiscovery(executor).snapshot()
        session_log.close()
        assert snapshot.ipv4 == "192.168.1.1"
        assert snapshot.ipv6 == Ipv6Gateway(interface="7", address="fe80::1")
        assert str(snapshot.ipv6) == "7 fe80::1"
        assert runner.commands == [["route", "print"], ["netsh", "interface", "ipv6", "show", "route"]]

    def test_split_default_half(self) -> None:
        table = "          0.0.0.0        128.0.0.0         10.1.2.3         10.1.2.3      1\n"
        runner = ScriptedRunner((table, 0))
        executor, session_log = make_executor(runner)
        assert GatewayDiscovery(executor).snapshot_ipv4() == "10.1.2.3"
        session_log.close()

    def test_no_default_routes(self) -> None:
        runner = ScriptedRunner(("Active Routes:\nNone\n", 0), ("No routes.\n", 0))
        executor, session_log = make_executor(runner)
        snapshot = GatewayDiscovery(executor).snapshot()
        session_log.close()
        assert snapshot.ipv4 is None
        assert snapshot.ipv6 is None
        assert executor.result.status == 0

    def test_partial_snapshot(self) -> None:
        runner = ScriptedRunner((NETSH_ROUTES, 0))
        executor, session_log = make_executor(runner)
        snapshot = GatewayDiscovery(executor).snapshot(ipv4=False, ipv6=True)
        session_log.close()
        assert snapshot.ipv4 is None
        assert snapshot.ipv6 is not None
        assert len(runner.commands) == 1


class TestSessionLog:
    def test_threshold(self) -> None:
        session_log = SessionLog(LogSettings(level=logging.INFO))
        session_log.error("e")
        session_log.info("i")
        session_log.debug("d")
        session_log.trace("t")
        session_log.close()
        assert session_log.lines == ["e", "i"]

    def test_file_with_timestamps(self, tmp_path) -> None:
        settings = LogSettings(level=logging.INFO, to_file=True, timestamps=True, directory=str(tmp_path))
        with SessionLog(settings) as session_log:
            session_log.info("Configured Legacy IP default route.")
        content = (tmp_path / "vpnc.log").read_text(encoding="utf-8")
        assert re.match(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] Configured Legacy IP default route\.$",
                        content.strip())
        assert session_log.log_file == str(tmp_path / "vpnc.log")

    def test_close_detaches_handlers(self) -> None:
        session_log = SessionLog(LogSettings(level=logging.INFO))
        session_log.close()
        session_log.info("late")
        assert session_log.lines == []

    def test_unwritable_directory_falls_back_to_stdout(self, tmp_path, capsys) -> None:
        blocker = tmp_path / "vpnc"
        blocker.write_text("")
        settings = LogSettings(level=logging.INFO, to_file=True, directory=str(blocker))
        with SessionLog(settings) as session_log:
            session_log.info("Configured Legacy IP default route.")
        assert session_log.log_file is None
        assert session_log.lines == ["Configured Legacy IP default route."]
        assert "Configured Legacy IP default route." in capsys.readouterr().out


class TestRunCommand:
    def test_nonzero_exit_is_returned(self) -> None:
        output, exit_code = run_command([sys.executable, "-c", "import sys; print('Element not found.'); sys.exit(3)"])
        assert exit_code == 3
        assert output.strip() == "Element not found."

    def test_missing_executable(self, tmp_path) -> None:
        with pytest.raises(CommandError):
            run_command([str(tmp_path / "netsh-missing")])
