"""Lifecycle event dispatching."""

from threading import Lock
from typing import Iterable, Optional, Union

from .actions import Notice, PlanStep
from .command_factory import NetshCommandFactory
from .executor import CommandExecutor, Runner, SilentRunner
from .gateway import GatewayDiscovery
from .models import ConnectionParameters, Reason, SessionResult
from .planner import ConfigurationPlanner
from .utils import run_command, run_silent
from ..config import Settings
from ..logging_utility import SessionLog, logger


class EventDispatcher:
    """
    Runs one lifecycle event at a time against the live network configuration.

    A failing action never stops the phase; its exit status is added to the
    session status and the next action runs. Nothing is rolled back.
    """

    def __init__(self, settings: Settings,
                 runner: Runner = run_command, silent_runner: SilentRunner = run_silent):
        self.settings = settings
        self.planner = ConfigurationPlanner(settings.redirect_method)
        self.runner = runner
        self.silent_runner = silent_runner

        # only one event may be processed at the same time
        self.lock = Lock()
        self.last_result: Optional[SessionResult] = None

    def dispatch(self, reason: Union[Reason, str], params: ConnectionParameters) -> SessionResult:
        """
        Process one lifecycle event.

        Args:
            reason: Event tag (pre-init, connect, disconnect, ...)
            params: Parameters delivered with the event

        Returns:
            SessionResult; status 0 means every command succeeded
        """
        if not isinstance(reason, Reason):
            reason = Reason.parse(reason)

        with self.lock:
            result = SessionResult(reason=reason)
            session_log = SessionLog(self.settings.log)
            result.log_lines = session_log.lines
            try:
                executor = CommandExecutor(session_log, result, self.runner, self.silent_runner)
                # known console encoding for the logged command output
                executor.run_silent(NetshCommandFactory.console_utf8())

                if reason is Reason.CONNECT:
                    self._connect(params, executor, session_log)
                elif reason is Reason.DISCONNECT:
                    self._disconnect(params, executor, session_log)
                else:
                    session_log.debug(f"Nothing to configure for {reason.value}")
            finally:
                session_log.close()
            self.last_result = result

        logger.info(f"{reason.value} finished with status {result.status}")
        return result

    def _connect(self, params: ConnectionParameters, executor: CommandExecutor,
                 session_log: SessionLog) -> None:
        if params.banner:
            session_log.info("--------------------- BANNER ---------------------")
            session_log.info(params.banner)
            session_log.info("------------------- BANNER end -------------------")

        snapshot = GatewayDiscovery(executor).snapshot()

        session_log.info(f"Legacy IP Internet gateway: {snapshot.ipv4 or ''}")
        session_log.info(f"IPv6 Internet gateway     : {snapshot.ipv6 or ''}")
        session_log.info(f"VPN Interface Identifiers : \"{params.tundev or ''}\" / {params.tunidx or ''}")
        session_log.info(f"Public VPN Gateway Address: {params.vpn_gateway or ''}")
        session_log.info(f"Internal Legacy IP Address: {params.internal_ip4_address or ''}")
        session_log.info(f"Internal Legacy IP Netmask: {params.internal_ip4_netmask}")

        self._execute(self.planner.plan_connect(params, snapshot), executor, session_log)

    def _disconnect(self, params: ConnectionParameters, executor: CommandExecutor,
                    session_log: SessionLog) -> None:
        ipv4, ipv6 = self.planner.gateways_for_disconnect(params)
        snapshot = GatewayDiscovery(executor).snapshot(ipv4=ipv4, ipv6=ipv6)
        self._execute(self.planner.plan_disconnect(params, snapshot), executor, session_log)

    @staticmethod
    def _execute(steps: Iterable[PlanStep], executor: CommandExecutor, session_log: SessionLog) -> None:
        for step in steps:
            if isinstance(step, Notice):
                session_log.log(step.level, step.message)
                executor.result.add_exit_code(step.exit_code)
            else:
                executor.execute(step)
