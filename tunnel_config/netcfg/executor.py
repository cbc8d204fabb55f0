"""Command executor with per-session exit status accounting."""

from typing import Callable, List, Tuple

from .actions import ConfigurationAction
from .command_factory import NetshCommandFactory
from .commands import ValidationError
from .exceptions import CommandError
from .models import ActionOutcome, SessionResult
from .utils import run_command, run_silent
from ..logging_utility import SessionLog


Runner = Callable[[List[str]], Tuple[str, int]]
SilentRunner = Callable[[List[str]], None]


class CommandExecutor:
    """
    Runs configuration commands one at a time.

    Every exit code is added to the session status, so the total is non-zero
    if and only if some command failed. Failures are logged, never raised.
    """

    def __init__(self, session_log: SessionLog, result: SessionResult,
                 runner: Runner = run_command, silent_runner: SilentRunner = run_silent):
        self.log = session_log
        self.result = result
        self.runner = runner
        self.silent_runner = silent_runner

    def _run(self, cmd: List[str]) -> Tuple[str, int]:
        cmd_str = " ".join(cmd)
        self.log.debug(f"-> {cmd_str}")
        try:
            output, exit_code = self.runner(cmd)
        except CommandError as e:
            output, exit_code = str(e), 1

        if exit_code != 0:
            self.log.error(f"\"{cmd_str}\" returned non-zero exit status: {exit_code}")
            self.log.error(f"   stdout+stderr dump: {output}")
        else:
            self.log.trace(f"   stdout+stderr dump: {output}")
        return output, exit_code

    def execute(self, action: ConfigurationAction) -> ActionOutcome:
        """Serialize and run one action, recording its outcome."""
        try:
            cmd = NetshCommandFactory.for_action(action)
        except ValidationError as e:
            self.log.error(f"Cannot build command for {action}: {e}")
            outcome = ActionOutcome(action=action, command=[], exit_code=1, output=str(e))
        else:
            output, exit_code = self._run(cmd)
            outcome = ActionOutcome(action=action, command=cmd, exit_code=exit_code, output=output)
        self.result.record(outcome)
        return outcome

    def query(self, cmd: List[str]) -> str:
        """Run a read-only command and return its output."""
        output, exit_code = self._run(cmd)
        self.result.add_exit_code(exit_code)
        return output

    def run_silent(self, cmd: List[str]) -> None:
        self.silent_runner(cmd)
