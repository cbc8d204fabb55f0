"""Utility functions for running configuration commands."""

import subprocess
from typing import Tuple

from .exceptions import CommandError


def run_command(cmd: list[str]) -> Tuple[str, int]:
    """
    Run a command and return its combined output.

    Args:
        cmd: Command as list of strings

    Returns:
        Tuple of (stdout+stderr, exit code)
    """
    try:
        # chcp 65001 has switched the console to UTF-8
        result = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        raise CommandError(f"Could not run {' '.join(cmd)}: {e}")

    return result.stdout or "", result.returncode


def run_silent(cmd: list[str]) -> None:
    """Run a cosmetic command, discarding its output and status."""
    try:
        subprocess.run(cmd, stdin=subprocess.DEVNULL,
                       stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except OSError:
        pass
