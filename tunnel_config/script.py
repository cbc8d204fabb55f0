#!python3
"""vpnc-script entry point.

The VPN client runs this once per lifecycle event with ``reason`` and the
connection parameters in the environment. The process exits with the
accumulated status of all configuration commands.
"""

import argparse
import os
import sys
from typing import List, Optional, Tuple

from .config import DEFAULT_CONFIG_FILE, load_settings
from .logging_utility import logger
from .netcfg.dispatcher import EventDispatcher
from .netcfg.exceptions import ConfigurationError
from .netcfg.models import ConnectionParameters, Reason


# POSIX keeps only the low 8 bits of an exit status; Windows keeps 32
EXIT_STATUS_LIMIT = None if os.name == "nt" else 255


def dry_run_command(cmd: List[str]) -> Tuple[str, int]:
    """Runner that only prints the command."""
    print(f"[dry-run] {' '.join(cmd)}")
    return "", 0


def dry_run_silent(cmd: List[str]) -> None:
    pass


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Routing, IP and DNS configuration script for a VPN tunnel interface")
    parser.add_argument('-c', '--config',
                        default=os.environ.get("TUNNEL_CONFIG_FILE", DEFAULT_CONFIG_FILE),
                        help='INI configuration file (default: %(default)s)')
    parser.add_argument('-n', '--dry-run', action='store_true',
                        help='Print the commands instead of running them')
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
        reason = Reason.parse(os.environ.get("reason"))
    except ConfigurationError as e:
        logger.error(str(e))
        return 1
    params = ConnectionParameters.from_environ(os.environ)

    if args.dry_run:
        dispatcher = EventDispatcher(settings, runner=dry_run_command, silent_runner=dry_run_silent)
    else:
        dispatcher = EventDispatcher(settings)
    status = dispatcher.dispatch(reason, params).status
    if EXIT_STATUS_LIMIT is not None:
        status = min(status, EXIT_STATUS_LIMIT)
    return status


if __name__ == '__main__':
    sys.exit(main())
