"""Discovery of the pre-VPN default gateways."""

import re
from typing import Optional

from .command_factory import NetshCommandFactory
from .executor import CommandExecutor
from .models import GatewaySnapshot, Ipv6Gateway


# "0.0.0.0  0.0.0.0  192.168.1.1 ..." (or a 128.0.0.0 half of a split default)
IPV4_DEFAULT_ROUTE = re.compile(r"0\.0\.0\.0 *(0|128)\.0\.0\.0 *([0-9.]*)")
# "::/0   12  fe80::1"
IPV6_DEFAULT_ROUTE = re.compile(r"::/0 *([0-9]+) *([0-9a-f:]+)")


class GatewayDiscovery:
    """Read-only queries of the current default routes."""

    def __init__(self, executor: CommandExecutor):
        self.executor = executor

    def snapshot_ipv4(self) -> Optional[str]:
        """First default-route gateway in the legacy IP table, or None."""
        match = IPV4_DEFAULT_ROUTE.search(self.executor.query(NetshCommandFactory.print_routes()))
        if match and match.group(2):
            return match.group(2)
        return None

    def snapshot_ipv6(self) -> Optional[Ipv6Gateway]:
        """Interface and next hop of the ::/0 route, or None."""
        match = IPV6_DEFAULT_ROUTE.search(self.executor.query(NetshCommandFactory.show_ipv6_routes()))
        if match:
            return Ipv6Gateway(interface=match.group(1), address=match.group(2))
        return None

    def snapshot(self, ipv4: bool = True, ipv6: bool = True) -> GatewaySnapshot:
        return GatewaySnapshot(
            ipv4=self.snapshot_ipv4() if ipv4 else None,
            ipv6=self.snapshot_ipv6() if ipv6 else None,
        )
