"""Connect/disconnect planning.

Turns one set of connection parameters plus the pre-VPN gateway snapshot into
the ordered list of steps the dispatcher executes. Planning never touches the
system; everything it needs to know about the host is in the snapshot.
"""

import logging
from typing import List, Tuple

from .actions import (
    HOST_NETMASK,
    IPV6_GLOBAL_UNICAST,
    TUNNEL_IPV6_NEXT_HOP,
    AddDns,
    AddRoute4,
    AddRoute6,
    AddWins,
    ClearDns,
    ClearWins,
    DeleteAddress4,
    DeleteAddress6,
    DeleteRoute4,
    DeleteRoute6,
    Notice,
    PlanStep,
    SetAddress4,
    SetAddress6,
    SetInterfaceMetric,
    SetMtu,
)
from .models import AddressFamily, ConnectionParameters, GatewaySnapshot, RedirectMethod


DEFAULT_ROUTE_METRIC = 1


def _missing(key: str, consequence: str) -> Notice:
    return Notice(f"Missing required parameter {key}; {consequence}", level=logging.ERROR)


class ConfigurationPlanner:
    """
    Plans the network changes for a lifecycle event.

    Args:
        redirect_method: Deployment-wide choice of how the tunnel becomes the
            default route when the server sends no split-include list
    """

    def __init__(self, redirect_method: RedirectMethod = RedirectMethod.INTERFACE_GATEWAY):
        self.redirect_method = redirect_method

    def _preconditions(self, params: ConnectionParameters) -> List[Notice]:
        notices = [Notice(problem, level=logging.ERROR, exit_code=1) for problem in params.problems]
        if params.tunidx is None:
            notices.append(_missing("TUNIDX", "interface configuration is skipped"))
        if params.vpn_gateway is None:
            notices.append(_missing("VPNGATEWAY", "the explicit VPN gateway route is skipped"))
        if params.internal_ip4_address is None:
            notices.append(_missing(
                "INTERNAL_IP4_ADDRESS", "the legacy IP address and internal routes are skipped"))
        return notices

    @staticmethod
    def _interface_label(params: ConnectionParameters) -> str:
        return f"\"{params.tundev or ''}\" / {params.tunidx or ''}"

    @staticmethod
    def gateways_for_disconnect(params: ConnectionParameters) -> Tuple[bool, bool]:
        """Which (ipv4, ipv6) default gateways must be re-queried before disconnect."""
        ipv6 = (
            (params.vpn_gateway is not None and AddressFamily.of(params.vpn_gateway) is AddressFamily.IPV6)
            or (params.has_ipv6 and bool(params.split_exclude6))
        )
        return False, ipv6

    # ------------------------------------------------------------------
    # connect
    # ------------------------------------------------------------------

    def plan_connect(self, params: ConnectionParameters, snapshot: GatewaySnapshot) -> List[PlanStep]:
        """
        Plan the connect phase.

        Args:
            params: Parameters of the new connection
            snapshot: Default gateways captured before any mutation

        Returns:
            Ordered list of actions and log notices
        """
        steps: List[PlanStep] = list(self._preconditions(params))
        iface = params.tunidx

        if params.mtu is not None and iface is not None:
            steps.append(Notice(f"MTU: {params.mtu}"))
            steps.append(SetMtu(interface=iface, mtu=params.mtu, family=AddressFamily.IPV4))
            if params.has_ipv6:
                steps.append(SetMtu(interface=iface, mtu=params.mtu, family=AddressFamily.IPV6))

        steps.extend(self._vpn_gateway_route(params, snapshot))

        if iface is not None:
            steps.append(Notice(f"Configuring {self._interface_label(params)} interface for Legacy IP..."))
            if not params.split_include and self.redirect_method is not RedirectMethod.SPLIT_DEFAULT_PAIR:
                # Since Vista a metric 1 route needs a metric 1 interface
                steps.append(SetInterfaceMetric(interface=iface, metric=DEFAULT_ROUTE_METRIC))
            if params.internal_ip4_address is not None:
                steps.append(self._address4(params))
            steps.extend(self._wins(params))
            steps.extend(self._dns(params))
            steps.append(Notice("done."))

        steps.append(Notice("Configuring Legacy IP networks:"))
        steps.extend(self._internal_routes4(params))
        steps.extend(self._exclude_routes4(params, snapshot))
        steps.append(Notice("Legacy IP route configuration done."))

        if params.has_ipv6 and iface is not None:
            steps.extend(self._ipv6(params, snapshot))

        return steps

    def _vpn_gateway_route(self, params: ConnectionParameters, snapshot: GatewaySnapshot) -> List[PlanStep]:
        vpngw = params.vpn_gateway
        if vpngw is None:
            return []

        steps: List[PlanStep] = []
        if AddressFamily.of(vpngw) is AddressFamily.IPV6:
            steps.append(Notice(f"Configuring explicit route to IPv6 VPN gateway {vpngw}"))
            if snapshot.ipv6 is None:
                steps.append(Notice("No IPv6 default gateway found, no explicit route needed"))
            else:
                steps.append(AddRoute6(
                    prefix=f"{vpngw}/128", interface=snapshot.ipv6.interface,
                    next_hop=snapshot.ipv6.address, store_active=False,
                ))
        else:
            steps.append(Notice(f"Configuring explicit route to IPv4 VPN gateway {vpngw}"))
            if snapshot.ipv4 is None:
                steps.append(Notice("No Legacy IP default gateway found, no explicit route needed"))
            else:
                steps.append(AddRoute4(network=vpngw, netmask=HOST_NETMASK, gateway=snapshot.ipv4))
        steps.append(Notice("done."))
        return steps

    def _address4(self, params: ConnectionParameters) -> SetAddress4:
        if params.split_include or self.redirect_method is not RedirectMethod.INTERFACE_GATEWAY:
            return SetAddress4(
                interface=params.tunidx, address=params.internal_ip4_address,
                netmask=params.internal_ip4_netmask,
            )
        # The OS installs the default route from the interface gateway
        return SetAddress4(
            interface=params.tunidx, address=params.internal_ip4_address,
            netmask=params.internal_ip4_netmask,
            gateway=params.internal_gateway, gateway_metric=DEFAULT_ROUTE_METRIC,
        )

    @staticmethod
    def _wins(params: ConnectionParameters) -> List[PlanStep]:
        steps: List[PlanStep] = [ClearWins(interface=params.tunidx)]
        for server in params.wins:
            steps.append(AddWins(interface=params.tunidx, server=server))
        if params.wins:
            steps.append(Notice(f"Configured {len(params.wins)} WINS servers: {' '.join(params.wins)}"))
        return steps

    @staticmethod
    def _dns(params: ConnectionParameters) -> List[PlanStep]:
        steps: List[PlanStep] = [
            ClearDns(interface=params.tunidx, family=AddressFamily.IPV4),
            ClearDns(interface=params.tunidx, family=AddressFamily.IPV6),
        ]
        for server in params.dns:
            steps.append(AddDns(interface=params.tunidx, server=server))
        if params.dns:
            steps.append(Notice(f"Configured {len(params.dns)} DNS servers: {' '.join(params.dns)}"))
        return steps

    def _internal_routes4(self, params: ConnectionParameters) -> List[PlanStep]:
        gw = params.internal_gateway
        if gw is None or params.tunidx is None:
            return []

        steps: List[PlanStep] = []
        if params.split_include:
            for route in params.split_include:
                steps.append(AddRoute4(
                    network=route.network, netmask=route.netmask, gateway=gw, interface=params.tunidx,
                ))
                steps.append(Notice(f"Configured Legacy IP split-include route: {route.prefix}"))
        elif self.redirect_method is RedirectMethod.LOW_METRIC_DEFAULT:
            steps.append(AddRoute4(
                network="0.0.0.0", netmask="0.0.0.0", gateway=gw, metric=DEFAULT_ROUTE_METRIC,
            ))
            steps.append(Notice("Configured Legacy IP default route."))
        elif self.redirect_method is RedirectMethod.SPLIT_DEFAULT_PAIR:
            steps.append(AddRoute4(network="0.0.0.0", netmask="128.0.0.0", gateway=gw))
            steps.append(AddRoute4(network="128.0.0.0", netmask="128.0.0.0", gateway=gw))
            steps.append(Notice("Configured Legacy IP default route pair (0.0.0.0/1, 128.0.0.0/1)"))
        return steps

    @staticmethod
    def _exclude_routes4(params: ConnectionParameters, snapshot: GatewaySnapshot) -> List[PlanStep]:
        if not params.split_exclude:
            return []
        if snapshot.ipv4 is None:
            return [Notice("No Legacy IP default gateway found, split-exclude routes are skipped")]

        steps: List[PlanStep] = []
        for route in params.split_exclude:
            steps.append(AddRoute4(network=route.network, netmask=route.netmask, gateway=snapshot.ipv4))
            steps.append(Notice(f"Configured Legacy IP split-exclude route: {route.prefix}"))
        return steps

    def _ipv6(self, params: ConnectionParameters, snapshot: GatewaySnapshot) -> List[PlanStep]:
        iface = params.tunidx
        steps: List[PlanStep] = [
            Notice(f"Configuring {self._interface_label(params)} interface for IPv6..."),
            SetAddress6(interface=iface, address=params.internal_ip6_address),
            Notice("done."),
            Notice("Configuring IPv6 networks:"),
        ]

        if self._has_ipv6_network_route(params):
            steps.append(AddRoute6(prefix=params.internal_ip6_netmask, interface=iface))

        if params.split_include6:
            for route in params.split_include6:
                steps.append(AddRoute6(prefix=route.prefix, interface=iface))
                steps.append(Notice(f"Configured IPv6 split-include route: {route.prefix}"))
        else:
            steps.append(Notice("Setting default IPv6 route through VPN."))
            steps.append(AddRoute6(prefix=IPV6_GLOBAL_UNICAST, interface=iface, next_hop=TUNNEL_IPV6_NEXT_HOP))

        if params.split_exclude6:
            if snapshot.ipv6 is None:
                steps.append(Notice("No IPv6 default gateway found, IPv6 split-exclude routes are skipped"))
            else:
                for route in params.split_exclude6:
                    steps.append(AddRoute6(
                        prefix=route.prefix, interface=snapshot.ipv6.interface,
                        next_hop=snapshot.ipv6.address,
                    ))
                    steps.append(Notice(f"Configured IPv6 split-exclude route: {route.prefix}"))

        steps.append(Notice("IPv6 route configuration done."))
        return steps

    @staticmethod
    def _has_ipv6_network_route(params: ConnectionParameters) -> bool:
        netmask = params.internal_ip6_netmask
        return netmask is not None and not netmask.endswith("/128")

    # ------------------------------------------------------------------
    # disconnect
    # ------------------------------------------------------------------

    def plan_disconnect(self, params: ConnectionParameters, snapshot: GatewaySnapshot) -> List[PlanStep]:
        """
        Plan the disconnect phase.

        ``snapshot`` must be taken at disconnect time: the IPv6 default
        gateway may have changed since connect.
        """
        steps: List[PlanStep] = list(self._preconditions(params))
        iface = params.tunidx
        steps.append(Notice(f"Deconfiguring {self._interface_label(params)} interface..."))

        vpngw = params.vpn_gateway
        if vpngw is not None:
            if AddressFamily.of(vpngw) is AddressFamily.IPV6:
                steps.append(Notice(f"Removing explicit route to IPv6 VPN gateway {vpngw}"))
                if snapshot.ipv6 is None:
                    steps.append(Notice("No IPv6 default gateway found, no explicit route to remove"))
                else:
                    steps.append(DeleteRoute6(
                        prefix=f"{vpngw}/128", interface=snapshot.ipv6.interface,
                        next_hop=snapshot.ipv6.address,
                    ))
            else:
                steps.append(Notice(f"Removing explicit route to IPv4 VPN gateway {vpngw}"))
                steps.append(DeleteRoute4(network=vpngw, netmask=HOST_NETMASK))

        internal_routes = [s for s in self._internal_routes4(params) if isinstance(s, AddRoute4)]
        if internal_routes:
            steps.append(Notice("Removing internal Legacy IP routes"))
            steps.extend(route.inverse() for route in internal_routes)

        if iface is not None:
            steps.append(Notice(
                "Removing" + (" IPv6 and" if params.has_ipv6 else "") + " Legacy IP addresses"))
            if params.internal_ip4_address is not None:
                steps.append(DeleteAddress4(interface=iface, address=params.internal_ip4_address))
            if params.has_ipv6:
                steps.append(DeleteAddress6(interface=iface, address=params.internal_ip6_address))

        if params.has_ipv6 and iface is not None:
            if params.split_include6:
                steps.append(Notice("Removing IPv6 split-include routes"))
                for route in params.split_include6:
                    steps.append(DeleteRoute6(prefix=route.prefix, interface=iface))
            else:
                steps.append(Notice("Removing default IPv6 route through VPN."))
                steps.append(DeleteRoute6(prefix=IPV6_GLOBAL_UNICAST, interface=iface))
            if self._has_ipv6_network_route(params):
                steps.append(DeleteRoute6(prefix=params.internal_ip6_netmask, interface=iface))

        if params.split_exclude:
            steps.append(Notice("Removing Legacy IP split-exclude routes"))
            for route in params.split_exclude:
                steps.append(DeleteRoute4(network=route.network, netmask=route.netmask))

        if params.has_ipv6 and params.split_exclude6:
            if snapshot.ipv6 is None:
                steps.append(Notice("No IPv6 default gateway found, IPv6 split-exclude routes are not removed"))
            else:
                steps.append(Notice("Removing IPv6 split-exclude routes"))
                for route in params.split_exclude6:
                    steps.append(DeleteRoute6(
                        prefix=route.prefix, interface=snapshot.ipv6.interface,
                        next_hop=snapshot.ipv6.address,
                    ))

        steps.append(Notice("done."))
        return steps
