"""Factory turning typed configuration actions into platform commands."""

from typing import Callable, Dict, List

from .actions import (
    AddDns,
    AddRoute4,
    AddRoute6,
    AddWins,
    ClearDns,
    ClearWins,
    ConfigurationAction,
    DeleteAddress4,
    DeleteAddress6,
    DeleteRoute4,
    DeleteRoute6,
    SetAddress4,
    SetAddress6,
    SetInterfaceMetric,
    SetMtu,
)
from .commands import (
    CHCP,
    NETSH,
    NETSH_IP,
    NETSH_IPV4,
    NETSH_IPV6,
    NETSH_IPV6_SHOW_ROUTE,
    ROUTE_ADD,
    ROUTE_DELETE,
    ROUTE_PRINT,
    ValidationError,
)


class NetshCommandFactory:
    """Factory for creating route/netsh configuration commands."""

    @staticmethod
    def console_utf8() -> list[str]:
        """Create command switching the console code page to UTF-8."""
        return CHCP.with_arg("65001").build()

    @staticmethod
    def print_routes() -> list[str]:
        """Create legacy IP route table dump command."""
        return ROUTE_PRINT.build()

    @staticmethod
    def show_ipv6_routes() -> list[str]:
        """Create IPv6 route table dump command."""
        return NETSH_IPV6_SHOW_ROUTE.build()

    @staticmethod
    def set_mtu(action: SetMtu) -> list[str]:
        return (
            NETSH.with_arg(action.family.value)
            .with_args("set", "subinterface", action.interface)
            .with_options(mtu=action.mtu, store="active")
            .build()
        )

    @staticmethod
    def set_interface_metric(action: SetInterfaceMetric) -> list[str]:
        return (
            NETSH_IP.with_args("set", "interface", action.interface)
            .with_options(metric=action.metric, store="active")
            .build()
        )

    @staticmethod
    def set_address4(action: SetAddress4) -> list[str]:
        cmd = NETSH_IP.with_args(
            "set", "address", action.interface, "static", action.address, action.netmask,
        )
        if action.gateway:
            cmd = cmd.with_arg(action.gateway)
            if action.gateway_metric is not None:
                cmd = cmd.with_option("gwmetric", action.gateway_metric)
        return cmd.with_option("store", "active").build()

    @staticmethod
    def delete_address4(action: DeleteAddress4) -> list[str]:
        return (
            NETSH_IPV4.with_args("delete", "address", action.interface, action.address)
            .with_option("gateway", "all")
            .build()
        )

    @staticmethod
    def set_address6(action: SetAddress6) -> list[str]:
        return (
            NETSH_IPV6.with_args("set", "address", action.interface, action.address)
            .with_option("store", "active")
            .build()
        )

    @staticmethod
    def delete_address6(action: DeleteAddress6) -> list[str]:
        return (
            NETSH_IPV6.with_args("delete", "address", action.interface, action.address)
            .with_option("store", "active")
            .build()
        )

    @staticmethod
    def add_route4(action: AddRoute4) -> list[str]:
        cmd = (
            ROUTE_ADD.with_arg(action.network)
            .with_keyword("mask", action.netmask)
            .with_arg(action.gateway)
        )
        if action.metric is not None:
            cmd = cmd.with_keyword("metric", action.metric)
        if action.interface is not None:
            cmd = cmd.with_keyword("if", action.interface)
        return cmd.build()

    @staticmethod
    def delete_route4(action: DeleteRoute4) -> list[str]:
        # route delete matches on destination/mask/gateway only
        cmd = ROUTE_DELETE.with_arg(action.network).with_keyword("mask", action.netmask)
        if action.gateway:
            cmd = cmd.with_arg(action.gateway)
        return cmd.build()

    @staticmethod
    def add_route6(action: AddRoute6) -> list[str]:
        cmd = NETSH_IPV6.with_args("add", "route", action.prefix, action.interface)
        if action.next_hop:
            cmd = cmd.with_arg(action.next_hop)
        if action.store_active:
            cmd = cmd.with_option("store", "active")
        return cmd.build()

    @staticmethod
    def delete_route6(action: DeleteRoute6) -> list[str]:
        cmd = NETSH_IPV6.with_args("delete", "route", action.prefix, action.interface)
        if action.next_hop:
            cmd = cmd.with_arg(action.next_hop)
        return cmd.build()

    @staticmethod
    def clear_wins(action: ClearWins) -> list[str]:
        return NETSH_IPV4.with_args("delete", "winsservers", action.interface, "all").build()

    @staticmethod
    def add_wins(action: AddWins) -> list[str]:
        return NETSH_IPV4.with_args("add", "winsservers", action.interface, action.server).build()

    @staticmethod
    def clear_dns(action: ClearDns) -> list[str]:
        return (
            NETSH.with_arg(action.family.value)
            .with_args("delete", "dnsservers", action.interface, "all")
            .build()
        )

    @staticmethod
    def add_dns(action: AddDns) -> list[str]:
        # Windows probes the server with validate=yes and stalls for ~10s
        # while the tunnel is still coming up
        return (
            NETSH.with_arg(action.family.value)
            .with_args("add", "dnsservers", action.interface, action.server)
            .with_option("validate", "yes" if action.validate else "no")
            .build()
        )

    @classmethod
    def for_action(cls, action: ConfigurationAction) -> List[str]:
        """Serialize one action to the argv that applies it."""
        builder = _BUILDERS.get(type(action))
        if builder is None:
            raise ValidationError(f"No command known for action {action!r}")
        return builder(action)


_BUILDERS: Dict[type, Callable] = {
    SetMtu: NetshCommandFactory.set_mtu,
    SetInterfaceMetric: NetshCommandFactory.set_interface_metric,
    SetAddress4: NetshCommandFactory.set_address4,
    DeleteAddress4: NetshCommandFactory.delete_address4,
    SetAddress6: NetshCommandFactory.set_address6,
    DeleteAddress6: NetshCommandFactory.delete_address6,
    AddRoute4: NetshCommandFactory.add_route4,
    DeleteRoute4: NetshCommandFactory.delete_route4,
    AddRoute6: NetshCommandFactory.add_route6,
    DeleteRoute6: NetshCommandFactory.delete_route6,
    ClearWins: NetshCommandFactory.clear_wins,
    AddWins: NetshCommandFactory.add_wins,
    ClearDns: NetshCommandFactory.clear_dns,
    AddDns: NetshCommandFactory.add_dns,
}
