"""Data models for tunnel network configuration."""

from dataclasses import dataclass, field
from enum import Enum
import ipaddress
from typing import TYPE_CHECKING, List, Mapping, Optional, Tuple

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .actions import ConfigurationAction


DEFAULT_IP4_NETMASK = "255.255.255.255"


class Reason(Enum):
    """Lifecycle event tag passed by the VPN client"""
    PRE_INIT = "pre-init"
    CONNECT = "connect"
    DISCONNECT = "disconnect"
    RECONNECT = "reconnect"
    ATTEMPT_RECONNECT = "attempt-reconnect"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Reason":
        try:
            return cls((value or "").strip().lower().replace("_", "-"))
        except ValueError:
            raise ConfigurationError(f"Unknown lifecycle event '{value}'")


class RedirectMethod(Enum):
    """How the tunnel becomes the default path when there is no split-include list.

    The value is fixed per deployment; it never comes from the connection.
    """
    INTERFACE_GATEWAY = 0
    LOW_METRIC_DEFAULT = 1
    SPLIT_DEFAULT_PAIR = 2

    @classmethod
    def parse(cls, value: str) -> "RedirectMethod":
        text = str(value).strip()
        if text.isdigit():
            try:
                return cls(int(text))
            except ValueError:
                pass
        normalized = text.replace("-", "").replace("_", "").lower()
        for method in cls:
            if method.name.replace("_", "").lower() == normalized:
                return method
        raise ConfigurationError(f"Unknown redirect method '{value}'")


class AddressFamily(Enum):
    IPV4 = "ipv4"
    IPV6 = "ipv6"

    @classmethod
    def of(cls, address: str) -> "AddressFamily":
        return cls.IPV6 if ":" in address else cls.IPV4


@dataclass(frozen=True)
class SplitRoute:
    """One indexed split-tunnel network entry"""
    network: str
    prefix_length: int
    netmask: Optional[str] = None

    @property
    def prefix(self) -> str:
        return f"{self.network}/{self.prefix_length}"


@dataclass(frozen=True)
class Ipv6Gateway:
    """Default IPv6 route: interface index plus next hop"""
    interface: str
    address: str

    def __str__(self) -> str:
        return f"{self.interface} {self.address}"


@dataclass(frozen=True)
class GatewaySnapshot:
    """Pre-VPN default gateways, captured before any mutation"""
    ipv4: Optional[str] = None
    ipv6: Optional[Ipv6Gateway] = None


class _BundleReader:
    """
    Reads the vpnc variables one field at a time.

    A malformed value never aborts the event: the entry is dropped and the
    reason is collected in ``problems``.
    """

    def __init__(self, environ: Mapping[str, str]):
        self.environ = environ
        self.problems: List[str] = []

    def get(self, key: str) -> Optional[str]:
        value = self.environ.get(key)
        if value is None:
            return None
        value = value.strip()
        return value or None

    def address(self, key: str, version: Optional[int] = None) -> Optional[str]:
        value = self.get(key)
        if value is None:
            return None
        try:
            parsed = ipaddress.ip_address(value)
        except ValueError:
            self.problems.append(f"{key}={value!r} is not a valid IP address, ignored")
            return None
        if version is not None and parsed.version != version:
            self.problems.append(f"{key}={value!r} is not an IPv{version} address, ignored")
            return None
        return value

    def number(self, key: str) -> Optional[int]:
        value = self.get(key)
        if value is None:
            return None
        try:
            number = int(value)
        except ValueError:
            self.problems.append(f"{key}={value!r} is not a number, ignored")
            return None
        if number < 0:
            self.problems.append(f"{key}={value!r} must not be negative, ignored")
            return None
        return number

    def address_list(self, key: str) -> List[str]:
        value = self.get(key)
        if value is None:
            return []
        servers = []
        for server in value.split():
            try:
                ipaddress.ip_address(server)
            except ValueError:
                self.problems.append(f"{key} entry {server!r} is not a valid IP address, ignored")
                continue
            servers.append(server)
        return servers

    def ipv6_prefix(self, key: str) -> Optional[str]:
        value = self.get(key)
        if value is None:
            return None
        try:
            ipaddress.IPv6Network(value, strict=False)
        except ValueError:
            self.problems.append(f"{key}={value!r} is not an IPv6 prefix, ignored")
            return None
        return value

    def split_routes4(self, prefix: str) -> Tuple[SplitRoute, ...]:
        routes = []
        for i in range(self.number(prefix) or 0):
            route = self._split_route4(f"{prefix}_{i}")
            if route is not None:
                routes.append(route)
        return tuple(routes)

    def _split_route4(self, base: str) -> Optional[SplitRoute]:
        network = self.address(f"{base}_ADDR", version=4)
        if network is None:
            self.problems.append(f"{base} has no usable network address, route ignored")
            return None
        netmask = self.address(f"{base}_MASK", version=4)
        masklen = self.get(f"{base}_MASKLEN")
        try:
            if netmask is not None:
                derived = ipaddress.IPv4Network(f"0.0.0.0/{netmask}").prefixlen
            elif masklen is not None:
                derived = int(masklen)
                netmask = str(ipaddress.IPv4Network(f"0.0.0.0/{derived}").netmask)
            else:
                self.problems.append(f"{base} has neither a netmask nor a mask length, route ignored")
                return None
            prefix_length = int(masklen) if masklen is not None else derived
        except ValueError as e:
            self.problems.append(f"Invalid netmask for {base} ({e}), route ignored")
            return None
        return SplitRoute(network=network, prefix_length=prefix_length, netmask=netmask)

    def split_routes6(self, prefix: str) -> Tuple[SplitRoute, ...]:
        routes = []
        for i in range(self.number(prefix) or 0):
            base = f"{prefix}_{i}"
            network = self.address(f"{base}_ADDR", version=6)
            if network is None:
                self.problems.append(f"{base} has no usable network address, route ignored")
                continue
            masklen = self.get(f"{base}_MASKLEN")
            try:
                prefix_length = int(masklen) if masklen is not None else 128
            except ValueError:
                prefix_length = -1
            if not 0 <= prefix_length <= 128:
                self.problems.append(f"{base}_MASKLEN={masklen!r} is not a valid prefix length, route ignored")
                continue
            routes.append(SplitRoute(network=network, prefix_length=prefix_length))
        return tuple(routes)


@dataclass(frozen=True)
class ConnectionParameters:
    """Parameters delivered by the VPN handshake for one lifecycle event"""
    tundev: Optional[str] = None
    tunidx: Optional[str] = None
    vpn_gateway: Optional[str] = None
    internal_ip4_address: Optional[str] = None
    internal_ip4_netmask: str = DEFAULT_IP4_NETMASK
    internal_ip6_address: Optional[str] = None
    internal_ip6_netmask: Optional[str] = None
    mtu: Optional[int] = None
    dns: Tuple[str, ...] = ()
    wins: Tuple[str, ...] = ()
    split_include: Tuple[SplitRoute, ...] = ()
    split_exclude: Tuple[SplitRoute, ...] = ()
    split_include6: Tuple[SplitRoute, ...] = ()
    split_exclude6: Tuple[SplitRoute, ...] = ()
    banner: Optional[str] = None
    # malformed values that were dropped while parsing
    problems: Tuple[str, ...] = ()

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> "ConnectionParameters":
        """
        Build parameters from the flat key/value bundle set by the VPN client.

        Malformed values are left out rather than rejected, so a bad entry
        never prevents the rest of the configuration; each one is listed in
        ``problems``.

        Args:
            environ: Mapping using the vpnc-script variable names
                (TUNIDX, INTERNAL_IP4_ADDRESS, CISCO_SPLIT_INC_0_ADDR, ...)

        Returns:
            ConnectionParameters with validated fields
        """
        reader = _BundleReader(environ)

        dns = reader.address_list("INTERNAL_IP4_DNS")
        for server in reader.address_list("INTERNAL_IP6_DNS"):
            if server not in dns:
                dns.append(server)

        params = dict(
            tundev=reader.get("TUNDEV"),
            tunidx=reader.get("TUNIDX"),
            vpn_gateway=reader.address("VPNGATEWAY"),
            internal_ip4_address=reader.address("INTERNAL_IP4_ADDRESS", version=4),
            internal_ip4_netmask=reader.address("INTERNAL_IP4_NETMASK", version=4) or DEFAULT_IP4_NETMASK,
            internal_ip6_address=reader.address("INTERNAL_IP6_ADDRESS", version=6),
            internal_ip6_netmask=reader.ipv6_prefix("INTERNAL_IP6_NETMASK"),
            mtu=reader.number("INTERNAL_IP4_MTU"),
            dns=tuple(dns),
            wins=tuple(reader.address_list("INTERNAL_IP4_NBNS")),
            split_include=reader.split_routes4("CISCO_SPLIT_INC"),
            split_exclude=reader.split_routes4("CISCO_SPLIT_EXC"),
            split_include6=reader.split_routes6("CISCO_IPV6_SPLIT_INC"),
            split_exclude6=reader.split_routes6("CISCO_IPV6_SPLIT_EXC"),
            banner=environ.get("CISCO_BANNER") or None,
        )
        return cls(problems=tuple(reader.problems), **params)

    @property
    def internal_gateway(self) -> Optional[str]:
        # It's a tunnel; the internal address doubles as the gateway
        return self.internal_ip4_address

    @property
    def has_ipv6(self) -> bool:
        return self.internal_ip6_address is not None


@dataclass
class ActionOutcome:
    """Result of running one configuration action"""
    action: "ConfigurationAction"
    command: List[str]
    exit_code: int
    output: str = ""

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


@dataclass
class SessionResult:
    """Accumulated status of one lifecycle event"""
    reason: Reason
    status: int = 0
    outcomes: List[ActionOutcome] = field(default_factory=list)
    log_lines: List[str] = field(default_factory=list)

    def add_exit_code(self, exit_code: int) -> None:
        self.status += exit_code

    def record(self, outcome: ActionOutcome) -> None:
        self.outcomes.append(outcome)
        self.add_exit_code(outcome.exit_code)

    @property
    def succeeded(self) -> bool:
        return self.status == 0
