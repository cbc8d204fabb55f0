"""Typed configuration actions emitted by the planner.

Each action carries already-validated fields. Nothing here knows how the
platform spells the command; that happens in :mod:`.command_factory` when the
executor runs the action.
"""

from dataclasses import dataclass
from enum import Enum
import logging
from typing import ClassVar, Optional, Union

from .models import AddressFamily


HOST_NETMASK = "255.255.255.255"
# How the Windows TAP adapter presents the far end of the tunnel
TUNNEL_IPV6_NEXT_HOP = "fe80::8"
IPV6_GLOBAL_UNICAST = "2000::/3"


class ActionKind(Enum):
    SET_MTU = "set-mtu"
    SET_METRIC = "set-metric"
    SET_ADDRESS = "set-address"
    DELETE_ADDRESS = "delete-address"
    ADD_ROUTE = "add-route"
    DELETE_ROUTE = "delete-route"
    CLEAR_WINS = "clear-wins"
    SET_WINS = "set-wins"
    CLEAR_DNS = "clear-dns"
    SET_DNS = "set-dns"


@dataclass(frozen=True)
class SetMtu:
    interface: str
    mtu: int
    family: AddressFamily = AddressFamily.IPV4
    kind: ClassVar[ActionKind] = ActionKind.SET_MTU


@dataclass(frozen=True)
class SetInterfaceMetric:
    interface: str
    metric: int
    family: ClassVar[AddressFamily] = AddressFamily.IPV4
    kind: ClassVar[ActionKind] = ActionKind.SET_METRIC


@dataclass(frozen=True)
class DeleteAddress4:
    interface: str
    address: str
    family: ClassVar[AddressFamily] = AddressFamily.IPV4
    kind: ClassVar[ActionKind] = ActionKind.DELETE_ADDRESS


@dataclass(frozen=True)
class SetAddress4:
    """Static legacy IP address, optionally with an interface gateway"""
    interface: str
    address: str
    netmask: str
    gateway: Optional[str] = None
    gateway_metric: Optional[int] = None
    family: ClassVar[AddressFamily] = AddressFamily.IPV4
    kind: ClassVar[ActionKind] = ActionKind.SET_ADDRESS

    def inverse(self) -> DeleteAddress4:
        # gateway=all on removal drops an interface-installed default route too
        return DeleteAddress4(interface=self.interface, address=self.address)


@dataclass(frozen=True)
class DeleteAddress6:
    interface: str
    address: str
    family: ClassVar[AddressFamily] = AddressFamily.IPV6
    kind: ClassVar[ActionKind] = ActionKind.DELETE_ADDRESS


@dataclass(frozen=True)
class SetAddress6:
    interface: str
    address: str
    family: ClassVar[AddressFamily] = AddressFamily.IPV6
    kind: ClassVar[ActionKind] = ActionKind.SET_ADDRESS

    def inverse(self) -> DeleteAddress6:
        return DeleteAddress6(interface=self.interface, address=self.address)


@dataclass(frozen=True)
class DeleteRoute4:
    network: str
    netmask: str
    gateway: Optional[str] = None
    interface: Optional[str] = None
    family: ClassVar[AddressFamily] = AddressFamily.IPV4
    kind: ClassVar[ActionKind] = ActionKind.DELETE_ROUTE


@dataclass(frozen=True)
class AddRoute4:
    """Legacy IP route. ``interface`` pins it to the tunnel adapter."""
    network: str
    netmask: str
    gateway: str
    interface: Optional[str] = None
    metric: Optional[int] = None

    family: ClassVar[AddressFamily] = AddressFamily.IPV4
    kind: ClassVar[ActionKind] = ActionKind.ADD_ROUTE

    def inverse(self) -> DeleteRoute4:
        return DeleteRoute4(
            network=self.network, netmask=self.netmask,
            gateway=self.gateway, interface=self.interface,
        )


@dataclass(frozen=True)
class DeleteRoute6:
    prefix: str
    interface: str
    next_hop: Optional[str] = None
    family: ClassVar[AddressFamily] = AddressFamily.IPV6
    kind: ClassVar[ActionKind] = ActionKind.DELETE_ROUTE


@dataclass(frozen=True)
class AddRoute6:
    prefix: str
    interface: str
    next_hop: Optional[str] = None
    store_active: bool = True
    family: ClassVar[AddressFamily] = AddressFamily.IPV6
    kind: ClassVar[ActionKind] = ActionKind.ADD_ROUTE

    def inverse(self) -> DeleteRoute6:
        return DeleteRoute6(prefix=self.prefix, interface=self.interface, next_hop=self.next_hop)


@dataclass(frozen=True)
class ClearWins:
    interface: str
    family: ClassVar[AddressFamily] = AddressFamily.IPV4
    kind: ClassVar[ActionKind] = ActionKind.CLEAR_WINS


@dataclass(frozen=True)
class AddWins:
    interface: str
    server: str
    family: ClassVar[AddressFamily] = AddressFamily.IPV4
    kind: ClassVar[ActionKind] = ActionKind.SET_WINS


@dataclass(frozen=True)
class ClearDns:
    interface: str
    family: AddressFamily
    kind: ClassVar[ActionKind] = ActionKind.CLEAR_DNS


@dataclass(frozen=True)
class AddDns:
    """DNS server; the family follows the server address"""
    interface: str
    server: str
    validate: bool = False
    kind: ClassVar[ActionKind] = ActionKind.SET_DNS

    @property
    def family(self) -> AddressFamily:
        return AddressFamily.of(self.server)


ConfigurationAction = Union[
    SetMtu, SetInterfaceMetric,
    SetAddress4, DeleteAddress4, SetAddress6, DeleteAddress6,
    AddRoute4, DeleteRoute4, AddRoute6, DeleteRoute6,
    ClearWins, AddWins, ClearDns, AddDns,
]


@dataclass(frozen=True)
class Notice:
    """Log-only step interleaved with actions in a plan"""
    message: str
    level: int = logging.INFO
    # added to the session status when the notice is emitted
    exit_code: int = 0


PlanStep = Union[ConfigurationAction, Notice]
