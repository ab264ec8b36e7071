"""Data structures shared by the pod route reconciler and its backends.

These light-weight dataclasses describe the handful of Nova and Neutron
resources the reconciler reads and writes.  Backends translate their native
representation (``openstacksdk`` resources, in-memory dicts, ...) into these
types so the core logic never depends on a particular client library.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence


class AddressType(Enum):
    """Kubernetes node address classes relevant for next-hop selection."""

    INTERNAL_IP = "InternalIP"
    EXTERNAL_IP = "ExternalIP"


@dataclass
class Route:
    """A pod-network route as seen by the cluster route controller.

    Attributes
    ----------
    destination_cidr:
        The pod subnet of the node, e.g. ``10.244.1.0/24``.
    target_node:
        Name of the node traffic should be forwarded to.  For blackhole routes
        this holds the raw next-hop address found in the router instead.
    blackhole:
        ``True`` when the router entry's next hop belongs to no known node.
    name:
        Optional route name; listing fills it with the destination CIDR.
    """

    destination_cidr: str
    target_node: str
    blackhole: bool = False
    name: str = ""


@dataclass(frozen=True)
class RouterRoute:
    """A single destination/next-hop entry of a Neutron router."""

    destination_cidr: str
    next_hop: str


@dataclass
class Router:
    id: str
    routes: List[RouterRoute] = field(default_factory=list)


@dataclass(frozen=True)
class AddressPair:
    """Allowed-address-pair entry of a Neutron port."""

    ip_address: str
    mac_address: Optional[str] = None


@dataclass(frozen=True)
class FixedIP:
    ip_address: str
    subnet_id: str = ""


@dataclass
class Port:
    id: str
    fixed_ips: List[FixedIP] = field(default_factory=list)
    allowed_address_pairs: List[AddressPair] = field(default_factory=list)


@dataclass(frozen=True)
class Interface:
    """Network interface attached to a server (Nova ``os-interface``)."""

    port_id: str
    fixed_ips: Sequence[FixedIP] = ()
    net_id: str = ""
    mac_address: str = ""
    port_state: str = "ACTIVE"


@dataclass(frozen=True)
class ServerAddress:
    """One entry of a server's ``addresses`` mapping.

    ``type`` mirrors Nova's ``OS-EXT-IPS:type`` and is either ``fixed`` or
    ``floating``.
    """

    address: str
    version: int = 4
    type: str = "fixed"


@dataclass
class Server:
    id: str
    name: str
    addresses: Dict[str, List[ServerAddress]] = field(default_factory=dict)
    access_ipv4: str = ""
    access_ipv6: str = ""


@dataclass(frozen=True)
class NodeAddress:
    type: AddressType
    address: str


@dataclass(frozen=True)
class RouterOpts:
    """Router the reconciler manages routes on."""

    router_id: str = ""


@dataclass(frozen=True)
class NetworkingOpts:
    """Knobs controlling which server addresses count as node addresses.

    Attributes
    ----------
    ipv6_support_disabled:
        Ignore every IPv6 address of a server.
    public_network_names:
        Networks whose addresses are reported as ``ExternalIP``.
    internal_network_names:
        When non-empty, only addresses on these networks are reported as
        ``InternalIP``; addresses on other non-public networks are dropped.
    address_sort_order:
        Comma or space separated CIDRs; addresses inside earlier CIDRs sort
        first.
    """

    ipv6_support_disabled: bool = False
    public_network_names: Sequence[str] = ()
    internal_network_names: Sequence[str] = ()
    address_sort_order: str = ""
