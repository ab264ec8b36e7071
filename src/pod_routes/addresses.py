"""Node address selection for OpenStack servers."""

from __future__ import annotations

import ipaddress
import logging
import re
from typing import List, Sequence

from .errors import NoAddressFound
from .model import AddressType, Interface, NetworkingOpts, NodeAddress, Server

LOG = logging.getLogger(__name__)


def is_ipv6(address: str) -> bool:
    """Return ``True`` for IPv6 addresses and prefixes, ``False`` otherwise."""

    value = address.split("/", 1)[0]
    try:
        return ipaddress.ip_address(value).version == 6
    except ValueError:
        return False


def _add(addrs: List[NodeAddress], address: NodeAddress) -> None:
    if address not in addrs:
        addrs.append(address)


def _remove(addrs: List[NodeAddress], address: NodeAddress) -> None:
    if address in addrs:
        addrs.remove(address)


def node_addresses(
    server: Server,
    interfaces: Sequence[Interface],
    opts: NetworkingOpts,
) -> List[NodeAddress]:
    """Compute the ordered node addresses of ``server``.

    Fixed IPs of active interfaces come first as ``InternalIP``, followed by
    the server's access IPs as ``ExternalIP``.  The server's ``addresses``
    mapping is then walked network by network (sorted by name) to classify
    floating and public-network addresses as external and to apply the
    ``internal_network_names`` filter.
    """

    addrs: List[NodeAddress] = []

    for interface in interfaces:
        if interface.port_state != "ACTIVE":
            continue
        for fixed_ip in interface.fixed_ips:
            if is_ipv6(fixed_ip.ip_address) and opts.ipv6_support_disabled:
                continue
            _add(addrs, NodeAddress(AddressType.INTERNAL_IP, fixed_ip.ip_address))

    if server.access_ipv4:
        _add(addrs, NodeAddress(AddressType.EXTERNAL_IP, server.access_ipv4))
    if server.access_ipv6 and not opts.ipv6_support_disabled:
        _add(addrs, NodeAddress(AddressType.EXTERNAL_IP, server.access_ipv6))

    for network in sorted(server.addresses):
        for entry in server.addresses[network]:
            internal = NodeAddress(AddressType.INTERNAL_IP, entry.address)
            if entry.type == "floating":
                address_type = AddressType.EXTERNAL_IP
            elif network in opts.public_network_names:
                address_type = AddressType.EXTERNAL_IP
                # never list an address as both internal and external
                _remove(addrs, internal)
            elif not opts.internal_network_names or network in opts.internal_network_names:
                address_type = AddressType.INTERNAL_IP
            else:
                LOG.debug(
                    "Node '%s' address '%s' ignored due to internal network filter",
                    server.name,
                    entry.address,
                )
                _remove(addrs, internal)
                continue

            if is_ipv6(entry.address) and opts.ipv6_support_disabled:
                continue
            _add(addrs, NodeAddress(address_type, entry.address))

    if opts.address_sort_order:
        addrs = sort_node_addresses(addrs, opts.address_sort_order)

    return addrs


def sort_node_addresses(addrs: Sequence[NodeAddress], sort_order: str) -> List[NodeAddress]:
    """Stable-sort ``addrs`` so addresses in earlier CIDRs come first."""

    networks = []
    for cidr in re.split(r"[\s,]+", sort_order.strip()):
        if not cidr:
            continue
        try:
            networks.append(ipaddress.ip_network(cidr, strict=False))
        except ValueError:
            LOG.warning("Ignoring invalid CIDR '%s' in address sort order", cidr)

    def rank(node_address: NodeAddress) -> int:
        try:
            ip = ipaddress.ip_address(node_address.address)
        except ValueError:
            return len(networks)
        for index, network in enumerate(networks):
            if ip.version == network.version and ip in network:
                return index
        return len(networks)

    return sorted(addrs, key=rank)


def select_address(addrs: Sequence[NodeAddress], want_ipv6: bool) -> str:
    """Pick the next-hop address of the requested family.

    Internal addresses win over external ones.  An address of the other
    family is never returned.
    """

    for address_type in (AddressType.INTERNAL_IP, AddressType.EXTERNAL_IP):
        for addr in addrs:
            if addr.type == address_type and is_ipv6(addr.address) == want_ipv6:
                return addr.address
    family = "IPv6" if want_ipv6 else "IPv4"
    raise NoAddressFound(f"no {family} address found")
