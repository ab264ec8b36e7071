"""Node lookups against the compute backend."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List

from .addresses import node_addresses, select_address
from .backends.base import ComputeBackend
from .errors import MultipleResults, NotFound
from .model import NetworkingOpts, Server

LOG = logging.getLogger(__name__)


def node_name_for_server(server: Server) -> str:
    return server.name


def foreach_server(compute: ComputeBackend, handler: Callable[[Server], bool]) -> None:
    """Call ``handler`` for every server until it returns ``False``."""

    for server in compute.list_servers():
        if not handler(server):
            return


def get_server_by_name(compute: ComputeBackend, name: str) -> Server:
    matches: List[Server] = [s for s in compute.list_servers(name=name) if s.name == name]
    if not matches:
        raise NotFound(f"server for node '{name}' not found")
    if len(matches) > 1:
        raise MultipleResults(f"multiple servers named '{name}'")
    return matches[0]


class AddressResolver:
    """Resolve node names to next-hop addresses and owning ports."""

    def __init__(self, compute: ComputeBackend, networking_opts: NetworkingOpts) -> None:
        self._compute = compute
        self._opts = networking_opts

    def resolve(self, node_name: str, want_ipv6: bool) -> str:
        """Return the address of ``node_name`` in the requested IP family."""

        server = get_server_by_name(self._compute, node_name)
        interfaces = self._compute.list_interfaces(server.id)
        addrs = node_addresses(server, interfaces, self._opts)
        try:
            return select_address(addrs, want_ipv6)
        except NotFound as exc:
            raise type(exc)(f"node '{node_name}': {exc}") from exc

    def locate_port(self, node_name: str, address: str) -> str:
        """Return the id of the port on ``node_name`` that owns ``address``.

        The server and its interfaces are looked up again, so a node or
        interface that disappeared since :meth:`resolve` yields ``NotFound``.
        """

        server = get_server_by_name(self._compute, node_name)
        for interface in self._compute.list_interfaces(server.id):
            for fixed_ip in interface.fixed_ips:
                if fixed_ip.ip_address == address:
                    return interface.port_id
        raise NotFound(f"no port with address {address} on node '{node_name}'")

    def node_names_by_address(self) -> Dict[str, str]:
        """Map every node address of every server to the node's name."""

        mapping: Dict[str, str] = {}

        def _collect(server: Server) -> bool:
            interfaces = self._compute.list_interfaces(server.id)
            name = node_name_for_server(server)
            for addr in node_addresses(server, interfaces, self._opts):
                mapping[addr.address] = name
            return True

        foreach_server(self._compute, _collect)
        return mapping
