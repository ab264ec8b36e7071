"""In-memory compute and network backends.

The in-memory cloud keeps servers, routers and ports in plain dictionaries so
the reconciler can be exercised end-to-end in unit tests and lab runs without
a real OpenStack deployment.  Individual operations can be made to fail via
:meth:`InMemoryCloud.fail` to test error unwinding.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from pod_routes.errors import BackendError, NotFound
from pod_routes.model import (
    AddressPair,
    FixedIP,
    Interface,
    Port,
    Router,
    RouterRoute,
    Server,
    ServerAddress,
)

from .base import ComputeBackend, NetworkBackend

LOG = logging.getLogger(__name__)


class InMemoryCloud:
    """Shared state behind :class:`InMemoryCompute` and :class:`InMemoryNetwork`."""

    def __init__(self) -> None:
        self.servers: Dict[str, Server] = {}
        self.interfaces: Dict[str, List[Interface]] = {}
        self.routers: Dict[str, Router] = {}
        self.ports: Dict[str, Port] = {}
        self.calls: Counter = Counter()
        self._failures: Dict[str, List[int]] = {}

    # ------------------------------------------------------------------
    # Seeding helpers
    # ------------------------------------------------------------------
    def add_router(self, router_id: str, routes: Iterable[RouterRoute] = ()) -> Router:
        router = Router(id=router_id, routes=list(routes))
        self.routers[router_id] = router
        return router

    def add_node(
        self,
        name: str,
        address: str,
        *,
        port_id: Optional[str] = None,
        server_id: Optional[str] = None,
        network: str = "private",
        allowed_address_pairs: Iterable[AddressPair] = (),
    ) -> Server:
        """Register a server with a single interface owning ``address``."""

        server_id = server_id or f"server-{name}"
        port_id = port_id or f"port-{name}"
        version = 6 if ":" in address else 4
        server = Server(
            id=server_id,
            name=name,
            addresses={network: [ServerAddress(address=address, version=version)]},
        )
        fixed_ip = FixedIP(ip_address=address)
        self.servers[server_id] = server
        self.interfaces.setdefault(server_id, []).append(
            Interface(port_id=port_id, fixed_ips=(fixed_ip,))
        )
        self.ports[port_id] = Port(
            id=port_id,
            fixed_ips=[fixed_ip],
            allowed_address_pairs=list(allowed_address_pairs),
        )
        return server

    def remove_server(self, server_id: str) -> None:
        self.servers.pop(server_id, None)
        self.interfaces.pop(server_id, None)

    # ------------------------------------------------------------------
    # Failure injection
    # ------------------------------------------------------------------
    def fail(self, operation: str, times: int = 1, after: int = 0) -> None:
        """Make ``times`` calls of ``operation`` raise BackendError.

        The first ``after`` calls still succeed.
        """

        self._failures[operation] = [after, times]

    def _call(self, operation: str) -> None:
        self.calls[operation] += 1
        pending = self._failures.get(operation)
        if not pending:
            return
        if pending[0]:
            pending[0] -= 1
            return
        pending[1] -= 1
        if not pending[1]:
            del self._failures[operation]
        LOG.debug("Injected failure for %s", operation)
        raise BackendError(operation, RuntimeError("injected failure"))


class InMemoryCompute(ComputeBackend):
    def __init__(self, cloud: InMemoryCloud) -> None:
        self._cloud = cloud

    def list_servers(self, name: Optional[str] = None) -> Iterable[Server]:
        self._cloud._call("list_servers")
        return [
            server
            for server in self._cloud.servers.values()
            if name is None or server.name == name
        ]

    def list_interfaces(self, server_id: str) -> Sequence[Interface]:
        self._cloud._call("list_interfaces")
        if server_id not in self._cloud.servers:
            raise NotFound(f"server {server_id} not found")
        return list(self._cloud.interfaces.get(server_id, []))


class InMemoryNetwork(NetworkBackend):
    def __init__(self, cloud: InMemoryCloud) -> None:
        self._cloud = cloud

    def get_router(self, router_id: str) -> Router:
        self._cloud._call("get_router")
        router = self._cloud.routers.get(router_id)
        if router is None:
            raise NotFound(f"router {router_id} not found")
        # hand out a copy so callers never alias the stored table
        return Router(id=router.id, routes=list(router.routes))

    def update_router_routes(self, router_id: str, routes: Sequence[RouterRoute]) -> None:
        self._cloud._call("update_router_routes")
        if router_id not in self._cloud.routers:
            raise NotFound(f"router {router_id} not found")
        self._cloud.routers[router_id].routes = list(routes)

    def get_port(self, port_id: str) -> Optional[Port]:
        self._cloud._call("get_port")
        port = self._cloud.ports.get(port_id)
        if port is None:
            return None
        return Port(
            id=port.id,
            fixed_ips=list(port.fixed_ips),
            allowed_address_pairs=list(port.allowed_address_pairs),
        )

    def update_port_allowed_address_pairs(
        self, port_id: str, pairs: Sequence[AddressPair]
    ) -> None:
        self._cloud._call("update_port_allowed_address_pairs")
        if port_id not in self._cloud.ports:
            raise NotFound(f"port {port_id} not found")
        self._cloud.ports[port_id].allowed_address_pairs = list(pairs)


def build_memory_backends(cloud: InMemoryCloud) -> tuple[InMemoryCompute, InMemoryNetwork]:
    return InMemoryCompute(cloud), InMemoryNetwork(cloud)
