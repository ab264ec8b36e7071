"""Pod route reconciler for a Neutron router.

:class:`Routes` implements the list/create/delete contract a cluster route
controller expects.  Every route lives in two places that Neutron cannot
update atomically: the router's static route table and the allowed-address
pairs of the target node's port.  Create and delete therefore update the
router first, push the returned compensator on an :class:`UnwindStack` and only
then touch the port; any later failure restores the router before the error
propagates.

No router or port state is cached between calls; every operation re-reads the
resources it is about to modify.
"""

from __future__ import annotations

import ipaddress
import logging
from threading import Event
from typing import List, Optional, TypeVar

from .backends.base import ComputeBackend, NetworkBackend
from .compute import AddressResolver
from .errors import ConfigurationError, InvalidRoute, OperationCancelled
from .model import AddressPair, NetworkingOpts, Route, RouterOpts, RouterRoute
from .network import get_port, get_router, update_allowed_address_pairs, update_routes
from .unwind import UnwindStack

LOG = logging.getLogger(__name__)

T = TypeVar("T")


def _is_ipv6_cidr(cidr: str) -> bool:
    try:
        return ipaddress.ip_network(cidr, strict=False).version == 6
    except ValueError as exc:
        raise InvalidRoute(f"invalid destination CIDR '{cidr}'") from exc


def _remove_at(items: List[T], index: int) -> None:
    """Unordered removal: move the last element into ``index`` and truncate."""

    items[index] = items[-1]
    del items[-1]


def _checkpoint(cancel_event: Optional[Event], step: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelled(f"cancelled before {step}")


class Routes:
    """Manage per-node pod routes on a single Neutron router."""

    def __init__(
        self,
        compute: ComputeBackend,
        network: NetworkBackend,
        router_opts: RouterOpts,
        networking_opts: Optional[NetworkingOpts] = None,
    ) -> None:
        if not router_opts.router_id:
            raise ConfigurationError("router id is required for route management")
        self._network = network
        self._router_id = router_opts.router_id
        self._resolver = AddressResolver(compute, networking_opts or NetworkingOpts())

    @property
    def router_id(self) -> str:
        return self._router_id

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------
    def list_routes(
        self, cluster_name: str, cancel_event: Optional[Event] = None
    ) -> List[Route]:
        """Return every route of the managed router, in router-table order.

        Entries whose next hop is not an address of any node are returned as
        blackhole routes carrying the raw next hop as ``target_node``.
        """

        LOG.debug("ListRoutes(%s)", cluster_name)

        _checkpoint(cancel_event, "listing servers")
        node_names = self._resolver.node_names_by_address()

        _checkpoint(cancel_event, "reading router")
        router = get_router(self._network, self._router_id)

        routes: List[Route] = []
        for item in router.routes:
            node_name = node_names.get(item.next_hop)
            routes.append(
                Route(
                    name=item.destination_cidr,
                    destination_cidr=item.destination_cidr,
                    # the next hop itself when no node owns it
                    target_node=node_name if node_name is not None else item.next_hop,
                    blackhole=node_name is None,
                )
            )
        return routes

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def create_route(
        self,
        cluster_name: str,
        name_hint: str,
        route: Route,
        cancel_event: Optional[Event] = None,
    ) -> None:
        LOG.debug("CreateRoute(%s, %s, %s)", cluster_name, name_hint, route)

        want_ipv6 = _is_ipv6_cidr(route.destination_cidr)
        _checkpoint(cancel_event, "resolving next hop")
        addr = self._resolver.resolve(route.target_node, want_ipv6)
        LOG.debug("Using nexthop %s for node %s", addr, route.target_node)

        _checkpoint(cancel_event, "reading router")
        router = get_router(self._network, self._router_id)
        for item in router.routes:
            if item.destination_cidr == route.destination_cidr and item.next_hop == addr:
                LOG.debug("Skipping existing route: %s", route)
                return

        new_routes = list(router.routes)
        new_routes.append(RouterRoute(destination_cidr=route.destination_cidr, next_hop=addr))

        with UnwindStack() as unwind:
            _checkpoint(cancel_event, "updating router")
            unwind.push(update_routes(self._network, router, new_routes))

            _checkpoint(cancel_event, "locating port")
            port_id = self._resolver.locate_port(route.target_node, addr)
            _checkpoint(cancel_event, "reading port")
            port = get_port(self._network, port_id)

            found = False
            for pair in port.allowed_address_pairs:
                if pair.ip_address == route.destination_cidr:
                    LOG.debug("Found existing allowed-address-pair: %s", pair)
                    found = True
                    break

            if not found:
                new_pairs = list(port.allowed_address_pairs)
                new_pairs.append(AddressPair(ip_address=route.destination_cidr))
                _checkpoint(cancel_event, "updating port")
                unwind.push(update_allowed_address_pairs(self._network, port, new_pairs))

            unwind.disarm()

        LOG.info(
            "Route created: %s via %s (node %s)",
            route.destination_cidr,
            addr,
            route.target_node,
        )

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------
    def delete_route(
        self, cluster_name: str, route: Route, cancel_event: Optional[Event] = None
    ) -> None:
        LOG.debug("DeleteRoute(%s, %s)", cluster_name, route)

        addr: Optional[str] = None
        # blackhole routes are orphaned and have no node or port to resolve
        if not route.blackhole:
            want_ipv6 = _is_ipv6_cidr(route.destination_cidr)
            _checkpoint(cancel_event, "resolving next hop")
            addr = self._resolver.resolve(route.target_node, want_ipv6)

        _checkpoint(cancel_event, "reading router")
        router = get_router(self._network, self._router_id)

        routes = list(router.routes)
        index = -1
        for i, item in enumerate(routes):
            if item.destination_cidr != route.destination_cidr:
                continue
            if route.blackhole:
                # orphaned entries keep the raw next hop as the target node
                matched = item.next_hop == route.target_node
            else:
                matched = item.next_hop == addr
            if matched:
                index = i
                break

        if index == -1:
            LOG.debug("Skipping non-existent route: %s", route)
            return

        _remove_at(routes, index)

        _checkpoint(cancel_event, "updating router")
        revert_routes = update_routes(self._network, router, routes)
        if route.blackhole:
            # no port-side state exists for an orphaned route
            LOG.info("Blackhole route deleted: %s", route.destination_cidr)
            return

        with UnwindStack() as unwind:
            unwind.push(revert_routes)

            _checkpoint(cancel_event, "locating port")
            port_id = self._resolver.locate_port(route.target_node, addr)
            _checkpoint(cancel_event, "reading port")
            port = get_port(self._network, port_id)

            pairs = list(port.allowed_address_pairs)
            index = -1
            for i, pair in enumerate(pairs):
                if pair.ip_address == route.destination_cidr:
                    index = i
                    break

            if index != -1:
                _remove_at(pairs, index)
                _checkpoint(cancel_event, "updating port")
                unwind.push(update_allowed_address_pairs(self._network, port, pairs))

            unwind.disarm()

        LOG.info("Route deleted: %s (node %s)", route.destination_cidr, route.target_node)
