"""Router and port editors with compensating actions."""

from __future__ import annotations

import logging
from typing import List, Sequence

from .backends.base import NetworkBackend
from .errors import NotFound
from .model import AddressPair, Port, Router, RouterRoute
from .unwind import Compensator

LOG = logging.getLogger(__name__)


def get_router(network: NetworkBackend, router_id: str) -> Router:
    return network.get_router(router_id)


def get_port(network: NetworkBackend, port_id: str) -> Port:
    port = network.get_port(port_id)
    if port is None:
        raise NotFound(f"port {port_id} not found")
    return port


def update_routes(
    network: NetworkBackend, router: Router, new_routes: Sequence[RouterRoute]
) -> Compensator:
    """Replace the routes of ``router`` and return the matching compensator."""

    original: List[RouterRoute] = list(router.routes)
    network.update_router_routes(router.id, list(new_routes))

    def _revert() -> None:
        LOG.debug("Reverting routes change to router %s", router.id)
        network.update_router_routes(router.id, original)

    return Compensator(f"reset routes of router {router.id}", _revert)


def update_allowed_address_pairs(
    network: NetworkBackend, port: Port, new_pairs: Sequence[AddressPair]
) -> Compensator:
    """Replace the allowed-address-pairs of ``port`` and return the compensator."""

    original: List[AddressPair] = list(port.allowed_address_pairs)
    network.update_port_allowed_address_pairs(port.id, list(new_pairs))

    def _revert() -> None:
        LOG.debug("Reverting allowed-address-pairs change to port %s", port.id)
        network.update_port_allowed_address_pairs(port.id, original)

    return Compensator(f"reset allowed-address-pairs of port {port.id}", _revert)
