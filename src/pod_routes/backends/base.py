"""Abstract interfaces for the compute and network backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Sequence

from pod_routes.model import AddressPair, Interface, Port, Router, RouterRoute, Server


class ComputeBackend(ABC):
    """Read-only view of the servers backing cluster nodes."""

    @abstractmethod
    def list_servers(self, name: Optional[str] = None) -> Iterable[Server]:
        """Yield servers, optionally restricted to those named ``name``.

        Implementations may return a superset when filtering by name; callers
        re-check the name for an exact match.
        """

    @abstractmethod
    def list_interfaces(self, server_id: str) -> Sequence[Interface]:
        """Return the interfaces attached to ``server_id``."""


class NetworkBackend(ABC):
    """Neutron router and port operations used by the reconciler."""

    @abstractmethod
    def get_router(self, router_id: str) -> Router:
        ...

    @abstractmethod
    def update_router_routes(self, router_id: str, routes: Sequence[RouterRoute]) -> None:
        """Replace the full route table of ``router_id`` with ``routes``."""

    @abstractmethod
    def get_port(self, port_id: str) -> Optional[Port]:
        ...

    @abstractmethod
    def update_port_allowed_address_pairs(
        self, port_id: str, pairs: Sequence[AddressPair]
    ) -> None:
        """Replace the allowed-address-pairs of ``port_id`` with ``pairs``."""
