"""Adapter between the Neutron pod route reconciler and the provider contract."""

from __future__ import annotations

from threading import Event
from typing import List, Optional

from pod_routes.backends.base import ComputeBackend, NetworkBackend
from pod_routes.model import NetworkingOpts, Route, RouterOpts
from pod_routes.routes import Routes

from .base import RoutesProvider


class NeutronRoutesProvider(RoutesProvider):
    """Wrap :class:`~pod_routes.routes.Routes` for route controller use."""

    def __init__(self, routes: Routes) -> None:
        self._routes = routes

    @property
    def routes(self) -> Routes:
        return self._routes

    def list_routes(
        self, cluster_name: str, cancel_event: Optional[Event] = None
    ) -> List[Route]:
        return self._routes.list_routes(cluster_name, cancel_event)

    def create_route(
        self,
        cluster_name: str,
        name_hint: str,
        route: Route,
        cancel_event: Optional[Event] = None,
    ) -> None:
        self._routes.create_route(cluster_name, name_hint, route, cancel_event)

    def delete_route(
        self, cluster_name: str, route: Route, cancel_event: Optional[Event] = None
    ) -> None:
        self._routes.delete_route(cluster_name, route, cancel_event)


def build_neutron_provider(
    compute: ComputeBackend,
    network: NetworkBackend,
    router_opts: RouterOpts,
    networking_opts: Optional[NetworkingOpts] = None,
) -> NeutronRoutesProvider:
    """Helper mirroring the builder pattern used by cloud provider plugins.

    Raises :class:`~pod_routes.errors.ConfigurationError` when
    ``router_opts`` carries no router id.
    """

    return NeutronRoutesProvider(
        Routes(compute, network, router_opts, networking_opts)
    )
