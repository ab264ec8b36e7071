"""File-based desired route watcher."""

from __future__ import annotations

import ipaddress
import json
import logging
from pathlib import Path
from threading import Event, Thread
from typing import Dict, Sequence

from cloud_provider import RoutesProvider
from pod_routes.errors import OperationCancelled, PodRoutesError
from pod_routes.model import Route

LOG = logging.getLogger(__name__)


def _extract_state(payload: dict) -> Dict[str, str]:
    """Map each desired pod CIDR to the node it should be routed to."""

    nodes = payload.get("nodes")
    if nodes is None:
        raise ValueError("nodes file missing 'nodes' key")

    state: Dict[str, str] = {}
    for node in nodes:
        name = node.get("name")
        if name is None:
            continue
        for cidr in node.get("pod_cidrs", []):
            state[str(cidr)] = str(name)
    return state


def _parse_cluster_cidrs(cidrs: Sequence[str]):
    networks = []
    for cidr in cidrs:
        try:
            networks.append(ipaddress.ip_network(cidr, strict=False))
        except ValueError as exc:
            raise ValueError(f"invalid cluster CIDR '{cidr}'") from exc
    return networks


class FileRouteWatcher(Thread):
    """Poll a JSON nodes file and reconcile the router against it.

    Every poll lists the router's routes, deletes routes that are blackholes
    or no longer desired, and creates desired routes that are missing.  Only
    routes the cluster owns are ever deleted: those inside one of
    ``cluster_cidrs`` and those whose destination is currently desired.  Other
    static routes on the router are left alone.  A failure on one route is
    logged and the remaining routes are still processed; the next poll
    retries.
    """

    def __init__(
        self,
        provider: RoutesProvider,
        cluster_name: str,
        path: Path,
        interval: float,
        stop_event: Event,
        cluster_cidrs: Sequence[str] = (),
    ) -> None:
        super().__init__(daemon=True)
        self._cluster_cidrs = _parse_cluster_cidrs(cluster_cidrs)
        self._provider = provider
        self._cluster_name = cluster_name
        self._path = Path(path)
        self._interval = interval
        self._stop_event = stop_event

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("route watcher encountered an error")
            self._stop_event.wait(self._interval)

    def poll(self) -> None:
        if not self._path.exists():
            LOG.debug("nodes file %s does not exist yet", self._path)
            return

        try:
            payload = json.loads(self._path.read_text())
        except json.JSONDecodeError as exc:
            LOG.warning("failed to parse nodes file %s: %s", self._path, exc)
            return

        try:
            desired = _extract_state(payload)
        except ValueError as exc:
            LOG.warning("invalid nodes file %s: %s", self._path, exc)
            return

        try:
            self._reconcile(desired)
        except OperationCancelled:
            LOG.debug("route reconciliation cancelled")

    def _reconcile(self, desired: Dict[str, str]) -> None:
        current = self._provider.list_routes(self._cluster_name, self._stop_event)

        satisfied = set()
        for route in current:
            if not self._owns(route.destination_cidr, desired):
                LOG.debug("ignoring unmanaged route %s", route.destination_cidr)
                continue
            wanted = desired.get(route.destination_cidr)
            if not route.blackhole and wanted == route.target_node:
                satisfied.add(route.destination_cidr)
                continue
            LOG.info(
                "deleting route %s -> %s%s",
                route.destination_cidr,
                route.target_node,
                " (blackhole)" if route.blackhole else "",
            )
            self._apply(lambda r=route: self._provider.delete_route(
                self._cluster_name, r, self._stop_event))

        for cidr, node in desired.items():
            if cidr in satisfied:
                continue
            route = Route(destination_cidr=cidr, target_node=node)
            LOG.info("creating route %s -> %s", cidr, node)
            self._apply(lambda r=route: self._provider.create_route(
                self._cluster_name, r.destination_cidr, r, self._stop_event))

    def _owns(self, cidr: str, desired: Dict[str, str]) -> bool:
        if cidr in desired:
            return True
        try:
            network = ipaddress.ip_network(cidr, strict=False)
        except ValueError:
            return False
        return any(
            network.version == cluster.version and network.subnet_of(cluster)
            for cluster in self._cluster_cidrs
        )

    def _apply(self, action) -> None:
        try:
            action()
        except OperationCancelled:
            raise
        except PodRoutesError as exc:
            LOG.warning("route update failed: %s", exc)
