"""YAML configuration loader for the pod routes agent."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import yaml

from pod_routes.model import NetworkingOpts, RouterOpts, RouterRoute


@dataclass
class SeedNode:
    """Server registered in the in-memory backend for lab runs."""

    name: str
    address: str
    port_id: Optional[str] = None


@dataclass
class BackendConfig:
    type: str = "openstack"
    cloud: Optional[str] = None
    nodes: Sequence[SeedNode] = field(default_factory=list)
    routes: Sequence[RouterRoute] = field(default_factory=list)


@dataclass
class WatcherConfig:
    type: str
    path: Path
    interval: float = 10.0
    options: dict = field(default_factory=dict)


@dataclass
class AgentConfig:
    router: RouterOpts
    networking: NetworkingOpts
    backend: BackendConfig = field(default_factory=BackendConfig)
    cluster_name: str = "kubernetes"
    cluster_cidrs: Sequence[str] = field(default_factory=list)
    watchers: Sequence[WatcherConfig] = field(default_factory=list)


def _string_list(value, key: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a string or a list")
    return [str(item) for item in value]


def _parse_networking(section: dict) -> NetworkingOpts:
    if not isinstance(section, dict):
        raise ValueError("'networking' section must be a mapping")
    return NetworkingOpts(
        ipv6_support_disabled=bool(section.get("ipv6_support_disabled", False)),
        public_network_names=tuple(
            _string_list(section.get("public_networks"), "public_networks")
        ),
        internal_network_names=tuple(
            _string_list(section.get("internal_networks"), "internal_networks")
        ),
        address_sort_order=str(section.get("address_sort_order") or ""),
    )


def _parse_backend(section: dict) -> BackendConfig:
    if not isinstance(section, dict):
        raise ValueError("'backend' section must be a mapping")
    backend_type = str(section.get("type", "openstack"))
    if backend_type not in ("openstack", "memory"):
        raise ValueError(f"unsupported backend type '{backend_type}'")

    nodes = [
        SeedNode(
            name=str(entry["name"]),
            address=str(entry["address"]),
            port_id=entry.get("port_id"),
        )
        for entry in section.get("nodes", [])
    ]
    routes = [
        RouterRoute(
            destination_cidr=str(entry["destination"]),
            next_hop=str(entry["nexthop"]),
        )
        for entry in section.get("routes", [])
    ]
    return BackendConfig(
        type=backend_type,
        cloud=section.get("cloud"),
        nodes=nodes,
        routes=routes,
    )


def _parse_watchers(entries: Iterable[dict]) -> List[WatcherConfig]:
    watchers: List[WatcherConfig] = []
    for entry in entries:
        options = entry.get("options", {})
        if not isinstance(options, dict):
            raise ValueError("watcher 'options' must be a mapping if provided")
        watchers.append(
            WatcherConfig(
                type=str(entry["type"]),
                path=Path(entry.get("path", ".")),
                interval=float(entry.get("interval", entry.get("poll_interval", 10.0))),
                options=options,
            )
        )
    return watchers


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(path.read_text())
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    router_section = data.get("router")
    if router_section is None:
        raise ValueError("Configuration missing 'router' section")
    if not isinstance(router_section, dict):
        raise ValueError("'router' section must be a mapping")
    # an empty id is rejected later by the reconciler with ConfigurationError
    router = RouterOpts(router_id=str(router_section.get("id") or ""))

    networking = _parse_networking(data.get("networking") or {})
    backend = _parse_backend(data.get("backend") or {})

    cluster_cidrs = _string_list(data.get("cluster_cidrs"), "cluster_cidrs")
    for cidr in cluster_cidrs:
        try:
            ipaddress.ip_network(cidr, strict=False)
        except ValueError as exc:
            raise ValueError(f"invalid cluster CIDR '{cidr}'") from exc

    watchers_section = data.get("watchers", [])
    if not isinstance(watchers_section, list):
        raise ValueError("'watchers' section must be a list")
    watchers = _parse_watchers(watchers_section)

    return AgentConfig(
        router=router,
        networking=networking,
        backend=backend,
        cluster_name=str(data.get("cluster_name", "kubernetes")),
        cluster_cidrs=cluster_cidrs,
        watchers=watchers,
    )
