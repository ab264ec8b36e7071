"""Backends talking to Nova and Neutron through ``openstacksdk``."""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, List, Optional, Sequence

import openstack
from openstack import exceptions as sdk_exceptions

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


def connect(cloud: Optional[str] = None, **kwargs: Any):
    """Open an ``openstacksdk`` connection using ``clouds.yaml``/environment."""

    LOG.debug("Connecting to OpenStack cloud %s", cloud or "<default>")
    return openstack.connect(cloud=cloud, **kwargs)


def _translate(operation: str, exc: sdk_exceptions.SDKException) -> Exception:
    if isinstance(exc, sdk_exceptions.ResourceNotFound):
        return NotFound(f"{operation}: {exc}")
    return BackendError(operation, exc)


def _fixed_ips(raw: Optional[Iterable[dict]]) -> List[FixedIP]:
    return [
        FixedIP(ip_address=item["ip_address"], subnet_id=item.get("subnet_id", ""))
        for item in raw or []
    ]


def server_from_sdk(resource) -> Server:
    addresses = {}
    for network, entries in (resource.addresses or {}).items():
        addresses[network] = [
            ServerAddress(
                address=entry["addr"],
                version=int(entry.get("version", 4)),
                type=entry.get("OS-EXT-IPS:type", "fixed"),
            )
            for entry in entries
        ]
    return Server(
        id=resource.id,
        name=resource.name,
        addresses=addresses,
        access_ipv4=resource.access_ipv4 or "",
        access_ipv6=resource.access_ipv6 or "",
    )


def interface_from_sdk(resource) -> Interface:
    return Interface(
        port_id=resource.port_id,
        fixed_ips=tuple(_fixed_ips(resource.fixed_ips)),
        net_id=resource.net_id or "",
        mac_address=resource.mac_addr or "",
        port_state=resource.port_state or "",
    )


def router_from_sdk(resource) -> Router:
    return Router(
        id=resource.id,
        routes=[
            RouterRoute(destination_cidr=item["destination"], next_hop=item["nexthop"])
            for item in resource.routes or []
        ],
    )


def port_from_sdk(resource) -> Port:
    return Port(
        id=resource.id,
        fixed_ips=_fixed_ips(resource.fixed_ips),
        allowed_address_pairs=[
            AddressPair(ip_address=item["ip_address"], mac_address=item.get("mac_address"))
            for item in resource.allowed_address_pairs or []
        ],
    )


def _pair_to_sdk(pair: AddressPair) -> dict:
    body = {"ip_address": pair.ip_address}
    if pair.mac_address:
        body["mac_address"] = pair.mac_address
    return body


class OpenStackCompute(ComputeBackend):
    """Nova-backed :class:`ComputeBackend`."""

    def __init__(self, connection) -> None:
        self._conn = connection

    def list_servers(self, name: Optional[str] = None) -> Iterable[Server]:
        query = {}
        if name is not None:
            # Nova treats the name filter as a regular expression
            query["name"] = f"^{re.escape(name)}$"
        try:
            return [server_from_sdk(s) for s in self._conn.compute.servers(**query)]
        except sdk_exceptions.SDKException as exc:
            raise _translate("list servers", exc) from exc

    def list_interfaces(self, server_id: str) -> Sequence[Interface]:
        try:
            return [
                interface_from_sdk(i)
                for i in self._conn.compute.server_interfaces(server_id)
            ]
        except sdk_exceptions.SDKException as exc:
            raise _translate(f"list interfaces of server {server_id}", exc) from exc


class OpenStackNetwork(NetworkBackend):
    """Neutron-backed :class:`NetworkBackend`."""

    def __init__(self, connection) -> None:
        self._conn = connection

    def get_router(self, router_id: str) -> Router:
        try:
            return router_from_sdk(self._conn.network.get_router(router_id))
        except sdk_exceptions.SDKException as exc:
            raise _translate(f"get router {router_id}", exc) from exc

    def update_router_routes(self, router_id: str, routes: Sequence[RouterRoute]) -> None:
        body = [{"destination": r.destination_cidr, "nexthop": r.next_hop} for r in routes]
        try:
            self._conn.network.update_router(router_id, routes=body)
        except sdk_exceptions.SDKException as exc:
            raise _translate(f"update router {router_id}", exc) from exc

    def get_port(self, port_id: str) -> Optional[Port]:
        try:
            resource = self._conn.network.get_port(port_id)
        except sdk_exceptions.SDKException as exc:
            raise _translate(f"get port {port_id}", exc) from exc
        if resource is None:
            return None
        return port_from_sdk(resource)

    def update_port_allowed_address_pairs(
        self, port_id: str, pairs: Sequence[AddressPair]
    ) -> None:
        body = [_pair_to_sdk(pair) for pair in pairs]
        try:
            self._conn.network.update_port(port_id, allowed_address_pairs=body)
        except sdk_exceptions.SDKException as exc:
            raise _translate(f"update port {port_id}", exc) from exc
