from types import SimpleNamespace

import pytest
from openstack import exceptions as sdk_exceptions

from pod_routes.backends.openstack import OpenStackCompute, OpenStackNetwork
from pod_routes.errors import BackendError, NotFound
from pod_routes.model import AddressPair, FixedIP, RouterRoute, ServerAddress


class FakeCompute:
    def __init__(self):
        self.queries = []

    def servers(self, **query):
        self.queries.append(query)
        yield SimpleNamespace(
            id="srv-1",
            name="node-a",
            addresses={
                "private": [
                    {"addr": "10.0.0.5", "version": 4, "OS-EXT-IPS:type": "fixed"},
                    {"addr": "172.24.4.9", "version": 4, "OS-EXT-IPS:type": "floating"},
                ]
            },
            access_ipv4="",
            access_ipv6=None,
        )

    def server_interfaces(self, server_id):
        if server_id != "srv-1":
            raise sdk_exceptions.ResourceNotFound("no such server")
        return [
            SimpleNamespace(
                port_id="port-1",
                fixed_ips=[{"ip_address": "10.0.0.5", "subnet_id": "sub-1"}],
                net_id="net-1",
                mac_addr="fa:16:3e:00:00:01",
                port_state="ACTIVE",
            )
        ]


class FakeNetwork:
    def __init__(self):
        self.router_updates = []
        self.port_updates = []
        self.fail_updates = False

    def get_router(self, router_id):
        return SimpleNamespace(
            id=router_id,
            routes=[{"destination": "10.244.1.0/24", "nexthop": "10.0.0.5"}],
        )

    def update_router(self, router_id, **attrs):
        if self.fail_updates:
            raise sdk_exceptions.SDKException("quota exceeded")
        self.router_updates.append((router_id, attrs))

    def get_port(self, port_id):
        if port_id == "missing":
            raise sdk_exceptions.ResourceNotFound("no such port")
        return SimpleNamespace(
            id=port_id,
            fixed_ips=[{"ip_address": "10.0.0.5", "subnet_id": "sub-1"}],
            allowed_address_pairs=[
                {"ip_address": "10.244.1.0/24", "mac_address": "fa:16:3e:00:00:01"}
            ],
        )

    def update_port(self, port_id, **attrs):
        self.port_updates.append((port_id, attrs))


def build_connection():
    return SimpleNamespace(compute=FakeCompute(), network=FakeNetwork())


def test_list_servers_translates_resources():
    conn = build_connection()

    servers = list(OpenStackCompute(conn).list_servers(name="node-a"))

    assert conn.compute.queries == [{"name": "^node\\-a$"}]
    assert len(servers) == 1
    assert servers[0].name == "node-a"
    assert servers[0].access_ipv6 == ""
    assert servers[0].addresses["private"] == [
        ServerAddress("10.0.0.5", 4, "fixed"),
        ServerAddress("172.24.4.9", 4, "floating"),
    ]


def test_list_interfaces_translates_resources():
    interfaces = OpenStackCompute(build_connection()).list_interfaces("srv-1")

    assert interfaces[0].port_id == "port-1"
    assert interfaces[0].fixed_ips == (FixedIP("10.0.0.5", "sub-1"),)
    assert interfaces[0].mac_address == "fa:16:3e:00:00:01"


def test_list_interfaces_not_found():
    with pytest.raises(NotFound):
        OpenStackCompute(build_connection()).list_interfaces("srv-x")


def test_router_round_trip_uses_neutron_field_names():
    conn = build_connection()
    network = OpenStackNetwork(conn)

    router = network.get_router("r1")
    assert router.routes == [RouterRoute("10.244.1.0/24", "10.0.0.5")]

    network.update_router_routes("r1", [RouterRoute("10.244.2.0/24", "10.0.0.6")])
    assert conn.network.router_updates == [
        ("r1", {"routes": [{"destination": "10.244.2.0/24", "nexthop": "10.0.0.6"}]})
    ]


def test_router_update_failure_is_backend_error():
    conn = build_connection()
    conn.network.fail_updates = True

    with pytest.raises(BackendError) as excinfo:
        OpenStackNetwork(conn).update_router_routes("r1", [])

    assert isinstance(excinfo.value.cause, sdk_exceptions.SDKException)


def test_port_pairs():
    conn = build_connection()
    network = OpenStackNetwork(conn)

    port = network.get_port("port-1")
    assert port.allowed_address_pairs == [
        AddressPair("10.244.1.0/24", "fa:16:3e:00:00:01")
    ]

    network.update_port_allowed_address_pairs(
        "port-1", [AddressPair("10.244.2.0/24")]
    )
    assert conn.network.port_updates == [
        ("port-1", {"allowed_address_pairs": [{"ip_address": "10.244.2.0/24"}]})
    ]


def test_get_port_not_found():
    with pytest.raises(NotFound):
        OpenStackNetwork(build_connection()).get_port("missing")
