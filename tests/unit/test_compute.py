import pytest

from pod_routes.backends.memory import InMemoryCloud, InMemoryCompute
from pod_routes.compute import AddressResolver, get_server_by_name
from pod_routes.errors import MultipleResults, NotFound
from pod_routes.model import FixedIP, Interface, NetworkingOpts


def build_resolver(cloud: InMemoryCloud, **opts) -> AddressResolver:
    return AddressResolver(InMemoryCompute(cloud), NetworkingOpts(**opts))


def test_resolve_returns_node_address():
    cloud = InMemoryCloud()
    cloud.add_node("node-a", "10.0.0.5")

    assert build_resolver(cloud).resolve("node-a", want_ipv6=False) == "10.0.0.5"


def test_resolve_unknown_node():
    with pytest.raises(NotFound):
        build_resolver(InMemoryCloud()).resolve("node-a", want_ipv6=False)


def test_get_server_by_name_requires_exact_match():
    cloud = InMemoryCloud()
    cloud.add_node("node-a", "10.0.0.5")
    cloud.add_node("node-a", "10.0.0.6", server_id="srv-dup", port_id="p-dup")

    with pytest.raises(MultipleResults):
        get_server_by_name(InMemoryCompute(cloud), "node-a")


def test_locate_port_matches_fixed_ip():
    cloud = InMemoryCloud()
    cloud.add_node("node-a", "10.0.0.5", port_id="port-1")
    cloud.interfaces["server-node-a"].append(
        Interface(port_id="port-2", fixed_ips=(FixedIP("10.0.1.5"),))
    )

    resolver = build_resolver(cloud)

    assert resolver.locate_port("node-a", "10.0.1.5") == "port-2"
    assert resolver.locate_port("node-a", "10.0.0.5") == "port-1"


def test_locate_port_missing_address():
    cloud = InMemoryCloud()
    cloud.add_node("node-a", "10.0.0.5")

    with pytest.raises(NotFound):
        build_resolver(cloud).locate_port("node-a", "10.0.0.99")


def test_locate_port_after_node_removed():
    cloud = InMemoryCloud()
    cloud.add_node("node-a", "10.0.0.5")
    resolver = build_resolver(cloud)
    resolver.resolve("node-a", want_ipv6=False)

    cloud.remove_server("server-node-a")

    with pytest.raises(NotFound):
        resolver.locate_port("node-a", "10.0.0.5")


def test_node_names_by_address_covers_all_servers():
    cloud = InMemoryCloud()
    cloud.add_node("node-a", "10.0.0.5")
    cloud.add_node("node-b", "10.0.0.6")
    cloud.add_node("node-b", "fd00::6", port_id="port-b6")

    mapping = build_resolver(cloud).node_names_by_address()

    assert mapping == {
        "10.0.0.5": "node-a",
        "10.0.0.6": "node-b",
        "fd00::6": "node-b",
    }


def test_node_names_by_address_honours_ipv6_switch():
    cloud = InMemoryCloud()
    cloud.add_node("node-b", "10.0.0.6")
    cloud.add_node("node-b", "fd00::6", port_id="port-b6")

    mapping = build_resolver(cloud, ipv6_support_disabled=True).node_names_by_address()

    assert mapping == {"10.0.0.6": "node-b"}
