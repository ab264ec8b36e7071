import pytest

from pod_routes.addresses import is_ipv6, node_addresses, select_address, sort_node_addresses
from pod_routes.errors import NoAddressFound
from pod_routes.model import (
    AddressType,
    FixedIP,
    Interface,
    NetworkingOpts,
    NodeAddress,
    Server,
    ServerAddress,
)

INTERNAL = AddressType.INTERNAL_IP
EXTERNAL = AddressType.EXTERNAL_IP


def build_server(**addresses) -> Server:
    return Server(id="srv-1", name="node-1", addresses=addresses)


def test_interface_fixed_ips_are_internal():
    server = build_server()
    interfaces = [
        Interface(port_id="p1", fixed_ips=(FixedIP("10.0.0.5"), FixedIP("fd00::5"))),
        Interface(port_id="p2", fixed_ips=(FixedIP("10.0.1.5"),), port_state="DOWN"),
    ]

    addrs = node_addresses(server, interfaces, NetworkingOpts())

    assert addrs == [
        NodeAddress(INTERNAL, "10.0.0.5"),
        NodeAddress(INTERNAL, "fd00::5"),
    ]


def test_ipv6_support_disabled_drops_ipv6():
    server = build_server(private=[ServerAddress("fd00::9", version=6)])
    server.access_ipv6 = "2001:db8::1"
    interfaces = [Interface(port_id="p1", fixed_ips=(FixedIP("fd00::5"), FixedIP("10.0.0.5")))]

    addrs = node_addresses(server, interfaces, NetworkingOpts(ipv6_support_disabled=True))

    assert addrs == [NodeAddress(INTERNAL, "10.0.0.5")]


def test_floating_and_access_addresses_are_external():
    server = build_server(
        private=[
            ServerAddress("10.0.0.5"),
            ServerAddress("172.24.4.10", type="floating"),
        ]
    )
    server.access_ipv4 = "203.0.113.7"

    addrs = node_addresses(server, [], NetworkingOpts())

    assert addrs == [
        NodeAddress(EXTERNAL, "203.0.113.7"),
        NodeAddress(INTERNAL, "10.0.0.5"),
        NodeAddress(EXTERNAL, "172.24.4.10"),
    ]


def test_public_network_addresses_replace_internal_entries():
    server = build_server(public=[ServerAddress("198.51.100.4")])
    interfaces = [Interface(port_id="p1", fixed_ips=(FixedIP("198.51.100.4"),))]

    addrs = node_addresses(
        server, interfaces, NetworkingOpts(public_network_names=("public",))
    )

    assert addrs == [NodeAddress(EXTERNAL, "198.51.100.4")]


def test_internal_network_filter_drops_other_networks():
    server = build_server(
        storage=[ServerAddress("192.168.50.5")],
        tenant=[ServerAddress("10.0.0.5")],
    )
    interfaces = [
        Interface(port_id="p1", fixed_ips=(FixedIP("192.168.50.5"),)),
        Interface(port_id="p2", fixed_ips=(FixedIP("10.0.0.5"),)),
    ]

    addrs = node_addresses(
        server, interfaces, NetworkingOpts(internal_network_names=("tenant",))
    )

    assert addrs == [NodeAddress(INTERNAL, "10.0.0.5")]


def test_address_sort_order_prefers_listed_cidrs():
    addrs = [
        NodeAddress(INTERNAL, "192.168.0.4"),
        NodeAddress(INTERNAL, "10.1.0.4"),
        NodeAddress(INTERNAL, "172.16.0.4"),
    ]

    ordered = sort_node_addresses(addrs, "10.0.0.0/8, 172.16.0.0/12")

    assert [a.address for a in ordered] == ["10.1.0.4", "172.16.0.4", "192.168.0.4"]


def test_address_sort_order_ignores_invalid_cidrs():
    addrs = [NodeAddress(INTERNAL, "192.168.0.4"), NodeAddress(INTERNAL, "10.1.0.4")]

    ordered = sort_node_addresses(addrs, "bogus 10.0.0.0/8")

    assert [a.address for a in ordered] == ["10.1.0.4", "192.168.0.4"]


def test_select_address_prefers_internal_of_requested_family():
    addrs = [
        NodeAddress(EXTERNAL, "203.0.113.7"),
        NodeAddress(INTERNAL, "fd00::5"),
        NodeAddress(INTERNAL, "10.0.0.5"),
    ]

    assert select_address(addrs, want_ipv6=False) == "10.0.0.5"
    assert select_address(addrs, want_ipv6=True) == "fd00::5"


def test_select_address_falls_back_to_external():
    addrs = [NodeAddress(EXTERNAL, "203.0.113.7"), NodeAddress(INTERNAL, "fd00::5")]

    assert select_address(addrs, want_ipv6=False) == "203.0.113.7"


def test_select_address_never_crosses_families():
    with pytest.raises(NoAddressFound):
        select_address([NodeAddress(INTERNAL, "10.0.0.5")], want_ipv6=True)


def test_is_ipv6_accepts_prefixes():
    assert is_ipv6("fd00::/64")
    assert not is_ipv6("10.0.0.0/24")
    assert not is_ipv6("nodeA")
