import pytest

from pod_routes.backends.memory import InMemoryCloud, InMemoryNetwork
from pod_routes.errors import BackendError, NotFound
from pod_routes.model import AddressPair, RouterRoute
from pod_routes.network import get_port, get_router, update_allowed_address_pairs, update_routes


def build_network():
    cloud = InMemoryCloud()
    cloud.add_router("r1", [RouterRoute("10.0.1.0/24", "10.0.0.5")])
    cloud.add_node("node-a", "10.0.0.5", port_id="p1")
    return cloud, InMemoryNetwork(cloud)


def test_update_routes_compensator_restores_original():
    cloud, network = build_network()
    router = get_router(network, "r1")

    revert = update_routes(network, router, [])
    assert cloud.routers["r1"].routes == []

    assert revert() is True
    assert cloud.routers["r1"].routes == [RouterRoute("10.0.1.0/24", "10.0.0.5")]


def test_update_routes_failure_returns_no_compensator():
    cloud, network = build_network()
    router = get_router(network, "r1")
    cloud.fail("update_router_routes")

    with pytest.raises(BackendError):
        update_routes(network, router, [])

    assert cloud.routers["r1"].routes == [RouterRoute("10.0.1.0/24", "10.0.0.5")]


def test_original_routes_survive_in_place_edits():
    cloud, network = build_network()
    router = get_router(network, "r1")

    revert = update_routes(network, router, [])
    router.routes.clear()
    revert()

    assert cloud.routers["r1"].routes == [RouterRoute("10.0.1.0/24", "10.0.0.5")]


def test_update_allowed_address_pairs_compensator():
    cloud, network = build_network()
    port = get_port(network, "p1")

    revert = update_allowed_address_pairs(network, port, [AddressPair("10.0.2.0/24")])
    assert cloud.ports["p1"].allowed_address_pairs == [AddressPair("10.0.2.0/24")]

    revert()
    assert cloud.ports["p1"].allowed_address_pairs == []


def test_failed_pair_compensator_is_fire_and_forget():
    cloud, network = build_network()
    port = get_port(network, "p1")
    revert = update_allowed_address_pairs(network, port, [AddressPair("10.0.2.0/24")])
    cloud.fail("update_port_allowed_address_pairs")

    assert revert() is False
    assert cloud.ports["p1"].allowed_address_pairs == [AddressPair("10.0.2.0/24")]


def test_get_port_missing():
    _, network = build_network()

    with pytest.raises(NotFound):
        get_port(network, "nope")
