from threading import Event

import pytest

from conftest import ROUTER_PATH, build_node
from nsxt_routes.config import RealizationPolicy, RouteConfig
from nsxt_routes.errors import (
    BrokerError,
    CreateFailedError,
    DeleteFailedError,
    NoAddressError,
    NotFoundError,
    QueryError,
    RealizationCancelledError,
    RealizationTimeoutError,
    UnknownNodeError,
)
from nsxt_routes.mock import InMemoryBroker
from nsxt_routes.model import NextHop, Route, StaticRoute, Tag
from nsxt_routes.provider import RouteProvider
from nsxt_routes.translator import build_static_route

NAME_HINT = "62d347a4-1b70-435e-b92a-9a61453843ee"


def build_provider(broker: InMemoryBroker, max_attempts: int = 3) -> RouteProvider:
    provider = RouteProvider(
        ROUTER_PATH,
        broker,
        policy=RealizationPolicy(interval=0, max_attempts=max_attempts),
    )
    provider.add_node(build_node("node1"))
    return provider


def test_list_routes(broker):
    for cluster, node, cidr in [
        ("kubernetes", "node1", "100.96.0.0/24"),
        ("other", "node9", "100.97.0.0/24"),
        ("kubernetes", "node2", "100.96.1.0/24"),
    ]:
        route_id, static_route = build_static_route(cluster, NAME_HINT, node, cidr, "172.50.0.1")
        broker.add_route(ROUTER_PATH, route_id, static_route)
    provider = build_provider(broker)

    routes = provider.list_routes("kubernetes")

    assert broker.calls[0] == (
        "query",
        "resource_type:StaticRoutes AND tags.scope:vsphere.k8s.io/cluster-name"
        " AND tags.tag:kubernetes",
    )
    assert [(r.name, r.target_node, r.destination_cidr) for r in routes] == [
        ("kubernetes_node1_100.96.0.0/24", "node1", "100.96.0.0/24"),
        ("kubernetes_node2_100.96.1.0/24", "node2", "100.96.1.0/24"),
    ]


def test_list_routes_ignores_other_routers(broker):
    route_id, static_route = build_static_route(
        "kubernetes", NAME_HINT, "node1", "100.96.0.0/24", "172.50.0.13"
    )
    broker.add_route("/infra/tier-1s/other-t1", route_id, static_route)

    assert build_provider(broker).list_routes("kubernetes") == []


def test_list_routes_wraps_broker_failure():
    broker = InMemoryBroker(failures={"query": BrokerError("search unavailable")})

    with pytest.raises(QueryError) as excinfo:
        build_provider(broker).list_routes("kubernetes")

    assert isinstance(excinfo.value.__cause__, BrokerError)


def test_create_route(broker):
    provider = build_provider(broker)
    route = Route(name="", target_node="node1", destination_cidr="100.96.0.0/24")

    route_id = provider.create_route("kubernetes", NAME_HINT, route)

    assert route_id == f"{NAME_HINT}_100.96.0.0_24"
    assert broker.calls[0] == (
        "create",
        (
            ROUTER_PATH,
            route_id,
            StaticRoute(
                display_name="kubernetes_node1_100.96.0.0/24",
                network="100.96.0.0/24",
                next_hops=(NextHop(ip_address="172.50.0.13"),),
                tags=(
                    Tag("vsphere.k8s.io/cluster-name", "kubernetes"),
                    Tag("vsphere.k8s.io/node-name", "node1"),
                ),
            ),
        ),
    )
    assert broker.calls[1] == ("realized", f"{ROUTER_PATH}/static-routes/{route_id}")
    assert broker.get_route(ROUTER_PATH, route_id) is not None


def test_create_ipv6_route_uses_ipv6_next_hop(broker):
    provider = build_provider(broker)
    route = Route(name="", target_node="node1", destination_cidr="fd00:100:96::/64")

    route_id = provider.create_route("kubernetes", NAME_HINT, route)

    stored = broker.get_route(ROUTER_PATH, route_id)
    assert stored.next_hops[0].ip_address == "fe80::20c:29ff:fe0b:b407"


def test_create_route_failure_skips_realization():
    broker = InMemoryBroker(failures={"create": BrokerError("mock error", status_code=400)})
    provider = build_provider(broker)
    route = Route(name="", target_node="node1", destination_cidr="100.96.0.0/24")

    with pytest.raises(CreateFailedError):
        provider.create_route("kubernetes", NAME_HINT, route)

    assert broker.call_count("realized") == 0


def test_create_route_for_unknown_node_makes_no_call(broker):
    provider = build_provider(broker)
    route = Route(name="", target_node="ghost", destination_cidr="100.96.0.0/24")

    with pytest.raises(UnknownNodeError):
        provider.create_route("kubernetes", NAME_HINT, route)

    assert broker.calls == []


def test_create_route_without_matching_address_makes_no_call(broker):
    provider = build_provider(broker)
    provider.add_node(build_node("v4only", [("InternalIP", "172.50.0.20")]))
    route = Route(name="", target_node="v4only", destination_cidr="fd00:100:96::/64")

    with pytest.raises(NoAddressError):
        provider.create_route("kubernetes", NAME_HINT, route)

    assert broker.calls == []


def test_create_route_times_out_without_realization():
    route_id = f"{NAME_HINT}_100.96.0.0_24"
    broker = InMemoryBroker(
        realized={f"{ROUTER_PATH}/static-routes/{route_id}": ["UNREALIZED"]}
    )
    provider = build_provider(broker, max_attempts=2)
    route = Route(name="", target_node="node1", destination_cidr="100.96.0.0/24")

    with pytest.raises(RealizationTimeoutError):
        provider.create_route("kubernetes", NAME_HINT, route)

    assert broker.call_count("realized") == 2


def test_created_route_is_listed_back(broker):
    provider = build_provider(broker)
    route = Route(name="", target_node="node1", destination_cidr="100.96.0.0/24")

    provider.create_route("kubernetes", NAME_HINT, route)
    (listed,) = provider.list_routes("kubernetes")

    assert listed.target_node == route.target_node
    assert listed.destination_cidr == route.destination_cidr


def test_listed_route_is_deleted_by_policy_id(broker):
    provider = build_provider(broker)
    route = Route(name="", target_node="node1", destination_cidr="100.96.0.0/24")
    route_id = provider.create_route("kubernetes", NAME_HINT, route)

    (listed,) = provider.list_routes("kubernetes")
    provider.delete_route("kubernetes", listed)

    assert listed.name == "kubernetes_node1_100.96.0.0/24"
    assert listed.route_id == route_id
    assert broker.calls[-2] == ("delete", (ROUTER_PATH, route_id))
    assert provider.list_routes("kubernetes") == []


def test_create_route_honours_cancelled_event(broker):
    provider = build_provider(broker)
    route = Route(name="", target_node="node1", destination_cidr="100.96.0.0/24")
    cancel = Event()
    cancel.set()

    with pytest.raises(RealizationCancelledError) as excinfo:
        provider.create_route("kubernetes", NAME_HINT, route, cancel=cancel)

    assert excinfo.value.intent_path == f"{ROUTER_PATH}/static-routes/{NAME_HINT}_100.96.0.0_24"
    assert broker.call_count("create") == 1
    assert broker.call_count("realized") == 0


def test_delete_route(broker):
    route_name = "a4775ec4-8b68-42ea-86fc-d17390e4c373_100.96.1.0_24"
    _, static_route = build_static_route("kubernetes", "x", "node2", "100.96.1.0/24", "172.50.0.137")
    broker.add_route(ROUTER_PATH, route_name, static_route)
    provider = build_provider(broker)

    provider.delete_route("kubernetes", Route(route_name, "node2", "100.96.1.0/24"))

    assert broker.calls == [("delete", (ROUTER_PATH, route_name))]
    assert broker.get_route(ROUTER_PATH, route_name) is None


def test_delete_missing_route_follows_broker(broker):
    provider = build_provider(broker)
    route = Route("gone_100.96.1.0_24", "node2", "100.96.1.0/24")

    provider.delete_route("kubernetes", route)

    strict = build_provider(InMemoryBroker(strict_delete=True))
    with pytest.raises(DeleteFailedError):
        strict.delete_route("kubernetes", route)


def test_delete_route_wraps_broker_failure():
    broker = InMemoryBroker(failures={"delete": BrokerError("locked", status_code=409)})

    with pytest.raises(DeleteFailedError) as excinfo:
        build_provider(broker).delete_route("kubernetes", Route("r", "node1", "100.96.0.0/24"))

    assert excinfo.value.__cause__.status_code == 409


def test_node_lifecycle(broker):
    provider = RouteProvider(ROUTER_PATH, broker)
    node = build_node("node1")

    provider.add_node(node)
    assert provider.get_node("node1") is node

    provider.delete_node(node)
    with pytest.raises(NotFoundError):
        provider.get_node("node1")


def test_from_config(broker):
    config = RouteConfig(
        router_path=ROUTER_PATH,
        realization=RealizationPolicy(interval=0, max_attempts=1),
    )

    provider = RouteProvider.from_config(config, broker)

    assert provider.router_path == ROUTER_PATH
    assert len(provider.nodes) == 0
