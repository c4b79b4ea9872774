"""Pure translation between Kubernetes routes and NSX-T static routes.

Nothing in this module performs I/O or keeps state, so every function can be
exercised without a broker.

Naming follows two conventions on purpose:

* the route ID (the last segment of the policy path) is
  ``<name_hint>_<cidr>`` with the CIDR ``/`` replaced by ``_`` so it forms a
  single path segment;
* the display name is ``<cluster>_<node>_<cidr>`` with the CIDR untouched.

Existing deployments carry routes named this way, so the two conventions must
not be unified.
"""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from .config import CLUSTER_NAME_TAG_SCOPE, ERROR_STATE, NODE_NAME_TAG_SCOPE, REALIZED_STATE
from .model import (
    NextHop,
    RealizationState,
    RealizedEntity,
    Route,
    SearchResponse,
    StaticRoute,
    Tag,
)

STATIC_ROUTES_SEGMENT = "static-routes"


def route_id(name_hint: str, cidr: str) -> str:
    return f"{name_hint}_{cidr.replace('/', '_')}"


def display_name(cluster_name: str, node_name: str, cidr: str) -> str:
    return f"{cluster_name}_{node_name}_{cidr}"


def build_tags(cluster_name: str, node_name: str) -> Tuple[Tag, Tag]:
    """Return the ownership tags, cluster scope first."""

    return (
        Tag(scope=CLUSTER_NAME_TAG_SCOPE, tag=cluster_name),
        Tag(scope=NODE_NAME_TAG_SCOPE, tag=node_name),
    )


def build_static_route(
    cluster_name: str,
    name_hint: str,
    node_name: str,
    cidr: str,
    node_ip: str,
) -> Tuple[str, StaticRoute]:
    """Build the route ID and the resource published for ``cidr`` via ``node_ip``."""

    resource = StaticRoute(
        display_name=display_name(cluster_name, node_name, cidr),
        network=cidr,
        next_hops=(NextHop(ip_address=node_ip),),
        tags=build_tags(cluster_name, node_name),
    )
    return route_id(name_hint, cidr), resource


def static_route_to_route(resource: StaticRoute) -> Route:
    identifier = resource.id
    if identifier is None and resource.path:
        identifier = resource.path.rsplit("/", 1)[-1]
    return Route(
        name=resource.display_name,
        target_node=resource.tag_value(NODE_NAME_TAG_SCOPE) or "",
        destination_cidr=resource.network,
        route_id=identifier,
    )


def static_route_path(router_path: str, identifier: str) -> str:
    return f"{router_path}/{STATIC_ROUTES_SEGMENT}/{identifier}"


def build_route_query(cluster_name: str) -> str:
    return (
        "resource_type:StaticRoutes"
        f" AND tags.scope:{CLUSTER_NAME_TAG_SCOPE}"
        f" AND tags.tag:{cluster_name}"
    )


def _under_router(resource: StaticRoute, router_path: Optional[str]) -> bool:
    if not router_path or not resource.path:
        return True
    return resource.path.startswith(f"{router_path}/{STATIC_ROUTES_SEGMENT}/")


def routes_from_search(
    response: SearchResponse,
    cluster_name: str,
    router_path: Optional[str] = None,
) -> List[Route]:
    """Convert search results to routes owned by ``cluster_name``.

    Order follows ``response.results``.  Results of another resource type,
    tagged for another cluster or stored under another router are skipped.
    """

    routes: List[Route] = []
    for raw in response.results:
        resource = StaticRoute.from_dict(raw)
        if resource.resource_type != "StaticRoutes":
            continue
        if resource.tag_value(CLUSTER_NAME_TAG_SCOPE) != cluster_name:
            continue
        if not _under_router(resource, router_path):
            continue
        routes.append(static_route_to_route(resource))
    return routes


def classify_realized(entities: Iterable[RealizedEntity], intent_path: str) -> RealizationState:
    """Fold realized-state entries for ``intent_path`` into a single state.

    Any REALIZED entry wins; otherwise an ERROR entry fails the route.  Every
    other state (UNREALIZED, IN_PROGRESS, ...) keeps the poll going.
    """

    states: Sequence[str] = [e.state for e in entities if e.refers_to(intent_path)]
    if REALIZED_STATE in states:
        return RealizationState.REALIZED
    if ERROR_STATE in states:
        return RealizationState.FAILED
    return RealizationState.POLLING


def realized_states(entities: Iterable[RealizedEntity]) -> Mapping[str, str]:
    """Map realized entity IDs to their raw states, for log messages."""

    return {e.id: e.state for e in entities}
