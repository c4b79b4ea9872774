"""Route provider publishing node pod CIDRs as NSX-T static routes.

The provider is the piece the cloud controller's route controller talks to.
It lists the static routes owned by a cluster, creates one per node pod CIDR
(waiting for the policy store to realize it) and deletes stale ones.  Node
lifecycle notifications keep its node directory current so next hops can be
resolved without querying the API server.

Retries are left to the calling reconciliation loop: every operation makes a
single attempt and reports failures as :mod:`nsxt_routes.errors` exceptions.
"""

from __future__ import annotations

import logging
from threading import Event
from typing import Any, List, Optional

from .broker import NsxtBroker
from .config import AddressFamily, RealizationPolicy, RouteConfig
from .errors import (
    BrokerError,
    CreateFailedError,
    DeleteFailedError,
    NotFoundError,
    QueryError,
    UnknownNodeError,
)
from .model import Route
from .nodes import NodeDirectory
from .realization import RealizationPoller
from .translator import (
    build_route_query,
    build_static_route,
    routes_from_search,
    static_route_path,
)

LOG = logging.getLogger(__name__)


class RouteProvider:
    """Reconcile Kubernetes routes against static routes of one tier-1 router."""

    def __init__(
        self,
        router_path: str,
        broker: NsxtBroker,
        *,
        policy: Optional[RealizationPolicy] = None,
        directory: Optional[NodeDirectory] = None,
    ) -> None:
        self._router_path = router_path
        self._broker = broker
        self._nodes = directory if directory is not None else NodeDirectory()
        self._poller = RealizationPoller(broker, policy)

    @classmethod
    def from_config(cls, config: RouteConfig, broker: NsxtBroker) -> "RouteProvider":
        return cls(config.router_path, broker, policy=config.realization)

    @property
    def router_path(self) -> str:
        return self._router_path

    @property
    def nodes(self) -> NodeDirectory:
        return self._nodes

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------
    def list_routes(self, cluster_name: str) -> List[Route]:
        query = build_route_query(cluster_name)
        try:
            response = self._broker.query_entities(query)
        except BrokerError as exc:
            raise QueryError(
                f"failed to list static routes of cluster {cluster_name}"
                f" under {self._router_path}: {exc}"
            ) from exc

        routes = routes_from_search(response, cluster_name, self._router_path)
        LOG.debug("Found %d static routes for cluster %s", len(routes), cluster_name)
        return routes

    def create_route(
        self,
        cluster_name: str,
        name_hint: str,
        route: Route,
        *,
        cancel: Optional[Event] = None,
    ) -> str:
        """Publish ``route`` and wait until the policy store realized it.

        Returns the route ID.  ``cancel`` aborts the realization poll when set.
        """

        node_ip = self._resolve_next_hop(route)
        route_id, static_route = build_static_route(
            cluster_name,
            name_hint,
            route.target_node,
            route.destination_cidr,
            node_ip,
        )

        try:
            self._broker.create_static_route(self._router_path, route_id, static_route)
        except BrokerError as exc:
            raise CreateFailedError(
                f"failed to create static route {route_id} under {self._router_path}: {exc}"
            ) from exc
        LOG.info(
            "Created static route %s: %s via %s (node %s)",
            route_id,
            route.destination_cidr,
            node_ip,
            route.target_node,
        )

        result = self._poller.wait(static_route_path(self._router_path, route_id), cancel)
        LOG.info("Static route %s realized after %d polls", route_id, result.attempts)
        return route_id

    def delete_route(self, cluster_name: str, route: Route) -> None:
        """Delete the static route backing ``route``.

        Routes read back by :meth:`list_routes` are addressed by their policy
        ID; routes built by the caller carry the route ID in ``name``.
        """

        identifier = route.route_id or route.name
        try:
            self._broker.delete_static_route(self._router_path, identifier)
        except BrokerError as exc:
            raise DeleteFailedError(
                f"failed to delete static route {identifier} of cluster {cluster_name}"
                f" under {self._router_path}: {exc}"
            ) from exc
        LOG.info("Deleted static route %s of cluster %s", identifier, cluster_name)

    def _resolve_next_hop(self, route: Route) -> str:
        family = AddressFamily.for_cidr(route.destination_cidr)
        try:
            return self._nodes.resolve_address(route.target_node, family)
        except NotFoundError as exc:
            raise UnknownNodeError(
                f"cannot route {route.destination_cidr}: node {route.target_node} is unknown"
            ) from exc

    # ------------------------------------------------------------------
    # Node lifecycle
    # ------------------------------------------------------------------
    def add_node(self, node: Any) -> None:
        self._nodes.add(node)

    def delete_node(self, node: Any) -> None:
        self._nodes.delete(node)

    def get_node(self, name: str) -> Any:
        return self._nodes.get(name)
