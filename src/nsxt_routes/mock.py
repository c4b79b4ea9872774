"""
In memory broker.

Used by tests and local simulations in place of the policy API.  Static
routes are kept per router path in insertion order, the way the search API
returns them.

Features
- Search honours the cluster tag filter produced by the route provider
- Realized states can be scripted per intent path, one state per poll
- Failures can be injected per broker operation
- Every call is appended to ``calls`` for assertions
- Route IDs holding a "/" are rejected, as the policy store keys static
  routes by a single path segment
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .broker import NsxtBroker
from .config import REALIZED_STATE
from .errors import BrokerError
from .model import RealizedEntity, RealizedEntityList, SearchResponse, StaticRoute
from .translator import static_route_path

_TAG_FILTER = re.compile(r"tags\.scope:(?P<scope>\S+) AND tags\.tag:(?P<tag>\S+)")


@dataclass
class InMemoryBroker(NsxtBroker):
    """
    In memory policy store.

    realized
    Optional mapping of intent path to the sequence of states returned by
    successive realized-state polls.  The last state repeats once the
    sequence is exhausted.  Paths without a script realize immediately.

    failures
    Mapping of operation name (``query``, ``create``, ``delete``,
    ``realized``) to the error raised by that operation.

    strict_delete
    When True deleting an absent route raises instead of succeeding.
    """

    realized: Dict[str, List[str]] = field(default_factory=dict)
    failures: Dict[str, Exception] = field(default_factory=dict)
    strict_delete: bool = False
    routes: Dict[str, Dict[str, StaticRoute]] = field(default_factory=dict)
    calls: List[Tuple[str, Any]] = field(default_factory=list)

    def _maybe_fail(self, operation: str) -> None:
        error = self.failures.get(operation)
        if error is not None:
            raise error

    def _check_identifier(self, identifier: str) -> None:
        if "/" in identifier:
            raise BrokerError(f"invalid static route id {identifier}", status_code=400)

    def add_route(self, router_path: str, route_id: str, static_route: StaticRoute) -> StaticRoute:
        """Store ``static_route`` as the policy store would, with id and path set."""

        stored = StaticRoute(
            display_name=static_route.display_name,
            network=static_route.network,
            next_hops=tuple(static_route.next_hops),
            tags=tuple(static_route.tags),
            id=route_id,
            path=static_route_path(router_path, route_id),
            resource_type=static_route.resource_type,
        )
        self.routes.setdefault(router_path, {})[route_id] = stored
        return stored

    def query_entities(self, query: str) -> SearchResponse:
        self.calls.append(("query", query))
        self._maybe_fail("query")

        match = _TAG_FILTER.search(query)
        results: List[Dict[str, Any]] = []
        for routes in self.routes.values():
            for resource in routes.values():
                if match and resource.tag_value(match["scope"]) != match["tag"]:
                    continue
                results.append(resource.to_dict())
        return SearchResponse(results=results, result_count=len(results))

    def create_static_route(
        self, router_path: str, route_id: str, static_route: StaticRoute
    ) -> None:
        self.calls.append(("create", (router_path, route_id, static_route)))
        self._maybe_fail("create")
        self._check_identifier(route_id)
        self.add_route(router_path, route_id, static_route)

    def delete_static_route(self, router_path: str, route_name: str) -> None:
        self.calls.append(("delete", (router_path, route_name)))
        self._maybe_fail("delete")
        self._check_identifier(route_name)
        removed = self.routes.get(router_path, {}).pop(route_name, None)
        if removed is None and self.strict_delete:
            raise BrokerError(f"static route {route_name} not found", status_code=404)

    def list_realized_entities(self, intent_path: str) -> RealizedEntityList:
        self.calls.append(("realized", intent_path))
        self._maybe_fail("realized")

        script = self.realized.get(intent_path)
        if script is None:
            state = REALIZED_STATE
        elif len(script) > 1:
            state = script.pop(0)
        elif script:
            state = script[0]
        else:
            return RealizedEntityList()

        entity = RealizedEntity(
            id=intent_path.rsplit("/", 1)[-1],
            state=state,
            intent_paths=(intent_path,),
        )
        return RealizedEntityList(results=[entity], result_count=1)

    def call_count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    def get_route(self, router_path: str, route_id: str) -> Optional[StaticRoute]:
        return self.routes.get(router_path, {}).get(route_id)
