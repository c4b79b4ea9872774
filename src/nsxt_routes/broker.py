"""Abstract interface to the NSX-T policy store."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .model import RealizedEntityList, SearchResponse, StaticRoute


class NsxtBroker(ABC):
    """Narrow set of policy API calls used by :class:`RouteProvider`.

    Every call may block on the network.  Implementations report failures by
    raising :class:`~nsxt_routes.errors.BrokerError`.
    """

    @abstractmethod
    def query_entities(self, query: str) -> SearchResponse:
        """Run a search ``query`` and return the matching resources."""

    @abstractmethod
    def create_static_route(
        self, router_path: str, route_id: str, static_route: StaticRoute
    ) -> None:
        """Create or replace ``route_id`` under ``router_path``."""

    @abstractmethod
    def delete_static_route(self, router_path: str, route_name: str) -> None:
        """Delete ``route_name`` under ``router_path``."""

    @abstractmethod
    def list_realized_entities(self, intent_path: str) -> RealizedEntityList:
        """Return realized-state entries for ``intent_path``."""
