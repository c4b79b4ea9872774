"""Node event handlers managed by :class:`NodeEventRegistry`."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .provider import RouteProvider


class NodeHandler(ABC):
    """Base class for consumers of node lifecycle events."""

    @abstractmethod
    def on_node_upsert(self, node: Any) -> None:
        """Record ``node`` as the current state of that node."""

    @abstractmethod
    def on_node_delete(self, node: Any) -> None:
        """Forget anything cached for ``node``."""


class RouteProviderHandler(NodeHandler):
    """Feed node events into a :class:`~nsxt_routes.provider.RouteProvider`."""

    def __init__(self, provider: RouteProvider) -> None:
        self._provider = provider

    @property
    def provider(self) -> RouteProvider:
        return self._provider

    def on_node_upsert(self, node: Any) -> None:
        self._provider.add_node(node)

    def on_node_delete(self, node: Any) -> None:
        self._provider.delete_node(node)


def build_provider_handler(provider: RouteProvider) -> RouteProviderHandler:
    return RouteProviderHandler(provider)
