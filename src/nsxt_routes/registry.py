"""Dispatch node events to registered handlers."""

from __future__ import annotations

from threading import Lock
from typing import Dict, List, Tuple, Type, Union

from .events import NodeDelete, NodeUpsert
from .handlers import NodeHandler

NodeEvent = Union[NodeUpsert, NodeDelete]

# Event type -> NodeHandler callback receiving ``event.node``.
_CALLBACKS: Dict[Type, str] = {
    NodeUpsert: "on_node_upsert",
    NodeDelete: "on_node_delete",
}


class NodeEventRegistry:
    """Fan node events out to every registered handler.

    Watchers call :meth:`handle` from their own threads, so the handler table
    is copied under a lock before dispatch.  Handlers run in registration
    order and an exception raised by one propagates to the watcher.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._handlers: Dict[str, NodeHandler] = {}

    def register(self, name: str, handler: NodeHandler) -> None:
        with self._lock:
            if name in self._handlers:
                raise ValueError(f"handler '{name}' already registered")
            self._handlers[name] = handler

    def unregister(self, name: str) -> None:
        with self._lock:
            self._handlers.pop(name, None)

    def names(self) -> List[str]:
        with self._lock:
            return list(self._handlers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)

    def handle(self, event: NodeEvent) -> None:
        callback = _CALLBACKS.get(type(event))
        if callback is None:
            raise TypeError(f"Unsupported event type: {type(event)!r}")

        for _, handler in self._snapshot():
            getattr(handler, callback)(event.node)

    def _snapshot(self) -> List[Tuple[str, NodeHandler]]:
        with self._lock:
            return list(self._handlers.items())
