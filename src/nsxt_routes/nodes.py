"""Thread safe cache of Kubernetes nodes keyed by node name.

Entries are refreshed by node lifecycle notifications only; the directory
never polls the API server.  Node objects are stored as delivered
(``kubernetes.client.V1Node`` in production) and only ``metadata.name`` and
``status.addresses`` are read from them.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Dict, List

from .config import AddressFamily
from .errors import NoAddressError, NotFoundError

LOG = logging.getLogger(__name__)


def node_name(node: Any) -> str:
    metadata = getattr(node, "metadata", None)
    name = getattr(metadata, "name", None)
    if not name:
        raise ValueError("node object has no metadata.name")
    return str(name)


def node_addresses(node: Any) -> List[str]:
    status = getattr(node, "status", None)
    addresses = getattr(status, "addresses", None) or []
    return [a.address for a in addresses if a is not None and getattr(a, "address", None)]


class NodeDirectory:
    """Map node names to node objects and resolve next-hop addresses."""

    def __init__(self) -> None:
        self._nodes: Dict[str, Any] = {}
        self._lock = Lock()

    def add(self, node: Any) -> None:
        name = node_name(node)
        with self._lock:
            replaced = name in self._nodes
            self._nodes[name] = node
        LOG.debug("%s node %s in directory", "Updated" if replaced else "Added", name)

    def delete(self, node: Any) -> None:
        name = node_name(node)
        with self._lock:
            removed = self._nodes.pop(name, None)
        if removed is not None:
            LOG.debug("Removed node %s from directory", name)

    def get(self, name: str) -> Any:
        with self._lock:
            node = self._nodes.get(name)
        if node is None:
            raise NotFoundError(f"node {name} not found")
        return node

    def names(self) -> List[str]:
        with self._lock:
            return list(self._nodes)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._nodes

    def __len__(self) -> int:
        with self._lock:
            return len(self._nodes)

    def resolve_address(self, name: str, family: AddressFamily) -> str:
        """Return the first address of ``family`` reported by node ``name``.

        Addresses that are not IP literals (``Hostname`` entries) are skipped.
        """

        node = self.get(name)
        for address in node_addresses(node):
            if family.matches(address):
                return address
        raise NoAddressError(f"node {name} has no {family.name} address")
