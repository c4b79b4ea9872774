"""Node lifecycle events consumed by the handler registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class NodeUpsert:
    """A node was added or its status changed.

    Watchers publish the full node object every time so handlers can replace
    whatever they cached for it.
    """

    node: Any


@dataclass(frozen=True)
class NodeDelete:
    """Signals that a node left the cluster."""

    node: Any
