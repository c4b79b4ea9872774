"""Node inventory watcher for labs without API server access.

The inventory is a JSON document::

    {"nodes": [{"name": "node1",
                "addresses": [{"type": "InternalIP", "address": "172.50.0.13"}]}]}

Address ``type`` defaults to ``InternalIP``.  Every poll compares the file to
the inventory seen last and publishes only the differences; deleted nodes are
reported with the addresses they had.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Event, Thread
from typing import Dict, Iterator, Mapping, Optional, Sequence, Tuple

from kubernetes import client

from ..events import NodeDelete, NodeUpsert
from ..registry import NodeEvent, NodeEventRegistry

LOG = logging.getLogger(__name__)

AddressSpec = Tuple[Tuple[str, str], ...]
Inventory = Dict[str, AddressSpec]


def build_node(name: str, addresses: Sequence[Tuple[str, str]]) -> client.V1Node:
    return client.V1Node(
        metadata=client.V1ObjectMeta(name=name),
        status=client.V1NodeStatus(
            addresses=[client.V1NodeAddress(type=t, address=a) for t, a in addresses]
        ),
    )


def parse_inventory(payload: object) -> Inventory:
    """Turn a decoded inventory document into ``{name: addresses}``.

    Raises ``ValueError`` when the document has no node list.  Entries
    without a name are skipped, as are addresses without a value.
    """

    if not isinstance(payload, dict) or not isinstance(payload.get("nodes"), list):
        raise ValueError("expected an object with a 'nodes' list")

    inventory: Inventory = {}
    for entry in payload["nodes"]:
        if not isinstance(entry, dict) or not entry.get("name"):
            LOG.warning("skipping node entry without a name: %r", entry)
            continue
        name = str(entry["name"])
        if name in inventory:
            LOG.warning("node %s listed twice, keeping the last entry", name)
        inventory[name] = tuple(
            (str(item.get("type") or "InternalIP"), str(item["address"]))
            for item in entry.get("addresses") or ()
            if isinstance(item, dict) and item.get("address")
        )
    return inventory


def diff_inventory(
    previous: Mapping[str, AddressSpec],
    current: Mapping[str, AddressSpec],
) -> Iterator[NodeEvent]:
    """Yield upserts for new or changed nodes, then deletes for vanished ones."""

    for name, addresses in current.items():
        if previous.get(name) != addresses:
            yield NodeUpsert(build_node(name, addresses))
    for name, addresses in previous.items():
        if name not in current:
            yield NodeDelete(build_node(name, addresses))


class FileNodeWatcher(Thread):
    """Poll a JSON node inventory and publish node events."""

    def __init__(
        self,
        registry: NodeEventRegistry,
        path: Path,
        interval: float,
        stop_event: Event,
    ) -> None:
        super().__init__(name="file-node-watcher", daemon=True)
        self._registry = registry
        self._path = Path(path)
        self._interval = interval
        self._stop_event = stop_event
        self._inventory: Inventory = {}

    @property
    def inventory(self) -> Inventory:
        return dict(self._inventory)

    def run(self) -> None:
        LOG.info("Watching node inventory %s every %.1fs", self._path, self._interval)
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("node inventory poll of %s failed", self._path)
            self._stop_event.wait(self._interval)

    def poll(self) -> int:
        """Publish inventory changes; returns the number of events sent."""

        current = self._load()
        if current is None:
            return 0

        sent = 0
        for event in diff_inventory(self._inventory, current):
            LOG.debug("%s for node %s", type(event).__name__, event.node.metadata.name)
            self._registry.handle(event)
            sent += 1
        self._inventory = current
        return sent

    def _load(self) -> Optional[Inventory]:
        # A missing or unreadable file keeps the last inventory in place.
        try:
            text = self._path.read_text()
        except FileNotFoundError:
            LOG.debug("node inventory %s not present", self._path)
            return None

        try:
            return parse_inventory(json.loads(text))
        except ValueError as exc:
            LOG.warning("ignoring node inventory %s: %s", self._path, exc)
            return None
