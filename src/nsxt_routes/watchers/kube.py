"""Kubernetes API node watcher."""

from __future__ import annotations

import logging
from threading import Event, Thread
from typing import Any, Callable, Mapping, Optional

from kubernetes import client, config, watch

from ..events import NodeDelete, NodeUpsert
from ..registry import NodeEventRegistry

LOG = logging.getLogger(__name__)

UPSERT_EVENTS = ("ADDED", "MODIFIED")
DELETE_EVENTS = ("DELETED",)


class KubeNodeWatcher(Thread):
    """Stream node events from the API server into the registry.

    The watch is restarted every ``timeout`` seconds (and after errors, once
    ``retry_interval`` has passed) until ``stop_event`` is set.
    """

    def __init__(
        self,
        registry: NodeEventRegistry,
        api: Any,
        stop_event: Event,
        *,
        timeout: int = 60,
        retry_interval: float = 5.0,
        watch_factory: Callable[[], Any] = watch.Watch,
    ) -> None:
        super().__init__(daemon=True)
        self._registry = registry
        self._api = api
        self._stop = stop_event
        self._timeout = timeout
        self._retry_interval = retry_interval
        self._watch_factory = watch_factory

    def run(self) -> None:
        LOG.info("Starting Kubernetes node watcher (timeout=%ss)", self._timeout)
        while not self._stop.is_set():
            try:
                self.stream_once()
            except Exception:  # pragma: no cover - logged and retried
                LOG.exception("Kubernetes node watch failed")
                self._stop.wait(self._retry_interval)
        LOG.info("Stopping Kubernetes node watcher")

    def stream_once(self) -> None:
        stream = self._watch_factory()
        for event in stream.stream(self._api.list_node, timeout_seconds=self._timeout):
            if self._stop.is_set():
                stream.stop()
                break
            self.dispatch(event)

    def dispatch(self, event: Mapping[str, Any]) -> None:
        kind = event.get("type")
        node = event.get("object")
        if node is None:
            return
        if kind in UPSERT_EVENTS:
            self._registry.handle(NodeUpsert(node))
        elif kind in DELETE_EVENTS:
            self._registry.handle(NodeDelete(node))
        else:
            LOG.debug("ignoring node watch event %s", kind)


def load_core_api(kubeconfig: Optional[str] = None) -> client.CoreV1Api:
    if kubeconfig:
        config.load_kube_config(config_file=kubeconfig)
    else:
        try:
            config.load_incluster_config()
        except config.ConfigException:
            config.load_kube_config()
    return client.CoreV1Api()
