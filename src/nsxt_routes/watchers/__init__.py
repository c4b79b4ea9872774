"""Node watcher implementations feeding the route provider."""

from __future__ import annotations

from threading import Event
from typing import Any, Optional

from ..config import WatcherConfig
from ..registry import NodeEventRegistry
from .file import FileNodeWatcher
from .kube import KubeNodeWatcher, load_core_api


def create_watcher(
    watcher_cfg: WatcherConfig,
    registry: NodeEventRegistry,
    stop_event: Event,
    api: Optional[Any] = None,
):
    if watcher_cfg.type == "file":
        return FileNodeWatcher(
            registry=registry,
            path=watcher_cfg.path,
            interval=watcher_cfg.interval,
            stop_event=stop_event,
        )
    if watcher_cfg.type == "kube":
        options = watcher_cfg.options
        return KubeNodeWatcher(
            registry,
            api if api is not None else load_core_api(options.get("kubeconfig")),
            stop_event,
            timeout=int(options.get("timeout", 60)),
            retry_interval=float(options.get("retry_interval", watcher_cfg.interval)),
        )
    raise ValueError(f"unsupported watcher type '{watcher_cfg.type}'")


__all__ = ["FileNodeWatcher", "KubeNodeWatcher", "create_watcher", "load_core_api"]
