"""Configuration structures and the YAML loader for the route provider.

Only the knobs owned by the route provider live here: the tier-1 router the
static routes hang off, the realization polling budget, where the policy API
is reachable and which node watchers feed the node directory.  Credentials are
not part of this file; the policy API session is handed in already
authenticated.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import yaml

CLUSTER_NAME_TAG_SCOPE = "vsphere.k8s.io/cluster-name"
NODE_NAME_TAG_SCOPE = "vsphere.k8s.io/node-name"

REALIZED_STATE = "REALIZED"
ERROR_STATE = "ERROR"

DEFAULT_REALIZATION_INTERVAL = 1.0
DEFAULT_REALIZATION_ATTEMPTS = 10


class AddressFamily(Enum):
    """IP address family of a pod CIDR and of the next hop serving it."""

    IPV4 = auto()
    IPV6 = auto()

    @classmethod
    def for_cidr(cls, cidr: str) -> "AddressFamily":
        network = ipaddress.ip_network(cidr, strict=False)
        return cls.IPV4 if network.version == 4 else cls.IPV6

    def matches(self, address: str) -> bool:
        """Return ``True`` when ``address`` is an IP literal of this family."""

        try:
            ip = ipaddress.ip_address(address)
        except ValueError:
            return False
        return ip.version == (4 if self is AddressFamily.IPV4 else 6)


@dataclass(frozen=True)
class RealizationPolicy:
    """Bounded polling budget used after a static route is created."""

    interval: float = DEFAULT_REALIZATION_INTERVAL
    max_attempts: int = DEFAULT_REALIZATION_ATTEMPTS

    def __post_init__(self) -> None:
        if self.interval < 0:
            raise ValueError("realization interval must not be negative")
        if self.max_attempts < 1:
            raise ValueError("realization max_attempts must be at least 1")


@dataclass(frozen=True)
class RouteConfig:
    router_path: str
    realization: RealizationPolicy = field(default_factory=RealizationPolicy)


@dataclass(frozen=True)
class NsxtConfig:
    host: str
    timeout: float = 30.0
    verify: bool = True


@dataclass
class WatcherConfig:
    type: str
    path: Path
    interval: float = 5.0
    options: dict = field(default_factory=dict)


@dataclass
class AgentConfig:
    route: RouteConfig
    nsxt: Optional[NsxtConfig] = None
    watchers: Sequence[WatcherConfig] = field(default_factory=list)


def _parse_realization(section: Optional[dict]) -> RealizationPolicy:
    if section is None:
        return RealizationPolicy()
    if not isinstance(section, dict):
        raise ValueError("'realization' must be a mapping if provided")
    return RealizationPolicy(
        interval=float(section.get("interval", DEFAULT_REALIZATION_INTERVAL)),
        max_attempts=int(section.get("max_attempts", DEFAULT_REALIZATION_ATTEMPTS)),
    )


def _parse_route(section: dict) -> RouteConfig:
    router_path = str(section.get("router_path") or "")
    if not router_path:
        raise ValueError("route section missing 'router_path'")
    if not router_path.startswith("/"):
        raise ValueError(f"router_path '{router_path}' must be an absolute policy path")

    return RouteConfig(
        router_path=router_path.rstrip("/"),
        realization=_parse_realization(section.get("realization")),
    )


def _parse_nsxt(section: Optional[dict]) -> Optional[NsxtConfig]:
    if section is None:
        return None
    if "host" not in section:
        raise ValueError("nsxt section missing 'host'")
    return NsxtConfig(
        host=str(section["host"]).rstrip("/"),
        timeout=float(section.get("timeout", 30.0)),
        verify=bool(section.get("verify", True)),
    )


def _parse_watchers(entries: Iterable[dict]) -> List[WatcherConfig]:
    watchers: List[WatcherConfig] = []
    for entry in entries:
        options = entry.get("options", {})
        if not isinstance(options, dict):
            raise ValueError("watcher 'options' must be a mapping if provided")
        watchers.append(
            WatcherConfig(
                type=str(entry["type"]),
                path=Path(entry.get("path", ".")),
                interval=float(entry.get("interval", entry.get("poll_interval", 5.0))),
                options=options,
            )
        )
    return watchers


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError("Route configuration must be a mapping")

    route_section = data.get("route")
    if route_section is None:
        raise ValueError("Configuration missing 'route' section")
    route = _parse_route(route_section)

    watchers_section = data.get("watchers", [])
    if not isinstance(watchers_section, list):
        raise ValueError("'watchers' section must be a list")

    return AgentConfig(
        route=route,
        nsxt=_parse_nsxt(data.get("nsxt")),
        watchers=_parse_watchers(watchers_section),
    )
