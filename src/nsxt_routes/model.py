"""Data structures exchanged with the NSX-T Policy API.

The classes here mirror the subset of the policy resources the route provider
touches.  ``to_dict``/``from_dict`` keep the JSON field names used on the wire
so the broker implementations can stay thin.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

DEFAULT_ADMIN_DISTANCE = 1


class RealizationState(str, Enum):
    """Progress of a created resource towards the data plane."""

    PENDING = "PENDING"
    POLLING = "POLLING"
    REALIZED = "REALIZED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"
    CANCELLED = "CANCELLED"

    @property
    def terminal(self) -> bool:
        return self not in (RealizationState.PENDING, RealizationState.POLLING)


@dataclass(frozen=True)
class Route:
    """Kubernetes view of a pod CIDR route.

    ``route_id`` is the policy ID of the backing static route when the route
    was read from the policy store.  It differs from ``name``, which carries
    the display name, and is what deletes are addressed to.
    """

    name: str
    target_node: str
    destination_cidr: str
    route_id: Optional[str] = field(default=None, compare=False)


@dataclass(frozen=True)
class Tag:
    scope: str
    tag: str

    def to_dict(self) -> Dict[str, str]:
        return {"scope": self.scope, "tag": self.tag}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Tag":
        return cls(scope=str(data.get("scope", "")), tag=str(data.get("tag", "")))


@dataclass(frozen=True)
class NextHop:
    ip_address: str
    admin_distance: int = DEFAULT_ADMIN_DISTANCE

    def to_dict(self) -> Dict[str, Any]:
        return {"ip_address": self.ip_address, "admin_distance": self.admin_distance}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NextHop":
        return cls(
            ip_address=str(data.get("ip_address", "")),
            admin_distance=int(data.get("admin_distance", DEFAULT_ADMIN_DISTANCE)),
        )


@dataclass(frozen=True)
class StaticRoute:
    """A ``StaticRoutes`` policy resource living under a tier-1 router.

    ``id`` and ``path`` are assigned by the policy store and are only present
    on resources read back from it.
    """

    display_name: str
    network: str
    next_hops: Sequence[NextHop] = ()
    tags: Sequence[Tag] = ()
    id: Optional[str] = None
    path: Optional[str] = None
    resource_type: str = "StaticRoutes"

    def tag_value(self, scope: str) -> Optional[str]:
        """Return the first tag value stored under ``scope``."""

        return next((t.tag for t in self.tags if t.scope == scope), None)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "resource_type": self.resource_type,
            "display_name": self.display_name,
            "network": self.network,
            "next_hops": [hop.to_dict() for hop in self.next_hops],
            "tags": [tag.to_dict() for tag in self.tags],
        }
        if self.id is not None:
            body["id"] = self.id
        if self.path is not None:
            body["path"] = self.path
        return body

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StaticRoute":
        return cls(
            display_name=str(data.get("display_name", "")),
            network=str(data.get("network", "")),
            next_hops=tuple(NextHop.from_dict(h) for h in data.get("next_hops") or ()),
            tags=tuple(Tag.from_dict(t) for t in data.get("tags") or ()),
            id=data.get("id"),
            path=data.get("path"),
            resource_type=str(data.get("resource_type", "StaticRoutes")),
        )


@dataclass
class SearchResponse:
    """Result page of the policy search API."""

    results: List[Dict[str, Any]] = field(default_factory=list)
    result_count: int = 0
    cursor: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SearchResponse":
        results = [dict(r) for r in data.get("results") or ()]
        return cls(
            results=results,
            result_count=int(data.get("result_count", len(results))),
            cursor=data.get("cursor"),
        )


@dataclass(frozen=True)
class RealizedEntity:
    """One entry of the realized-state listing for an intent path."""

    id: str
    state: str
    intent_paths: Sequence[str] = ()
    intent_reference: Sequence[str] = ()

    def refers_to(self, intent_path: str) -> bool:
        # Entities without intent metadata are assumed to belong to the query.
        if not self.intent_paths and not self.intent_reference:
            return True
        return intent_path in self.intent_paths or intent_path in self.intent_reference

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RealizedEntity":
        return cls(
            id=str(data.get("id", "")),
            state=str(data.get("state", "")),
            intent_paths=tuple(data.get("intent_paths") or ()),
            intent_reference=tuple(data.get("intent_reference") or ()),
        )


@dataclass
class RealizedEntityList:
    results: List[RealizedEntity] = field(default_factory=list)
    result_count: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RealizedEntityList":
        results = [RealizedEntity.from_dict(r) for r in data.get("results") or ()]
        return cls(results=results, result_count=int(data.get("result_count", len(results))))
