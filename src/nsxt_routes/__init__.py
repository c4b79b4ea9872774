"""NSX-T static route provider for Kubernetes pod networks.

Each node's pod CIDR is published as a static route on a tier-1 router of the
NSX-T policy store, next hop being the node itself.  The package is split the
same way the work is:

* :mod:`nsxt_routes.translator` derives route IDs, display names and tags;
* :mod:`nsxt_routes.nodes` caches node addresses fed by node events;
* :mod:`nsxt_routes.realization` waits for created routes to be realized;
* :class:`nsxt_routes.provider.RouteProvider` ties them to a broker.

Brokers implement :class:`nsxt_routes.broker.NsxtBroker`; the policy REST
client and an in-memory double ship with the package.
"""

from .broker import NsxtBroker  # noqa: F401
from .model import Route, StaticRoute  # noqa: F401
from .provider import RouteProvider  # noqa: F401

__all__ = ["NsxtBroker", "Route", "RouteProvider", "StaticRoute"]
