from typing import Sequence, Tuple

import pytest
from kubernetes import client

from nsxt_routes.mock import InMemoryBroker

ROUTER_PATH = "/infra/tier-1s/test-t1"


def build_node(
    name: str,
    addresses: Sequence[Tuple[str, str]] = (),
) -> client.V1Node:
    if not addresses:
        addresses = (
            ("Hostname", name),
            ("InternalIP", "172.50.0.13"),
            ("InternalIP", "fe80::20c:29ff:fe0b:b407"),
        )
    return client.V1Node(
        metadata=client.V1ObjectMeta(name=name),
        status=client.V1NodeStatus(
            addresses=[client.V1NodeAddress(type=t, address=a) for t, a in addresses]
        ),
    )


@pytest.fixture
def broker() -> InMemoryBroker:
    return InMemoryBroker()
