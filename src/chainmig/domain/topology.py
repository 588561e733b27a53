"""Network identity reconciliation.

Every legacy node lists the endpoints of all *other* nodes but never its
own. The union of any two nodes' lists is therefore the full endpoint set:
each list misses exactly one endpoint and the two missing endpoints differ.
A node's own endpoint is the single element of the full set it does not
list.

Known limitation: a node that drops one real peer *and* lists one spurious
endpoint from inside the full set looks exactly like a consistent node and
cannot be detected here.

Logical addresses must be ASCII: each one becomes the DNS-name SAN of its
node's certificate.

INVARIANT: All functions are pure. Errors are raised, never logged.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from chainmig.domain.endpoints import Endpoint
from chainmig.domain.errors import (
    BindingError,
    InconsistentTopologyError,
    ResolutionError,
    UnknownPeerEndpointError,
)
from chainmig.domain.nodes import BoundNode, CertificateAndKey, NodeRecord, ResolvedNode


@dataclass(frozen=True)
class Resolution:
    """Outcome of :func:`resolve`.

    Attributes:
        nodes: Resolved nodes, in input order.
        full_endpoint_set: Every node's endpoint.
        endpoint_to_address: Endpoint to logical address, in node order.
    """

    nodes: tuple[ResolvedNode, ...]
    full_endpoint_set: frozenset[Endpoint]
    endpoint_to_address: Mapping[Endpoint, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "endpoint_to_address", MappingProxyType(dict(self.endpoint_to_address))
        )


def full_endpoint_set(nodes: Sequence[NodeRecord]) -> frozenset[Endpoint]:
    """Union of the declared peers of the first two nodes."""
    if len(nodes) < 2:
        msg = f"At least 2 nodes are required to resolve endpoints, got {len(nodes)}"
        raise ResolutionError(msg)
    first, second = nodes[0], nodes[1]
    return frozenset(first.declared_peers) | frozenset(second.declared_peers)


def _own_endpoint(index: int, node: NodeRecord, full: frozenset[Endpoint]) -> Endpoint:
    peers = frozenset(node.declared_peers)
    candidates = full - peers
    extraneous = peers - full
    if len(candidates) != 1 or extraneous:
        raise InconsistentTopologyError(index, node.logical_address, candidates, extraneous)
    (own,) = candidates
    return own


def resolve(nodes: Sequence[NodeRecord]) -> Resolution:
    """Find every node's own endpoint and map endpoints to logical addresses.

    All-or-nothing: per-node results are collected first and merged only
    once every node resolved.

    Raises:
        ResolutionError: Fewer than two nodes, duplicate or non-ASCII logical
            addresses, or an endpoint that every node treats as a peer but
            none owns.
        InconsistentTopologyError: A node did not miss exactly one endpoint
            of the full set, or listed an endpoint outside it, or two
            nodes resolved to the same endpoint.
    """
    full = full_endpoint_set(nodes)

    seen_addresses: set[str] = set()
    for node in nodes:
        if not node.logical_address.isascii():
            msg = f"Node address must be ASCII: {node.logical_address!r}"
            raise ResolutionError(msg)
        if node.logical_address in seen_addresses:
            msg = f"Duplicate node address: {node.logical_address}"
            raise ResolutionError(msg)
        seen_addresses.add(node.logical_address)

    resolved = [ResolvedNode(node, _own_endpoint(i, node, full)) for i, node in enumerate(nodes)]

    endpoint_to_address: dict[Endpoint, str] = {}
    for index, node in enumerate(resolved):
        if node.self_endpoint in endpoint_to_address:
            raise InconsistentTopologyError(index, node.logical_address, [node.self_endpoint])
        endpoint_to_address[node.self_endpoint] = node.logical_address

    unclaimed = full - endpoint_to_address.keys()
    if unclaimed:
        listed = ", ".join(sorted(str(e) for e in unclaimed))
        msg = f"Peer endpoints not owned by any node: {listed}"
        raise ResolutionError(msg)

    return Resolution(
        nodes=tuple(resolved),
        full_endpoint_set=full,
        endpoint_to_address=endpoint_to_address,
    )


def bind_peers(
    nodes: Sequence[ResolvedNode],
    endpoint_to_address: Mapping[Endpoint, str],
    ca_cert: str,
    leaves: Mapping[str, CertificateAndKey],
) -> tuple[BoundNode, ...]:
    """Attach the trust anchor, each node's leaf, and expected peer identities.

    *leaves* maps a logical address to that node's issued credentials.

    Raises:
        UnknownPeerEndpointError: A declared peer is missing from
            *endpoint_to_address*.
        BindingError: A node has no leaf in *leaves*.
    """
    bound: list[BoundNode] = []
    for node in nodes:
        leaf = leaves.get(node.logical_address)
        if leaf is None:
            msg = f"No certificate issued for {node.logical_address}"
            raise BindingError(msg)

        bindings: dict[Endpoint, str] = {}
        for peer in node.declared_peers:
            address = endpoint_to_address.get(peer)
            if address is None:
                raise UnknownPeerEndpointError(peer)
            bindings[peer] = address

        bound.append(
            BoundNode(
                resolved=node,
                tls_ca_cert=ca_cert,
                tls_cert=leaf.cert,
                tls_key=leaf.key,
                peer_identity_bindings=bindings,
            )
        )
    return tuple(bound)
