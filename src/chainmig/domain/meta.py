"""Chain metadata config assembled from the bound node set."""

from __future__ import annotations

from collections.abc import Sequence

from chainmig.domain.nodes import BoundNode, CertificateAndKey
from chainmig.domain.schema import (
    MetaAdminConfig,
    MetaConfig,
    MetaCurrentConfig,
    MetaNetworkConfig,
    NetworkTlsPeerConfig,
)


def build_meta_config(
    nodes: Sequence[BoundNode],
    authority: CertificateAndKey,
    admin_key_id: int,
) -> MetaConfig:
    """Build the metadata config shared by the whole chain.

    The first node is the sample: its system config and genesis block are
    taken as the chain's, and the chain-wide peer list is its own endpoint
    followed by its declared peers.
    """
    if not nodes:
        msg = "Empty chain. No node config found"
        raise ValueError(msg)
    first = nodes[0]
    draft = first.resolved.record.draft

    own = NetworkTlsPeerConfig(
        domain=first.logical_address,
        host=first.self_endpoint.host,
        port=first.self_endpoint.port,
    )
    network = MetaNetworkConfig(peers=[own, *first.peer_configs()])

    current = MetaCurrentConfig(
        addresses=[n.logical_address for n in nodes],
        ca_cert_pem=authority.cert,
        ca_key_pem=authority.key,
        count=len(nodes),
        ips=[p.host for p in network.peers],
        p2p_ports=[p.port for p in network.peers],
        rpc_ports=[n.resolved.record.draft.controller.controller_port for n in nodes],
        use_num=False,
        tls_peers=network,
    )

    return MetaConfig(
        network_tls=network,
        genesis_block=draft.genesis_block,
        system_config=draft.system_config,
        admin_config=MetaAdminConfig(
            admin_address=draft.system_config.admin,
            key_id=admin_key_id,
        ),
        current_config=current,
    )
