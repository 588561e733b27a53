"""Pure mapping from the legacy node schema to an unresolved new-schema record."""

from __future__ import annotations

from chainmig.domain.endpoints import Endpoint
from chainmig.domain.legacy import LegacyNode
from chainmig.domain.nodes import NodeDraft, NodeRecord
from chainmig.domain.schema import (
    DEFAULT_BLOCK_LIMIT,
    DEFAULT_PACKAGE_LIMIT,
    ConsensusRaftConfig,
    ControllerConfig,
    ExecutorEvmConfig,
    GenesisBlock,
    KmsSmConfig,
    StorageRocksDbConfig,
    SystemConfig,
)


def transcode(
    legacy: LegacyNode,
    *,
    block_limit: int = DEFAULT_BLOCK_LIMIT,
    package_limit: int = DEFAULT_PACKAGE_LIMIT,
) -> NodeRecord:
    """Map a :class:`LegacyNode` onto a :class:`NodeRecord`.

    The consensus service's gRPC port becomes ``grpc_listen_port``; the old
    network service port becomes ``network_tls.grpc_port`` and the old
    network listen port becomes ``network_tls.listen_port``. Peer endpoints
    keep their file order.
    """
    ports = legacy.controller
    controller_port = legacy.consensus.controller_port
    old_sys = legacy.system_config

    draft = NodeDraft(
        system_config=SystemConfig(
            admin=old_sys.admin,
            block_interval=old_sys.block_interval,
            block_limit=block_limit,
            chain_id=old_sys.chain_id,
            validators=list(old_sys.validators),
            version=old_sys.version,
        ),
        genesis_block=GenesisBlock(
            prevhash=legacy.genesis.prevhash,
            timestamp=legacy.genesis.timestamp,
        ),
        controller=ControllerConfig(
            consensus_port=ports.consensus_port,
            controller_port=controller_port,
            executor_port=ports.executor_port,
            kms_port=ports.kms_port,
            network_port=ports.network_port,
            storage_port=ports.storage_port,
            key_id=legacy.key_id,
            node_address=legacy.node_address,
            package_limit=package_limit,
        ),
        consensus_raft=ConsensusRaftConfig(
            controller_port=controller_port,
            grpc_listen_port=ports.consensus_port,
            network_port=ports.network_port,
            node_addr=legacy.node_address,
        ),
        executor_evm=ExecutorEvmConfig(executor_port=ports.executor_port),
        kms_sm=KmsSmConfig(db_key=legacy.kms_password, kms_port=ports.kms_port),
        storage_rocksdb=StorageRocksDbConfig(
            kms_port=ports.kms_port,
            storage_port=ports.storage_port,
        ),
        grpc_port=ports.network_port,
        listen_port=legacy.network.port,
    )

    return NodeRecord(
        logical_address=legacy.node_address,
        declared_peers=tuple(Endpoint(p.ip, p.port) for p in legacy.network.peers),
        draft=draft,
    )
