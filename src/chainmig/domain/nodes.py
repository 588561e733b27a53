"""Node records through their three construction phases.

``NodeRecord`` -> ``ResolvedNode`` -> ``BoundNode``

A record only gains its own endpoint through :func:`resolve` and its TLS
material and peer identities through :func:`bind_peers`
(both in :mod:`chainmig.domain.topology`). Only a ``BoundNode`` can be
turned into a writable :class:`~chainmig.domain.schema.NodeConfig`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from chainmig.domain.endpoints import Endpoint
from chainmig.domain.schema import (
    ConsensusRaftConfig,
    ControllerConfig,
    ExecutorEvmConfig,
    GenesisBlock,
    KmsSmConfig,
    NetworkTlsConfig,
    NetworkTlsPeerConfig,
    NodeConfig,
    StorageRocksDbConfig,
    SystemConfig,
)


@dataclass(frozen=True)
class CertificateAndKey:
    """A PEM-encoded certificate and its PEM-encoded private key."""

    cert: str
    key: str = field(repr=False)


@dataclass(frozen=True)
class NodeDraft:
    """Every transcoded section of a node config except ``network_tls``."""

    system_config: SystemConfig
    genesis_block: GenesisBlock
    controller: ControllerConfig
    consensus_raft: ConsensusRaftConfig
    executor_evm: ExecutorEvmConfig
    kms_sm: KmsSmConfig
    storage_rocksdb: StorageRocksDbConfig
    grpc_port: int
    listen_port: int


@dataclass(frozen=True)
class NodeRecord:
    """An unresolved node: its identity and the peers it believes it talks to."""

    logical_address: str
    declared_peers: tuple[Endpoint, ...]
    draft: NodeDraft

    def __post_init__(self) -> None:
        if len(set(self.declared_peers)) != len(self.declared_peers):
            msg = f"Duplicate peer endpoints declared by {self.logical_address}"
            raise ValueError(msg)


@dataclass(frozen=True)
class ResolvedNode:
    """A node whose own endpoint is known."""

    record: NodeRecord
    self_endpoint: Endpoint

    def __post_init__(self) -> None:
        if self.self_endpoint in self.record.declared_peers:
            msg = f"{self.record.logical_address} lists its own endpoint {self.self_endpoint}"
            raise ValueError(msg)

    @property
    def logical_address(self) -> str:
        return self.record.logical_address

    @property
    def declared_peers(self) -> tuple[Endpoint, ...]:
        return self.record.declared_peers


@dataclass(frozen=True)
class BoundNode:
    """A resolved node carrying its credentials and expected peer identities."""

    resolved: ResolvedNode
    tls_ca_cert: str
    tls_cert: str
    tls_key: str = field(repr=False)
    peer_identity_bindings: Mapping[Endpoint, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        missing = [p for p in self.resolved.declared_peers if p not in self.peer_identity_bindings]
        if missing:
            msg = f"Unbound peers for {self.logical_address}: {', '.join(map(str, missing))}"
            raise ValueError(msg)
        object.__setattr__(
            self, "peer_identity_bindings", MappingProxyType(dict(self.peer_identity_bindings))
        )

    @property
    def logical_address(self) -> str:
        return self.resolved.logical_address

    @property
    def self_endpoint(self) -> Endpoint:
        return self.resolved.self_endpoint

    @property
    def declared_peers(self) -> tuple[Endpoint, ...]:
        return self.resolved.declared_peers

    def peer_configs(self) -> list[NetworkTlsPeerConfig]:
        """Declared peers with their bound domains, in declaration order."""
        return [
            NetworkTlsPeerConfig(domain=self.peer_identity_bindings[p], host=p.host, port=p.port)
            for p in self.declared_peers
        ]

    def to_config(self) -> NodeConfig:
        """Build the node's new-schema config."""
        draft = self.resolved.record.draft
        network_tls = NetworkTlsConfig(
            ca_cert=self.tls_ca_cert,
            cert=self.tls_cert,
            priv_key=self.tls_key,
            grpc_port=draft.grpc_port,
            listen_port=draft.listen_port,
            peers=self.peer_configs(),
        )
        return NodeConfig(
            system_config=draft.system_config,
            genesis_block=draft.genesis_block,
            controller=draft.controller,
            consensus_raft=draft.consensus_raft,
            executor_evm=draft.executor_evm,
            kms_sm=draft.kms_sm,
            network_tls=network_tls,
            storage_rocksdb=draft.storage_rocksdb,
        )
