"""Pydantic models for the new (6.3.0) configuration schema.

Field declaration order is the order fields are written to TOML.
Every TLS-related field is required: a ``NodeConfig`` can only be built
from a fully bound node (see :meth:`chainmig.domain.nodes.BoundNode.to_config`).
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from chainmig.domain.endpoints import Port

DEFAULT_BLOCK_LIMIT = 100
DEFAULT_PACKAGE_LIMIT = 30000


class GenesisBlock(BaseModel):
    """[genesis_block] section."""

    model_config = {"frozen": True}

    prevhash: str
    timestamp: int


class SystemConfig(BaseModel):
    """[system_config] section."""

    model_config = {"frozen": True}

    admin: str
    block_interval: int
    block_limit: int = DEFAULT_BLOCK_LIMIT
    chain_id: str
    validators: list[str] = Field(default_factory=list)
    version: int


class ControllerConfig(BaseModel):
    """[controller] section."""

    model_config = {"frozen": True}

    consensus_port: Port
    controller_port: Port
    executor_port: Port
    kms_port: Port
    network_port: Port
    storage_port: Port
    key_id: int
    node_address: str
    package_limit: int = DEFAULT_PACKAGE_LIMIT


class ConsensusRaftConfig(BaseModel):
    """[consensus_raft] section."""

    model_config = {"frozen": True}

    controller_port: Port
    grpc_listen_port: Port
    network_port: Port
    node_addr: str


class ExecutorEvmConfig(BaseModel):
    """[executor_evm] section."""

    model_config = {"frozen": True}

    executor_port: Port


class KmsSmConfig(BaseModel):
    """[kms_sm] section."""

    model_config = {"frozen": True}

    db_key: str
    kms_port: Port


class StorageRocksDbConfig(BaseModel):
    """[storage_rocksdb] section."""

    model_config = {"frozen": True}

    kms_port: Port
    storage_port: Port


class NetworkTlsPeerConfig(BaseModel):
    """One ``[[network_tls.peers]]`` entry.

    ``domain`` is the peer's logical address; it must equal the
    subject-alternative-name of the certificate that peer presents.
    """

    model_config = {"frozen": True}

    domain: str
    host: str
    port: Port


class NetworkTlsConfig(BaseModel):
    """[network_tls] section."""

    model_config = {"frozen": True}

    ca_cert: str
    cert: str
    priv_key: str
    grpc_port: Port
    listen_port: Port
    peers: list[NetworkTlsPeerConfig] = Field(default_factory=list)


class NodeConfig(BaseModel):
    """A node's ``config.toml``."""

    model_config = {"frozen": True}

    system_config: SystemConfig
    genesis_block: GenesisBlock
    controller: ControllerConfig
    consensus_raft: ConsensusRaftConfig
    executor_evm: ExecutorEvmConfig
    kms_sm: KmsSmConfig
    network_tls: NetworkTlsConfig
    storage_rocksdb: StorageRocksDbConfig


# --- Chain metadata config ---


class MetaNetworkConfig(BaseModel):
    """Peer list shared by every node of the chain."""

    model_config = {"frozen": True}

    peers: list[NetworkTlsPeerConfig] = Field(default_factory=list)


class MetaAdminConfig(BaseModel):
    """[admin_config] section."""

    model_config = {"frozen": True}

    admin_address: str
    key_id: int


class MetaCurrentConfig(BaseModel):
    """[current_config] section."""

    model_config = {"frozen": True}

    addresses: list[str]
    ca_cert_pem: str
    ca_key_pem: str
    count: int
    ips: list[str]
    p2p_ports: list[int]
    rpc_ports: list[int]
    use_num: bool = False
    tls_peers: MetaNetworkConfig


class MetaConfig(BaseModel):
    """The chain metadata ``config.toml`` written beside the node dirs."""

    model_config = {"frozen": True}

    network_tls: MetaNetworkConfig
    genesis_block: GenesisBlock
    system_config: SystemConfig
    admin_config: MetaAdminConfig
    current_config: MetaCurrentConfig
