"""Pydantic models for the legacy (6.1.0) per-node file schema.

Each model mirrors one TOML file in a legacy node directory. Unknown keys
are ignored so that newer legacy builds with extra fields still load.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from chainmig.domain.endpoints import Port


class LegacyControllerConfig(BaseModel):
    """``controller-config.toml``."""

    model_config = {"frozen": True}

    network_port: Port
    consensus_port: Port
    storage_port: Port
    kms_port: Port
    executor_port: Port


class LegacyConsensusConfig(BaseModel):
    """``consensus-config.toml``."""

    model_config = {"frozen": True}

    controller_port: Port


class LegacyPeerConfig(BaseModel):
    """One ``[[peers]]`` entry of ``network-config.toml``."""

    model_config = {"frozen": True}

    ip: str
    port: Port


class LegacyNetworkConfig(BaseModel):
    """``network-config.toml``."""

    model_config = {"frozen": True}

    port: Port
    peers: list[LegacyPeerConfig] = Field(default_factory=list)


class LegacyInitSysConfig(BaseModel):
    """``init_sys_config.toml``."""

    model_config = {"frozen": True}

    version: int
    admin: str
    block_interval: int
    chain_id: str
    validators: list[str] = Field(default_factory=list)


class LegacyGenesis(BaseModel):
    """``genesis.toml``."""

    model_config = {"frozen": True}

    timestamp: int
    prevhash: str


class LegacyNode(BaseModel):
    """Everything the migration needs from one legacy node directory."""

    model_config = {"frozen": True}

    controller: LegacyControllerConfig
    consensus: LegacyConsensusConfig
    network: LegacyNetworkConfig
    system_config: LegacyInitSysConfig
    genesis: LegacyGenesis
    node_address: str
    key_id: int
    kms_password: str
