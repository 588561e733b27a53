"""Reading a legacy (6.1.0) chain directory.

Layout::

    <chain_dir>/
        <chain_name>/<admin_address>/key_id     # chain metadata
        <chain_name>-0/                          # one dir per node
            controller-config.toml
            consensus-config.toml
            network-config.toml
            init_sys_config.toml
            genesis.toml
            node_address
            key_id
            key_file
        <chain_name>-1/
        ...
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from chainmig.domain.errors import LegacyFormatError
from chainmig.domain.legacy import (
    LegacyConsensusConfig,
    LegacyControllerConfig,
    LegacyGenesis,
    LegacyInitSysConfig,
    LegacyNetworkConfig,
    LegacyNode,
)

CONTROLLER_CONFIG = "controller-config.toml"
CONSENSUS_CONFIG = "consensus-config.toml"
NETWORK_CONFIG = "network-config.toml"
INIT_SYS_CONFIG = "init_sys_config.toml"
GENESIS = "genesis.toml"
NODE_ADDRESS = "node_address"
KEY_ID = "key_id"
KEY_FILE = "key_file"

_M = TypeVar("_M", bound=BaseModel)


def read_text(data_dir: Path, file_name: str) -> str:
    """Read a plain text file, stripped of surrounding whitespace."""
    path = data_dir / file_name
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise LegacyFormatError(path, f"cannot read file: {exc.strerror or exc}") from exc


def read_int(data_dir: Path, file_name: str) -> int:
    """Read a plain text file holding a single integer."""
    raw = read_text(data_dir, file_name)
    try:
        return int(raw)
    except ValueError as exc:
        raise LegacyFormatError(data_dir / file_name, f"not an integer: {raw!r}") from exc


def read_toml(data_dir: Path, file_name: str, model: type[_M]) -> _M:
    """Parse a TOML file and validate it against *model*."""
    raw = read_text(data_dir, file_name)
    path = data_dir / file_name
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise LegacyFormatError(path, f"invalid TOML: {exc}") from exc
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        reason = f"invalid {model.__name__}: {exc.error_count()} validation error(s)"
        raise LegacyFormatError(path, reason) from exc


def load_legacy_node(node_dir: Path) -> LegacyNode:
    """Load every file the migration needs from one legacy node directory."""
    if not node_dir.is_dir():
        raise LegacyFormatError(node_dir, "node directory not found")
    return LegacyNode(
        controller=read_toml(node_dir, CONTROLLER_CONFIG, LegacyControllerConfig),
        consensus=read_toml(node_dir, CONSENSUS_CONFIG, LegacyConsensusConfig),
        network=read_toml(node_dir, NETWORK_CONFIG, LegacyNetworkConfig),
        system_config=read_toml(node_dir, INIT_SYS_CONFIG, LegacyInitSysConfig),
        genesis=read_toml(node_dir, GENESIS, LegacyGenesis),
        node_address=read_text(node_dir, NODE_ADDRESS),
        key_id=read_int(node_dir, KEY_ID),
        kms_password=read_text(node_dir, KEY_FILE),
    )


def discover_node_dirs(chain_dir: Path, chain_name: str) -> list[Path]:
    """List ``<chain_name>-<n>`` directories sorted by numeric ``n``."""
    prefix = f"{chain_name}-"
    found: list[tuple[int, Path]] = []
    for entry in chain_dir.iterdir():
        if not entry.is_dir() or not entry.name.startswith(prefix):
            continue
        suffix = entry.name.removeprefix(prefix)
        if not suffix.isdigit():
            raise LegacyFormatError(entry, "node directory suffix must be a node number")
        found.append((int(suffix), entry))
    return [path for _, path in sorted(found)]


def load_admin_key_id(chain_dir: Path, chain_name: str, admin_address: str) -> int:
    """Read the admin account's ``key_id`` from the chain metadata directory."""
    return read_int(chain_dir / chain_name / admin_address, KEY_ID)
