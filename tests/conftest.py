"""Shared pytest fixtures for chainmig tests."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import pytest
from click.testing import CliRunner

from chainmig.domain.endpoints import Endpoint
from chainmig.domain.legacy import (
    LegacyConsensusConfig,
    LegacyControllerConfig,
    LegacyGenesis,
    LegacyInitSysConfig,
    LegacyNetworkConfig,
    LegacyNode,
    LegacyPeerConfig,
)
from chainmig.domain.nodes import NodeRecord
from chainmig.domain.transcode import transcode

CHAIN_NAME = "test-chain"
ADMIN_ADDRESS = "0x" + "ad" * 20
ADMIN_KEY_ID = 7
AUX_FILES = (
    "controller-log4rs.yaml",
    "storage-log4rs.yaml",
    "executor-log4rs.yaml",
    "kms-log4rs.yaml",
    "kms.db",
)
DATA_DIRS = ("chain_data", "data", "logs")

# Four nodes on distinct hosts, as in a typical deployment.
ADDRESSES = tuple("0x" + c * 40 for c in "abcd")
ENDPOINTS = tuple(Endpoint(f"10.0.0.{i + 1}", 40000 + i) for i in range(4))


def base_port(index: int) -> int:
    return 50000 + index * 10


def legacy_node(
    address: str,
    listen_port: int,
    peers: Sequence[Endpoint],
    *,
    index: int = 0,
) -> LegacyNode:
    """In-memory legacy node with deterministic ports derived from *index*."""
    base = base_port(index)
    return LegacyNode(
        controller=LegacyControllerConfig(
            network_port=base,
            consensus_port=base + 1,
            executor_port=base + 2,
            storage_port=base + 3,
            kms_port=base + 5,
        ),
        consensus=LegacyConsensusConfig(controller_port=base + 4),
        network=LegacyNetworkConfig(
            port=listen_port,
            peers=[LegacyPeerConfig(ip=p.host, port=p.port) for p in peers],
        ),
        system_config=LegacyInitSysConfig(
            version=0,
            admin=ADMIN_ADDRESS,
            block_interval=3,
            chain_id="63586a3c0255f337c77a777ff54f0040b8c388da04f23ecee6bfd4953a6512b4",
            validators=list(ADDRESSES),
        ),
        genesis=LegacyGenesis(timestamp=1_600_000_000_000, prevhash="0x" + "0" * 64),
        node_address=address,
        key_id=index + 1,
        kms_password=f"password-{index}",
    )


def make_records(
    addresses: Sequence[str],
    peer_lists: Sequence[Sequence[Endpoint]],
) -> list[NodeRecord]:
    """Unresolved records for the given addresses and declared peer lists."""
    return [
        transcode(legacy_node(address, 40000 + i, peers, index=i))
        for i, (address, peers) in enumerate(zip(addresses, peer_lists, strict=True))
    ]


def consistent_peer_lists(endpoints: Sequence[Endpoint]) -> list[list[Endpoint]]:
    """Every node lists all endpoints except its own."""
    return [[e for e in endpoints if e != own] for own in endpoints]


# ---------------------------------------------------------------------------
# On-disk legacy chain
# ---------------------------------------------------------------------------


def _write_legacy_node_dir(
    node_dir: Path,
    address: str,
    own: Endpoint,
    peers: Sequence[Endpoint],
    index: int,
) -> None:
    base = base_port(index)
    node_dir.mkdir(parents=True)
    (node_dir / "controller-config.toml").write_text(
        f"network_port = {base}\n"
        f"consensus_port = {base + 1}\n"
        f"executor_port = {base + 2}\n"
        f"storage_port = {base + 3}\n"
        f"kms_port = {base + 5}\n"
        'block_delay_number = 0\n'
    )
    (node_dir / "consensus-config.toml").write_text(f"controller_port = {base + 4}\n")
    peer_tables = "".join(f'\n[[peers]]\nip = "{p.host}"\nport = {p.port}\n' for p in peers)
    (node_dir / "network-config.toml").write_text(f"port = {own.port}\n{peer_tables}")
    validators = ", ".join(f'"{a}"' for a in ADDRESSES)
    (node_dir / "init_sys_config.toml").write_text(
        "version = 0\n"
        f'admin = "{ADMIN_ADDRESS}"\n'
        "block_interval = 3\n"
        'chain_id = "63586a3c0255f337c77a777ff54f0040b8c388da04f23ecee6bfd4953a6512b4"\n'
        f"validators = [{validators}]\n"
    )
    (node_dir / "genesis.toml").write_text(
        f'timestamp = 1600000000000\nprevhash = "0x{"0" * 64}"\n'
    )
    (node_dir / "node_address").write_text(address)
    (node_dir / "key_id").write_text(f"{index + 1}\n")
    (node_dir / "key_file").write_text(f"password-{index}")
    for name in AUX_FILES:
        (node_dir / name).write_text(f"{name} of node {index}\n")
    for name in DATA_DIRS:
        sub = node_dir / name / "nested"
        sub.mkdir(parents=True)
        (sub / "blob.bin").write_bytes(bytes([index]) * 16)


def write_legacy_chain(
    root: Path,
    *,
    chain_name: str = CHAIN_NAME,
    addresses: Sequence[str] = ADDRESSES,
    endpoints: Sequence[Endpoint] = ENDPOINTS,
    peer_lists: Sequence[Sequence[Endpoint]] | None = None,
) -> Path:
    """Write a legacy chain directory under *root* and return it."""
    chain_dir = root / "old"
    admin_dir = chain_dir / chain_name / ADMIN_ADDRESS
    admin_dir.mkdir(parents=True)
    (admin_dir / "key_id").write_text(str(ADMIN_KEY_ID))

    peers = peer_lists if peer_lists is not None else consistent_peer_lists(endpoints)
    for i, (address, own) in enumerate(zip(addresses, endpoints, strict=True)):
        _write_legacy_node_dir(chain_dir / f"{chain_name}-{i}", address, own, peers[i], i)
    return chain_dir


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def legacy_chain(tmp_path: Path) -> Path:
    """A consistent four-node legacy chain on disk."""
    return write_legacy_chain(tmp_path)


@pytest.fixture
def chain_writer(tmp_path: Path) -> Callable[..., Path]:
    """Write a customised legacy chain under ``tmp_path``."""

    def _write(**kwargs: object) -> Path:
        return write_legacy_chain(tmp_path, **kwargs)  # type: ignore[arg-type]

    return _write


@pytest.fixture
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run from ``tmp_path`` with no config env override."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CHAINMIG_CONFIG", raising=False)


# ---------------------------------------------------------------------------
# Helper fixtures (test modules take helpers through fixtures, not imports)
# ---------------------------------------------------------------------------


@pytest.fixture
def endpoints() -> tuple[Endpoint, ...]:
    return ENDPOINTS


@pytest.fixture
def addresses() -> tuple[str, ...]:
    return ADDRESSES


@pytest.fixture
def records_factory() -> Callable[..., list[NodeRecord]]:
    """``records_factory(addresses, peer_lists)`` -> unresolved records."""
    return make_records


@pytest.fixture
def consistent_peers() -> Callable[[Sequence[Endpoint]], list[list[Endpoint]]]:
    """``consistent_peers(endpoints)`` -> every node lists all but itself."""
    return consistent_peer_lists


@pytest.fixture
def legacy_node_factory() -> Callable[..., LegacyNode]:
    """``legacy_node_factory(address, listen_port, peers, index=0)``."""
    return legacy_node
