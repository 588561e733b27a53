"""MigrationService — legacy chain to new layout.

Pipeline: DISCOVER → LOAD → TRANSCODE → RESOLVE → ISSUE → BIND → WRITE → COPY

Everything up to BIND is in memory. A failure there leaves the output
directory untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from chainmig.domain.errors import (
    BindingError,
    InconsistentTopologyError,
    IssuanceError,
    LegacyFormatError,
    ResolutionError,
    UnknownPeerEndpointError,
)
from chainmig.domain.legacy import LegacyNode
from chainmig.domain.meta import build_meta_config
from chainmig.domain.nodes import BoundNode, CertificateAndKey
from chainmig.domain.topology import Resolution, bind_peers, resolve
from chainmig.domain.transcode import transcode
from chainmig.infrastructure import filesystem, legacy, pki
from chainmig.services.base import BaseService
from chainmig.services.result import ServiceResult

OP_MIGRATE = "migrate"
OP_CHECK = "migrate_check"


@dataclass(frozen=True)
class _Plan:
    """Loaded and resolved chain, ready for issuance."""

    node_dirs: list[Path]
    legacy_nodes: list[LegacyNode]
    resolution: Resolution


class _Abort(Exception):
    """Carries a failed ServiceResult out of a pipeline stage."""

    def __init__(self, result: ServiceResult) -> None:
        super().__init__(result.error.message if result.error else result.op)
        self.result = result


class MigrationService(BaseService):
    """Migrates one legacy chain directory into the new layout."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def check(self, chain_dir: Path, chain_name: str) -> ServiceResult:
        """Resolve the topology and report it without writing anything."""
        try:
            plan = self._plan(OP_CHECK, chain_dir, chain_name)
        except _Abort as abort:
            return abort.result

        nodes = [
            {
                "index": i,
                "address": node.logical_address,
                "endpoint": str(node.self_endpoint),
                "dir": str(node_dir),
                "peers": len(node.declared_peers),
            }
            for i, (node, node_dir) in enumerate(
                zip(plan.resolution.nodes, plan.node_dirs, strict=True)
            )
        ]
        return ServiceResult(
            ok=True,
            op=OP_CHECK,
            data={
                "chain_name": chain_name,
                "node_count": len(nodes),
                "nodes": nodes,
            },
        )

    def apply(self, chain_dir: Path, out_dir: Path, chain_name: str) -> ServiceResult:
        """Run the full pipeline and write the new chain layout to *out_dir*."""
        op = OP_MIGRATE
        warnings: list[str] = []
        self._log.info("migrate.start", chain_dir=str(chain_dir), chain_name=chain_name)

        try:
            plan = self._plan(op, chain_dir, chain_name)
            admin_key_id = self._admin_key_id(op, chain_dir, chain_name, plan)
            new_dirs = self._new_node_dirs(op, out_dir, chain_name, plan)
            authority, bound = self._issue_and_bind(op, plan)
        except _Abort as abort:
            return abort.result

        meta_dir = out_dir / chain_name
        meta_config = build_meta_config(bound, authority, admin_key_id)

        for new_dir in new_dirs:
            if new_dir.exists():
                warnings.append(f"Output directory already exists, existing files kept: {new_dir}")

        # WRITE
        try:
            filesystem.write_toml(meta_dir / filesystem.CONFIG_FILENAME, meta_config)
            for node, new_dir in zip(bound, new_dirs, strict=True):
                filesystem.write_toml(new_dir / filesystem.CONFIG_FILENAME, node.to_config())
        except OSError as exc:
            self._log.error("migrate.write_failed", error=str(exc))
            return ServiceResult.failure(op, "WRITE_FAILED", f"Cannot write config: {exc}")
        self._log.debug("migrate.written", meta_dir=str(meta_dir), nodes=len(new_dirs))

        # COPY
        files = self._settings.files
        try:
            filesystem.copy_files(plan.node_dirs[0], meta_dir, files.aux_files)
            for old_dir, new_dir in zip(plan.node_dirs, new_dirs, strict=True):
                filesystem.copy_files(old_dir, new_dir, files.aux_files)
                filesystem.copy_trees(old_dir, new_dir, files.data_dirs)
                self._log.debug("migrate.copied", old_dir=str(old_dir), new_dir=str(new_dir))
        except OSError as exc:
            self._log.error("migrate.copy_failed", error=str(exc))
            return ServiceResult.failure(
                op,
                "COPY_FAILED",
                f"Cannot copy node data: {exc}. Configs already written under {out_dir}",
                out_dir=str(out_dir),
            )

        self._log.info("migrate.done", nodes=len(bound), out_dir=str(out_dir))
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "chain_name": chain_name,
                "out_dir": str(out_dir),
                "meta_config": str(meta_dir / filesystem.CONFIG_FILENAME),
                "node_count": len(bound),
                "ca_fingerprint": pki.fingerprint(authority.cert),
                "nodes": [
                    {
                        "address": node.logical_address,
                        "endpoint": str(node.self_endpoint),
                        "dir": str(new_dir),
                    }
                    for node, new_dir in zip(bound, new_dirs, strict=True)
                ],
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def _plan(self, op: str, chain_dir: Path, chain_name: str) -> _Plan:
        """DISCOVER → LOAD → TRANSCODE → RESOLVE."""
        if not chain_dir.is_dir():
            raise _Abort(
                ServiceResult.failure(
                    op, "INVALID_INPUT", f"Chain data folder not found: {chain_dir}"
                )
            )
        if not (chain_dir / chain_name).is_dir():
            raise _Abort(
                ServiceResult.failure(
                    op, "INVALID_INPUT", f"Metadata folder not found: {chain_dir / chain_name}"
                )
            )

        try:
            node_dirs = legacy.discover_node_dirs(chain_dir, chain_name)
            if not node_dirs:
                raise _Abort(
                    ServiceResult.failure(
                        op, "INVALID_INPUT", f"Empty chain. No `{chain_name}-<n>` node dirs found"
                    )
                )
            legacy_nodes = [legacy.load_legacy_node(d) for d in node_dirs]
        except LegacyFormatError as exc:
            raise _Abort(
                ServiceResult.failure(op, "LEGACY_LOAD_FAILED", str(exc), path=str(exc.path))
            ) from exc
        self._log.debug("migrate.loaded", nodes=len(node_dirs))

        limits = self._settings.limits
        try:
            records = [
                transcode(
                    node,
                    block_limit=limits.block_limit,
                    package_limit=limits.package_limit,
                )
                for node in legacy_nodes
            ]
        except ValueError as exc:
            raise _Abort(ServiceResult.failure(op, "INVALID_INPUT", str(exc))) from exc

        try:
            resolution = resolve(records)
        except InconsistentTopologyError as exc:
            raise _Abort(
                ServiceResult.failure(
                    op,
                    "INCONSISTENT_TOPOLOGY",
                    str(exc),
                    node_index=exc.node_index,
                    node_address=exc.logical_address,
                    node_dir=str(node_dirs[exc.node_index]),
                    candidates=[str(c) for c in exc.candidates],
                    extraneous=[str(e) for e in exc.extraneous],
                )
            ) from exc
        except ResolutionError as exc:
            raise _Abort(ServiceResult.failure(op, "RESOLUTION_FAILED", str(exc))) from exc
        self._log.debug("migrate.resolved", endpoints=len(resolution.full_endpoint_set))

        return _Plan(node_dirs=node_dirs, legacy_nodes=legacy_nodes, resolution=resolution)

    def _admin_key_id(self, op: str, chain_dir: Path, chain_name: str, plan: _Plan) -> int:
        admin = plan.legacy_nodes[0].system_config.admin
        try:
            return legacy.load_admin_key_id(chain_dir, chain_name, admin)
        except LegacyFormatError as exc:
            raise _Abort(
                ServiceResult.failure(
                    op,
                    "LEGACY_LOAD_FAILED",
                    f"Cannot load admin `key_id`: {exc}",
                    path=str(exc.path),
                )
            ) from exc

    def _new_node_dirs(self, op: str, out_dir: Path, chain_name: str, plan: _Plan) -> list[Path]:
        try:
            return [
                out_dir / filesystem.node_dir_name(chain_name, node.logical_address)
                for node in plan.resolution.nodes
            ]
        except ValueError as exc:
            raise _Abort(ServiceResult.failure(op, "INVALID_INPUT", str(exc))) from exc

    def _issue_and_bind(
        self, op: str, plan: _Plan
    ) -> tuple[CertificateAndKey, tuple[BoundNode, ...]]:
        """ISSUE → BIND, then check every leaf against the authority."""
        pki_cfg = self._settings.pki
        resolution = plan.resolution
        try:
            authority = pki.issue_authority(validity_days=pki_cfg.validity_days)
            leaves = pki.issue_leaves(
                [node.logical_address for node in resolution.nodes],
                authority,
                validity_days=pki_cfg.validity_days,
                max_workers=pki_cfg.max_workers,
            )
        except IssuanceError as exc:
            raise _Abort(ServiceResult.failure(op, "ISSUANCE_FAILED", str(exc))) from exc
        self._log.debug("migrate.issued", leaves=len(leaves))

        exported = authority.export()
        try:
            bound = bind_peers(
                resolution.nodes, resolution.endpoint_to_address, exported.cert, leaves
            )
        except UnknownPeerEndpointError as exc:
            raise _Abort(
                ServiceResult.failure(
                    op, "UNKNOWN_PEER_ENDPOINT", str(exc), endpoint=str(exc.endpoint)
                )
            ) from exc
        except BindingError as exc:
            raise _Abort(ServiceResult.failure(op, "BINDING_FAILED", str(exc))) from exc

        mismatched = self._mismatched_leaves(bound)
        if mismatched:
            raise _Abort(
                ServiceResult.failure(
                    op,
                    "ISSUANCE_FAILED",
                    "Issued certificates do not match their nodes",
                    nodes=mismatched,
                )
            )
        return exported, bound

    @staticmethod
    def _mismatched_leaves(bound: tuple[BoundNode, ...]) -> list[dict[str, Any]]:
        mismatched: list[dict[str, Any]] = []
        for node in bound:
            verified = pki.verify_leaf(node.tls_cert, node.tls_ca_cert)
            identity = pki.leaf_identity(node.tls_cert)
            if not verified or identity != node.logical_address:
                mismatched.append(
                    {"address": node.logical_address, "identity": identity, "verified": verified}
                )
        return mismatched
