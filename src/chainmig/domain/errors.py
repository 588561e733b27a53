"""Domain exceptions for the migration pipeline.

Every error here is terminal for a run. The service layer maps each class
to a stable ``ServiceError.code``; the domain itself never logs.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chainmig.domain.endpoints import Endpoint


class MigrationError(Exception):
    """Base class for all migration failures."""


class LegacyFormatError(MigrationError):
    """A legacy node file is missing, unreadable, or does not parse."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ResolutionError(MigrationError):
    """Self-endpoint resolution could not run or did not succeed."""


class InconsistentTopologyError(ResolutionError):
    """A node's candidate self-endpoint set did not have exactly one member."""

    def __init__(
        self,
        node_index: int,
        logical_address: str,
        candidates: Iterable[Endpoint] = (),
        extraneous: Iterable[Endpoint] = (),
    ) -> None:
        self.node_index = node_index
        self.logical_address = logical_address
        self.candidates = tuple(sorted(candidates, key=str))
        self.extraneous = tuple(sorted(extraneous, key=str))
        found = ", ".join(str(c) for c in self.candidates) or "none"
        msg = (
            f"cannot determine own endpoint of node #{node_index} ({logical_address}): "
            f"candidates [{found}]; peers must list all (and only) other nodes"
        )
        if self.extraneous:
            msg += f"; unknown peers [{', '.join(str(e) for e in self.extraneous)}]"
        super().__init__(msg)


class BindingError(MigrationError):
    """Peer identity binding failed."""


class UnknownPeerEndpointError(BindingError):
    """A declared peer endpoint has no logical address in the resolved map."""

    def __init__(self, endpoint: Endpoint) -> None:
        self.endpoint = endpoint
        super().__init__(f"cannot find node address for `{endpoint}`; check the network config")


class IssuanceError(MigrationError):
    """Key generation or certificate construction failed."""
