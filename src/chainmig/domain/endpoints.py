"""Network endpoints of peer nodes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from pydantic import Field

MAX_PORT = 65535

Port = Annotated[int, Field(ge=0, le=MAX_PORT)]


@dataclass(frozen=True)
class Endpoint:
    """A ``(host, port)`` pair where a node listens for peer connections.

    Equality and hashing are structural. Endpoints carry no ordering and
    are only used as set members and mapping keys.
    """

    host: str
    port: int

    def __post_init__(self) -> None:
        if not 0 <= self.port <= MAX_PORT:
            msg = f"Port out of range for {self.host!r}: {self.port}"
            raise ValueError(msg)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"
