"""Subcommand modules for chainmig."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all commands on the root CLI group (deferred imports)."""
    from chainmig.commands.migrate import migrate

    cli.add_command(migrate)
