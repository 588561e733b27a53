"""Command: migrate a legacy chain directory to the new layout."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from chainmig.commands._base import MigCommand

if TYPE_CHECKING:
    from chainmig.commands._context import AppContext


@click.command(
    cls=MigCommand,
    examples="""\
  chainmig migrate -d ./old -o ./new -n test-chain
  chainmig migrate -d ./old -o ./new -n test-chain --check
  chainmig --json migrate -d ./old -o ./new -n test-chain""",
)
@click.option(
    "-d",
    "--chain-dir",
    required=True,
    type=click.Path(path_type=Path, file_okay=False),
    help="The old chain dir.",
)
@click.option(
    "-o",
    "--out-dir",
    required=True,
    type=click.Path(path_type=Path, file_okay=False),
    help="The output dir for the upgraded chain.",
)
@click.option("-n", "--chain-name", required=True, help="Name of the chain.")
@click.option(
    "--check",
    "check_only",
    is_flag=True,
    help="Resolve node endpoints and report them without writing anything.",
)
@click.pass_obj
def migrate(
    app: AppContext,
    chain_dir: Path,
    out_dir: Path,
    chain_name: str,
    check_only: bool,
) -> None:
    """Migrate the chain data."""
    from chainmig.services.migrate import MigrationService

    svc = MigrationService(app.settings)
    if check_only:
        app.emit(svc.check(chain_dir, chain_name))
    else:
        app.emit(svc.apply(chain_dir, out_dir, chain_name))
