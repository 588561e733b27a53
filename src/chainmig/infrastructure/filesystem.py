"""Output writing and data copying for the new (6.3.0) layout.

INVARIANT: Nothing here is called before the whole node set has been
resolved, issued, and bound. A run that fails earlier writes nothing.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterable
from pathlib import Path

import tomli_w
from pydantic import BaseModel

CONFIG_FILENAME = "config.toml"


def node_dir_name(chain_name: str, node_address: str) -> str:
    """``<chain_name>-<address without 0x>`` for a node's new directory."""
    if not node_address.startswith("0x"):
        msg = f"Invalid node address {node_address!r}: must be a hex string with `0x` prefix"
        raise ValueError(msg)
    return f"{chain_name}-{node_address.removeprefix('0x')}"


def render_toml(model: BaseModel) -> str:
    """Serialize a pydantic model to TOML, fields in declaration order."""
    return tomli_w.dumps(model.model_dump(mode="json"), multiline_strings=True)


def write_toml(path: Path, model: BaseModel) -> None:
    """Write *model* as TOML to *path*, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_toml(model), encoding="utf-8")


def copy_files(old_dir: Path, new_dir: Path, names: Iterable[str]) -> list[Path]:
    """Copy each named file from *old_dir* into *new_dir*.

    Raises:
        FileNotFoundError: A named file does not exist in *old_dir*.
    """
    new_dir.mkdir(parents=True, exist_ok=True)
    copied: list[Path] = []
    for name in names:
        src = old_dir / name
        if not src.is_file():
            msg = f"Cannot copy `{src}`: file not found"
            raise FileNotFoundError(msg)
        dest = new_dir / name
        shutil.copy2(src, dest)
        copied.append(dest)
    return copied


def _copy_if_absent(src: str, dst: str) -> str:
    if Path(dst).exists():
        return dst
    return shutil.copy2(src, dst)


def copy_tree(src: Path, dest: Path) -> None:
    """Copy the contents of *src* into *dest*, keeping files already in *dest*."""
    if not src.is_dir():
        msg = f"Cannot copy `{src}`: directory not found"
        raise FileNotFoundError(msg)
    shutil.copytree(src, dest, dirs_exist_ok=True, copy_function=_copy_if_absent)


def copy_trees(old_dir: Path, new_dir: Path, names: Iterable[str]) -> list[Path]:
    """Copy each named subdirectory of *old_dir* into *new_dir*."""
    copied: list[Path] = []
    for name in names:
        copy_tree(old_dir / name, new_dir / name)
        copied.append(new_dir / name)
    return copied
