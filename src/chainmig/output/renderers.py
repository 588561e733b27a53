"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`;
unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from chainmig.output.console import create_console, get_output

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from chainmig.services.result import ServiceResult

    Renderer = Callable[..., None]


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string."""
    console = create_console()
    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """One line per result for ``--quiet``."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="mig.ok"), Text(f"  {result.op}", style="mig.op"))


def _field(console: Console, key: str, value: Any) -> None:
    style = "mig.path" if key in ("out_dir", "meta_config") else ""
    console.print(Text.assemble((f"  {key}: ", "mig.key"), (str(value), style)))


def _node_table(nodes: list[dict[str, Any]], *, extra_columns: tuple[str, ...] = ()) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Address", style="mig.address", no_wrap=True)
    table.add_column("Endpoint", style="mig.endpoint", no_wrap=True)
    for col in extra_columns:
        table.add_column(col.replace("_", " ").title())
    for i, node in enumerate(nodes):
        row = [str(node.get("index", i)), str(node["address"]), str(node["endpoint"])]
        row.extend(str(node.get(col, "")) for col in extra_columns)
        table.add_row(*row)
    return table


# ── Renderers ─────────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(Text("ERROR", style="mig.error"), Text(f"  {result.op}", style="mig.op"), "—", msg)
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "chain_name", result.data.get("chain_name"))
    _field(console, "node_count", result.data.get("node_count"))
    nodes = result.data.get("nodes", [])
    if nodes:
        console.print()
        extra = ("peers", "dir") if verbose else ("peers",)
        console.print(_node_table(nodes, extra_columns=extra))


def _render_migrate(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key in ("chain_name", "node_count", "out_dir", "meta_config", "ca_fingerprint"):
        if key in result.data:
            _field(console, key, result.data[key])
    nodes = result.data.get("nodes", [])
    if nodes:
        console.print()
        extra = ("dir",) if verbose else ()
        console.print(_node_table(nodes, extra_columns=extra))


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


_OP_RENDERERS: dict[str, Renderer] = {
    "migrate": _render_migrate,
    "migrate_check": _render_check,
}
