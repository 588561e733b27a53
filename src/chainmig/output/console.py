"""Rich Console factory and theme for chainmig output.

Consoles render into a StringIO buffer so ``format_result() -> str`` stays
a plain function. Rich drops color codes when no terminal is attached.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

MIG_THEME = Theme(
    {
        "mig.ok": "bold green",
        "mig.error": "bold red",
        "mig.warning": "bold yellow",
        "mig.op": "bold cyan",
        "mig.key": "dim",
        "mig.address": "bold blue",
        "mig.endpoint": "magenta",
        "mig.path": "dim",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=MIG_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
