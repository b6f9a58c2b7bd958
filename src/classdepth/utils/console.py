"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/utils/console.py
--------------------------------------------------------------------------------
"""

from __future__ import annotations

from rich.console import Console
from rich.theme import Theme

THEME = Theme(
    {
        "title": "bold cyan",
        "accent": "cyan",
        "ok": "bold green",
        "warn": "bold yellow",
        "error": "bold red",
        "muted": "dim",
        "path": "magenta",
    }
)


def make_console(**kwargs) -> Console:
    return Console(theme=THEME, **kwargs)
