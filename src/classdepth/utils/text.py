"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/utils/text.py
--------------------------------------------------------------------------------
"""

from __future__ import annotations

from typing import Sequence


def format_names(names: Sequence[str], width: int = 60) -> str:
    """Comma-join names, cutting the list with ', ...' once it would exceed width."""
    out = ""
    for i, name in enumerate(names):
        piece = name if i == 0 else f", {name}"
        if out and len(out) + len(piece) > width:
            return out + ", ..."
        out += piece
    return out
