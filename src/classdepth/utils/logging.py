"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/utils/logging.py
--------------------------------------------------------------------------------
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from classdepth.utils.console import make_console


def setup_logging(
    output_dir: Optional[str | Path] = None,
    *,
    level: str = "INFO",
    console: Optional[Console] = None,
) -> logging.Logger:
    """Configure the 'classdepth' logger: rich console output, plus a log file when output_dir is given."""
    logger = logging.getLogger("classdepth")
    logger.handlers.clear()
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if output_dir is not None:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(out / "classdepth.log", encoding="utf-8")
        fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        logger.addHandler(fh)
    sh = RichHandler(
        console=console or make_console(), markup=True, rich_tracebacks=True, show_level=True, show_time=False, show_path=False
    )
    logger.addHandler(sh)
    return logger
