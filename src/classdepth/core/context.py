"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/core/context.py
--------------------------------------------------------------------------------
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class RunContext:
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("classdepth"))
    outputs_dir: Optional[Path] = None
