"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/utils/fs.py
--------------------------------------------------------------------------------
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pandas as pd

from classdepth.core.errors import ConfigError


def ensure_dir(path: str | Path) -> Path:
    """Create directory if it doesn't exist."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def read_table(path: str | Path, *, categorical: Sequence[str] = ()) -> pd.DataFrame:
    """Read a .csv/.tsv/.parquet table; listed columns present in the file are cast to pandas 'category'."""
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"data file not found: {p}")
    suffix = p.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(p)
    elif suffix == ".tsv":
        df = pd.read_csv(p, sep="\t")
    elif suffix == ".parquet":
        df = pd.read_parquet(p)
    else:
        raise ConfigError(f"unsupported data file type {suffix!r} (use .csv, .tsv or .parquet): {p}")
    for col in categorical:
        if col in df.columns:
            df[col] = df[col].astype("category")
    return df


def write_table(df: pd.DataFrame, path: str | Path) -> Path:
    p = Path(path)
    ensure_dir(p.parent)
    if p.suffix.lower() == ".parquet":
        df.to_parquet(p, index=False)
    else:
        df.to_csv(p, index=False)
    return p
