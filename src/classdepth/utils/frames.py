"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/utils/frames.py
--------------------------------------------------------------------------------
"""

from __future__ import annotations

from collections.abc import Mapping

import numpy as np
import pandas as pd

from classdepth.core.errors import TransformError


def append_columns(df: pd.DataFrame, columns: Mapping[str, np.ndarray]) -> pd.DataFrame:
    """
    Return a new frame: every column of `df` (unchanged, same order, same index)
    followed by `columns` in mapping order. `df` itself is never modified.
    """
    clash = [name for name in columns if name in df.columns]
    if clash:
        raise TransformError(f"new column(s) would replace existing column(s): {clash}")
    n = len(df)
    for name, values in columns.items():
        if len(values) != n:
            raise TransformError(f"column {name!r} has {len(values)} value(s) but the table has {n} row(s)")
    if not columns:
        return df.copy()
    extra = pd.DataFrame({name: np.asarray(values) for name, values in columns.items()}, index=df.index)
    return pd.concat([df, extra], axis=1)
