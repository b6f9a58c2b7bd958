"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/core/grouping.py

Shared prep-time helpers for class-aware steps: pick the numeric columns,
validate the class column, and split the training rows into one matrix per
class level.
--------------------------------------------------------------------------------
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, List, Mapping, Sequence

import numpy as np
import pandas as pd

from classdepth.core.contracts import class_table_contract, numeric_matrix, validate_df
from classdepth.core.errors import ContractError
from classdepth.core.selectors import ColumnInfo, resolve

LOG = logging.getLogger("classdepth")


def select_columns(terms: Sequence[str], class_col: str, info: Sequence[ColumnInfo], *, where: str) -> List[str]:
    names = [c.name for c in info]
    if class_col not in names:
        raise ContractError(f"[{where}] class column '{class_col}' not found in data")
    cols = [c for c in resolve(terms, info) if c != class_col]
    if not cols:
        raise ContractError(f"[{where}] selectors {list(terms)} leave no columns once the class column is removed")
    return cols


def class_levels(labels: pd.Series) -> List[Any]:
    """Category order for categoricals (observed levels only), sorted labels otherwise."""
    present = labels.dropna()
    if isinstance(labels.dtype, pd.CategoricalDtype):
        seen = set(present.unique())
        return [lvl for lvl in labels.cat.categories if lvl in seen]
    return sorted(present.unique(), key=str)


def split_by_class(
    df: pd.DataFrame,
    class_col: str,
    columns: Sequence[str],
    *,
    where: str,
    logger: logging.Logger | None = None,
) -> Mapping[str, np.ndarray]:
    """
    Ordered, read-only mapping: str(class level) -> float64 matrix (rows of that class, `columns`).
    Row order within a class follows the input. Rows with a missing class are dropped.
    """
    log = logger or LOG
    validate_df(df, class_table_contract(class_col, columns, step_id=where), where=where)

    labels = df[class_col]
    missing = int(labels.isna().sum())
    if missing:
        log.warning("[warn]%s[/warn] • dropped %d row(s) with a missing '%s' value", where, missing, class_col)

    groups: dict[str, np.ndarray] = {}
    for level in class_levels(labels):
        key = str(level)
        if key in groups:
            raise ContractError(f"[{where}] class labels collide once converted to text: {key!r}")
        mat = numeric_matrix(df.loc[(labels == level).to_numpy()], columns)
        mat.flags.writeable = False
        groups[key] = mat
    if not groups:
        raise ContractError(f"[{where}] class column '{class_col}' has no non-missing values")
    return MappingProxyType(groups)


def check_rows_per_class(groups: Mapping[str, np.ndarray], *, what: str, where: str) -> None:
    """Covariance-based computations need at least as many rows per class as columns."""
    for label, mat in groups.items():
        n, p = mat.shape
        if n < p:
            raise ContractError(
                f"[{where}] {what} needs at least as many rows per class as columns: "
                f"class {label!r} has {n} row(s) for {p} column(s)"
            )
