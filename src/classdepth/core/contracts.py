"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/core/contracts.py

Column-level schema checks shared by the class-aware steps.
--------------------------------------------------------------------------------
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Sequence

import numpy as np
import pandas as pd

from classdepth.core.errors import ContractError

DType = Literal["numeric", "nominal"]


@dataclass(frozen=True)
class ColumnRule:
    name: str
    dtype: DType
    required: bool = True
    allow_nan: bool = False


@dataclass(frozen=True)
class TableContract:
    id: str
    description: str
    columns: List[ColumnRule]


def is_numeric(series: pd.Series) -> bool:
    return pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series)


def is_nominal(series: pd.Series) -> bool:
    if isinstance(series.dtype, pd.CategoricalDtype):
        return True
    return (
        pd.api.types.is_string_dtype(series)
        or pd.api.types.is_object_dtype(series)
        or pd.api.types.is_bool_dtype(series)
    )


def _is_dtype(series: pd.Series, want: DType) -> bool:
    if want == "numeric":
        return is_numeric(series)
    if want == "nominal":
        return is_nominal(series)
    return False


def validate_df(df: pd.DataFrame, contract: TableContract, *, where: str) -> None:
    """Assert df matches the contract; raise ContractError on first failure."""
    cols = set(df.columns)

    for rule in contract.columns:
        if rule.required and rule.name not in cols:
            raise ContractError(f"[{where}] contract {contract.id}: missing required column '{rule.name}'")

    for rule in contract.columns:
        if rule.name not in cols:
            continue
        s = df[rule.name]
        if not _is_dtype(s, rule.dtype):
            raise ContractError(
                f"[{where}] contract {contract.id}: column '{rule.name}' has dtype {s.dtype} but expected {rule.dtype}"
            )
        if not rule.allow_nan and s.isna().any():
            raise ContractError(
                f"[{where}] contract {contract.id}: column '{rule.name}' contains missing values but allow_nan=false"
            )


def class_table_contract(class_col: str, columns: Sequence[str], *, step_id: str) -> TableContract:
    """Training table for a class-split step: a nominal class column plus numeric, complete predictors."""
    rules = [ColumnRule(class_col, "nominal", allow_nan=True)]
    rules.extend(ColumnRule(c, "numeric") for c in columns)
    return TableContract(
        id=f"{step_id}.training",
        description=f"class column '{class_col}' + {len(columns)} numeric column(s)",
        columns=rules,
    )


def query_table_contract(columns: Sequence[str], *, step_id: str) -> TableContract:
    return TableContract(
        id=f"{step_id}.query",
        description=f"{len(columns)} numeric column(s) seen at training",
        columns=[ColumnRule(c, "numeric") for c in columns],
    )


def numeric_matrix(df: pd.DataFrame, columns: Sequence[str]) -> np.ndarray:
    """Float64 matrix of `columns` in the given order (callers validate first)."""
    return df.loc[:, list(columns)].to_numpy(dtype=np.float64, copy=True)
