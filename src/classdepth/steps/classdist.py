"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/steps/classdist.py

Distance of every row to each class centroid (Mahalanobis).

prep() stores, per class, a centroid (mean or median) and the covariance
matrix of the selected columns (or one covariance over all classes when
pool=true). bake() appends one '<prefix><class>' column per class holding the
squared Mahalanobis distance, natural-log transformed when log=true.
--------------------------------------------------------------------------------
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Literal, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from pydantic import Field

from classdepth.core.contracts import numeric_matrix, query_table_contract, validate_df
from classdepth.core.errors import ArtifactError, NotTrainedError
from classdepth.core.grouping import check_rows_per_class, select_columns, split_by_class
from classdepth.core.registry import STEP_ID_PATTERN, Step, StepConfig, rand_id
from classdepth.core.selectors import ColumnInfo
from classdepth.utils.frames import append_columns
from classdepth.utils.text import format_names


class ClassDistCfg(StepConfig):
    terms: Tuple[str, ...] = Field(min_length=1)
    class_: str = Field(alias="class", min_length=1)
    role: str = "predictor"
    mean_func: Literal["mean", "median"] = "mean"
    pool: bool = False
    log: bool = True
    prefix: str = Field(default="classdist_", min_length=1)
    id: str = Field(default_factory=lambda: rand_id("classdist"), pattern=STEP_ID_PATTERN)


@dataclass(frozen=True)
class ClassMoments:
    center: np.ndarray
    cov: np.ndarray


def _centroid(mat: np.ndarray, how: str) -> np.ndarray:
    return np.median(mat, axis=0) if how == "median" else mat.mean(axis=0)


def _cov(mat: np.ndarray) -> np.ndarray:
    return np.atleast_2d(np.cov(mat, rowvar=False, ddof=1))


def mahalanobis_sq(x: np.ndarray, center: np.ndarray, cov: np.ndarray) -> np.ndarray:
    diff = x - center
    inv = np.linalg.inv(cov)
    return np.einsum("ij,jk,ik->i", diff, inv, diff)


class ClassDistance(Step):
    key = "classdist"
    ConfigModel = ClassDistCfg

    def __init__(
        self,
        cfg: ClassDistCfg,
        *,
        columns: Optional[Sequence[str]] = None,
        moments: Optional[Mapping[str, ClassMoments]] = None,
    ) -> None:
        super().__init__(cfg)
        self.cfg: ClassDistCfg = cfg
        self.columns: Optional[Tuple[str, ...]] = tuple(columns) if columns is not None else None
        self.moments: Optional[Mapping[str, ClassMoments]] = moments

    @property
    def trained(self) -> bool:
        return self.moments is not None

    def prep(self, ctx, training: pd.DataFrame, info: Sequence[ColumnInfo]) -> "ClassDistance":
        cfg = self.cfg
        cols = select_columns(cfg.terms, cfg.class_, info, where=self.id)
        groups = split_by_class(training, cfg.class_, cols, where=self.id, logger=ctx.logger)

        if cfg.pool:
            everything = np.vstack(list(groups.values()))
            check_rows_per_class({"<pooled>": everything}, what="pooled covariance", where=self.id)
            pooled = _cov(everything)
            moments = {k: ClassMoments(_centroid(m, cfg.mean_func), pooled) for k, m in groups.items()}
        else:
            check_rows_per_class(groups, what="class covariance", where=self.id)
            moments = {k: ClassMoments(_centroid(m, cfg.mean_func), _cov(m)) for k, m in groups.items()}

        ctx.logger.info(
            "classdist • [accent]%s[/accent] • center=%s • pool=%s • %d class(es) × %d column(s)",
            self.id,
            cfg.mean_func,
            cfg.pool,
            len(moments),
            len(cols),
        )
        return ClassDistance(cfg, columns=cols, moments=MappingProxyType(moments))

    def bake(self, ctx, new_data: pd.DataFrame) -> pd.DataFrame:
        if not self.trained:
            raise NotTrainedError(f"step {self.id}: bake() called before prep()")
        validate_df(new_data, query_table_contract(self.columns, step_id=self.id), where=self.id)
        x = numeric_matrix(new_data, self.columns)
        dists: Dict[str, np.ndarray] = {}
        for label, mom in self.moments.items():
            d = mahalanobis_sq(x, mom.center, mom.cov)
            dists[f"{self.cfg.prefix}{label}"] = np.log(d) if self.cfg.log else d
        return append_columns(new_data, dists)

    def tidy(self) -> pd.DataFrame:
        if self.trained:
            rows = [
                (col, float(mom.center[j]), label)
                for label, mom in self.moments.items()
                for j, col in enumerate(self.columns)
            ]
            return pd.DataFrame(
                {
                    "terms": [r[0] for r in rows],
                    "value": [r[1] for r in rows],
                    "class": [r[2] for r in rows],
                    "id": self.id,
                }
            )
        terms = list(self.cfg.terms)
        return pd.DataFrame(
            {
                "terms": terms,
                "value": np.full(len(terms), np.nan),
                "class": pd.Series([None] * len(terms), dtype=object),
                "id": self.id,
            }
        )

    def describe(self, width: int = 60) -> str:
        head = f"Distances to {self.cfg.class_} for "
        if self.trained:
            return head + format_names(list(self.columns), width=width) + " [trained]"
        return head + format_names(list(self.cfg.terms), width=width)

    def export_state(self) -> Dict[str, pd.DataFrame]:
        if not self.trained:
            raise NotTrainedError(f"step {self.id}: nothing to export before prep()")
        # row 0 = centroid, rows 1.. = covariance
        return {
            label: pd.DataFrame(np.vstack([mom.center, mom.cov]), columns=list(self.columns))
            for label, mom in self.moments.items()
        }

    @classmethod
    def restore(cls, cfg: ClassDistCfg, state: Mapping[str, pd.DataFrame]) -> "ClassDistance":
        if not state:
            raise ArtifactError(f"step {cfg.id}: saved state has no classes")
        columns = [str(c) for c in next(iter(state.values())).columns]
        p = len(columns)
        moments: Dict[str, ClassMoments] = {}
        for label, frame in state.items():
            mat = frame.to_numpy(dtype=np.float64)
            if [str(c) for c in frame.columns] != columns or mat.shape != (p + 1, p):
                raise ArtifactError(f"step {cfg.id}: class {label!r} state has shape {mat.shape}, expected {(p + 1, p)}")
            moments[str(label)] = ClassMoments(center=mat[0].copy(), cov=mat[1:].copy())
        return cls(cfg, columns=columns, moments=MappingProxyType(moments))
