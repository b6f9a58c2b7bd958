"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/steps/depth.py

Class-specific data depth.

prep() keeps every training row of the selected numeric columns, split by the
class column; bake() scores each new row against every class sample with the
configured depth metric and appends one '<prefix><class>' column per class.
Existing columns are never replaced.

Covariance-based metrics ('Mahalanobis', 'simplicialVolume') need each class
to have at least as many rows as selected columns; prep() enforces this.
--------------------------------------------------------------------------------
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from pydantic import Field, field_validator, model_validator

from classdepth.core.contracts import numeric_matrix, query_table_contract, validate_df
from classdepth.core.errors import ArtifactError, ConfigError, NotTrainedError
from classdepth.core.grouping import check_rows_per_class, select_columns, split_by_class
from classdepth.core.registry import STEP_ID_PATTERN, Step, StepConfig, rand_id
from classdepth.core.selectors import ColumnInfo
from classdepth.depth.backend import compute_depth
from classdepth.depth.metrics import DEFAULT_METRIC, Halfspace, Metric, parse_metric
from classdepth.utils.frames import append_columns
from classdepth.utils.text import format_names


class DepthCfg(StepConfig):
    """
    terms:   selector expressions for the numeric columns (see core.selectors)
    class:   name of the categorical column that defines the class samples
    metric:  metric name or {name: ..., <options>}; legacy 'options' is folded in
    prefix:  name prefix of the generated columns
    """

    terms: Tuple[str, ...] = Field(min_length=1)
    class_: str = Field(alias="class")
    role: str = "predictor"
    metric: Metric = Field(default_factory=Halfspace)
    prefix: str = "depth_"
    id: str = Field(default_factory=lambda: rand_id("depth"), pattern=STEP_ID_PATTERN)

    @model_validator(mode="before")
    @classmethod
    def _fold_metric_options(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        options = data.pop("options", None)
        metric = data.get("metric", DEFAULT_METRIC)
        if options is not None or isinstance(metric, (str, Mapping)):
            data["metric"] = parse_metric(metric, options)
        return data

    @field_validator("class_", "prefix", "id")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must be a non-empty string")
        return v


class DepthStep(Step):
    key = "depth"
    ConfigModel = DepthCfg

    def __init__(
        self,
        cfg: DepthCfg,
        *,
        columns: Optional[Sequence[str]] = None,
        data: Optional[Mapping[str, np.ndarray]] = None,
    ) -> None:
        super().__init__(cfg)
        self.cfg: DepthCfg = cfg
        self.columns: Optional[Tuple[str, ...]] = tuple(columns) if columns is not None else None
        self.data: Optional[Mapping[str, np.ndarray]] = data

    @property
    def trained(self) -> bool:
        return self.data is not None

    def prep(self, ctx, training: pd.DataFrame, info: Sequence[ColumnInfo]) -> "DepthStep":
        cfg = self.cfg
        cols = select_columns(cfg.terms, cfg.class_, info, where=self.id)
        groups = split_by_class(training, cfg.class_, cols, where=self.id, logger=ctx.logger)
        if cfg.metric.needs_rows_ge_columns:
            check_rows_per_class(groups, what=f"metric {cfg.metric.name!r}", where=self.id)

        ctx.logger.info(
            "depth • [accent]%s[/accent] • metric=%s • %d class(es) × %d column(s) • rows=%s",
            self.id,
            cfg.metric.name,
            len(groups),
            len(cols),
            ", ".join(f"{k}:{v.shape[0]}" for k, v in groups.items()),
        )
        return DepthStep(cfg, columns=cols, data=groups)

    def bake(self, ctx, new_data: pd.DataFrame) -> pd.DataFrame:
        if not self.trained:
            raise NotTrainedError(f"step {self.id}: bake() called before prep()")
        validate_df(new_data, query_table_contract(self.columns, step_id=self.id), where=self.id)
        query = numeric_matrix(new_data, self.columns)
        metric = self.cfg.metric
        if not metric.deterministic():
            ctx.logger.debug("depth • %s • metric %s is randomized; scores vary between calls", self.id, metric.name)

        scores: Dict[str, np.ndarray] = {}
        for label, train in self.data.items():
            name = f"{self.cfg.prefix}{label}"
            if query.shape[0] == 0:
                scores[name] = np.empty(0, dtype=np.float64)
            else:
                scores[name] = compute_depth(train, query, metric)
        return append_columns(new_data, scores)

    def tidy(self) -> pd.DataFrame:
        if self.trained:
            pairs = [(col, label) for label in self.data for col in self.columns]
            return pd.DataFrame(
                {
                    "terms": [p[0] for p in pairs],
                    "class": [p[1] for p in pairs],
                    "id": self.id,
                }
            )
        terms = list(self.cfg.terms)
        return pd.DataFrame({"terms": terms, "class": pd.Series([None] * len(terms), dtype=object), "id": self.id})

    def describe(self, width: int = 60) -> str:
        head = f"Data depth by {self.cfg.class_} for "
        if self.trained:
            return head + format_names(list(self.columns), width=width) + " [trained]"
        return head + format_names(list(self.cfg.terms), width=width)

    def export_state(self) -> Dict[str, pd.DataFrame]:
        if not self.trained:
            raise NotTrainedError(f"step {self.id}: nothing to export before prep()")
        return {label: pd.DataFrame(mat, columns=list(self.columns)) for label, mat in self.data.items()}

    @classmethod
    def restore(cls, cfg: DepthCfg, state: Mapping[str, pd.DataFrame]) -> "DepthStep":
        if not state:
            raise ArtifactError(f"step {cfg.id}: saved state has no class matrices")
        frames = list(state.values())
        columns = [str(c) for c in frames[0].columns]
        groups: Dict[str, np.ndarray] = {}
        for label, frame in state.items():
            if [str(c) for c in frame.columns] != columns:
                raise ArtifactError(f"step {cfg.id}: class {label!r} was saved with different columns")
            mat = frame.to_numpy(dtype=np.float64, copy=True)
            mat.flags.writeable = False
            groups[str(label)] = mat
        return cls(cfg, columns=columns, data=MappingProxyType(groups))


def step_depth(
    *terms: str,
    class_: Any,
    role: str = "predictor",
    metric: Any = DEFAULT_METRIC,
    options: Optional[Mapping[str, Any]] = None,
    prefix: str = "depth_",
    id: Optional[str] = None,
) -> DepthStep:
    """Build an untrained depth step, e.g. step_depth("all_predictors()", class_="Species")."""
    if not isinstance(class_, str):
        raise ConfigError("`class` should be a single character value.")
    raw: Dict[str, Any] = {
        "terms": list(terms),
        "class": class_,
        "role": role,
        "metric": metric,
        "prefix": prefix,
    }
    if options is not None:
        raw["options"] = options
    if id is not None:
        raw["id"] = id
    return DepthStep.from_config(raw)
