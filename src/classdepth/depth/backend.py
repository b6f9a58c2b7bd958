"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/depth/backend.py

Thin bridge to the `data-depth` library (import name `depth.model.multivariate`).
The reference sample goes in as `data=`, the query points as `x=`.
--------------------------------------------------------------------------------
"""

from __future__ import annotations

from importlib import import_module
from types import ModuleType
from typing import Callable

import numpy as np

from classdepth.core.errors import BackendError
from classdepth.depth.metrics import MetricOptions

BACKEND_MODULE = "depth.model.multivariate"


def _load_module() -> ModuleType:
    try:
        return import_module(BACKEND_MODULE)
    except ImportError as e:
        raise BackendError(
            f"depth metrics need the 'data-depth>=1.1' distribution (import {BACKEND_MODULE!r} failed: {e})"
        ) from e


def depth_function(metric: MetricOptions) -> Callable[..., object]:
    module = _load_module()
    fn = getattr(module, metric.function, None)
    if fn is None or not callable(fn):
        raise BackendError(f"{BACKEND_MODULE} has no depth function {metric.function!r}")
    return fn


def compute_depth(train: np.ndarray, query: np.ndarray, metric: MetricOptions) -> np.ndarray:
    """One depth value per query row, relative to the `train` sample."""
    fn = depth_function(metric)
    out = np.asarray(fn(x=query, data=train, **metric.kwargs()), dtype=np.float64).reshape(-1)
    if out.shape[0] != query.shape[0]:
        raise BackendError(
            f"{BACKEND_MODULE}.{metric.function} returned {out.shape[0]} value(s) for {query.shape[0]} query row(s)"
        )
    return out
