"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/tests/test_depth_backend.py

End-to-end depth scores computed by the installed data-depth library.
--------------------------------------------------------------------------------
"""

from __future__ import annotations

import logging
from importlib import import_module

import numpy as np
import pandas as pd
import pytest

from classdepth.core.context import RunContext
from classdepth.core.recipe import Recipe
from classdepth.depth.backend import BACKEND_MODULE
from classdepth.depth.metrics import METRICS
from classdepth.steps.depth import step_depth
from classdepth.tests.conftest import PREDICTORS, SPECIES


def _recipe(step) -> Recipe:
    return Recipe.with_outcomes("Species", ctx=RunContext(logger=logging.getLogger("classdepth.tests"))).add_step(step)


def test_mahalanobis_depth_peaks_at_class_mean(iris) -> None:
    trained = _recipe(step_depth("all_predictors()", class_="Species", metric="Mahalanobis")).prep(iris)
    step = trained.steps[0]
    centers = pd.DataFrame([step.data[s].mean(axis=0) for s in SPECIES], columns=PREDICTORS)
    out = trained.bake(pd.concat([iris[PREDICTORS], centers], ignore_index=True))

    for i, sp in enumerate(SPECIES):
        col = out[f"depth_{sp}"]
        assert np.all((col >= 0.0) & (col <= 1.0 + 1e-9))
        assert col.iloc[150 + i] == pytest.approx(col.max())
        assert col.iloc[150 + i] == pytest.approx(1.0, abs=1e-6)


def test_halfspace_scores_own_class_deepest(iris) -> None:
    trained = _recipe(step_depth("starts_with('Sepal')", class_="Species")).prep(iris)
    out = trained.bake(iris)
    a = out.filter(like="depth_")
    b = trained.bake(iris).filter(like="depth_")

    assert list(a.columns) == [f"depth_{s}" for s in SPECIES]
    assert ((a >= 0.0) & (a <= 1.0)).all().all()
    pd.testing.assert_frame_equal(a, b)
    setosa_rows = out["Species"] == "setosa"
    assert a.loc[setosa_rows, "depth_setosa"].mean() > a.loc[setosa_rows, "depth_virginica"].mean()


def test_library_exposes_every_metric() -> None:
    module = import_module(BACKEND_MODULE)
    for cls in METRICS.values():
        assert callable(getattr(module, cls.function, None)), cls.function


@pytest.mark.parametrize("metric", list(METRICS))
def test_every_metric_bakes_with_the_library(iris, metric) -> None:
    trained = _recipe(step_depth("starts_with('Sepal')", class_="Species", metric=metric)).prep(iris)
    out = trained.bake(iris.iloc[::15])

    scores = out[[f"depth_{s}" for s in SPECIES]].to_numpy()
    assert scores.shape == (10, 3)
    assert np.isfinite(scores).all()
    assert (scores >= 0.0).all()
