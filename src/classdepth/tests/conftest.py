"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/tests/conftest.py
--------------------------------------------------------------------------------
"""

from __future__ import annotations

from types import SimpleNamespace

import numpy as np
import pandas as pd
import pytest

from classdepth.depth import backend
from classdepth.depth.metrics import METRICS

SPECIES = ["setosa", "versicolor", "virginica"]
PREDICTORS = ["Sepal.Length", "Sepal.Width", "Petal.Length", "Petal.Width"]


def make_iris(seed: int = 7) -> pd.DataFrame:
    """150 rows, 4 numeric predictors, 3 species × 50 rows (iris-shaped, synthetic)."""
    rng = np.random.default_rng(seed)
    centers = {
        "setosa": [5.0, 3.4, 1.5, 0.2],
        "versicolor": [5.9, 2.8, 4.3, 1.3],
        "virginica": [6.6, 3.0, 5.5, 2.0],
    }
    frames = []
    for sp in SPECIES:
        values = rng.normal(loc=centers[sp], scale=[0.35, 0.3, 0.4, 0.2], size=(50, 4))
        part = pd.DataFrame(values, columns=PREDICTORS)
        part["Species"] = sp
        frames.append(part)
    df = pd.concat(frames, ignore_index=True)
    df["Species"] = pd.Categorical(df["Species"], categories=SPECIES)
    return df


@pytest.fixture
def iris() -> pd.DataFrame:
    return make_iris()


@pytest.fixture
def fake_backend(monkeypatch):
    """
    Replace depth.model.multivariate with inverse-squared-distance-to-centroid functions.
    Every call is recorded (function, x, data, kwargs).
    """
    calls = []

    def _make(name):
        def fn(x, data, **kwargs):
            calls.append(SimpleNamespace(function=name, x=x, data=data, kwargs=kwargs))
            center = data.mean(axis=0)
            return 1.0 / (1.0 + ((x - center) ** 2).sum(axis=1))

        return fn

    module = SimpleNamespace(**{cls.function: _make(cls.function) for cls in METRICS.values()})
    monkeypatch.setattr(backend, "_load_module", lambda: module)
    return calls
