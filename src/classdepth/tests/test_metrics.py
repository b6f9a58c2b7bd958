"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/tests/test_metrics.py
--------------------------------------------------------------------------------
"""

from __future__ import annotations

from types import SimpleNamespace

import numpy as np
import pytest

from classdepth.core.errors import BackendError, ConfigError
from classdepth.depth import backend
from classdepth.depth.metrics import (
    DEFAULT_METRIC,
    METRICS,
    Halfspace,
    Mahalanobis,
    SimplicialVolume,
    Zonoid,
    parse_metric,
)
from classdepth.steps.depth import DepthCfg


def test_six_metrics_are_known() -> None:
    assert set(METRICS) == {"halfspace", "Mahalanobis", "potential", "simplicialVolume", "spatial", "zonoid"}
    assert DEFAULT_METRIC == "halfspace"


def test_parse_by_name_and_mapping() -> None:
    assert isinstance(parse_metric(), Halfspace)
    assert isinstance(parse_metric("Mahalanobis"), Mahalanobis)
    m = parse_metric({"name": "zonoid", "seed": 5})
    assert isinstance(m, Zonoid)
    assert m.seed == 5


def test_parse_merges_separate_options() -> None:
    m = parse_metric("simplicialVolume", {"k": 0.5})
    assert isinstance(m, SimplicialVolume)
    assert m.kwargs() == {"k": 0.5}


def test_metric_names_are_case_sensitive() -> None:
    with pytest.raises(ConfigError, match="unknown depth metric"):
        parse_metric("mahalanobis")


def test_unknown_option_is_rejected() -> None:
    with pytest.raises(ConfigError, match="invalid options for metric 'halfspace'"):
        parse_metric("halfspace", {"seed": 1})


def test_option_values_are_validated() -> None:
    with pytest.raises(ConfigError):
        parse_metric("Mahalanobis", {"mah_estimate": "robust"})
    with pytest.raises(ConfigError):
        parse_metric("halfspace", {"NRandom": 0})


def test_instance_and_separate_options_conflict() -> None:
    with pytest.raises(ConfigError):
        parse_metric(Zonoid(), {"seed": 1})


def test_kwargs_forward_only_set_options() -> None:
    assert Halfspace().kwargs() == {}
    assert Halfspace(exact=False, NRandom=500).kwargs() == {"exact": False, "NRandom": 500}


def test_randomized_options_are_flagged() -> None:
    assert Halfspace().deterministic()
    assert not Halfspace(exact=False).deterministic()
    assert Mahalanobis().deterministic()


def test_rows_ge_columns_requirement() -> None:
    needs = {name for name, cls in METRICS.items() if cls.needs_rows_ge_columns}
    assert needs == {"Mahalanobis", "simplicialVolume"}


def test_step_config_folds_legacy_options() -> None:
    cfg = DepthCfg.model_validate(
        {"terms": ["all_predictors()"], "class": "Species", "metric": "zonoid", "options": {"seed": 9}}
    )
    assert isinstance(cfg.metric, Zonoid)
    assert cfg.metric.seed == 9


def test_step_config_default_metric_and_id() -> None:
    cfg = DepthCfg.model_validate({"terms": ["x"], "class": "g"})
    assert isinstance(cfg.metric, Halfspace)
    assert cfg.prefix == "depth_"
    assert cfg.id.startswith("depth_")
    other = DepthCfg.model_validate({"terms": ["x"], "class": "g"})
    assert other.id != cfg.id


def test_missing_library_is_a_backend_error(monkeypatch) -> None:
    def _missing(name):
        raise ImportError(f"No module named {name!r}")

    monkeypatch.setattr(backend, "import_module", _missing)
    with pytest.raises(BackendError, match="data-depth"):
        backend.compute_depth(np.zeros((3, 2)), np.zeros((1, 2)), Halfspace())


def test_wrong_result_length_is_a_backend_error(monkeypatch) -> None:
    module = SimpleNamespace(halfspace=lambda x, data, **kw: np.zeros(len(x) + 1))
    monkeypatch.setattr(backend, "_load_module", lambda: module)
    with pytest.raises(BackendError, match="returned 3 value"):
        backend.compute_depth(np.zeros((5, 2)), np.zeros((2, 2)), Halfspace())


def test_compute_depth_returns_float_vector(fake_backend) -> None:
    train = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0]])
    out = backend.compute_depth(train, np.array([[1.0, 1.0], [5.0, 5.0]]), Halfspace())
    assert out.dtype == np.float64
    assert out.shape == (2,)
    assert out[0] > out[1]
