"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/tests/test_config_validation.py

Validation tests for YAML recipe loading and step construction.
--------------------------------------------------------------------------------
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from rich.console import Console

from classdepth.core.config_model import RecipeSpec, build_recipe
from classdepth.core.engine import validate as validate_job
from classdepth.core.errors import ConfigError, RegistryError
from classdepth.core.registry import Registry, default_registry
from classdepth.steps.classdist import ClassDistance
from classdepth.steps.depth import DepthStep
from classdepth.utils.console import THEME


def _write_config(tmp_path: Path, payload) -> Path:
    path = tmp_path / "config.yaml"
    if isinstance(payload, str):
        path.write_text(payload, encoding="utf-8")
    else:
        path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
    return path


def _base_config() -> dict:
    return {
        "recipe": {"outcomes": ["Species"]},
        "data": {"training": "./train.csv", "categorical": ["Species"]},
        "outputs": "./outputs",
        "steps": [
            {
                "id": "depth",
                "uses": "step/depth",
                "with": {"terms": ["all_predictors()"], "class": "Species", "metric": {"name": "zonoid", "seed": 1}},
            }
        ],
    }


def test_load_rejects_non_mapping(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "- just\n- a\n- list\n")
    with pytest.raises(ConfigError, match="mapping"):
        RecipeSpec.load(path)


def test_load_resolves_paths_against_config_dir(tmp_path: Path) -> None:
    spec = RecipeSpec.load(_write_config(tmp_path, _base_config()))
    assert Path(spec.data.training) == (tmp_path / "train.csv").resolve()
    assert Path(spec.outputs) == (tmp_path / "outputs").resolve()
    assert spec.data.new_data is None


def test_load_rejects_unknown_keys(tmp_path: Path) -> None:
    data = _base_config()
    data["plots"] = []
    with pytest.raises(ConfigError, match="invalid config"):
        RecipeSpec.load(_write_config(tmp_path, data))


def test_steps_required_and_unique(tmp_path: Path) -> None:
    data = _base_config()
    data["steps"] = []
    with pytest.raises(ConfigError, match="at least one step"):
        RecipeSpec.load(_write_config(tmp_path, data))

    data = _base_config()
    data["steps"] = data["steps"] * 2
    with pytest.raises(ConfigError, match="duplicate step id"):
        RecipeSpec.load(_write_config(tmp_path, data))


def test_build_recipe_injects_ids_and_roles(tmp_path: Path) -> None:
    data = _base_config()
    data["steps"].append({"id": "dist", "uses": "classdist", "with": {"terms": ["all_predictors()"], "class": "Species"}})
    recipe = build_recipe(RecipeSpec.load(_write_config(tmp_path, data)))
    assert [s.id for s in recipe.steps] == ["depth", "dist"]
    assert isinstance(recipe.steps[0], DepthStep)
    assert isinstance(recipe.steps[1], ClassDistance)
    assert recipe.steps[0].cfg.metric.seed == 1
    assert dict(recipe.roles) == {"Species": "outcome"}


def test_with_id_must_match(tmp_path: Path) -> None:
    data = _base_config()
    data["steps"][0]["with"]["id"] = "other"
    with pytest.raises(ConfigError, match="must match the step id"):
        build_recipe(RecipeSpec.load(_write_config(tmp_path, data)))


def test_step_config_errors_name_the_step(tmp_path: Path) -> None:
    data = _base_config()
    data["steps"][0]["with"]["metric"] = "projection"
    with pytest.raises(ConfigError, match="step depth: unknown depth metric"):
        build_recipe(RecipeSpec.load(_write_config(tmp_path, data)))

    data = _base_config()
    data["steps"][0]["with"]["colour"] = "red"
    with pytest.raises(ConfigError, match="step depth: step/depth: invalid config"):
        build_recipe(RecipeSpec.load(_write_config(tmp_path, data)))


def test_unknown_step_is_a_registry_error(tmp_path: Path) -> None:
    data = _base_config()
    data["steps"][0]["uses"] = "step/projection"
    with pytest.raises(RegistryError, match="step/projection"):
        build_recipe(RecipeSpec.load(_write_config(tmp_path, data)))


def test_registry_discovers_built_ins() -> None:
    steps = default_registry().steps()
    assert steps["depth"] is DepthStep
    assert steps["classdist"] is ClassDistance
    assert default_registry().resolve("step/depth") is DepthStep
    assert default_registry().keys() == ["classdist", "depth"]


def test_registry_rejects_duplicate_keys() -> None:
    reg = Registry()
    reg.register("depth", DepthStep)
    with pytest.raises(RegistryError, match="Duplicate"):
        reg.register("depth", ClassDistance)


def test_validate_prints_confirmation(tmp_path: Path) -> None:
    console = Console(width=80, record=True, theme=THEME)
    validate_job(RecipeSpec.load(_write_config(tmp_path, _base_config())), console=console)
    assert "Config validated" in console.export_text()


def test_step_ids_must_be_directory_safe(tmp_path: Path) -> None:
    data = _base_config()
    data["steps"][0]["id"] = "../outside"
    with pytest.raises(ConfigError, match="invalid config"):
        RecipeSpec.load(_write_config(tmp_path, data))
    with pytest.raises(ConfigError):
        ClassDistance.from_config({"terms": ["x"], "class": "g", "id": "a/b"})
