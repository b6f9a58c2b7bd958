"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/core/config_model.py

YAML recipe configuration:

  recipe:
    outcomes: [Species]
  data:
    training: ./data/train.csv
    new_data: ./data/new.csv        # optional; training data is baked when omitted
    categorical: [Species]          # optional; cast to pandas 'category' on read
  outputs: ./outputs
  steps:
    - id: depth
      uses: step/depth
      with:
        terms: ["all_predictors()"]
        class: Species
        metric: {name: Mahalanobis}
--------------------------------------------------------------------------------
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from classdepth.core.context import RunContext
from classdepth.core.errors import ConfigError
from classdepth.core.recipe import Recipe
from classdepth.core.registry import STEP_ID_PATTERN, Registry, default_registry


class StepSpec(BaseModel):
    id: str = Field(pattern=STEP_ID_PATTERN)
    uses: str
    with_: Dict[str, Any] = Field(default_factory=dict, alias="with")

    model_config = {"populate_by_name": True, "extra": "forbid"}


class DataSpec(BaseModel):
    training: str
    new_data: Optional[str] = None
    categorical: List[str] = Field(default_factory=list)

    model_config = {"extra": "forbid"}


class RecipeSection(BaseModel):
    outcomes: List[str] = Field(default_factory=list)

    model_config = {"extra": "forbid"}


class RecipeSpec(BaseModel):
    recipe: RecipeSection = Field(default_factory=RecipeSection)
    data: DataSpec
    outputs: str = "./outputs"
    steps: List[StepSpec]
    root: str = "."

    model_config = {"extra": "forbid"}

    @field_validator("steps", mode="after")
    @classmethod
    def _validate_steps(cls, v: List[StepSpec]) -> List[StepSpec]:
        if not v:
            raise ValueError("at least one step is required")
        ids = [s.id for s in v]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValueError(f"duplicate step id(s): {dupes}")
        return v

    @classmethod
    def load(cls, path: Path) -> "RecipeSpec":
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"cannot read config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top level must be a mapping")
        # Normalize relative paths to the config file directory
        root = path.parent.resolve()

        def _fix(p: Any) -> Any:
            if isinstance(p, str) and not Path(p).is_absolute():
                return str((root / p).resolve())
            return p

        data["root"] = str(root)
        if isinstance(data.get("data"), dict):
            for k in ("training", "new_data"):
                if k in data["data"]:
                    data["data"][k] = _fix(data["data"][k])
        data["outputs"] = _fix(data.get("outputs", "./outputs"))
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"{path}: invalid config: {e}") from e


def build_recipe(
    spec: RecipeSpec,
    *,
    registry: Optional[Registry] = None,
    ctx: Optional[RunContext] = None,
) -> Recipe:
    registry = registry or default_registry()
    recipe = Recipe.with_outcomes(*spec.recipe.outcomes, ctx=ctx)
    for s in spec.steps:
        cls = registry.resolve(s.uses)
        raw = dict(s.with_)
        if raw.get("id", s.id) != s.id:
            raise ConfigError(f"step {s.id}: 'with.id' ({raw['id']!r}) must match the step id")
        raw["id"] = s.id
        try:
            step = cls.from_config(raw)
        except ConfigError as e:
            raise ConfigError(f"step {s.id}: {e}") from e
        recipe = recipe.add_step(step)
    return recipe
