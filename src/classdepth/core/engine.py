"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/core/engine.py
--------------------------------------------------------------------------------
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pandas as pd
from rich import box
from rich.console import Console
from rich.panel import Panel

from classdepth.core.artifacts import StateStore
from classdepth.core.config_model import RecipeSpec, build_recipe
from classdepth.core.context import RunContext
from classdepth.core.recipe import Recipe
from classdepth.core.registry import Registry
from classdepth.utils.console import make_console
from classdepth.utils.fs import ensure_dir, read_table, write_table
from classdepth.utils.logging import setup_logging


@dataclass(frozen=True)
class RunResult:
    recipe: Recipe
    baked_path: Path
    tidy_path: Path
    state_dir: Optional[Path]


def tidy_all(recipe: Recipe) -> pd.DataFrame:
    """Every step's tidy() stacked, with the 1-based step number in front."""
    frames = [recipe.tidy(i).assign(number=i) for i in range(1, len(recipe.steps) + 1)]
    out = pd.concat(frames, ignore_index=True)
    return out[["number", *[c for c in out.columns if c != "number"]]]


def explain(spec: RecipeSpec, *, console: Console, registry: Optional[Registry] = None) -> None:
    recipe = build_recipe(spec, registry=registry)
    recipe.describe(console=console)


def validate(spec: RecipeSpec, *, console: Console, registry: Optional[Registry] = None) -> None:
    # schema already validated by pydantic; here each step config is validated against its model
    build_recipe(spec, registry=registry)
    console.print(Panel.fit("✓ Config validated", border_style="ok", box=box.ROUNDED))


def run_job(
    spec_path: Path,
    *,
    log_level: str = "INFO",
    save_state: bool = True,
    console: Optional[Console] = None,
    registry: Optional[Registry] = None,
) -> RunResult:
    spec = RecipeSpec.load(spec_path)
    out_dir = ensure_dir(Path(spec.outputs).resolve())
    console = console or make_console()
    logger = setup_logging(out_dir, level=log_level, console=console)
    ctx = RunContext(logger=logger, outputs_dir=out_dir)

    recipe = build_recipe(spec, registry=registry, ctx=ctx)
    training = read_table(spec.data.training, categorical=spec.data.categorical)
    logger.info("training • [path]%s[/path] • %d row(s) × %d column(s)", spec.data.training, *training.shape)

    trained = recipe.prep(training)
    if spec.data.new_data:
        new_data = read_table(spec.data.new_data, categorical=spec.data.categorical)
    else:
        new_data = training
    baked = trained.bake(new_data)

    baked_path = write_table(baked, out_dir / "baked.csv")
    tidy_path = write_table(tidy_all(trained), out_dir / "tidy.csv")
    state_dir = None
    if save_state:
        state_dir = out_dir / "state"
        StateStore(state_dir).save(trained)

    console.print(Panel.fit(f"✓ Done — outputs in [path]{out_dir}[/path]", border_style="ok", box=box.ROUNDED))
    return RunResult(recipe=trained, baked_path=baked_path, tidy_path=tidy_path, state_dir=state_dir)


def bake_saved(
    state_dir: Path,
    data_path: Path,
    out_path: Path,
    *,
    categorical: tuple[str, ...] = (),
    registry: Optional[Registry] = None,
) -> Path:
    recipe = StateStore(state_dir).load(registry=registry)
    baked = recipe.bake(read_table(data_path, categorical=categorical))
    return write_table(baked, out_path)
