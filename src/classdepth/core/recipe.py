"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/core/recipe.py

A recipe is an ordered tuple of steps plus column roles.

prep() trains each step on the training data as baked by the steps before it,
so a step always sees the columns its predecessors added. bake() replays the
trained steps on new data. Both return new objects; nothing is mutated.
--------------------------------------------------------------------------------
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Callable, Mapping, Optional, Sequence, TypeVar

import pandas as pd
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from classdepth.core.context import RunContext
from classdepth.core.errors import ClassDepthError, ConfigError, ExecutionError, NotTrainedError
from classdepth.core.registry import Step
from classdepth.core.selectors import DEFAULT_ROLE, summarize

T = TypeVar("T")


class Recipe:
    def __init__(
        self,
        steps: Sequence[Step] = (),
        *,
        roles: Optional[Mapping[str, str]] = None,
        ctx: Optional[RunContext] = None,
    ) -> None:
        ids = [s.id for s in steps]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ConfigError(f"Duplicate step id(s) in recipe: {dupes}")
        self.steps: tuple[Step, ...] = tuple(steps)
        self.roles: Mapping[str, str] = MappingProxyType(dict(roles or {}))
        self.ctx = ctx or RunContext()

    @classmethod
    def with_outcomes(cls, *outcomes: str, ctx: Optional[RunContext] = None) -> "Recipe":
        return cls(roles={o: "outcome" for o in outcomes}, ctx=ctx)

    @property
    def trained(self) -> bool:
        return bool(self.steps) and all(s.trained for s in self.steps)

    def add_step(self, step: Step) -> "Recipe":
        if any(s.trained for s in self.steps) or step.trained:
            raise ConfigError("steps cannot be added to a trained recipe")
        return Recipe([*self.steps, step], roles=self.roles, ctx=self.ctx)

    # ---------------- execution ----------------

    @staticmethod
    def _guard(step: Step, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except ClassDepthError:
            raise
        except Exception as e:
            raise ExecutionError(f"step {step.id} crashed: {e}") from e

    def prep(self, training: pd.DataFrame) -> "Recipe":
        if not self.steps:
            raise ConfigError("recipe has no steps to prep")
        log = self.ctx.logger
        roles = dict(self.roles)
        current = training
        trained_steps: list[Step] = []
        n = len(self.steps)
        for ordinal, step in enumerate(self.steps, 1):
            log.info("→ step %s [%d/%d] uses=step/%s", step.id, ordinal, n, step.key)
            info = summarize(current, roles)
            fitted = self._guard(step, lambda: step.prep(self.ctx, current, info))
            baked = self._guard(step, lambda: fitted.bake(self.ctx, current))
            role = getattr(fitted.cfg, "role", DEFAULT_ROLE)
            for col in baked.columns:
                if col not in current.columns:
                    roles[str(col)] = role
            trained_steps.append(fitted)
            current = baked
        log.info("prep • %d step(s) trained on %d row(s)", n, len(training))
        return Recipe(trained_steps, roles=self.roles, ctx=self.ctx)

    def bake(self, new_data: pd.DataFrame) -> pd.DataFrame:
        if not self.trained:
            raise NotTrainedError("recipe must be prepped before bake()")
        current = new_data
        for step in self.steps:
            current = self._guard(step, lambda: step.bake(self.ctx, current))
        return current

    # ---------------- introspection ----------------

    def tidy(self, number: Optional[int] = None) -> pd.DataFrame:
        if number is None:
            return pd.DataFrame(
                {
                    "number": list(range(1, len(self.steps) + 1)),
                    "operation": ["step"] * len(self.steps),
                    "type": [s.key for s in self.steps],
                    "trained": [s.trained for s in self.steps],
                    "id": [s.id for s in self.steps],
                }
            )
        if number < 1 or number > len(self.steps):
            raise ConfigError(f"step number out of range: {number} (valid: 1..{len(self.steps)})")
        return self.steps[number - 1].tidy()

    def __str__(self) -> str:
        lines = [f"Recipe • {len(self.steps)} step(s)"]
        lines += [f"  {i}. {s.describe()}" for i, s in enumerate(self.steps, 1)]
        return "\n".join(lines)

    def describe(self, *, console: Console, width: int = 60) -> None:
        table = Table(
            title="[title]Recipe[/title]",
            title_justify="left",
            header_style="bold",
            box=box.ROUNDED,
            expand=True,
            show_lines=False,
        )
        table.add_column("#", justify="right", style="muted")
        table.add_column("Step ID", style="accent")
        table.add_column("Step")
        table.add_column("Description")
        for i, step in enumerate(self.steps, 1):
            table.add_row(str(i), step.id, f"step/{step.key}", step.describe(width=width))
        outcomes = [c for c, r in self.roles.items() if r == "outcome"]
        subtitle = f"[muted]{len(self.steps)} steps • outcomes: {', '.join(outcomes) or '—'}[/muted]"
        console.print(Panel(table, border_style="accent", box=box.ROUNDED, subtitle=subtitle))
