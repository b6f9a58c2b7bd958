"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/core/registry.py
--------------------------------------------------------------------------------
"""

from __future__ import annotations

import importlib
import inspect
import pkgutil
import secrets
import string
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Sequence, Type

import pandas as pd
from pydantic import BaseModel, ConfigDict, ValidationError

from classdepth.core.errors import ConfigError, RegistryError
from classdepth.core.selectors import ColumnInfo

_ID_ALPHABET = string.ascii_letters + string.digits
# step ids name directories under the state root
STEP_ID_PATTERN = r"^[A-Za-z0-9_.-]+$"


def rand_id(prefix: str) -> str:
    """Default step id: '<prefix>_' + 5 random characters."""
    return f"{prefix}_" + "".join(secrets.choice(_ID_ALPHABET) for _ in range(5))


class StepConfig(BaseModel):
    """Base class for per-step configs (pydantic v2)."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class Step(ABC):
    """Two-phase step: prep() learns state from training data, bake() applies it."""

    key: str  # short unique key; used as 'uses: step/<key>'
    ConfigModel: Type[StepConfig] = StepConfig

    def __init__(self, cfg: StepConfig) -> None:
        self.cfg = cfg

    @classmethod
    def from_config(cls, raw: Mapping[str, Any]) -> "Step":
        try:
            cfg = cls.ConfigModel.model_validate(dict(raw))
        except ValidationError as e:
            raise ConfigError(f"step/{cls.key}: invalid config: {e}") from e
        return cls(cfg)

    @property
    def id(self) -> str:
        return getattr(self.cfg, "id")

    @property
    @abstractmethod
    def trained(self) -> bool:
        """True once prep() has produced this instance."""

    @abstractmethod
    def prep(self, ctx, training: pd.DataFrame, info: Sequence[ColumnInfo]) -> "Step":
        """Return a NEW trained step; never mutate self."""

    @abstractmethod
    def bake(self, ctx, new_data: pd.DataFrame) -> pd.DataFrame:
        """Apply trained state to new_data and return a new frame."""

    @abstractmethod
    def tidy(self) -> pd.DataFrame:
        """Tabular summary of the step's terms / trained state."""

    @abstractmethod
    def describe(self, width: int = 60) -> str:
        """One-line human readable description."""

    @abstractmethod
    def export_state(self) -> Dict[str, pd.DataFrame]:
        """Trained state as named frames (used by the state store)."""

    @classmethod
    @abstractmethod
    def restore(cls, cfg: StepConfig, state: Mapping[str, pd.DataFrame]) -> "Step":
        """Rebuild a trained step from export_state() output."""


class Registry:
    """Built-in steps plus entry-point steps, keyed by Step.key."""

    def __init__(self) -> None:
        self._steps: Dict[str, Type[Step]] = {}

    def register(self, key: str, cls: Type[Step]) -> None:
        if key in self._steps:
            raise RegistryError(f"Duplicate step key 'step/{key}'")
        self._steps[key] = cls

    def steps(self) -> Mapping[str, Type[Step]]:
        return dict(self._steps)

    def keys(self) -> list[str]:
        return sorted(self._steps)

    def resolve(self, uses: str) -> Type[Step]:
        key = uses.split("/", 1)[1] if uses.startswith("step/") else uses
        try:
            return self._steps[key]
        except KeyError:
            available = ", ".join(f"step/{k}" for k in self.keys())
            raise RegistryError(f"Unknown step '{uses}'. Installed: {available}") from None


_DEFAULT: Optional[Registry] = None


def load_entry_points() -> Registry:
    """Register built-in steps by scanning the package, then external ones via entry points."""
    import importlib.metadata as md

    reg = Registry()

    try:
        import classdepth.steps as pkg
    except Exception as e:
        raise RegistryError(
            "Failed to import built-in steps package 'classdepth.steps'. "
            "Ensure the package is installed and includes the 'steps' subpackage."
        ) from e

    discovered = 0
    for modinfo in pkgutil.walk_packages(pkg.__path__, pkg.__name__ + "."):
        module = importlib.import_module(modinfo.name)
        for _, obj in inspect.getmembers(module, inspect.isclass):
            if issubclass(obj, Step) and obj is not Step and not inspect.isabstract(obj):
                # classes are re-exported across modules; register each once
                if obj.__module__ != module.__name__:
                    continue
                reg.register(obj.key, obj)
                discovered += 1
    if discovered == 0:
        raise RegistryError("No built-in steps were discovered under 'classdepth.steps'.")

    for ep in md.entry_points(group="classdepth.steps"):
        cls = ep.load()
        if not (inspect.isclass(cls) and issubclass(cls, Step)):
            raise RegistryError(f"Entry point {ep.name} in classdepth.steps is not a Step subclass")
        reg.register(cls.key, cls)

    return reg


def default_registry() -> Registry:
    global _DEFAULT
    if _DEFAULT is None:
        _DEFAULT = load_entry_points()
    return _DEFAULT
