"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/depth/metrics.py

The six depth metrics as a closed, discriminated set of option models.

Each model names the `depth.model.multivariate` function it dispatches to and carries
only the options that function accepts. Options left unset are not forwarded,
so the library's own defaults apply.
--------------------------------------------------------------------------------
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, ClassVar, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from classdepth.core.errors import ConfigError

MahEstimate = Literal["moment", "MCD", "none"]


class MetricOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    function: ClassVar[str]
    # covariance-based metrics need at least as many rows per class as columns
    needs_rows_ge_columns: ClassVar[bool] = False

    def kwargs(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"name"}, exclude_none=True)

    def deterministic(self) -> bool:
        """False when the options ask the library for a randomized approximation."""
        return getattr(self, "exact", None) is not False


class Halfspace(MetricOptions):
    name: Literal["halfspace"] = "halfspace"
    function: ClassVar[str] = "halfspace"

    exact: Optional[bool] = None
    method: Optional[Literal["recursive", "plane", "line"]] = None
    solver: Optional[str] = None
    NRandom: Optional[int] = Field(default=None, gt=0)
    numDirections: Optional[int] = Field(default=None, gt=0)


class Mahalanobis(MetricOptions):
    name: Literal["Mahalanobis"] = "Mahalanobis"
    function: ClassVar[str] = "mahalanobis"
    needs_rows_ge_columns: ClassVar[bool] = True

    mah_estimate: Optional[MahEstimate] = None
    mah_parMcd: Optional[float] = Field(default=None, gt=0.0, le=1.0)


class Potential(MetricOptions):
    name: Literal["potential"] = "potential"
    function: ClassVar[str] = "potential"

    pretransform: Optional[Literal["1Mom", "NMom", "1MCD", "NMCD"]] = None
    kernel: Optional[str] = None
    kernel_bandwidth: Optional[float] = Field(default=None, ge=0.0)
    mah_parMcd: Optional[float] = Field(default=None, gt=0.0, le=1.0)


class SimplicialVolume(MetricOptions):
    name: Literal["simplicialVolume"] = "simplicialVolume"
    function: ClassVar[str] = "simplicialVolume"
    needs_rows_ge_columns: ClassVar[bool] = True

    exact: Optional[bool] = None
    k: Optional[float] = Field(default=None, gt=0.0)
    mah_estimate: Optional[MahEstimate] = None
    mah_parMCD: Optional[float] = Field(default=None, gt=0.0, le=1.0)


class Spatial(MetricOptions):
    name: Literal["spatial"] = "spatial"
    function: ClassVar[str] = "spatial"

    mah_estimate: Optional[MahEstimate] = None
    mah_parMcd: Optional[float] = Field(default=None, gt=0.0, le=1.0)


class Zonoid(MetricOptions):
    name: Literal["zonoid"] = "zonoid"
    function: ClassVar[str] = "zonoid"

    seed: Optional[int] = None
    exact: Optional[bool] = None
    solver: Optional[str] = None


Metric = Annotated[
    Union[Halfspace, Mahalanobis, Potential, SimplicialVolume, Spatial, Zonoid],
    Field(discriminator="name"),
]

METRICS: Dict[str, type[MetricOptions]] = {
    cls.model_fields["name"].default: cls
    for cls in (Halfspace, Mahalanobis, Potential, SimplicialVolume, Spatial, Zonoid)
}

DEFAULT_METRIC = "halfspace"

_ADAPTER: TypeAdapter = TypeAdapter(Metric)


def parse_metric(value: Any = DEFAULT_METRIC, options: Optional[Mapping[str, Any]] = None) -> MetricOptions:
    """
    Accepts a MetricOptions instance, a metric name (+ optional options mapping),
    or a mapping with a 'name' key.
    """
    if isinstance(value, MetricOptions):
        if options:
            raise ConfigError("metric options must be set on the metric model, not passed separately")
        return value
    if isinstance(value, str):
        payload: Dict[str, Any] = {"name": value, **dict(options or {})}
    elif isinstance(value, Mapping):
        payload = {**dict(value), **dict(options or {})}
        payload.setdefault("name", DEFAULT_METRIC)
    else:
        raise ConfigError(f"metric must be a name or a mapping, got {type(value).__name__}")

    if payload["name"] not in METRICS:
        raise ConfigError(f"unknown depth metric {payload['name']!r}. Known: {', '.join(METRICS)}")
    try:
        return _ADAPTER.validate_python(payload)
    except ValidationError as e:
        raise ConfigError(f"invalid options for metric {payload['name']!r}: {e}") from e
