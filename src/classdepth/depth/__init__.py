"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/depth/__init__.py

Depth metric selection and the library bridge used by the depth step.
--------------------------------------------------------------------------------
"""

from .backend import compute_depth, depth_function
from .metrics import DEFAULT_METRIC, METRICS, Metric, MetricOptions, parse_metric

__all__ = [
    "DEFAULT_METRIC",
    "METRICS",
    "Metric",
    "MetricOptions",
    "compute_depth",
    "depth_function",
    "parse_metric",
]
