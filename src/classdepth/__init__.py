"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/__init__.py

Class-specific data depth as a two-phase (prep/bake) recipe step.
--------------------------------------------------------------------------------
"""

from classdepth.core.context import RunContext
from classdepth.core.recipe import Recipe
from classdepth.steps.classdist import ClassDistance
from classdepth.steps.depth import DepthStep, step_depth

__version__ = "0.1.0"

__all__ = ["ClassDistance", "DepthStep", "Recipe", "RunContext", "step_depth", "__version__"]
