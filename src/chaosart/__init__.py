"""
chaosart: animated visualizer for randomized quadratic chaos equations.

The engine iterates x' = f(x, y, t), y' = g(x, y, t) with coefficients drawn
from {-1, 0, 1}, keeps a fading point history and re-rolls the equation when
its clock runs out. The render package turns that history into frames.
"""

__version__ = "0.1.0"

from chaosart.core.engine import (
    ChaosEngine,
    EngineAlreadyCreatedError,
    EngineConfig,
    get_engine,
)
from chaosart.core.equation import format_equation
from chaosart.render.rasterizer import PointRasterizer, RenderConfig
