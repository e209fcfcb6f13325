from chaosart.core.engine import (
    ChaosEngine,
    EngineAlreadyCreatedError,
    EngineConfig,
    get_engine,
)
from chaosart.core.equation import format_equation, quadratic_map
from chaosart.core.timestep import StepBounds, adjust_rolling_delta, classify_activity
