"""
Adaptive time-step controller.

The macro clock increment ("rolling delta") is nudged every frame toward one
of three targets depending on how many points survived view culling. Every
update is an exponential relaxation toward a target inside the bounds, so the
delta never leaves [minimum, maximum] without an explicit clamp.
"""

from dataclasses import dataclass

LOW = "low"
MEDIUM = "medium"
HIGH = "high"
SATURATED = "saturated"

# Relaxation rates per frame
_RATE_UP = 0.1
_RATE_DOWN = 0.25

# Half-width of the "clustered near zero" band
_CLUSTER_BAND = 0.05


@dataclass(frozen=True)
class StepBounds:
    """Base increment and the bounds the rolling delta stays within."""
    base: float
    minimum: float
    maximum: float

    @classmethod
    def from_base(cls, base: float) -> "StepBounds":
        return cls(base=base, minimum=base / 15.0, maximum=base * 7.0)

    def __post_init__(self):
        if not 0.0 < self.minimum <= self.base <= self.maximum:
            raise ValueError(
                "Step bounds must satisfy 0 < minimum <= base <= maximum, got "
                f"minimum={self.minimum}, base={self.base}, maximum={self.maximum}"
            )


def _relax(current: float, target: float, rate: float) -> float:
    return current + (target - current) * rate


def classify_activity(point_count: int, iterations_per_frame: int, num_points: int) -> str:
    """Map a frame's kept-point count to an activity band."""
    low_limit = iterations_per_frame * 6
    high_start = iterations_per_frame * 24
    ceiling = num_points * iterations_per_frame * 24

    if point_count <= low_limit or point_count == num_points * iterations_per_frame * 2:
        return LOW
    if low_limit < point_count < high_start:
        return MEDIUM
    if high_start <= point_count < ceiling:
        return HIGH
    return SATURATED


def is_low_activity(current_min: float, strict: bool = False) -> bool:
    """
    Whether the last frame's minimum coordinate counts as clustered near zero.

    The default form ORs two complementary comparisons and therefore holds for
    every value, infinities included. ``strict`` selects the narrow band.
    """
    if strict:
        return -_CLUSTER_BAND < current_min < _CLUSTER_BAND
    return current_min > -_CLUSTER_BAND or current_min < _CLUSTER_BAND


def adjust_rolling_delta(
    rolling_delta: float,
    point_count: int,
    current_min: float,
    bounds: StepBounds,
    iterations_per_frame: int,
    num_points: int,
    strict: bool = False,
) -> float:
    """
    Return the next rolling delta for a frame that kept ``point_count`` points.

    The near-zero check runs first, then the banded adjustment; both may fire
    in the same frame.
    """
    delta = rolling_delta

    if is_low_activity(current_min, strict) and delta < bounds.maximum:
        delta = _relax(delta, bounds.maximum, _RATE_UP)

    band = classify_activity(point_count, iterations_per_frame, num_points)
    if band == LOW:
        if delta < bounds.maximum:
            delta = _relax(delta, bounds.maximum, _RATE_UP)
    elif band == MEDIUM:
        if delta > bounds.base:
            delta = _relax(delta, bounds.base, _RATE_DOWN)
        if delta < bounds.base:
            delta = _relax(delta, bounds.base, _RATE_UP)
    elif band == HIGH:
        if delta > bounds.minimum:
            delta = _relax(delta, bounds.minimum, _RATE_DOWN)

    return delta
