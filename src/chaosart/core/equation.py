"""
Quadratic chaos equations.

Both equations share the basis [x², y², t², xy, xt, yt, x, y, t]. The first
nine coefficients drive x', the last nine drive y'.
"""

from typing import Sequence, Tuple

import numpy as np

BASIS_LABELS: Tuple[str, ...] = ("x²", "y²", "t²", "xy", "xt", "yt", "x", "y", "t")
NUM_TERMS = len(BASIS_LABELS)
NUM_COEFFICIENTS = 2 * NUM_TERMS


def random_coefficients(rng: np.random.Generator) -> np.ndarray:
    """Draw 18 integer coefficients uniformly from {-1, 0, 1}."""
    return rng.integers(-1, 2, NUM_COEFFICIENTS).astype(np.float64)


def quadratic_map(params: np.ndarray, x, y, t):
    """
    Apply one step of the map to scalars or numpy arrays.

    Args:
        params: 18 coefficients.
        x, y: Current coordinates (broadcastable).
        t: Time parameter (broadcastable).

    Returns:
        Tuple (x', y').
    """
    xx, yy, tt = x * x, y * y, t * t
    xy, xt, yt = x * y, x * t, y * t
    p = params
    new_x = (
        xx * p[0] + yy * p[1] + tt * p[2]
        + xy * p[3] + xt * p[4] + yt * p[5]
        + x * p[6] + y * p[7] + t * p[8]
    )
    new_y = (
        xx * p[9] + yy * p[10] + tt * p[11]
        + xy * p[12] + xt * p[13] + yt * p[14]
        + x * p[15] + y * p[16] + t * p[17]
    )
    return new_x, new_y


def format_terms(coefficients: Sequence[float]) -> str:
    """Render the right-hand side of a single equation."""
    parts = []
    for coef, label in zip(coefficients, BASIS_LABELS):
        if coef == 0:
            continue
        if coef < 0:
            sign = " - "
        else:
            sign = " + " if parts else ""
        magnitude = abs(coef)
        parts.append(sign + ("" if magnitude == 1 else f"{magnitude:g}") + label)
    return "".join(parts)


def format_equation(params: Sequence[float]) -> str:
    """Compose the two-line "x' = ..." / "y' = ..." description."""
    if len(params) != NUM_COEFFICIENTS:
        raise ValueError(
            f"Expected {NUM_COEFFICIENTS} coefficients, got {len(params)}"
        )
    x_eq = "x' = " + format_terms(params[:NUM_TERMS])
    y_eq = "y' = " + format_terms(params[NUM_TERMS:])
    return x_eq + "\n" + y_eq
