"""
Post-processing for rasterized point clouds.

Multi-scale bloom on the HDR accumulation buffer, ACES filmic tone mapping
down to [0, 1], and a radial vignette on the final uint8 frame.
"""

import numpy as np
from scipy.ndimage import gaussian_filter


def bloom(accum: np.ndarray, radius: float = 1.5) -> np.ndarray:
    """
    Add a glowing core, soft halo and wide corona around bright pixels.

    Args:
        accum: (H, W, 3) float32 HDR buffer.
        radius: Sigma of the tightest blur layer in pixels.

    Returns:
        (H, W, 3) float32 buffer with glow added.
    """
    if radius <= 0:
        return accum

    sigma = float(radius)
    core = gaussian_filter(accum, sigma=[sigma, sigma, 0])
    halo = gaussian_filter(accum, sigma=[sigma * 3.0, sigma * 3.0, 0])
    corona = gaussian_filter(accum, sigma=[sigma * 8.0, sigma * 8.0, 0])
    return accum + 0.7 * core + 0.4 * halo + 0.15 * corona


def aces_tone_map(hdr: np.ndarray, exposure: float = 1.0) -> np.ndarray:
    """
    Hill (2015) ACES approximation.

    Args:
        hdr: Float array of non-negative radiance values.
        exposure: Multiplier applied before the curve.

    Returns:
        Float32 array in [0, 1], same shape as ``hdr``.
    """
    x = hdr * exposure
    a, b, c, d, e = 2.51, 0.03, 2.43, 0.59, 0.14
    return np.clip((x * (a * x + b)) / (x * (c * x + d) + e), 0.0, 1.0).astype(np.float32)


def vignette(
    frame: np.ndarray,
    strength: float = 0.4,
) -> np.ndarray:
    """
    Apply radial vignette darkening.

    Args:
        frame: (H, W, 3) uint8.
        strength: Vignette darkness (0 = none, 1 = full black at edges).

    Returns:
        (H, W, 3) uint8.
    """
    if strength <= 0:
        return frame

    h, w = frame.shape[:2]
    cy, cx = h / 2, w / 2
    max_r = np.sqrt(cx ** 2 + cy ** 2)

    y = np.arange(h, dtype=np.float32) - cy
    x = np.arange(w, dtype=np.float32) - cx
    xg, yg = np.meshgrid(x, y)
    r = np.sqrt(xg ** 2 + yg ** 2) / max_r

    vign = 1.0 - np.clip(r * strength, 0, 1) ** 2
    vign = vign[:, :, np.newaxis]

    return (frame.astype(np.float32) * vign).astype(np.uint8)
