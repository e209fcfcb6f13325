"""
Headless point renderer.

Takes the engine's point history (clip-space coordinates in [-1, 1]) and the
matching RGBA rows of its color table, scatters every point into an HDR
accumulation buffer weighted by its alpha, then blooms, tone maps and
vignettes the result into an RGB frame.
"""

from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple

import numpy as np

from chaosart.core.engine import ChaosEngine
from chaosart.render.colorgrade import aces_tone_map, bloom, vignette


@dataclass
class RenderConfig:
    """Output frame settings."""
    width: int = 1280
    height: int = 720
    fps: int = 60

    glow_enabled: bool = True
    glow_radius: float = 1.5
    exposure: float = 1.6
    point_brightness: float = 1.0
    vignette_strength: float = 0.25
    background: Tuple[int, int, int] = (0, 0, 0)

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Frame size must be positive, got {self.width}x{self.height}")
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps}")


class PointRasterizer:
    """Turns (points, colors) pairs into (H, W, 3) uint8 frames."""

    def __init__(self, config: Optional[RenderConfig] = None):
        self.cfg = config or RenderConfig()
        bg = np.asarray(self.cfg.background, dtype=np.float32) / 255.0
        self._background = bg.reshape(1, 1, 3)

    def to_pixels(self, points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Map clip-space points to pixel coordinates (y axis pointing up)."""
        W, H = self.cfg.width, self.cfg.height
        x_px = (points[:, 0] + 1.0) * 0.5 * (W - 1)
        y_px = (1.0 - points[:, 1]) * 0.5 * (H - 1)
        return x_px, y_px

    def _splat(self, x_px: np.ndarray, y_px: np.ndarray, rgb: np.ndarray, accum: np.ndarray) -> None:
        """Bilinear scatter via np.add.at."""
        H, W = accum.shape[:2]
        x0 = np.floor(x_px).astype(np.int64)
        y0 = np.floor(y_px).astype(np.int64)
        fx = (x_px - x0).astype(np.float32)
        fy = (y_px - y0).astype(np.float32)

        for dy in range(2):
            wy = fy if dy else (1.0 - fy)
            for dx in range(2):
                wx = fx if dx else (1.0 - fx)
                w = (wx * wy).astype(np.float32)
                xi = x0 + dx
                yi = y0 + dy
                valid = (xi >= 0) & (xi < W) & (yi >= 0) & (yi < H)
                if not np.any(valid):
                    continue
                np.add.at(
                    accum,
                    (yi[valid], xi[valid]),
                    rgb[valid] * w[valid, np.newaxis],
                )

    def rasterize(self, points: np.ndarray, colors: np.ndarray) -> np.ndarray:
        """
        Render one frame.

        Args:
            points: (N, 2) clip-space coordinates.
            colors: (N, 4) RGBA rows in [0, 1]; alpha scales brightness.

        Returns:
            (H, W, 3) uint8 RGB frame.
        """
        if len(points) != len(colors):
            raise ValueError(
                f"Got {len(points)} points but {len(colors)} colors"
            )

        H, W = self.cfg.height, self.cfg.width
        accum = np.zeros((H, W, 3), dtype=np.float32)

        if len(points):
            finite = np.isfinite(points).all(axis=1)
            pts = points[finite]
            cols = np.asarray(colors, dtype=np.float32)[finite]
            rgb = cols[:, :3] * cols[:, 3:4] * self.cfg.point_brightness
            x_px, y_px = self.to_pixels(pts)
            self._splat(x_px, y_px, rgb, accum)

        if self.cfg.glow_enabled:
            accum = bloom(accum, self.cfg.glow_radius)

        mapped = aces_tone_map(accum, self.cfg.exposure)
        # Screen blend over the background
        mapped = 1.0 - (1.0 - mapped) * (1.0 - self._background)
        frame = (mapped * 255.0).astype(np.uint8)

        if self.cfg.vignette_strength > 0:
            frame = vignette(frame, strength=self.cfg.vignette_strength)
        return frame

    def render_engine_frame(self, engine: ChaosEngine) -> np.ndarray:
        """Advance ``engine`` one frame and rasterize its history."""
        points = engine.compute_next_points()
        return self.rasterize(points, engine.history_colors())

    def render_frames(
        self,
        engine: ChaosEngine,
        n_frames: int,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> Iterator[np.ndarray]:
        """Yield ``n_frames`` consecutive frames."""
        for i in range(n_frames):
            yield self.render_engine_frame(engine)
            if progress_callback:
                progress_callback(i + 1, n_frames)
