"""Tests for the headless point rasterizer."""

import numpy as np
import pytest

from chaosart.render.rasterizer import PointRasterizer, RenderConfig


def _rasterizer(w=64, h=48, **kwargs) -> PointRasterizer:
    kwargs.setdefault("glow_enabled", False)
    kwargs.setdefault("vignette_strength", 0.0)
    return PointRasterizer(RenderConfig(width=w, height=h, fps=30, **kwargs))


def _white(n: int, alpha: float = 1.0) -> np.ndarray:
    colors = np.ones((n, 4), dtype=np.float32)
    colors[:, 3] = alpha
    return colors


class TestRenderConfig:
    def test_defaults(self):
        cfg = RenderConfig()
        assert (cfg.width, cfg.height, cfg.fps) == (1280, 720, 60)

    @pytest.mark.parametrize("kwargs", [{"width": 0}, {"height": -5}, {"fps": 0}])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            RenderConfig(**kwargs)


class TestPointRasterizer:
    def test_empty_history_is_black(self):
        frame = _rasterizer().rasterize(np.empty((0, 2)), np.empty((0, 4)))
        assert frame.shape == (48, 64, 3)
        assert frame.dtype == np.uint8
        assert frame.max() == 0

    def test_background_color(self):
        r = _rasterizer(background=(255, 0, 0))
        frame = r.rasterize(np.empty((0, 2)), np.empty((0, 4)))
        assert np.all(frame[..., 0] == 255)
        assert np.all(frame[..., 1] == 0)

    def test_single_point_lights_centre(self):
        frame = _rasterizer().rasterize(np.array([[0.0, 0.0]]), _white(1))
        lit = np.argwhere(frame.sum(axis=2) > 0)
        assert len(lit) > 0
        assert np.all(np.abs(lit[:, 0] - 23.5) <= 1)
        assert np.all(np.abs(lit[:, 1] - 31.5) <= 1)

    def test_to_pixels_corners(self):
        r = _rasterizer()
        x_px, y_px = r.to_pixels(np.array([[-1.0, 1.0], [1.0, -1.0]]))
        np.testing.assert_allclose(x_px, [0.0, 63.0])
        np.testing.assert_allclose(y_px, [0.0, 47.0])

    def test_points_outside_frame_ignored(self):
        points = np.array([[-1.5, 0.0], [0.0, 3.0], [np.nan, 0.0]])
        frame = _rasterizer().rasterize(points, _white(3))
        assert frame.max() == 0

    def test_transparent_points_invisible(self):
        frame = _rasterizer().rasterize(np.array([[0.2, 0.3]]), _white(1, alpha=0.0))
        assert frame.max() == 0

    def test_more_points_brighter(self):
        r = _rasterizer()
        rng = np.random.default_rng(0)
        points = rng.uniform(-0.5, 0.5, (400, 2))
        few = r.rasterize(points[:20], _white(20))
        many = r.rasterize(points, _white(400))
        assert many.astype(np.int64).sum() > few.astype(np.int64).sum()

    def test_glow_spreads_light(self):
        points = np.array([[0.0, 0.0]])
        plain = _rasterizer().rasterize(points, _white(1))
        glowing = _rasterizer(glow_enabled=True, glow_radius=2.0).rasterize(points, _white(1))
        assert np.count_nonzero(glowing.sum(axis=2)) > np.count_nonzero(plain.sum(axis=2))

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            _rasterizer().rasterize(np.zeros((3, 2)), _white(2))


class TestEngineRendering:
    def test_render_engine_frame(self, engine):
        r = _rasterizer(glow_enabled=True, vignette_strength=0.3)
        frame = r.render_engine_frame(engine)
        assert frame.shape == (48, 64, 3)
        assert frame.dtype == np.uint8
        assert engine.t > engine.cfg.t_start

    def test_render_frames_progress(self, engine):
        progress = []
        frames = list(_rasterizer().render_frames(engine, 4, lambda c, t: progress.append((c, t))))
        assert len(frames) == 4
        assert progress == [(1, 4), (2, 4), (3, 4), (4, 4)]
