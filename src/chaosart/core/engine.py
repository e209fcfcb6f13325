"""
Chaos equation simulation engine.

Owns the random coefficients, the aging point history, the fade color table
and the adaptive clock. One instance exists per process; the frame loop and
the UI both drive the same object.

Each frame iterates ``iterations_per_frame`` short trajectories of
``num_points`` steps. Every trajectory is seeded at (almost) the origin and
evaluated with its own fixed time value, ``timestep_adjustment`` apart from
the previous one. Points outside the [-1, 1] view square are culled. The
surviving points are prepended to the history, which is cut to
``num_points * max_age`` entries, so the oldest points fall off the tail while
the color table fades them out by age.
"""

import sys
import threading
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from chaosart.core.equation import (
    NUM_COEFFICIENTS,
    format_equation,
    quadratic_map,
    random_coefficients,
)
from chaosart.core.timestep import StepBounds, adjust_rolling_delta

EquationListener = Callable[[str], None]


class EngineAlreadyCreatedError(RuntimeError):
    """Raised on a second direct construction, or a conflicting get_instance."""


@dataclass
class EngineConfig:
    """Simulation parameters."""
    num_points: int = 100             # steps per trajectory, also color slots
    iterations_per_frame: int = 200   # trajectories per frame
    max_age: int = 200                # frames worth of history kept

    # Macro clock
    t_start: float = -3.0
    t_end: float = 3.0
    t_increment_base: float = 0.003
    t_increment_max: Optional[float] = None  # default: base * 7
    t_increment_min: Optional[float] = None  # default: base / 15

    # Coordinate scaling
    seed_scale: float = 1e9     # trajectory seed is current_time / seed_scale
    display_scale: float = 10.0

    # Use the narrow -0.05 < min < 0.05 band for the near-zero check
    strict_activity_check: bool = False

    def __post_init__(self):
        for name in ("num_points", "iterations_per_frame", "max_age"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.t_end <= self.t_start:
            raise ValueError(
                f"t_end ({self.t_end}) must be greater than t_start ({self.t_start})"
            )
        if self.seed_scale == 0 or self.display_scale == 0:
            raise ValueError("seed_scale and display_scale must be non-zero")
        # Validates ordering of the increments
        self.step_bounds()

    def step_bounds(self) -> StepBounds:
        defaults = StepBounds.from_base(self.t_increment_base)
        return StepBounds(
            base=self.t_increment_base,
            minimum=defaults.minimum if self.t_increment_min is None else self.t_increment_min,
            maximum=defaults.maximum if self.t_increment_max is None else self.t_increment_max,
        )

    @property
    def history_limit(self) -> int:
        return self.num_points * self.max_age

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Build a config from a plain mapping such as a parsed JSON file."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown engine config keys: {', '.join(unknown)}")
        return cls(**data)


class ChaosEngine:
    """
    Process-wide chaos equation simulation.

    Use :meth:`get_instance` (or :func:`get_engine`) to obtain the engine.
    Constructing a second instance directly raises
    :class:`EngineAlreadyCreatedError`.
    """

    _instance: Optional["ChaosEngine"] = None
    _instance_lock = threading.Lock()
    _creation_lock = threading.Lock()

    def __init__(self, config: Optional[EngineConfig] = None, seed: Optional[int] = None):
        if ChaosEngine._instance is not None:
            raise EngineAlreadyCreatedError(
                "ChaosEngine already exists; use ChaosEngine.get_instance()"
            )

        self.cfg = config or EngineConfig()
        self.seed = seed
        self.rng = np.random.default_rng(seed)

        self._lock = threading.RLock()
        self._bounds = self.cfg.step_bounds()

        self._paused = False
        self._listeners: List[EquationListener] = []
        self.equation = ""

        self.params: np.ndarray = np.zeros(NUM_COEFFICIENTS, dtype=np.float64)
        self.point_colors: np.ndarray = np.zeros(0, dtype=np.float32)
        self.history: np.ndarray = np.empty((0, 2), dtype=np.float64)

        # Clocks
        self.t = self.cfg.t_start
        self.current_time = self.t
        self.rolling_delta = self._bounds.base
        self.timestep_adjustment = self.rolling_delta / self.cfg.iterations_per_frame

        # Range of the most recent frame
        self.current_min = 0.0
        self.current_max = 0.0

        self.reset()

        # Publish only once fully built
        with ChaosEngine._instance_lock:
            if ChaosEngine._instance is not None:
                raise EngineAlreadyCreatedError(
                    "ChaosEngine already exists; use ChaosEngine.get_instance()"
                )
            ChaosEngine._instance = self

    # ------------------------------------------------------------------
    # Singleton access
    # ------------------------------------------------------------------

    @classmethod
    def get_instance(
        cls, config: Optional[EngineConfig] = None, seed: Optional[int] = None
    ) -> "ChaosEngine":
        """Return the engine, creating it on first access.

        ``config`` and ``seed`` are used when the engine is created here. Once
        it exists, passing a config or seed that differs from the live one
        raises :class:`EngineAlreadyCreatedError`.
        """
        instance = cls._instance
        if instance is None:
            with cls._creation_lock:
                instance = cls._instance
                if instance is None:
                    try:
                        return cls(config, seed)
                    except EngineAlreadyCreatedError:
                        # Constructed directly by another thread meanwhile
                        instance = cls._instance

        if config is not None and config != instance.cfg:
            raise EngineAlreadyCreatedError(
                f"ChaosEngine already exists with a different config: {instance.cfg}"
            )
        if seed is not None and seed != instance.seed:
            raise EngineAlreadyCreatedError(
                f"ChaosEngine already exists with seed {instance.seed}, not {seed}"
            )
        return instance

    @classmethod
    def release_instance(cls) -> None:
        """Forget the current engine so the next access creates a new one."""
        with cls._instance_lock:
            cls._instance = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Re-randomize coefficients and colors, rewind the clock, clear history."""
        with self._lock:
            self.history = np.empty((0, 2), dtype=np.float64)
            self.t = self.cfg.t_start
            self.current_time = self.t
            self.params = random_coefficients(self.rng)
            self.point_colors = self._build_color_table()
            self.update_equation_string()

    def _build_color_table(self) -> np.ndarray:
        """Age-major RGBA table: one random RGB per slot, alpha fading with age."""
        n, max_age = self.cfg.num_points, self.cfg.max_age
        base = self.rng.random((n, 3))
        alpha = 1.0 - np.arange(max_age) / max_age

        table = np.empty((max_age, n, 4), dtype=np.float32)
        table[:, :, :3] = base[np.newaxis, :, :]
        table[:, :, 3] = alpha[:, np.newaxis]
        return table.ravel()

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def compute_next_points(self) -> np.ndarray:
        """
        Advance one frame and return the point history.

        Returns:
            (N, 2) float64 array, most recent points first. While paused the
            previous history is returned untouched.
        """
        with self._lock:
            if self._paused:
                return self.history

            self.current_time = self.t
            frame_points = self._iterate_trajectories()

            self._update_min_max(frame_points)
            self.rolling_delta = adjust_rolling_delta(
                self.rolling_delta,
                len(frame_points),
                self.current_min,
                self._bounds,
                self.cfg.iterations_per_frame,
                self.cfg.num_points,
                strict=self.cfg.strict_activity_check,
            )
            self.t += self.rolling_delta
            self.timestep_adjustment = self.rolling_delta / self.cfg.iterations_per_frame
            self._update_history(frame_points)

            if self.t > self.cfg.t_end:
                self.reset()

            return self.history

    def _iterate_trajectories(self) -> np.ndarray:
        """Run all of this frame's trajectories and return the kept points."""
        cfg = self.cfg
        n_traj, n_steps = cfg.iterations_per_frame, cfg.num_points

        times = self.current_time + self.timestep_adjustment * np.arange(n_traj)
        self.current_time = self.current_time + self.timestep_adjustment * n_traj

        x = times / cfg.seed_scale
        y = x.copy()

        xs = np.empty((n_traj, n_steps), dtype=np.float64)
        ys = np.empty((n_traj, n_steps), dtype=np.float64)
        keep = np.zeros((n_traj, n_steps), dtype=bool)
        alive = np.ones(n_traj, dtype=bool)

        with np.errstate(over="ignore", invalid="ignore"):
            for step in range(n_steps):
                x, y = quadratic_map(self.params, x, y, times)
                sx = x / cfg.display_scale
                sy = y / cfg.display_scale
                xs[:, step] = sx
                ys[:, step] = sy
                keep[:, step] = alive & (np.abs(sx) <= 1.0) & (np.abs(sy) <= 1.0)
                # A diverged trajectory emits nothing further
                alive &= np.isfinite(x) & np.isfinite(y)

        # Boolean indexing on (trajectory, step) keeps trajectory-major order
        return np.stack([xs[keep], ys[keep]], axis=1)

    def _update_min_max(self, points: np.ndarray) -> None:
        if len(points) == 0:
            self.current_min = float("inf")
            self.current_max = float("-inf")
            return
        self.current_min = float(points.min())
        self.current_max = float(points.max())

    def _update_history(self, new_points: np.ndarray) -> None:
        history = np.concatenate([new_points, self.history], axis=0)
        self.history = history[: self.cfg.history_limit]

    @property
    def bounds(self) -> Tuple[float, float]:
        """(min, max) over both coordinates of the last computed frame."""
        return self.current_min, self.current_max

    def history_colors(self) -> np.ndarray:
        """RGBA rows aligned with the current history (row i colors point i)."""
        table = self.point_colors.reshape(-1, 4)
        return table[: len(self.history)]

    # ------------------------------------------------------------------
    # Pause control
    # ------------------------------------------------------------------

    @property
    def paused(self) -> bool:
        return self._paused

    def set_paused(self, paused: bool) -> None:
        with self._lock:
            self._paused = bool(paused)

    def toggle_pause(self) -> None:
        with self._lock:
            self._paused = not self._paused

    # ------------------------------------------------------------------
    # Equation text & listeners
    # ------------------------------------------------------------------

    def register_listener(self, callback: EquationListener) -> None:
        with self._lock:
            self._listeners.append(callback)

    def remove_listener(self, callback: EquationListener) -> None:
        """Remove every registration of ``callback``.

        Matching uses equality rather than identity: each ``obj.method``
        access builds a new bound method object, and bound methods compare
        equal when they wrap the same function and instance.
        """
        with self._lock:
            self._listeners = [cb for cb in self._listeners if cb != callback]

    @property
    def listeners(self) -> Tuple[EquationListener, ...]:
        return tuple(self._listeners)

    def update_equation_string(self) -> None:
        """Rebuild the equation text from the coefficients and notify listeners."""
        with self._lock:
            self.equation = format_equation(self.params)
            self._notify_listeners(self.equation)

    def _notify_listeners(self, equation: str) -> None:
        for callback in list(self._listeners):
            try:
                callback(equation)
            except Exception as e:
                print(f"Equation listener {callback!r} failed: {e}", file=sys.stderr)


def get_engine(config: Optional[EngineConfig] = None, seed: Optional[int] = None) -> ChaosEngine:
    """Module-level accessor for the process-wide engine."""
    return ChaosEngine.get_instance(config, seed)
