"""Pytest configuration and shared fixtures."""

import pytest

from chaosart.core.engine import ChaosEngine, EngineConfig

TEST_SEED = 1234


@pytest.fixture(autouse=True)
def release_engine():
    """Each test starts without a process-wide engine."""
    ChaosEngine.release_instance()
    yield
    ChaosEngine.release_instance()


@pytest.fixture
def small_config() -> EngineConfig:
    """A cheap engine: 30 trajectories of 20 steps, 100 frames of history."""
    return EngineConfig(num_points=20, iterations_per_frame=30, max_age=100)


@pytest.fixture
def engine(small_config) -> ChaosEngine:
    return ChaosEngine.get_instance(small_config, seed=TEST_SEED)

