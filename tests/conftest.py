import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import load_config  # noqa: E402


@pytest.fixture
def small_config():
    return load_config(
        world_size=(8, 8),
        population_size=6,
        elitism_count=1,
        tick_budget=20,
        generations=2,
        sensor_count=5,
        hidden_sizes=[4],
        actuator_count=3,
        max_age=50,
    )


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


class FlatSampler:
    """Terrain sampler returning the same value everywhere."""

    def __init__(self, value):
        self.value = value

    def __call__(self, x, y):
        return self.value


@pytest.fixture
def barren_sampler():
    return FlatSampler(0.0)


@pytest.fixture
def lush_sampler():
    return FlatSampler(1.0)
