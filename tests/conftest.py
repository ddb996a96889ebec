"""Pytest configuration and fixtures for stochastic_sim tests."""

import numpy as np
import pytest

from stochastic_sim.types import Normal, Uniform, StochasticModel
from stochastic_sim.sampling.rng import RandomStream


class StepClock:
    """Fake clock advancing by a fixed step on every read."""

    def __init__(self, step: float = 0.001):
        self.step = step
        self.now = 0.0
        self.reads = 0

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        self.reads += 1
        return value


@pytest.fixture
def stream():
    """Seeded random stream."""
    return RandomStream(12345)


@pytest.fixture
def step_clock():
    """Deterministic clock advancing 1ms per read."""
    return StepClock(0.001)


@pytest.fixture
def make_clock():
    """Factory for deterministic clocks with a custom step."""
    return StepClock


@pytest.fixture
def two_normal_model():
    """Two independent normal variables."""
    return StochasticModel.from_pairs(
        [("x", Normal(mean=50.0, std_dev=5.0)), ("y", Normal(mean=100.0, std_dev=10.0))],
        model_id="two_normals",
    )


@pytest.fixture
def mixed_model():
    """One normal and one uniform variable."""
    return StochasticModel.from_pairs(
        [("a", Normal(mean=0.0, std_dev=1.0)), ("b", Uniform(min=2.0, max=4.0))],
        model_id="mixed",
    )


@pytest.fixture
def iid_normal_samples():
    """[2000, 2] stationary matrix: a block of 200 independent normals repeated 10 times."""
    rng = np.random.default_rng(7)
    return np.tile(rng.standard_normal((200, 2)), (10, 1))


@pytest.fixture
def random_walk():
    """Strongly autocorrelated trace."""
    rng = np.random.default_rng(11)
    return np.cumsum(rng.standard_normal(2000))
