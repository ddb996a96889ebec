"""Tests for the pipeline runners."""

import numpy as np
import pytest

from stochastic_sim.pipeline import run_monte_carlo_simulation, run_chains, ChainRunResult
from stochastic_sim.types import MonteCarloConfig, SimulationState


class TestRunMonteCarloSimulation:
    """One-shot runner."""

    def test_reproducible(self, two_normal_model):
        """Same seed gives the same sample matrix."""
        a = run_monte_carlo_simulation(two_normal_model, iterations=500, seed=21)
        b = run_monte_carlo_simulation(two_normal_model, iterations=500, seed=21)
        np.testing.assert_array_equal(a.samples, b.samples)
        assert a.config.seed == 21

    def test_defaults(self, two_normal_model):
        """Default burn-in is applied."""
        result = run_monte_carlo_simulation(two_normal_model, iterations=1000, seed=3)
        assert result.config.burn_in == 100
        assert result.success is True


class TestRunChains:
    """Sequential multi-chain runs."""

    @pytest.fixture
    def chain_config(self):
        return MonteCarloConfig(iterations=2000, seed=5, chains=3, convergence_threshold=0.0)

    def test_chain_results(self, two_normal_model, chain_config):
        """One result per chain with R-hat per variable."""
        run = run_chains(two_normal_model, chain_config)
        assert isinstance(run, ChainRunResult)
        assert len(run.results) == 3
        assert len(set(run.seeds)) == 3
        assert set(run.r_hat) == {"x", "y"}
        assert all(value < 1.1 for value in run.r_hat.values())
        assert run.converged is True
        assert all(r.state == SimulationState.COMPLETED for r in run.results)

    def test_chains_use_their_seeds(self, two_normal_model, chain_config):
        """Each chain records the seed it ran with."""
        run = run_chains(two_normal_model, chain_config)
        assert [r.config.seed for r in run.results] == run.seeds

    def test_reproducible(self, two_normal_model, chain_config):
        """The base seed fixes every chain."""
        first = run_chains(two_normal_model, chain_config)
        second = run_chains(two_normal_model, chain_config)
        assert first.seeds == second.seeds
        assert first.r_hat == second.r_hat

    def test_single_chain(self, two_normal_model):
        """One chain gives R-hat 1 everywhere."""
        config = MonteCarloConfig(iterations=500, seed=5, chains=1, convergence_threshold=0.0)
        run = run_chains(two_normal_model, config)
        assert run.r_hat == {"x": 1.0, "y": 1.0}
        assert run.converged is True

    def test_strict_threshold(self, two_normal_model, chain_config):
        """A threshold below 1 can never be met."""
        run = run_chains(two_normal_model, chain_config, r_hat_threshold=0.5)
        assert run.converged is False
