"""Tests for diagnostics collection and formatting."""

import pytest

from stochastic_sim.diagnostics import (
    multi_chain_r_hat,
    compute_full_diagnostics,
    format_diagnostic_summary,
    format_result,
)
from stochastic_sim.analysis.convergence import generate_diagnostic_summary
from stochastic_sim.simulation.engine import MonteCarloEngine
from stochastic_sim.types import MonteCarloConfig, StochasticModel, Normal


def _run(model, seed, iterations=1500, **kwargs):
    config = MonteCarloConfig(iterations=iterations, seed=seed, convergence_threshold=0.0, **kwargs)
    return MonteCarloEngine(config).simulate(model)


class TestMultiChainRHat:
    """Cross-run R-hat."""

    def test_empty(self):
        """No results gives an empty dict."""
        assert multi_chain_r_hat([]) == {}

    def test_matching_runs(self, two_normal_model):
        """Runs of the same model agree."""
        results = [_run(two_normal_model, seed) for seed in (1, 2)]
        r_hat = multi_chain_r_hat(results)
        assert set(r_hat) == {"x", "y"}
        assert all(value < 1.1 for value in r_hat.values())

    def test_shifted_runs(self):
        """Runs centred far apart are flagged."""
        low = _run(StochasticModel.from_pairs([("x", Normal(0.0, 1.0))]), 1)
        high = _run(StochasticModel.from_pairs([("x", Normal(10.0, 1.0))]), 2)
        assert multi_chain_r_hat([low, high])["x"] > 1.1

    def test_missing_variable_skipped(self, two_normal_model):
        """Variables absent from a run are left out."""
        only_x = _run(StochasticModel.from_pairs([("x", Normal(50.0, 5.0))]), 2)
        r_hat = multi_chain_r_hat([_run(two_normal_model, 1), only_x])
        assert set(r_hat) == {"x"}


class TestComputeFullDiagnostics:
    """compute_full_diagnostics."""

    def test_keys(self, two_normal_model):
        """All sections are present with one entry per variable."""
        diag = compute_full_diagnostics(_run(two_normal_model, 4))
        assert set(diag) == {"posteriors", "traces", "summary", "state", "warnings"}
        assert [p.name for p in diag["posteriors"]] == ["x", "y"]
        assert [t.name for t in diag["traces"]] == ["x", "y"]
        assert diag["state"] == "completed"
        assert diag["warnings"] == []

    def test_empty_result(self, two_normal_model, step_clock):
        """A run that timed out before keeping anything still reports."""
        config = MonteCarloConfig(iterations=100, seed=1, timeout=0.0)
        result = MonteCarloEngine(config, clock=step_clock).simulate(two_normal_model)
        diag = compute_full_diagnostics(result)
        assert diag["posteriors"] == []
        assert diag["state"] == "timed_out"
        assert diag["summary"].total_samples == 0


class TestFormatting:
    """Console formatting."""

    def test_format_result(self, two_normal_model):
        """Header, variable rows and diagnostics appear."""
        text = format_result(_run(two_normal_model, 6))
        assert "MONTE CARLO SIMULATION" in text
        assert "CONVERGENCE DIAGNOSTICS" in text
        assert "\n  x " in text
        assert "\n  y " in text
        assert "Warnings" not in text

    def test_format_timed_out(self, two_normal_model, step_clock):
        """Timeout warnings are listed."""
        config = MonteCarloConfig(iterations=100, seed=1, timeout=0.0)
        result = MonteCarloEngine(config, clock=step_clock).simulate(two_normal_model)
        text = format_result(result)
        assert "Warnings" in text
        assert "Simulation timed out after 0.0s" in text

    def test_format_summary_issues(self, random_walk):
        """Issues are listed with their recommendations."""
        summary = generate_diagnostic_summary(random_walk[:, None])
        text = format_diagnostic_summary(summary)
        assert "NOT converged" in text
        assert "Low effective sample size ratio" in text
        assert "Increase thinning interval" in text
