"""Tests for convergence diagnostics."""

import math

import numpy as np
import pytest

from stochastic_sim.analysis.convergence import (
    autocorrelation,
    integrated_autocorrelation_time,
    effective_sample_size,
    effective_sample_size_multiple,
    min_effective_sample_size,
    geweke_statistic,
    geweke_statistic_multiple,
    aggregate_geweke_statistic,
    r_hat_single_chain,
    r_hat_multiple_chains,
    mcse,
    mcse_multiple,
    assess_convergence,
    compute_convergence_diagnostics,
    trace_statistics,
    generate_diagnostic_summary,
)


class TestAutocorrelation:
    """Autocorrelation function."""

    def test_lag_zero_is_one(self, random_walk):
        """acf[0] is 1."""
        assert autocorrelation(random_walk)[0] == 1.0

    def test_constant_series(self):
        """A constant series gives all ones."""
        assert autocorrelation([4.0] * 10) == [1.0] * 6

    def test_short_series(self):
        """Fewer than 2 values gives [1.0]."""
        assert autocorrelation([]) == [1.0]
        assert autocorrelation([3.0]) == [1.0]

    def test_default_max_lag(self):
        """Default max lag is min(n - 1, n // 2)."""
        assert len(autocorrelation(np.arange(11, dtype=float))) == 6

    def test_matches_direct_formula(self):
        """FFT result equals the direct lag sum."""
        x = np.random.default_rng(5).normal(size=64)
        m = x.mean()
        var = np.mean((x - m) ** 2)
        acf = autocorrelation(x, max_lag=5)
        for k in range(1, 6):
            direct = np.sum((x[:-k] - m) * (x[k:] - m)) / ((64 - k) * var)
            assert acf[k] == pytest.approx(direct)

    def test_alternating_series(self):
        """An alternating series has lag-1 autocorrelation near -1."""
        x = np.array([1.0, -1.0] * 50)
        assert autocorrelation(x, max_lag=1)[1] == pytest.approx(-1.0)


class TestEffectiveSampleSize:
    """IAT and ESS."""

    def test_iid_ess(self, iid_normal_samples):
        """Independent draws: the lag-0 pair puts the IAT near 3."""
        ess = effective_sample_size(iid_normal_samples[:, 0])
        assert 400 < ess < 1000

    def test_random_walk_ess_small(self, random_walk):
        """A random walk has far fewer effective samples."""
        assert effective_sample_size(random_walk) < 100

    def test_iat_at_least_one(self):
        """IAT is never below 1."""
        x = np.array([1.0, -1.0] * 50)
        assert integrated_autocorrelation_time(x) >= 1.0

    def test_short_input(self):
        """Fewer than 3 values gives n."""
        assert effective_sample_size([]) == 0
        assert effective_sample_size([1.0, 2.0]) == 2

    def test_constant_series_ess_is_one(self):
        """All-ones ACF gives the minimum ESS of 1."""
        assert effective_sample_size([2.0] * 50) == 1

    def test_multiple_and_min(self, iid_normal_samples, random_walk):
        """Per-column ESS; the minimum is the worst column."""
        samples = np.column_stack([iid_normal_samples[:, 0], random_walk])
        ess = effective_sample_size_multiple(samples)
        assert len(ess) == 2
        assert min_effective_sample_size(samples) == min(ess)
        assert min_effective_sample_size(np.zeros((0, 2))) == 0


class TestGeweke:
    """Geweke stationarity z-score."""

    def test_short_chain(self):
        """Fewer than 20 values gives 0."""
        assert geweke_statistic(np.arange(19, dtype=float)) == 0.0

    def test_stationary_chain_small(self, iid_normal_samples):
        """Stationary draws give a small |z|."""
        assert abs(geweke_statistic(iid_normal_samples[:, 0])) < 3.0

    def test_trending_chain_large(self):
        """A strong trend gives a large |z|."""
        rng = np.random.default_rng(8)
        x = np.linspace(0, 10, 500) + rng.normal(scale=0.1, size=500)
        assert abs(geweke_statistic(x)) > 10

    def test_zero_standard_error(self):
        """Constant windows give 0."""
        assert geweke_statistic([1.0] * 100) == 0.0

    def test_overlapping_windows(self):
        """Overlapping windows give 0."""
        x = np.random.default_rng(9).normal(size=100)
        assert geweke_statistic(x, first_portion=0.6, last_portion=0.6) == 0.0

    def test_touching_windows(self):
        """Windows meeting at one boundary index give 0."""
        x = np.random.default_rng(9).normal(size=100)
        assert geweke_statistic(x, first_portion=0.5, last_portion=0.5) == 0.0
        assert geweke_statistic(x, first_portion=0.4, last_portion=0.5) != 0.0

    def test_aggregate_is_rms(self, iid_normal_samples):
        """Aggregate is the root mean square of the per-variable values."""
        z = geweke_statistic_multiple(iid_normal_samples)
        expected = math.sqrt((z[0] ** 2 + z[1] ** 2) / 2)
        assert aggregate_geweke_statistic(iid_normal_samples) == pytest.approx(expected)
        assert aggregate_geweke_statistic(np.zeros((0, 2))) == 0.0


class TestRHat:
    """Gelman-Rubin R-hat."""

    def test_identical_chains(self):
        """Two copies of one chain give R-hat close to 1."""
        c = np.random.default_rng(10).normal(size=500)
        assert r_hat_multiple_chains([c, c]) == pytest.approx(1.0, abs=0.01)

    def test_separated_chains(self):
        """Chains with very different means give R-hat above 1.1."""
        rng = np.random.default_rng(11)
        assert r_hat_multiple_chains([rng.normal(0, 1, 500), rng.normal(10, 1, 500)]) > 1.1

    def test_fallbacks(self):
        """Single chain, short chains and zero within-variance give 1."""
        assert r_hat_multiple_chains([[1.0, 2.0, 3.0]]) == 1.0
        assert r_hat_multiple_chains([[1.0], [2.0, 3.0]]) == 1.0
        assert r_hat_multiple_chains([[1.0, 1.0], [2.0, 2.0]]) == 1.0

    def test_truncates_to_shortest(self):
        """Longer chains are cut to the shortest length."""
        rng = np.random.default_rng(12)
        a = rng.normal(size=200)
        b = rng.normal(size=200)
        extended = np.concatenate([b, np.full(300, 50.0)])
        assert r_hat_multiple_chains([a, extended]) == pytest.approx(r_hat_multiple_chains([a, b]))

    def test_split_chain(self, iid_normal_samples):
        """Split R-hat of a stationary chain is near 1; short chains give 1."""
        assert r_hat_single_chain(iid_normal_samples[:, 0]) < 1.05
        assert r_hat_single_chain([1.0, 2.0, 3.0]) == 1.0

    def test_split_chain_detects_shift(self):
        """A mean shift between halves pushes split R-hat above 1.1."""
        rng = np.random.default_rng(13)
        x = np.concatenate([rng.normal(0, 1, 300), rng.normal(5, 1, 300)])
        assert r_hat_single_chain(x) > 1.1


class TestMcse:
    """Monte Carlo standard error."""

    def test_formula(self, iid_normal_samples):
        """mcse = sd / sqrt(ESS)."""
        x = iid_normal_samples[:, 1]
        assert mcse(x) == pytest.approx(x.std() / math.sqrt(effective_sample_size(x)))

    def test_empty(self):
        """Empty input gives 0."""
        assert mcse([]) == 0.0
        assert mcse_multiple(np.zeros((0, 3))) == []

    def test_multiple(self, iid_normal_samples):
        """One value per column."""
        assert len(mcse_multiple(iid_normal_samples)) == 2


class TestAssessConvergence:
    """Overall verdict."""

    def test_too_few_samples(self):
        """Fewer than 100 rows is not converged with confidence 0."""
        result = assess_convergence(np.random.default_rng(0).normal(size=(99, 2)))
        assert result.converged is False
        assert result.confidence == 0.0

    def test_iid_converges(self, iid_normal_samples):
        """Independent stationary draws pass every check."""
        result = assess_convergence(iid_normal_samples)
        assert result.converged is True
        assert result.confidence == 0.95

    def test_random_walk_fails(self, random_walk):
        """A random walk fails the ESS ratio check at least."""
        result = assess_convergence(random_walk[:, None])
        assert result.converged is False
        assert "ESS ratio" in result.reason
        assert result.confidence < 0.95

    def test_reasons_joined(self):
        """Multiple failures are joined with '; ' and lower the confidence."""
        x = np.linspace(0, 100, 400)
        result = assess_convergence(x[:, None])
        assert result.converged is False
        assert result.reason.count("; ") == 2
        assert result.confidence == pytest.approx(0.0)

    def test_custom_thresholds(self, iid_normal_samples):
        """Thresholds can be tightened."""
        result = assess_convergence(iid_normal_samples, thresholds={'ess_ratio': 2.0})
        assert result.converged is False
        assert result.confidence == pytest.approx(2 / 3)


class TestComputeDiagnostics:
    """compute_convergence_diagnostics."""

    def test_short_fallback(self):
        """Fewer than 10 rows gives the fallback values."""
        diag = compute_convergence_diagnostics(np.ones((5, 2)))
        assert diag.geweke_statistic == 0.0
        assert diag.effective_sample_size == 5
        assert diag.r_hat == 1.0
        assert diag.has_converged is False

    def test_full(self, iid_normal_samples):
        """Full diagnostics over a healthy matrix."""
        diag = compute_convergence_diagnostics(iid_normal_samples, max_autocorr_lag=20)
        assert diag.has_converged is True
        assert len(diag.autocorrelation) == 21
        assert len(diag.mcse) == 2
        assert diag.effective_sample_size == min_effective_sample_size(iid_normal_samples)


class TestTraceAndSummary:
    """trace_statistics and generate_diagnostic_summary."""

    def test_running_mean(self):
        """Running mean and population variance per prefix."""
        stats = trace_statistics([1.0, 3.0, 5.0], "x")
        assert stats.running_mean == pytest.approx([1.0, 2.0, 3.0])
        assert stats.running_variance == pytest.approx([0.0, 1.0, 8.0 / 3.0])
        assert stats.stabilized is False
        assert stats.stabilization_point == -1

    def test_stabilized(self, iid_normal_samples):
        """A stationary trace around a non-zero mean stabilises."""
        stats = trace_statistics(iid_normal_samples[:, 0] + 10.0, "x")
        assert stats.stabilized is True
        assert stats.stabilization_point >= int(2000 * 0.8)

    def test_empty_trace(self):
        """Empty input gives empty traces."""
        stats = trace_statistics([], "x")
        assert stats.running_mean == []
        assert stats.stabilization_point == -1

    def test_summary_small_sample(self):
        """Small samples are flagged with a recommendation."""
        summary = generate_diagnostic_summary(np.random.default_rng(0).normal(size=(200, 1)))
        assert "Low sample count" in summary.issues
        assert any("1000 iterations" in r for r in summary.recommendations)
        assert len(summary.issues) == len(summary.recommendations)

    def test_summary_healthy(self, iid_normal_samples):
        """A healthy sample has no issues."""
        summary = generate_diagnostic_summary(iid_normal_samples)
        assert summary.issues == []
        assert summary.converged is True
        assert summary.total_samples == 2000

    def test_summary_trend(self):
        """A trend is flagged as non-stationary and poorly mixed."""
        x = np.linspace(0, 100, 2000)[:, None]
        summary = generate_diagnostic_summary(x)
        assert "Chain not stationary" in summary.issues
        assert "Chain not mixed well" in summary.issues
