"""
MCMC-style convergence diagnostics.

Autocorrelation, effective sample size, Geweke's stationarity z-score,
Gelman-Rubin R-hat, Monte Carlo standard error, and an overall verdict.
Sample matrices are [n_samples, n_variables]; a multi-variable verdict is
only as strong as the worst-mixing variable. Short or constant input returns
a documented fallback value instead of raising.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import math

import numpy as np

from ..config import (
    DEFAULT_CONVERGENCE_THRESHOLDS, MIN_SAMPLES_FOR_ASSESSMENT,
    MIN_SAMPLES_FOR_DIAGNOSTICS, MIN_SAMPLES_FOR_GEWEKE,
)
from ..types import ConvergenceDiagnostics
from .statistics import mean, variance, std_dev


@dataclass
class ConvergenceAssessment:
    converged: bool
    reason: str
    confidence: float


@dataclass
class TraceStats:
    """
    Running statistics of a single trace.

    Attributes:
        name: Variable name
        running_mean: Mean of the first i+1 values, per i
        running_variance: Population variance of the first i+1 values, per i
        stabilized: True if the running mean settled within 1% of its final value
        stabilization_point: Index where it settled, -1 if it did not
    """
    name: str
    running_mean: List[float]
    running_variance: List[float]
    stabilized: bool
    stabilization_point: int


@dataclass
class DiagnosticSummary:
    """Advisory convergence report with issues and recommendations."""
    total_samples: int
    effective_sample_size: int
    ess_ratio: float
    geweke_statistic: float
    r_hat: float
    converged: bool
    confidence: float
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


def _as_matrix(samples) -> np.ndarray:
    matrix = np.asarray(samples, dtype=np.float64)
    if matrix.size == 0:
        return np.zeros((0, 0))
    if matrix.ndim == 1:
        matrix = matrix[:, None]
    return matrix


# =============================================================================
# Autocorrelation & Effective Sample Size
# =============================================================================

def autocorrelation(values: Sequence[float], max_lag: Optional[int] = None) -> List[float]:
    """
    Sample autocorrelation function.

    Lag k is sum((x_i - m)(x_{i+k} - m)) / ((n - k) * var) with the
    population variance. Computed with an FFT over the zero-padded series.

    Args:
        values: Trace
        max_lag: Largest lag to return. None -> min(n - 1, n // 2).

    Returns:
        [acf(0), ..., acf(max_lag)]; acf(0) is 1. A constant series gives all
        ones; fewer than 2 values gives [1.0].
    """
    arr = np.asarray(values, dtype=np.float64).ravel()
    n = arr.size
    if n < 2:
        return [1.0]

    if max_lag is None:
        max_lag = min(n - 1, n // 2)
    max_lag = max(0, min(int(max_lag), n - 1))

    var = float(np.mean((arr - arr.mean()) ** 2))
    if var == 0.0:
        return [1.0] * (max_lag + 1)

    centered = arr - arr.mean()
    size = 1 << (2 * n - 1).bit_length()
    spectrum = np.fft.rfft(centered, n=size)
    raw = np.fft.irfft(spectrum * np.conj(spectrum), n=size)[:max_lag + 1]

    lags = np.arange(max_lag + 1)
    acf = raw / ((n - lags) * var)
    acf[0] = 1.0
    return [float(a) for a in acf]


def integrated_autocorrelation_time(values: Sequence[float]) -> float:
    """
    Integrated autocorrelation time by Geyer's initial positive sequence.

    Sums consecutive (even, odd) autocorrelation pairs from lag 0 and stops
    at the first pair that is not positive. Returns max(1, 1 + 2 * sum).
    """
    acf = autocorrelation(values)
    total = 0.0
    for i in range(0, len(acf) - 1, 2):
        pair = acf[i] + acf[i + 1]
        if pair <= 0.0:
            break
        total += pair
    return max(1.0, 1.0 + 2.0 * total)


def effective_sample_size(values: Sequence[float]) -> int:
    """n / IAT, floored and at least 1. Fewer than 3 values returns n."""
    arr = np.asarray(values, dtype=np.float64).ravel()
    n = arr.size
    if n < 3:
        return n
    tau = integrated_autocorrelation_time(arr)
    return max(1, int(math.floor(n / tau)))


def effective_sample_size_multiple(samples) -> List[int]:
    """ESS of each column of a sample matrix."""
    matrix = _as_matrix(samples)
    if matrix.shape[0] == 0:
        return []
    return [effective_sample_size(matrix[:, j]) for j in range(matrix.shape[1])]


def min_effective_sample_size(samples) -> int:
    """Smallest per-variable ESS; 0 for an empty matrix."""
    ess_values = effective_sample_size_multiple(samples)
    return min(ess_values) if ess_values else 0


# =============================================================================
# Geweke
# =============================================================================

def geweke_statistic(
    values: Sequence[float],
    first_portion: float = 0.1,
    last_portion: float = 0.5
) -> float:
    """
    Geweke z-score comparing the mean of the first window with the last.

    z = (mean_first - mean_last) / sqrt(var_first / n_first + var_last / n_last)

    Returns 0 when there are fewer than 20 values, when a window is empty,
    when the windows overlap or touch, or when the standard error is zero.
    """
    arr = np.asarray(values, dtype=np.float64).ravel()
    n = arr.size
    if n < MIN_SAMPLES_FOR_GEWEKE:
        return 0.0

    first_end = int(math.floor(n * first_portion))
    last_start = int(math.floor(n * (1.0 - last_portion)))
    if first_end < 1 or last_start >= n or first_end >= last_start:
        return 0.0

    first = arr[:first_end]
    last = arr[last_start:]
    se = math.sqrt(variance(first) / first.size + variance(last) / last.size)
    if se == 0.0:
        return 0.0
    return float((mean(first) - mean(last)) / se)


def geweke_statistic_multiple(samples) -> List[float]:
    matrix = _as_matrix(samples)
    if matrix.shape[0] == 0:
        return []
    return [geweke_statistic(matrix[:, j]) for j in range(matrix.shape[1])]


def aggregate_geweke_statistic(samples) -> float:
    """Root mean square of the per-variable Geweke statistics."""
    z = geweke_statistic_multiple(samples)
    if not z:
        return 0.0
    return float(math.sqrt(np.mean(np.square(z))))


# =============================================================================
# R-hat
# =============================================================================

def r_hat_multiple_chains(chains: Sequence[Sequence[float]]) -> float:
    """
    Gelman-Rubin potential scale reduction factor.

    Chains are truncated to the shortest length n. With W the mean of the
    per-chain (population) variances and B = n / (m - 1) * sum((mean_j - grand)^2):

        pooled = ((n - 1) / n) * W + B / n
        R-hat  = sqrt(pooled / W)

    Returns 1 for fewer than 2 chains, chains shorter than 2, or W = 0.
    """
    m = len(chains)
    if m < 2:
        return 1.0
    n = min(len(c) for c in chains)
    if n < 2:
        return 1.0

    truncated = np.array([np.asarray(c, dtype=np.float64)[:n] for c in chains])
    chain_means = truncated.mean(axis=1)
    chain_vars = np.array([variance(row) for row in truncated])

    w = float(chain_vars.mean())
    if w == 0.0:
        return 1.0

    grand_mean = float(chain_means.mean())
    b = n / (m - 1) * float(np.sum((chain_means - grand_mean) ** 2))
    pooled = ((n - 1) / n) * w + b / n
    return float(math.sqrt(pooled / w))


def r_hat_single_chain(values: Sequence[float]) -> float:
    """Split-chain R-hat: the two halves of one trace treated as two chains."""
    arr = np.asarray(values, dtype=np.float64).ravel()
    n = arr.size
    if n < 4:
        return 1.0
    half = n // 2
    return r_hat_multiple_chains([arr[:half], arr[half:]])


# =============================================================================
# Monte Carlo Standard Error
# =============================================================================

def mcse(values: Sequence[float]) -> float:
    """std_dev / sqrt(ESS); 0 for empty input."""
    arr = np.asarray(values, dtype=np.float64).ravel()
    if arr.size == 0:
        return 0.0
    ess = effective_sample_size(arr)
    return std_dev(arr) / math.sqrt(ess)


def mcse_multiple(samples) -> List[float]:
    matrix = _as_matrix(samples)
    if matrix.shape[0] == 0:
        return []
    return [mcse(matrix[:, j]) for j in range(matrix.shape[1])]


# =============================================================================
# Verdict
# =============================================================================

def assess_convergence(
    samples,
    thresholds: Optional[Dict[str, float]] = None
) -> ConvergenceAssessment:
    """
    Combine Geweke, split R-hat and ESS ratio into a converged/not verdict.

    Args:
        samples: [n_samples, n_variables] matrix
        thresholds: Overrides for 'geweke', 'r_hat' and 'ess_ratio'

    Returns:
        ConvergenceAssessment. Fewer than 100 samples is never converged and
        has confidence 0. Otherwise confidence is 0.95 when no check fails
        and 1 - failed / 3 when some do.
    """
    limits = dict(DEFAULT_CONVERGENCE_THRESHOLDS)
    if thresholds:
        limits.update(thresholds)

    matrix = _as_matrix(samples)
    n = matrix.shape[0]
    if n < MIN_SAMPLES_FOR_ASSESSMENT:
        return ConvergenceAssessment(
            converged=False,
            reason=f"Insufficient samples ({n} < {MIN_SAMPLES_FOR_ASSESSMENT})",
            confidence=0.0,
        )

    geweke = aggregate_geweke_statistic(matrix)
    r_hat = r_hat_single_chain(matrix[:, 0])
    ess_ratio = min_effective_sample_size(matrix) / n

    issues = []
    if abs(geweke) > limits['geweke']:
        issues.append(f"Geweke statistic ({geweke:.2f}) exceeds threshold")
    if r_hat > limits['r_hat']:
        issues.append(f"R-hat ({r_hat:.3f}) exceeds threshold")
    if ess_ratio < limits['ess_ratio']:
        issues.append(f"ESS ratio ({ess_ratio * 100:.1f}%) below threshold")

    if not issues:
        return ConvergenceAssessment(
            converged=True,
            reason="All convergence diagnostics passed",
            confidence=0.95,
        )

    return ConvergenceAssessment(
        converged=False,
        reason="; ".join(issues),
        confidence=1.0 - len(issues) / 3.0,
    )


def compute_convergence_diagnostics(samples, max_autocorr_lag: int = 50) -> ConvergenceDiagnostics:
    """
    Full diagnostics over a sample matrix.

    Fewer than 10 rows gives Geweke 0, ESS n, R-hat 1 and not converged.
    """
    matrix = _as_matrix(samples)
    n = matrix.shape[0]
    if n < MIN_SAMPLES_FOR_DIAGNOSTICS:
        return ConvergenceDiagnostics(
            geweke_statistic=0.0,
            effective_sample_size=n,
            r_hat=1.0,
            has_converged=False,
        )

    first = matrix[:, 0]
    assessment = assess_convergence(matrix)

    return ConvergenceDiagnostics(
        geweke_statistic=aggregate_geweke_statistic(matrix),
        effective_sample_size=min_effective_sample_size(matrix),
        r_hat=r_hat_single_chain(first),
        has_converged=assessment.converged,
        autocorrelation=autocorrelation(first, max_autocorr_lag),
        mcse=mcse_multiple(matrix),
    )


# =============================================================================
# Trace Statistics & Summary
# =============================================================================

def trace_statistics(values: Sequence[float], name: str) -> TraceStats:
    """
    Running mean and variance of a trace, plus a stabilisation check.

    The running variance is the population variance of each prefix
    (divides by the prefix length, not length - 1).

    With at least 100 values, the last 20% of the running mean is scanned for
    the first point within 1% (relative to the final mean, or absolute when
    the final mean is 0) of the final running mean.
    """
    arr = np.asarray(values, dtype=np.float64).ravel()
    n = arr.size
    if n == 0:
        return TraceStats(name=name, running_mean=[], running_variance=[],
                          stabilized=False, stabilization_point=-1)

    counts = np.arange(1, n + 1)
    running_mean = np.cumsum(arr) / counts
    running_sq = np.cumsum(arr ** 2) / counts
    running_var = np.maximum(running_sq - running_mean ** 2, 0.0)
    running_var[0] = 0.0

    stabilized = False
    stabilization_point = -1
    if n >= MIN_SAMPLES_FOR_ASSESSMENT:
        final_mean = float(running_mean[-1])
        denom = final_mean if final_mean != 0.0 else 1.0
        for i in range(int(math.floor(n * 0.8)), n):
            if abs((running_mean[i] - final_mean) / denom) < 0.01:
                stabilized = True
                stabilization_point = i
                break

    return TraceStats(
        name=name,
        running_mean=running_mean.tolist(),
        running_variance=running_var.tolist(),
        stabilized=stabilized,
        stabilization_point=stabilization_point,
    )


def generate_diagnostic_summary(samples) -> DiagnosticSummary:
    """Diagnostics plus human-readable issues and recommendations."""
    matrix = _as_matrix(samples)
    n = matrix.shape[0]
    ess = min_effective_sample_size(matrix)
    ess_ratio = ess / n if n > 0 else 0.0
    geweke = aggregate_geweke_statistic(matrix)
    r_hat = r_hat_single_chain(matrix[:, 0]) if n > 0 else 1.0
    assessment = assess_convergence(matrix)

    issues = []
    recommendations = []

    if n < 1000:
        issues.append("Low sample count")
        recommendations.append(f"Consider increasing to at least 1000 iterations (currently {n})")

    if ess_ratio < 0.1:
        issues.append("Low effective sample size ratio")
        recommendations.append("Increase thinning interval or run more iterations")

    if abs(geweke) > 2.0:
        issues.append("Chain not stationary")
        recommendations.append("Increase burn-in period")

    if r_hat > 1.1:
        issues.append("Chain not mixed well")
        recommendations.append("Run longer or use better initial values")

    return DiagnosticSummary(
        total_samples=n,
        effective_sample_size=ess,
        ess_ratio=ess_ratio,
        geweke_statistic=geweke,
        r_hat=r_hat,
        converged=assessment.converged,
        confidence=assessment.confidence,
        issues=issues,
        recommendations=recommendations,
    )
