"""
Descriptive statistics over simulated samples.

All functions accept plain sequences or numpy arrays. Degenerate input
(empty, too short, zero spread) returns a documented fallback instead of
raising or producing NaN; only percentile() raises, for p outside [0, 100].
Variance and covariance are population quantities (divide by n).
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
import math

import numpy as np
from scipy import stats

from ..config import DEFAULT_PERCENTILES
from ..types import SampleStatistics


@dataclass
class CredibleInterval:
    """
    Credible interval for a single variable.

    Attributes:
        lower: Lower bound
        upper: Upper bound
        probability: Nominal coverage (e.g. 0.95)
        kind: "equal_tailed" or "hpd"
    """
    lower: float
    upper: float
    probability: float
    kind: str

    @property
    def width(self) -> float:
        return self.upper - self.lower


def _as_array(values) -> np.ndarray:
    return np.asarray(values, dtype=np.float64).ravel()


# =============================================================================
# Location & Spread
# =============================================================================

def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0 for empty input."""
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(arr.mean())


def variance(values: Sequence[float], sample_mean: Optional[float] = None) -> float:
    """Population variance; 0 when fewer than 2 values."""
    arr = _as_array(values)
    if arr.size < 2:
        return 0.0
    m = mean(arr) if sample_mean is None else sample_mean
    return float(np.mean((arr - m) ** 2))


def std_dev(values: Sequence[float], sample_mean: Optional[float] = None) -> float:
    return math.sqrt(variance(values, sample_mean))


def median(values: Sequence[float]) -> float:
    """Middle sorted value; average of the two middle values for even n."""
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(np.median(arr))


def percentile(values: Sequence[float], p: float) -> float:
    """
    Percentile by sorted-index lookup.

    Uses index floor(p / 100 * n) clamped to n - 1, so p=0 is the minimum and
    p=100 the maximum. No interpolation.

    Raises:
        ValueError: If p is outside [0, 100]
    """
    if not 0.0 <= p <= 100.0:
        raise ValueError(f"Percentile must be in [0, 100], got {p}")
    arr = _as_array(values)
    n = arr.size
    if n == 0:
        return 0.0
    ordered = np.sort(arr)
    idx = min(int(math.floor(p / 100.0 * n)), n - 1)
    return float(ordered[idx])


def percentiles(values: Sequence[float], points: Sequence[float]) -> Dict[float, float]:
    """percentile() at several points, sorting once."""
    for p in points:
        if not 0.0 <= p <= 100.0:
            raise ValueError(f"Percentile must be in [0, 100], got {p}")
    arr = _as_array(values)
    n = arr.size
    if n == 0:
        return {float(p): 0.0 for p in points}
    ordered = np.sort(arr)
    return {
        float(p): float(ordered[min(int(math.floor(p / 100.0 * n)), n - 1)])
        for p in points
    }


# =============================================================================
# Shape
# =============================================================================

def _no_spread(arr: np.ndarray) -> bool:
    # Spread below float resolution of the mean; scipy returns NaN there
    v = variance(arr)
    return v == 0.0 or v <= (np.finfo(np.float64).eps * mean(arr)) ** 2


def _finite_or_zero(value) -> float:
    value = float(value)
    return value if math.isfinite(value) else 0.0


def skewness(values: Sequence[float]) -> float:
    """Population skewness; 0 when n < 3 or the values have no spread."""
    arr = _as_array(values)
    if arr.size < 3 or _no_spread(arr):
        return 0.0
    return _finite_or_zero(stats.skew(arr, bias=True))


def kurtosis(values: Sequence[float]) -> float:
    """Population excess kurtosis; 0 when n < 4 or the values have no spread."""
    arr = _as_array(values)
    if arr.size < 4 or _no_spread(arr):
        return 0.0
    return _finite_or_zero(stats.kurtosis(arr, fisher=True, bias=True))


def mode(values: Sequence[float], num_bins: int = 20) -> float:
    """
    Approximate mode of continuous data.

    Centre of the most populated of `num_bins` equal-width bins over
    [min, max]. All-equal input returns that value.
    """
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    lo = float(arr.min())
    hi = float(arr.max())
    if lo == hi:
        return lo

    counts, edges = np.histogram(arr, bins=num_bins, range=(lo, hi))
    best = int(np.argmax(counts))
    return float((edges[best] + edges[best + 1]) / 2.0)


# =============================================================================
# Dependence
# =============================================================================

def covariance(x: Sequence[float], y: Sequence[float]) -> float:
    """Population covariance; 0 for mismatched lengths or n < 2."""
    a = _as_array(x)
    b = _as_array(y)
    if a.size != b.size or a.size < 2:
        return 0.0
    return float(np.mean((a - a.mean()) * (b - b.mean())))


def correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson correlation clipped to [-1, 1].

    0 for mismatched lengths, n < 2, or when either input has zero spread.
    """
    a = _as_array(x)
    b = _as_array(y)
    if a.size != b.size or a.size < 2:
        return 0.0
    sd_a = std_dev(a)
    sd_b = std_dev(b)
    if sd_a == 0.0 or sd_b == 0.0:
        return 0.0
    r = covariance(a, b) / (sd_a * sd_b)
    return float(np.clip(r, -1.0, 1.0))


def covariance_matrix(samples) -> List[List[float]]:
    """Pairwise population covariances of the columns of a [n, k] matrix."""
    matrix = np.asarray(samples, dtype=np.float64)
    if matrix.size == 0 or matrix.ndim != 2:
        return []
    k = matrix.shape[1]
    result = [[0.0] * k for _ in range(k)]
    for i in range(k):
        for j in range(i, k):
            cov = covariance(matrix[:, i], matrix[:, j])
            result[i][j] = cov
            result[j][i] = cov
    return result


def correlation_matrix(samples) -> List[List[float]]:
    """Pairwise correlations of the columns of a [n, k] matrix; 1 on the diagonal."""
    matrix = np.asarray(samples, dtype=np.float64)
    if matrix.size == 0 or matrix.ndim != 2:
        return []
    k = matrix.shape[1]
    result = [[0.0] * k for _ in range(k)]
    for i in range(k):
        result[i][i] = 1.0
        for j in range(i + 1, k):
            r = correlation(matrix[:, i], matrix[:, j])
            result[i][j] = r
            result[j][i] = r
    return result


# =============================================================================
# Credible Intervals
# =============================================================================

def equal_tailed_interval(values: Sequence[float], probability: float = 0.95) -> CredibleInterval:
    """Interval between the (1-p)/2 and (1+p)/2 percentiles."""
    lower = percentile(values, (1.0 - probability) / 2.0 * 100.0)
    upper = percentile(values, (1.0 + probability) / 2.0 * 100.0)
    return CredibleInterval(lower=lower, upper=upper, probability=probability, kind="equal_tailed")


def hpd_interval(values: Sequence[float], probability: float = 0.95) -> CredibleInterval:
    """
    Highest posterior density interval.

    Narrowest window containing ceil(probability * n) of the sorted values.
    Empty input gives (0, 0).
    """
    arr = _as_array(values)
    n = arr.size
    if n == 0:
        return CredibleInterval(lower=0.0, upper=0.0, probability=probability, kind="hpd")

    ordered = np.sort(arr)
    window = min(max(int(math.ceil(probability * n)), 1), n)

    # widths[i] spans ordered[i] .. ordered[i + window - 1]
    widths = ordered[window - 1:] - ordered[:n - window + 1]
    best = int(np.argmin(widths))
    return CredibleInterval(
        lower=float(ordered[best]),
        upper=float(ordered[best + window - 1]),
        probability=probability,
        kind="hpd",
    )


# =============================================================================
# Summary
# =============================================================================

def compute_sample_statistics(
    samples,
    percentile_points: Sequence[float] = DEFAULT_PERCENTILES
) -> SampleStatistics:
    """
    Per-variable statistics of a [n_samples, n_variables] matrix.

    Args:
        samples: Sample matrix (rows are samples)
        percentile_points: Percentiles to report

    Returns:
        SampleStatistics with one entry per column
    """
    matrix = np.asarray(samples, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] == 0:
        k = matrix.shape[1] if matrix.ndim == 2 else 0
        return SampleStatistics(
            mean=[0.0] * k,
            variance=[0.0] * k,
            std_dev=[0.0] * k,
            percentiles={float(p): [0.0] * k for p in percentile_points},
            correlations=[],
            skewness=[0.0] * k,
            kurtosis=[0.0] * k,
        )

    columns = [matrix[:, j] for j in range(matrix.shape[1])]
    means = [mean(col) for col in columns]
    variances = [variance(col, m) for col, m in zip(columns, means)]

    per_column = [percentiles(col, percentile_points) for col in columns]
    pct = {float(p): [pc[float(p)] for pc in per_column] for p in percentile_points}

    return SampleStatistics(
        mean=means,
        variance=variances,
        std_dev=[math.sqrt(v) for v in variances],
        percentiles=pct,
        correlations=correlation_matrix(matrix),
        skewness=[skewness(col) for col in columns],
        kurtosis=[kurtosis(col) for col in columns],
    )


# =============================================================================
# Probability Queries
# =============================================================================

def prob_exceeds_threshold(values: Sequence[float], threshold: float) -> float:
    """Fraction of values strictly above threshold."""
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(np.mean(arr > threshold))


def prob_in_range(values: Sequence[float], low: float, high: float) -> float:
    """Fraction of values in [low, high] (inclusive)."""
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(np.mean((arr >= low) & (arr <= high)))


def prob_a_exceeds_b(a: Sequence[float], b: Sequence[float]) -> float:
    """Fraction of paired draws where a > b; 0 for unequal lengths or empty input."""
    arr_a = _as_array(a)
    arr_b = _as_array(b)
    if arr_a.size != arr_b.size or arr_a.size == 0:
        return 0.0
    return float(np.mean(arr_a > arr_b))
