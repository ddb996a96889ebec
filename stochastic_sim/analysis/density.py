"""
Density estimation: fixed-width histograms and Gaussian KDE.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
from scipy import stats


@dataclass
class HistogramBin:
    center: float
    count: int
    density: float


@dataclass
class DensityPoint:
    x: float
    density: float


def histogram(values: Sequence[float], num_bins: int = 30) -> List[HistogramBin]:
    """
    Equal-width histogram over [min, max].

    density = count / (n * bin_width), so the bins integrate to 1.
    All-equal input yields a single bin at that value with density 1.
    """
    arr = np.asarray(values, dtype=np.float64).ravel()
    n = arr.size
    if n == 0:
        return []
    if num_bins < 1:
        raise ValueError(f"num_bins must be at least 1, got {num_bins}")

    lo = float(arr.min())
    hi = float(arr.max())
    if lo == hi:
        return [HistogramBin(center=lo, count=n, density=1.0)]

    counts, edges = np.histogram(arr, bins=num_bins, range=(lo, hi))
    width = (hi - lo) / num_bins
    centers = (edges[:-1] + edges[1:]) / 2.0

    return [
        HistogramBin(center=float(c), count=int(k), density=float(k) / (n * width))
        for c, k in zip(centers, counts)
    ]


def silverman_bandwidth(values: Sequence[float]) -> float:
    """Silverman's rule of thumb: 1.06 * sd * n^(-1/5), population sd."""
    arr = np.asarray(values, dtype=np.float64).ravel()
    n = arr.size
    if n < 2:
        return 0.0
    return float(1.06 * arr.std() * n ** (-0.2))


def kde(
    values: Sequence[float],
    num_points: int = 100,
    bandwidth: Optional[float] = None
) -> List[DensityPoint]:
    """
    Gaussian kernel density estimate on an even grid over [min, max].

    Args:
        values: Samples
        num_points: Grid size
        bandwidth: Kernel bandwidth. None -> Silverman's rule.

    Returns:
        Density at each grid point. A zero bandwidth (no spread) collapses to
        a single point (min, 1).
    """
    arr = np.asarray(values, dtype=np.float64).ravel()
    n = arr.size
    if n == 0:
        return []

    h = silverman_bandwidth(arr) if bandwidth is None else float(bandwidth)
    lo = float(arr.min())
    if h <= 0.0:
        return [DensityPoint(x=lo, density=1.0)]

    grid = np.linspace(lo, float(arr.max()), max(num_points, 1))
    # [n_points, n_samples] kernel evaluations
    kernel = stats.norm.pdf((grid[:, None] - arr[None, :]) / h)
    density = kernel.sum(axis=1) / (n * h)

    return [DensityPoint(x=float(x), density=float(d)) for x, d in zip(grid, density)]
