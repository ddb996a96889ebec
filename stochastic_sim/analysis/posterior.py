"""
Posterior summaries for simulated variables.
"""

from dataclasses import dataclass, asdict
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from .statistics import CredibleInterval, mean, std_dev, median, equal_tailed_interval, hpd_interval
from .convergence import effective_sample_size, mcse


@dataclass
class PosteriorSummary:
    """
    Summary of one variable's draws.

    Attributes:
        name: Variable name
        mean: Posterior mean
        std_dev: Posterior standard deviation (population)
        median: Posterior median
        ci95: 95% equal-tailed interval
        hpd95: 95% highest density interval
        mcse: Monte Carlo standard error of the mean
        ess: Effective sample size
    """
    name: str
    mean: float
    std_dev: float
    median: float
    ci95: CredibleInterval
    hpd95: CredibleInterval
    mcse: float
    ess: int


def summarize_posterior(values: Sequence[float], name: str) -> PosteriorSummary:
    arr = np.asarray(values, dtype=np.float64).ravel()
    return PosteriorSummary(
        name=name,
        mean=mean(arr),
        std_dev=std_dev(arr),
        median=median(arr),
        ci95=equal_tailed_interval(arr, 0.95),
        hpd95=hpd_interval(arr, 0.95),
        mcse=mcse(arr),
        ess=effective_sample_size(arr),
    )


def summarize_all_posteriors(
    samples,
    variable_names: Optional[List[str]] = None
) -> List[PosteriorSummary]:
    """
    One PosteriorSummary per column of a [n_samples, n_variables] matrix.

    Columns without a name are called var_{j}.
    """
    matrix = np.asarray(samples, dtype=np.float64)
    if matrix.size == 0:
        return []
    if matrix.ndim == 1:
        matrix = matrix[:, None]

    names = list(variable_names or [])
    return [
        summarize_posterior(matrix[:, j], names[j] if j < len(names) else f"var_{j}")
        for j in range(matrix.shape[1])
    ]


def summaries_to_frame(summaries: List[PosteriorSummary]) -> pd.DataFrame:
    """Flatten summaries into a DataFrame indexed by variable name."""
    rows = []
    for s in summaries:
        row = asdict(s)
        ci = row.pop('ci95')
        hpd = row.pop('hpd95')
        row['ci95_lower'] = ci['lower']
        row['ci95_upper'] = ci['upper']
        row['hpd95_lower'] = hpd['lower']
        row['hpd95_upper'] = hpd['upper']
        rows.append(row)

    columns = [
        'name', 'mean', 'std_dev', 'median', 'ci95_lower', 'ci95_upper',
        'hpd95_lower', 'hpd95_upper', 'mcse', 'ess',
    ]
    return pd.DataFrame(rows, columns=columns).set_index('name')
