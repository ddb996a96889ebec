"""
Core data structures for the stochastic simulation engine.

Distribution specifications, stochastic models, simulation configuration,
and the result containers produced by the Monte Carlo engine.
"""

from dataclasses import dataclass, field, replace, asdict
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, List, Optional, Sequence, Tuple, Union
import math

import numpy as np
import pandas as pd


# =============================================================================
# Distribution Specifications
# =============================================================================

@dataclass(frozen=True)
class Normal:
    """Normal distribution N(mean, std_dev)."""
    type: ClassVar[str] = "normal"
    mean: float
    std_dev: float


@dataclass(frozen=True)
class Uniform:
    """Continuous uniform distribution on [min, max)."""
    type: ClassVar[str] = "uniform"
    min: float
    max: float


@dataclass(frozen=True)
class Exponential:
    """Exponential distribution with the given rate (1 / mean)."""
    type: ClassVar[str] = "exponential"
    rate: float


@dataclass(frozen=True)
class Poisson:
    """Poisson distribution. `lam` is the expected count."""
    type: ClassVar[str] = "poisson"
    lam: float


@dataclass(frozen=True)
class Binomial:
    """Number of successes in n Bernoulli(p) trials."""
    type: ClassVar[str] = "binomial"
    n: int
    p: float


@dataclass(frozen=True)
class Categorical:
    """
    Categorical distribution over named outcomes.

    Attributes:
        probabilities: Category label -> probability. Insertion order defines
                       the ordinal index returned by the sampler.
    """
    type: ClassVar[str] = "categorical"
    probabilities: Dict[str, float]


@dataclass(frozen=True)
class Beta:
    type: ClassVar[str] = "beta"
    alpha: float
    beta: float


@dataclass(frozen=True)
class Gamma:
    """Gamma distribution in shape/scale parameterisation (mean = shape * scale)."""
    type: ClassVar[str] = "gamma"
    shape: float
    scale: float


@dataclass(frozen=True)
class LogNormal:
    """exp(X) where X ~ N(mu, sigma)."""
    type: ClassVar[str] = "lognormal"
    mu: float
    sigma: float


@dataclass(frozen=True)
class Triangular:
    type: ClassVar[str] = "triangular"
    min: float
    mode: float
    max: float


@dataclass(frozen=True)
class Custom:
    """Caller-supplied nullary sampling function, used verbatim."""
    type: ClassVar[str] = "custom"
    sampler: Callable[[], float]


Distribution = Union[
    Normal, Uniform, Exponential, Poisson, Binomial, Categorical,
    Beta, Gamma, LogNormal, Triangular, Custom,
]

DISTRIBUTION_TYPES: Dict[str, type] = {
    cls.type: cls
    for cls in (
        Normal, Uniform, Exponential, Poisson, Binomial, Categorical,
        Beta, Gamma, LogNormal, Triangular, Custom,
    )
}


# =============================================================================
# Stochastic Model
# =============================================================================

@dataclass(frozen=True)
class StochasticVariable:
    """
    A named random variable in a stochastic model.

    Attributes:
        name: Variable name (column name in the sample matrix)
        distribution: Distribution the variable is drawn from
        description: Optional free-text description
    """
    name: str
    distribution: Distribution
    description: Optional[str] = None


@dataclass(frozen=True)
class StochasticModel:
    """
    Ordered, read-only collection of stochastic variables.

    Column j of every simulated sample row corresponds to variables[j].
    """
    variables: Tuple[StochasticVariable, ...]
    model_id: str = "model"
    description: Optional[str] = None

    def __post_init__(self) -> None:
        # Accept any sequence but store a tuple so the model stays read-only
        object.__setattr__(self, "variables", tuple(self.variables))
        names = [v.name for v in self.variables]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate variable names in model: {duplicates}")

    @classmethod
    def from_pairs(
        cls,
        pairs: Sequence[Tuple[str, Distribution]],
        model_id: str = "model",
        description: Optional[str] = None
    ) -> 'StochasticModel':
        """Build a model from (name, distribution) pairs."""
        return cls(
            variables=tuple(StochasticVariable(name, dist) for name, dist in pairs),
            model_id=model_id,
            description=description,
        )

    @property
    def variable_names(self) -> List[str]:
        return [v.name for v in self.variables]

    def __len__(self) -> int:
        return len(self.variables)


# =============================================================================
# Simulation Configuration
# =============================================================================

@dataclass
class MonteCarloConfig:
    """
    Monte Carlo simulation configuration.

    Attributes:
        iterations: Number of iterations to run
        burn_in: Initial iterations to discard. None -> 10% of iterations.
        thinning: Keep every Nth post-burn-in iteration
        convergence_threshold: Stop early when the max relative change of the
                               per-variable means over 100 kept samples drops
                               below this value
        seed: Random seed. None -> drawn from the engine's seed source.
        timeout: Wall-clock budget in seconds
        progress_interval: Report progress every N iterations. None -> 1% of iterations.
        chains: Number of independent chains for multi-chain runs
    """
    iterations: int
    burn_in: Optional[int] = None
    thinning: int = 1
    convergence_threshold: float = 0.01
    seed: Optional[int] = None
    timeout: float = 60.0
    progress_interval: Optional[int] = None
    chains: int = 1

    def __post_init__(self) -> None:
        if self.iterations < 1:
            raise ValueError("MonteCarloConfig.iterations must be at least 1.")
        if self.burn_in is not None and self.burn_in < 0:
            raise ValueError("MonteCarloConfig.burn_in must be non-negative.")
        if self.thinning < 1:
            raise ValueError("MonteCarloConfig.thinning must be at least 1.")
        if self.convergence_threshold < 0:
            raise ValueError("MonteCarloConfig.convergence_threshold must be non-negative.")
        if self.timeout < 0:
            raise ValueError("MonteCarloConfig.timeout must be non-negative.")
        if self.progress_interval is not None and self.progress_interval < 1:
            raise ValueError("MonteCarloConfig.progress_interval must be at least 1.")
        if self.chains < 1:
            raise ValueError("MonteCarloConfig.chains must be at least 1.")

    def resolve(self, seed: int) -> 'MonteCarloConfig':
        """
        Return a copy with every optional field filled in.

        Args:
            seed: Seed to use when this config does not carry one
        """
        from .config import DEFAULT_BURN_IN_FRACTION, DEFAULT_PROGRESS_FRACTION

        return replace(
            self,
            burn_in=(
                self.burn_in if self.burn_in is not None
                else int(self.iterations * DEFAULT_BURN_IN_FRACTION)
            ),
            seed=self.seed if self.seed is not None else seed,
            progress_interval=(
                self.progress_interval if self.progress_interval is not None
                else max(1, int(self.iterations * DEFAULT_PROGRESS_FRACTION))
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# Progress & Results
# =============================================================================

class SimulationState(str, Enum):
    """Lifecycle state of a Monte Carlo run."""
    IDLE = "idle"
    RUNNING = "running"
    CONVERGED_EARLY_STOP = "converged_early_stop"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"


@dataclass
class SimulationProgress:
    """
    Progress update passed to the simulation progress callback.

    Attributes:
        completed: Iterations completed
        total: Iterations planned
        percentage: Rounded completion percentage (0-100)
        estimated_remaining: Linear-extrapolated seconds remaining
        samples_collected: Rows kept so far (after burn-in and thinning)
        current_convergence: Latest max relative change of means, if computed
    """
    completed: int
    total: int
    percentage: int
    estimated_remaining: float
    samples_collected: int
    current_convergence: Optional[float] = None


@dataclass
class SampleStatistics:
    """
    Per-variable summary statistics of a sample matrix.

    Lists are indexed by variable (column). `percentiles` maps a percentile
    point (e.g. 2.5) to the per-variable values at that point.
    """
    mean: List[float]
    variance: List[float]
    std_dev: List[float]
    percentiles: Dict[float, List[float]]
    correlations: List[List[float]]
    skewness: List[float] = field(default_factory=list)
    kurtosis: List[float] = field(default_factory=list)


@dataclass
class ConvergenceDiagnostics:
    """
    Convergence diagnostics for a simulated chain.

    Attributes:
        geweke_statistic: Aggregate Geweke z-score (RMS across variables)
        effective_sample_size: Minimum ESS across variables
        r_hat: Split-chain R-hat of the first variable
        has_converged: Verdict of assess_convergence()
        autocorrelation: ACF of the first variable, if computed
        mcse: Per-variable Monte Carlo standard error, if computed
    """
    geweke_statistic: float
    effective_sample_size: int
    r_hat: float
    has_converged: bool
    autocorrelation: Optional[List[float]] = None
    mcse: Optional[List[float]] = None


@dataclass
class MonteCarloResult:
    """
    Complete result of a Monte Carlo run.

    Attributes:
        samples: [n_kept, n_variables] read-only float64 sample matrix
        variable_names: Column names of `samples`
        statistics: Summary statistics over `samples`
        convergence_diagnostics: Diagnostics over `samples`
        execution_time: Wall-clock seconds spent in the run
        effective_samples: Rows kept after burn-in and thinning
        success: True for every terminal state (completed, early stop, timeout)
        config: Fully resolved configuration used for the run
        warnings: Soft conditions recorded during the run (e.g. timeout)
        state: Terminal state of the run
    """
    samples: np.ndarray
    variable_names: List[str]
    statistics: SampleStatistics
    convergence_diagnostics: ConvergenceDiagnostics
    execution_time: float
    effective_samples: int
    success: bool
    config: MonteCarloConfig
    warnings: List[str] = field(default_factory=list)
    state: SimulationState = SimulationState.COMPLETED

    def column(self, name: str) -> np.ndarray:
        """Return the samples of a single variable by name."""
        try:
            idx = self.variable_names.index(name)
        except ValueError:
            raise KeyError(f"Unknown variable '{name}'") from None
        return self.samples[:, idx]

    def to_frame(self):
        """Sample matrix as a pandas DataFrame, one column per variable."""
        return pd.DataFrame(self.samples, columns=self.variable_names)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serialisable summary (raw samples excluded)."""
        return {
            'variable_names': list(self.variable_names),
            'statistics': {
                'mean': self.statistics.mean,
                'variance': self.statistics.variance,
                'std_dev': self.statistics.std_dev,
                'percentiles': {str(p): v for p, v in self.statistics.percentiles.items()},
                'correlations': self.statistics.correlations,
                'skewness': self.statistics.skewness,
                'kurtosis': self.statistics.kurtosis,
            },
            'convergence_diagnostics': asdict(self.convergence_diagnostics),
            'execution_time': self.execution_time,
            'effective_samples': self.effective_samples,
            'success': self.success,
            'config': self.config.to_dict(),
            'warnings': list(self.warnings),
            'state': self.state.value,
        }


# =============================================================================
# RNG State & Sampling Results
# =============================================================================

@dataclass
class RNGState:
    """
    Checkpoint of a RandomStream.

    Attributes:
        seed: Seed the stream was created (or last reseeded) with
        count: Number of uniforms drawn since that seed
        bit_generator_state: numpy bit generator state dict
    """
    seed: int
    count: int
    bit_generator_state: Dict[str, Any]


@dataclass
class SamplingResult:
    """Draws from a single distribution plus their basic statistics."""
    samples: np.ndarray
    mean: float
    variance: float
    min: float
    max: float
    time: float

    @property
    def count(self) -> int:
        return len(self.samples)


def is_finite_number(value: Any) -> bool:
    """True for real, finite numbers (bools excluded)."""
    if isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except TypeError:
        return False
