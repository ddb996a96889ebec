"""
Stochastic simulation and convergence diagnostics.

Distribution samplers over a seeded random stream, a Monte Carlo engine with
burn-in, thinning, timeout and early stopping, and statistical summaries plus
MCMC convergence diagnostics over the resulting sample matrix.
"""

from .types import (
    Normal, Uniform, Exponential, Poisson, Binomial, Categorical,
    Beta, Gamma, LogNormal, Triangular, Custom,
    StochasticVariable, StochasticModel, MonteCarloConfig, MonteCarloResult,
    SimulationProgress, SimulationState, SampleStatistics, ConvergenceDiagnostics,
)
from .sampling import RandomStream, create_sampler
from .simulation import MonteCarloEngine
from .pipeline import run_monte_carlo_simulation, run_chains, ChainRunResult

__version__ = "0.1.0"

__all__ = [
    "Normal", "Uniform", "Exponential", "Poisson", "Binomial", "Categorical",
    "Beta", "Gamma", "LogNormal", "Triangular", "Custom",
    "StochasticVariable", "StochasticModel", "MonteCarloConfig", "MonteCarloResult",
    "SimulationProgress", "SimulationState", "SampleStatistics", "ConvergenceDiagnostics",
    "RandomStream", "create_sampler", "MonteCarloEngine",
    "run_monte_carlo_simulation", "run_chains", "ChainRunResult",
]
