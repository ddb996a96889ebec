"""Monte Carlo simulation engine."""

from .engine import MonteCarloEngine, CONVERGENCE_CHECK_INTERVAL

__all__ = ["MonteCarloEngine", "CONVERGENCE_CHECK_INTERVAL"]
