"""
Monte Carlo simulation engine.

Runs a stochastic model (or a caller-supplied sampler + evaluator) for a
fixed number of iterations, applying burn-in and thinning, honouring a
cooperative wall-clock timeout, reporting progress through a synchronous
callback, and stopping early once the per-variable means settle.
"""

import logging
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from ..config import CONVERGENCE_CHECK_INTERVAL
from ..types import (
    StochasticModel, MonteCarloConfig, MonteCarloResult, SimulationProgress, SimulationState,
)
from ..sampling.rng import RandomStream, generate_seed
from ..sampling.distributions import create_sampler
from ..analysis.statistics import compute_sample_statistics
from ..analysis.convergence import compute_convergence_diagnostics

logger = logging.getLogger(__name__)

# Variables whose previous mean is this close to 0 are left out of the
# relative-change metric
MEAN_EPSILON = 1e-4

ProgressCallback = Callable[[SimulationProgress], None]
RowSampler = Callable[[], Sequence[float]]
Evaluator = Callable[[Dict[str, float]], Sequence[float]]


class MonteCarloEngine:
    """
    Monte Carlo engine bound to one configuration and one RandomStream.

    The stream persists across simulate() calls, so consecutive runs continue
    the same sequence unless reseed() is called. Not safe to share between
    threads; use one engine per chain.

    Args:
        config: Simulation configuration. Optional fields are resolved here.
        clock: Monotonic clock in seconds, used for timeout and timing
        seed_source: Called for a seed when config.seed is None
    """

    def __init__(
        self,
        config: MonteCarloConfig,
        clock: Callable[[], float] = time.perf_counter,
        seed_source: Callable[[], int] = generate_seed
    ):
        self.config = config.resolve(seed_source() if config.seed is None else config.seed)
        self._clock = clock
        self._stream = RandomStream(self.config.seed)
        self.state = SimulationState.IDLE

    @property
    def stream(self) -> RandomStream:
        """Stream shared by the engine's samplers; custom row samplers may draw from it."""
        return self._stream

    def reseed(self, seed: int) -> None:
        """Restart the stream from `seed` and record it in the config."""
        self._stream.reseed(seed)
        self.config = replace(self.config, seed=int(seed))

    def simulate(
        self,
        model: StochasticModel,
        on_progress: Optional[ProgressCallback] = None
    ) -> MonteCarloResult:
        """
        Simulate every variable of `model` independently.

        Column j of the sample matrix holds draws of model.variables[j].
        """
        samplers = [create_sampler(v.distribution, self._stream) for v in model.variables]

        def draw_row() -> List[float]:
            return [s.sample() for s in samplers]

        logger.info(
            f"Simulating model '{model.model_id}' ({len(samplers)} variables, "
            f"{self.config.iterations} iterations, seed={self.config.seed})"
        )
        return self._run(model.variable_names, draw_row, on_progress)

    def simulate_with_evaluator(
        self,
        variable_names: List[str],
        sampler: RowSampler,
        evaluator: Evaluator,
        on_progress: Optional[ProgressCallback] = None,
        output_names: Optional[List[str]] = None
    ) -> MonteCarloResult:
        """
        Simulate an arbitrary model.

        Each iteration calls `sampler()` for one value per input variable,
        maps them to `variable_names`, and keeps `evaluator(values)` as the
        sample row.

        Args:
            variable_names: Names of the sampler's outputs, in order
            sampler: Returns one value per input variable
            evaluator: Maps {name: value} to the output row
            on_progress: Optional progress callback
            output_names: Column names of the evaluator output.
                          None -> variable_names.
        """
        def draw_row() -> List[float]:
            values = sampler()
            if len(values) != len(variable_names):
                raise ValueError(
                    f"Sampler returned {len(values)} values for {len(variable_names)} variables"
                )
            return [float(v) for v in evaluator(dict(zip(variable_names, values)))]

        names = list(output_names) if output_names is not None else list(variable_names)
        logger.info(
            f"Simulating evaluator model ({len(variable_names)} inputs, "
            f"{self.config.iterations} iterations, seed={self.config.seed})"
        )
        return self._run(names, draw_row, on_progress)

    def _run(
        self,
        variable_names: List[str],
        draw_row: Callable[[], List[float]],
        on_progress: Optional[ProgressCallback]
    ) -> MonteCarloResult:
        cfg = self.config
        iterations = cfg.iterations
        burn_in = cfg.burn_in
        thinning = cfg.thinning
        interval = cfg.progress_interval

        self.state = SimulationState.RUNNING
        warnings: List[str] = []
        kept: List[List[float]] = []
        width: Optional[int] = None

        column_sums: Optional[np.ndarray] = None
        last_means: Optional[np.ndarray] = None
        convergence_metric: Optional[float] = None
        stopped_early = False
        timed_out = False

        start = self._clock()

        for i in range(iterations):
            elapsed = self._clock() - start
            if elapsed > cfg.timeout:
                message = f"Simulation timed out after {cfg.timeout}s"
                warnings.append(message)
                logger.warning(f"{message} ({i} of {iterations} iterations, {len(kept)} samples kept)")
                timed_out = True
                break

            row = draw_row()
            if width is None:
                width = len(row)
                column_sums = np.zeros(width)
            elif len(row) != width:
                raise ValueError(f"Sample row at iteration {i} has {len(row)} values, expected {width}")

            appended = False
            if i >= burn_in and (i - burn_in) % thinning == 0:
                kept.append(row)
                column_sums += row
                appended = True

            if on_progress is not None and i % interval == 0:
                on_progress(SimulationProgress(
                    completed=i + 1,
                    total=iterations,
                    percentage=int((i + 1) / iterations * 100 + 0.5),
                    estimated_remaining=elapsed / (i + 1) * (iterations - i - 1),
                    samples_collected=len(kept),
                    current_convergence=convergence_metric,
                ))

            if appended and len(kept) % CONVERGENCE_CHECK_INTERVAL == 0:
                means = column_sums / len(kept)
                if last_means is not None:
                    convergence_metric = _max_relative_change(means, last_means)
                    if convergence_metric < cfg.convergence_threshold:
                        logger.info(
                            f"Converged after {i + 1} iterations "
                            f"(max relative change {convergence_metric:.4g} < {cfg.convergence_threshold})"
                        )
                        stopped_early = True
                        break
                last_means = means

        k = width if width is not None else len(variable_names)
        samples = np.array(kept, dtype=np.float64).reshape(len(kept), k)
        samples.setflags(write=False)

        statistics = compute_sample_statistics(samples)
        diagnostics = compute_convergence_diagnostics(samples)

        if timed_out:
            self.state = SimulationState.TIMED_OUT
        elif stopped_early:
            self.state = SimulationState.CONVERGED_EARLY_STOP
        else:
            self.state = SimulationState.COMPLETED

        if on_progress is not None:
            on_progress(SimulationProgress(
                completed=iterations,
                total=iterations,
                percentage=100,
                estimated_remaining=0.0,
                samples_collected=len(kept),
                current_convergence=diagnostics.geweke_statistic,
            ))

        execution_time = self._clock() - start
        logger.info(
            f"Simulation finished: {self.state.value}, {len(kept)} samples kept "
            f"in {execution_time:.2f}s"
        )

        return MonteCarloResult(
            samples=samples,
            variable_names=list(variable_names),
            statistics=statistics,
            convergence_diagnostics=diagnostics,
            execution_time=execution_time,
            effective_samples=len(kept),
            success=True,
            config=replace(cfg),
            warnings=warnings,
            state=self.state,
        )


def _max_relative_change(current: np.ndarray, previous: np.ndarray) -> float:
    """Largest |current - previous| / |previous| over variables with non-negligible previous mean."""
    mask = np.abs(previous) > MEAN_EPSILON
    if not mask.any():
        return 0.0
    return float(np.max(np.abs((current[mask] - previous[mask]) / previous[mask])))
