"""
Simulation diagnostics and reporting.

Cross-chain R-hat, a combined diagnostics dict for a single result
(posterior summaries, trace stabilisation, convergence advice), and
plain-text console formatting.
"""

from typing import Dict, List
import logging

import numpy as np

from .types import MonteCarloResult
from .analysis.convergence import (
    DiagnosticSummary,
    r_hat_multiple_chains,
    trace_statistics,
    generate_diagnostic_summary,
)
from .analysis.posterior import summarize_all_posteriors

logger = logging.getLogger(__name__)


# =============================================================================
# Multi-Chain R-hat
# =============================================================================

def multi_chain_r_hat(results: List[MonteCarloResult]) -> Dict[str, float]:
    """
    Gelman-Rubin R-hat per variable across independent runs.

    Variables are matched by name; a variable missing from any run is
    skipped. Fewer than two runs gives 1 for every variable.
    """
    if not results:
        return {}

    names = results[0].variable_names
    r_hat = {}
    for name in names:
        if not all(name in r.variable_names for r in results):
            logger.warning(f"Variable '{name}' missing from some chains, skipping R-hat")
            continue
        chains = [r.column(name) for r in results]
        r_hat[name] = r_hat_multiple_chains(chains)
    return r_hat


# =============================================================================
# Full Diagnostics
# =============================================================================

def compute_full_diagnostics(result: MonteCarloResult) -> Dict:
    """
    Collect every diagnostic for a result into one dict.

    Returns:
        Dict with keys 'posteriors', 'traces', 'summary', 'state', 'warnings'
    """
    samples = np.asarray(result.samples)
    posteriors = summarize_all_posteriors(samples, result.variable_names)

    traces = []
    for j, name in enumerate(result.variable_names):
        column = samples[:, j] if samples.shape[0] > 0 else np.zeros(0)
        traces.append(trace_statistics(column, name))

    return {
        'posteriors': posteriors,
        'traces': traces,
        'summary': generate_diagnostic_summary(samples),
        'state': result.state.value,
        'warnings': list(result.warnings),
    }


# =============================================================================
# Formatting
# =============================================================================

def format_diagnostic_summary(summary: DiagnosticSummary) -> str:
    """Format a DiagnosticSummary into readable console output."""
    lines = []
    lines.append("CONVERGENCE DIAGNOSTICS")
    lines.append("=" * 60)
    lines.append(f"  Samples:         {summary.total_samples}")
    lines.append(
        f"  Effective size:  {summary.effective_sample_size} "
        f"({summary.ess_ratio:.1%} of samples)"
    )
    lines.append(f"  Geweke z:        {summary.geweke_statistic:.3f}")
    lines.append(f"  R-hat (split):   {summary.r_hat:.4f}")
    verdict = "converged" if summary.converged else "NOT converged"
    lines.append(f"  Verdict:         {verdict} (confidence {summary.confidence:.2f})")

    if summary.issues:
        lines.append(f"\n  Issues:")
        for issue, advice in zip(summary.issues, summary.recommendations):
            lines.append(f"    - {issue}: {advice}")

    return "\n".join(lines)


def format_result(result: MonteCarloResult) -> str:
    """Format a MonteCarloResult into readable console output."""
    diag = compute_full_diagnostics(result)

    lines = []
    lines.append("MONTE CARLO SIMULATION")
    lines.append("=" * 60)
    lines.append(
        f"  State: {diag['state']}  |  {result.effective_samples} samples kept "
        f"of {result.config.iterations} iterations  |  {result.execution_time:.2f}s"
    )
    lines.append(
        f"  Burn-in: {result.config.burn_in}  Thinning: {result.config.thinning}  "
        f"Seed: {result.config.seed}"
    )

    if diag['posteriors']:
        lines.append(f"\n  {'Variable':<20} {'Mean':>12} {'Std':>10} {'95% CI':>26} {'ESS':>7}")
        for s in diag['posteriors']:
            ci = f"[{s.ci95.lower:.4g}, {s.ci95.upper:.4g}]"
            lines.append(
                f"  {s.name:<20} {s.mean:>12.4g} {s.std_dev:>10.4g} {ci:>26} {s.ess:>7}"
            )

    unstable = [t.name for t in diag['traces'] if len(t.running_mean) >= 100 and not t.stabilized]
    if unstable:
        lines.append(f"\n  Running mean not stabilised: {', '.join(unstable)}")

    cd = result.convergence_diagnostics
    lines.append(
        f"\n  Geweke: {cd.geweke_statistic:.3f}  ESS: {cd.effective_sample_size}  "
        f"R-hat: {cd.r_hat:.4f}  Converged: {cd.has_converged}"
    )

    if diag['warnings']:
        lines.append(f"\n  Warnings:")
        for warning in diag['warnings']:
            lines.append(f"    ! {warning}")

    lines.append("")
    lines.append(format_diagnostic_summary(diag['summary']))
    return "\n".join(lines)
