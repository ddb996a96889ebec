"""Statistics, density estimation, convergence diagnostics and posterior summaries."""

from .statistics import (
    CredibleInterval,
    mean,
    variance,
    std_dev,
    median,
    percentile,
    percentiles,
    skewness,
    kurtosis,
    mode,
    covariance,
    correlation,
    covariance_matrix,
    correlation_matrix,
    equal_tailed_interval,
    hpd_interval,
    compute_sample_statistics,
    prob_exceeds_threshold,
    prob_in_range,
    prob_a_exceeds_b,
)
from .density import HistogramBin, DensityPoint, histogram, kde, silverman_bandwidth
from .convergence import (
    ConvergenceAssessment,
    TraceStats,
    DiagnosticSummary,
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
from .posterior import PosteriorSummary, summarize_posterior, summarize_all_posteriors, summaries_to_frame

__all__ = [
    "CredibleInterval",
    "mean",
    "variance",
    "std_dev",
    "median",
    "percentile",
    "percentiles",
    "skewness",
    "kurtosis",
    "mode",
    "covariance",
    "correlation",
    "covariance_matrix",
    "correlation_matrix",
    "equal_tailed_interval",
    "hpd_interval",
    "compute_sample_statistics",
    "prob_exceeds_threshold",
    "prob_in_range",
    "prob_a_exceeds_b",
    "HistogramBin",
    "DensityPoint",
    "histogram",
    "kde",
    "silverman_bandwidth",
    "ConvergenceAssessment",
    "TraceStats",
    "DiagnosticSummary",
    "autocorrelation",
    "integrated_autocorrelation_time",
    "effective_sample_size",
    "effective_sample_size_multiple",
    "min_effective_sample_size",
    "geweke_statistic",
    "geweke_statistic_multiple",
    "aggregate_geweke_statistic",
    "r_hat_single_chain",
    "r_hat_multiple_chains",
    "mcse",
    "mcse_multiple",
    "assess_convergence",
    "compute_convergence_diagnostics",
    "trace_statistics",
    "generate_diagnostic_summary",
    "PosteriorSummary",
    "summarize_posterior",
    "summarize_all_posteriors",
    "summaries_to_frame",
]
