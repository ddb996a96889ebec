"""Random streams and distribution samplers."""

from .rng import (
    RandomStream,
    create_stream,
    create_parallel_streams,
    spawn_seeds,
    generate_seed,
)
from .distributions import (
    DistributionSampler,
    NormalSampler,
    UniformSampler,
    ExponentialSampler,
    PoissonSampler,
    BinomialSampler,
    CategoricalSampler,
    GammaSampler,
    BetaSampler,
    LogNormalSampler,
    TriangularSampler,
    CustomSampler,
    create_sampler,
    sample_with_statistics,
)

__all__ = [
    "RandomStream",
    "create_stream",
    "create_parallel_streams",
    "spawn_seeds",
    "generate_seed",
    "DistributionSampler",
    "NormalSampler",
    "UniformSampler",
    "ExponentialSampler",
    "PoissonSampler",
    "BinomialSampler",
    "CategoricalSampler",
    "GammaSampler",
    "BetaSampler",
    "LogNormalSampler",
    "TriangularSampler",
    "CustomSampler",
    "create_sampler",
    "sample_with_statistics",
]
