"""
Distribution samplers bound to a RandomStream.

One sampler class per distribution family behind a common abstract base.
Every sampler draws its uniforms from the stream it was created with, so a
model simulated twice from the same seed yields identical values. The number
of uniforms consumed per draw is documented on each class.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List
import math
import time

import numpy as np

from ..types import (
    Distribution, Normal, Uniform, Exponential, Poisson, Binomial, Categorical,
    Beta, Gamma, LogNormal, Triangular, Custom, SamplingResult, is_finite_number,
)
from .rng import RandomStream


# Knuth's multiplicative method underflows e^-lam past this point
POISSON_KNUTH_LIMIT = 30.0

CATEGORICAL_SUM_TOLERANCE = 1e-3

# Keeps Beta draws strictly inside (0, 1) when a gamma draw underflows
BETA_EPSILON = 1e-12


class DistributionSampler(ABC):
    """Base class for all samplers."""

    def __init__(self, stream: RandomStream):
        self.stream = stream

    @abstractmethod
    def sample(self) -> float:
        """Draw one value."""

    def sample_many(self, n: int) -> np.ndarray:
        """Draw n independent values."""
        if n < 0:
            raise ValueError(f"sample count must be non-negative, got {n}")
        return np.array([self.sample() for _ in range(n)], dtype=np.float64)

    @abstractmethod
    def get_type(self) -> str:
        """Distribution tag, e.g. 'normal'."""

    @abstractmethod
    def get_parameters(self) -> Dict[str, Any]:
        """Parameters the sampler was built with."""

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in self.get_parameters().items())
        return f"{type(self).__name__}({params})"


def _require_finite(name: str, value: Any) -> None:
    if not is_finite_number(value):
        raise ValueError(f"{name} must be a finite number, got {value!r}")


def _require_positive(name: str, value: Any) -> None:
    _require_finite(name, value)
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


# =============================================================================
# Continuous Samplers
# =============================================================================

class NormalSampler(DistributionSampler):
    """
    Normal distribution via the Box-Muller transform.

    Two uniforms produce two independent standard normals. The second one is
    cached on the instance and returned by the next call without touching the
    stream, so each pair of draws consumes exactly two uniforms.
    """

    def __init__(self, stream: RandomStream, mean: float = 0.0, std_dev: float = 1.0):
        super().__init__(stream)
        _require_finite("mean", mean)
        _require_positive("std_dev", std_dev)
        self.mean = float(mean)
        self.std_dev = float(std_dev)
        self._spare = None

    def sample(self) -> float:
        if self._spare is not None:
            z = self._spare
            self._spare = None
            return self.mean + self.std_dev * z

        # 1 - U lies in (0, 1], so the log is always defined
        u1 = 1.0 - self.stream.next()
        u2 = self.stream.next()
        radius = math.sqrt(-2.0 * math.log(u1))
        theta = 2.0 * math.pi * u2

        self._spare = radius * math.sin(theta)
        return self.mean + self.std_dev * radius * math.cos(theta)

    def get_type(self) -> str:
        return Normal.type

    def get_parameters(self) -> Dict[str, Any]:
        return {'mean': self.mean, 'std_dev': self.std_dev}


class UniformSampler(DistributionSampler):
    """Uniform on [min, max). One uniform per draw."""

    def __init__(self, stream: RandomStream, min: float, max: float):
        super().__init__(stream)
        _require_finite("min", min)
        _require_finite("max", max)
        if not min < max:
            raise ValueError(f"Uniform requires min < max, got min={min}, max={max}")
        self.min = float(min)
        self.max = float(max)

    def sample(self) -> float:
        return self.min + self.stream.next() * (self.max - self.min)

    def get_type(self) -> str:
        return Uniform.type

    def get_parameters(self) -> Dict[str, Any]:
        return {'min': self.min, 'max': self.max}


class ExponentialSampler(DistributionSampler):
    """Exponential by inversion: -ln(1 - U) / rate. One uniform per draw."""

    def __init__(self, stream: RandomStream, rate: float):
        super().__init__(stream)
        _require_positive("rate", rate)
        self.rate = float(rate)

    def sample(self) -> float:
        return -math.log(1.0 - self.stream.next()) / self.rate

    def get_type(self) -> str:
        return Exponential.type

    def get_parameters(self) -> Dict[str, Any]:
        return {'rate': self.rate}


class GammaSampler(DistributionSampler):
    """
    Gamma(shape, scale) via Marsaglia-Tsang.

    Each attempt consumes one standard normal (from a sampler-owned
    NormalSampler on the same stream) plus one uniform; rejected attempts
    repeat. Shapes below 1 are boosted: Gamma(shape + 1) * U^(1/shape),
    which costs one extra uniform.
    """

    def __init__(self, stream: RandomStream, shape: float, scale: float = 1.0):
        super().__init__(stream)
        _require_positive("shape", shape)
        _require_positive("scale", scale)
        self.shape = float(shape)
        self.scale = float(scale)
        self._normal = NormalSampler(stream, 0.0, 1.0)

    def _standard_gamma(self, shape: float) -> float:
        if shape < 1.0:
            boosted = self._standard_gamma(shape + 1.0)
            u = 1.0 - self.stream.next()
            return boosted * u ** (1.0 / shape)

        d = shape - 1.0 / 3.0
        c = 1.0 / math.sqrt(9.0 * d)
        while True:
            x = self._normal.sample()
            v = 1.0 + c * x
            if v <= 0.0:
                continue
            v = v * v * v
            u = self.stream.next()
            if u < 1.0 - 0.0331 * x ** 4:
                return d * v
            if u > 0.0 and math.log(u) < 0.5 * x * x + d * (1.0 - v + math.log(v)):
                return d * v

    def sample(self) -> float:
        return self._standard_gamma(self.shape) * self.scale

    def get_type(self) -> str:
        return Gamma.type

    def get_parameters(self) -> Dict[str, Any]:
        return {'shape': self.shape, 'scale': self.scale}


class BetaSampler(DistributionSampler):
    """Beta(alpha, beta) as X / (X + Y) with X ~ Gamma(alpha), Y ~ Gamma(beta)."""

    def __init__(self, stream: RandomStream, alpha: float, beta: float):
        super().__init__(stream)
        _require_positive("alpha", alpha)
        _require_positive("beta", beta)
        self.alpha = float(alpha)
        self.beta = float(beta)
        self._gamma_a = GammaSampler(stream, alpha, 1.0)
        self._gamma_b = GammaSampler(stream, beta, 1.0)

    def sample(self) -> float:
        x = self._gamma_a.sample()
        y = self._gamma_b.sample()
        total = x + y
        if total <= 0.0:
            return 0.5
        return min(max(x / total, BETA_EPSILON), 1.0 - BETA_EPSILON)

    def get_type(self) -> str:
        return Beta.type

    def get_parameters(self) -> Dict[str, Any]:
        return {'alpha': self.alpha, 'beta': self.beta}


class LogNormalSampler(DistributionSampler):
    """exp(N(mu, sigma)). Consumes uniforms like NormalSampler."""

    def __init__(self, stream: RandomStream, mu: float, sigma: float):
        super().__init__(stream)
        _require_finite("mu", mu)
        _require_positive("sigma", sigma)
        self.mu = float(mu)
        self.sigma = float(sigma)
        self._normal = NormalSampler(stream, mu, sigma)

    def sample(self) -> float:
        return math.exp(self._normal.sample())

    def get_type(self) -> str:
        return LogNormal.type

    def get_parameters(self) -> Dict[str, Any]:
        return {'mu': self.mu, 'sigma': self.sigma}


class TriangularSampler(DistributionSampler):
    """Triangular(min, mode, max) by piecewise inverse CDF. One uniform per draw."""

    def __init__(self, stream: RandomStream, min: float, mode: float, max: float):
        super().__init__(stream)
        for name, value in (("min", min), ("mode", mode), ("max", max)):
            _require_finite(name, value)
        if not (min <= mode <= max) or not min < max:
            raise ValueError(
                f"Triangular requires min <= mode <= max and min < max, "
                f"got min={min}, mode={mode}, max={max}"
            )
        self.min = float(min)
        self.mode = float(mode)
        self.max = float(max)

    def sample(self) -> float:
        u = self.stream.next()
        span = self.max - self.min
        fc = (self.mode - self.min) / span
        if u < fc:
            return self.min + math.sqrt(u * span * (self.mode - self.min))
        return self.max - math.sqrt((1.0 - u) * span * (self.max - self.mode))

    def get_type(self) -> str:
        return Triangular.type

    def get_parameters(self) -> Dict[str, Any]:
        return {'min': self.min, 'mode': self.mode, 'max': self.max}


# =============================================================================
# Discrete Samplers
# =============================================================================

class PoissonSampler(DistributionSampler):
    """
    Poisson(lam).

    lam < 30: Knuth's method, multiplying uniforms until the product drops to
    e^-lam or below (k + 1 uniforms for a result of k).
    lam >= 30: normal approximation round(N(lam, sqrt(lam))) floored at 0,
    drawn from a sampler-owned NormalSampler.
    """

    def __init__(self, stream: RandomStream, lam: float):
        super().__init__(stream)
        _require_positive("lam", lam)
        self.lam = float(lam)
        self._threshold = math.exp(-self.lam)
        self._normal = None
        if self.lam >= POISSON_KNUTH_LIMIT:
            self._normal = NormalSampler(stream, self.lam, math.sqrt(self.lam))

    def sample(self) -> float:
        if self._normal is not None:
            return float(max(0, round(self._normal.sample())))

        k = 0
        p = 1.0
        while True:
            k += 1
            p *= self.stream.next()
            if p <= self._threshold:
                return float(k - 1)

    def get_type(self) -> str:
        return Poisson.type

    def get_parameters(self) -> Dict[str, Any]:
        return {'lam': self.lam}


class BinomialSampler(DistributionSampler):
    """Binomial(n, p) as a sum of n Bernoulli trials (U < p). n uniforms per draw."""

    def __init__(self, stream: RandomStream, n: int, p: float):
        super().__init__(stream)
        if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n < 1:
            raise ValueError(f"Binomial n must be a positive integer, got {n!r}")
        _require_finite("p", p)
        if not 0.0 <= p <= 1.0:
            raise ValueError(f"Binomial p must be in [0, 1], got {p}")
        self.n = int(n)
        self.p = float(p)

    def sample(self) -> float:
        successes = 0
        for _ in range(self.n):
            if self.stream.next() < self.p:
                successes += 1
        return float(successes)

    def get_type(self) -> str:
        return Binomial.type

    def get_parameters(self) -> Dict[str, Any]:
        return {'n': self.n, 'p': self.p}


class CategoricalSampler(DistributionSampler):
    """
    Categorical draw over named outcomes. One uniform per draw.

    sample() returns the ordinal index of the chosen category (in the
    insertion order of `probabilities`); sample_category() returns its label.
    """

    def __init__(self, stream: RandomStream, probabilities: Dict[str, float]):
        super().__init__(stream)
        if not probabilities:
            raise ValueError("Categorical requires at least one category")
        for label, weight in probabilities.items():
            if not is_finite_number(weight) or weight < 0:
                raise ValueError(
                    f"Categorical weight for '{label}' must be a non-negative number, got {weight!r}"
                )
        total = float(sum(probabilities.values()))
        if abs(total - 1.0) > CATEGORICAL_SUM_TOLERANCE:
            raise ValueError(f"Categorical probabilities must sum to 1, got {total:.4f}")

        self._labels: List[str] = list(probabilities.keys())
        self._weights = [float(w) for w in probabilities.values()]
        self._cumulative = np.cumsum(self._weights).tolist()

    @property
    def categories(self) -> List[str]:
        return list(self._labels)

    def _draw_index(self) -> int:
        u = self.stream.next()
        for idx, edge in enumerate(self._cumulative):
            if u < edge:
                return idx
        return len(self._labels) - 1

    def sample(self) -> float:
        return float(self._draw_index())

    def sample_category(self) -> str:
        return self._labels[self._draw_index()]

    def sample_many_categories(self, n: int) -> List[str]:
        if n < 0:
            raise ValueError(f"sample count must be non-negative, got {n}")
        return [self.sample_category() for _ in range(n)]

    def get_type(self) -> str:
        return Categorical.type

    def get_parameters(self) -> Dict[str, Any]:
        return {'probabilities': dict(zip(self._labels, self._weights))}


class CustomSampler(DistributionSampler):
    """Wraps a caller-supplied nullary function. Consumes nothing from the stream."""

    def __init__(self, stream: RandomStream, fn: Callable[[], float]):
        super().__init__(stream)
        if not callable(fn):
            raise ValueError(f"Custom sampler must be callable, got {type(fn).__name__}")
        self.fn = fn

    def sample(self) -> float:
        return float(self.fn())

    def get_type(self) -> str:
        return Custom.type

    def get_parameters(self) -> Dict[str, Any]:
        return {'sampler': getattr(self.fn, '__name__', repr(self.fn))}


# =============================================================================
# Factory
# =============================================================================

def create_sampler(spec: Distribution, stream: RandomStream) -> DistributionSampler:
    """
    Build the sampler for a distribution spec, bound to `stream`.

    Raises:
        ValueError: Unknown distribution type or invalid parameters
    """
    dist_type = getattr(spec, 'type', None)

    if dist_type == Normal.type:
        return NormalSampler(stream, spec.mean, spec.std_dev)
    if dist_type == Uniform.type:
        return UniformSampler(stream, spec.min, spec.max)
    if dist_type == Exponential.type:
        return ExponentialSampler(stream, spec.rate)
    if dist_type == Poisson.type:
        return PoissonSampler(stream, spec.lam)
    if dist_type == Binomial.type:
        return BinomialSampler(stream, spec.n, spec.p)
    if dist_type == Categorical.type:
        return CategoricalSampler(stream, spec.probabilities)
    if dist_type == Beta.type:
        return BetaSampler(stream, spec.alpha, spec.beta)
    if dist_type == Gamma.type:
        return GammaSampler(stream, spec.shape, spec.scale)
    if dist_type == LogNormal.type:
        return LogNormalSampler(stream, spec.mu, spec.sigma)
    if dist_type == Triangular.type:
        return TriangularSampler(stream, spec.min, spec.mode, spec.max)
    if dist_type == Custom.type:
        return CustomSampler(stream, spec.sampler)

    raise ValueError(f"Unknown distribution type: {dist_type}")


def sample_with_statistics(
    spec: Distribution,
    count: int,
    stream: RandomStream
) -> SamplingResult:
    """
    Draw `count` values from `spec` and summarise them.

    Variance is the population variance (divides by n).
    """
    sampler = create_sampler(spec, stream)

    start = time.perf_counter()
    samples = sampler.sample_many(count)
    elapsed = time.perf_counter() - start

    if count == 0:
        return SamplingResult(samples=samples, mean=0.0, variance=0.0, min=0.0, max=0.0, time=elapsed)

    return SamplingResult(
        samples=samples,
        mean=float(np.mean(samples)),
        variance=float(np.var(samples)) if count > 1 else 0.0,
        min=float(np.min(samples)),
        max=float(np.max(samples)),
        time=elapsed,
    )
