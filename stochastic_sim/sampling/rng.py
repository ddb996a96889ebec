"""
Seeded random stream for Monte Carlo sampling.

Wraps a numpy Generator (PCG64) and hands out one uniform draw at a time so
that every sampler consumes a documented, reproducible number of values.
Identical seeds always produce identical sequences.
"""

import copy
import secrets
from typing import List, Optional

import numpy as np

from ..types import RNGState


# Seeds are kept in the positive 31-bit range so they round-trip through JSON
# and other tools unchanged.
MAX_SEED = 2**31 - 1


class RandomStream:
    """
    Deterministic stream of uniform draws in [0, 1).

    Owned by a single engine (or sampler set); never share one stream across
    concurrent simulations.
    """

    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            seed = generate_seed()
        self._seed = int(seed)
        self._seed_seq = np.random.SeedSequence(self._seed)
        self._generator = np.random.Generator(np.random.PCG64(self._seed_seq))
        self._count = 0

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def count(self) -> int:
        """Number of uniforms drawn since the stream was (re)seeded."""
        return self._count

    def next(self) -> float:
        """Next uniform value in [0, 1)."""
        self._count += 1
        return float(self._generator.random())

    def uniform(self, low: float, high: float) -> float:
        """Uniform value in [low, high). Consumes one draw."""
        return low + self.next() * (high - low)

    def reseed(self, seed: int) -> None:
        """Reset the stream to the start of the sequence for `seed`."""
        self._seed = int(seed)
        self._seed_seq = np.random.SeedSequence(self._seed)
        self._generator = np.random.Generator(np.random.PCG64(self._seed_seq))
        self._count = 0

    def reset(self) -> None:
        """Rewind to the start of the current seed's sequence."""
        self.reseed(self._seed)

    def save_state(self) -> RNGState:
        """Checkpoint the stream so it can be restored later."""
        return RNGState(
            seed=self._seed,
            count=self._count,
            bit_generator_state=copy.deepcopy(self._generator.bit_generator.state),
        )

    def restore_state(self, state: RNGState) -> None:
        """
        Restore a checkpoint taken with save_state().

        Raises:
            ValueError: If the checkpoint is not a PCG64 state
        """
        bg_state = state.bit_generator_state
        if not isinstance(bg_state, dict) or bg_state.get('bit_generator') != 'PCG64':
            raise ValueError("Invalid state: expected a PCG64 bit generator state")

        self._seed = int(state.seed)
        self._seed_seq = np.random.SeedSequence(self._seed)
        self._generator = np.random.Generator(np.random.PCG64(self._seed_seq))
        self._generator.bit_generator.state = copy.deepcopy(bg_state)
        self._count = int(state.count)

    def clone(self) -> 'RandomStream':
        """
        Independent copy positioned at the same point of the sequence.

        The copy also shares the fork position, so its next fork() matches
        this stream's next fork().
        """
        twin = RandomStream(self._seed)
        twin.restore_state(self.save_state())
        twin._seed_seq = np.random.SeedSequence(
            self._seed, n_children_spawned=self._seed_seq.n_children_spawned
        )
        return twin

    def fork(self) -> 'RandomStream':
        """
        New stream seeded from this stream's seed sequence.

        Successive forks yield different, statistically independent streams;
        forking does not advance this stream's own draws.
        """
        child_seq = self._seed_seq.spawn(1)[0]
        child_seed = int(child_seq.generate_state(1)[0]) & MAX_SEED
        return RandomStream(child_seed)

    def __repr__(self) -> str:
        return f"RandomStream(seed={self._seed}, count={self._count})"


# =============================================================================
# Convenience Functions
# =============================================================================

def create_stream(seed: Optional[int] = None) -> RandomStream:
    """Create a seeded random stream."""
    return RandomStream(seed)


def create_parallel_streams(count: int, base_seed: Optional[int] = None) -> List[RandomStream]:
    """
    Create independent streams for separate chains.

    Children are spawned from a single SeedSequence, so the set is
    reproducible for a given base_seed.
    """
    if count < 0:
        raise ValueError("count must be non-negative")
    base = RandomStream(base_seed)
    return [base.fork() for _ in range(count)]


def spawn_seeds(base_seed: int, count: int) -> List[int]:
    """Derive `count` independent 31-bit seeds from base_seed."""
    children = np.random.SeedSequence(int(base_seed)).spawn(count)
    return [int(child.generate_state(1)[0]) & MAX_SEED for child in children]


def generate_seed() -> int:
    """Fresh 31-bit seed from system entropy."""
    return secrets.randbelow(MAX_SEED) + 1
