# random/stream.py
"""
Uniform random streams.

Every sampler in probdraw consumes randomness exclusively through a
`UniformStream`. The stream wraps a `numpy.random.Generator` and exposes the
two primitives the samplers are written against:

- `next(bound)` with a float bound: a value in [0.0, bound)
- `next(bound)` with an integer bound: an integer in [0, bound)

`next(1.0)` is strictly below 1.0, so `1 - next(1.0)` is never zero and is
safe to pass to `log`. The value 0.0 itself may be returned.

There is no process wide default stream. Callers construct a stream, usually
from a seed, and pass it to every `draw`. A stream is mutable state and is not
thread safe; share one between threads only under the caller's own lock, or
give each thread its own stream (see `spawn`).
"""

from __future__ import annotations

import math
import numbers
from typing import Any

import numpy as np

from ..custom_types import PRNG

__all__ = [
    "UniformStream",
    "as_stream",
]


class UniformStream:
    """Adapter exposing uniform draws on [0, bound) over a numpy Generator.

    Args:
        rng: a `numpy.random.Generator`, an integer seed, a
             `numpy.random.SeedSequence`, or None for fresh OS entropy.
    """

    def __init__(self, rng: PRNG | int | np.random.SeedSequence | None = None) -> None:
        if isinstance(rng, np.random.Generator):
            self._rng = rng
        else:
            self._rng = np.random.default_rng(rng)

    @property
    def generator(self) -> PRNG:
        """The underlying numpy Generator."""
        return self._rng

    def next(self, bound: float | int = 1.0) -> float | int:
        """Return a uniform value in [0, bound); integer bounds give integers."""
        if isinstance(bound, numbers.Integral) and not isinstance(bound, bool):
            if bound <= 0:
                raise ValueError(f"Integer bound must be positive. Got {bound}.")
            return int(self._rng.integers(0, int(bound)))

        bound = float(bound)
        if not (bound > 0.0 and math.isfinite(bound)):
            raise ValueError(f"Float bound must be positive and finite. Got {bound}.")
        while True:
            u = self._rng.random() * bound
            # rounding of the product may land on the bound itself
            if u < bound:
                return u

    def split(self, n: int) -> tuple[int, float]:
        """Draw u in [0, n) and return its integer and fractional parts."""
        u = self.next(float(n))
        j = int(u)
        return j, u - j

    def standard_exponential(self) -> float:
        """Exp(1) variate by inversion: -log(1 - U)."""
        return -math.log(1.0 - self.next(1.0))

    def spawn(self, n_children: int) -> list[UniformStream]:
        """Independent child streams, e.g. one per worker thread."""
        return [UniformStream(g) for g in self._rng.spawn(n_children)]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._rng.bit_generator.__class__.__name__})"


def as_stream(stream: Any) -> UniformStream:
    """Return `stream` as a UniformStream, wrapping a numpy Generator if needed."""
    if isinstance(stream, UniformStream):
        return stream
    if isinstance(stream, np.random.Generator):
        return UniformStream(stream)
    raise TypeError(
        f"Expected a UniformStream or numpy.random.Generator, got {type(stream).__name__}. "
        "Construct one with UniformStream(seed)."
    )
