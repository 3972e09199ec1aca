# distributions/samplers.py
"""
Scalar sampling algorithms.

Each sampler is an immutable object that precomputes the constants of its
algorithm once and exposes `draw(stream)`. Distributions build their sampler
lazily through the derived-quantity cache, so the constants are shared by all
draws from the same distribution instance.

All randomness is read through `UniformStream.next`. The rejection loops below
terminate with probability one but have no iteration bound.
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import Sequence

import numpy as np

from ..custom_types import Array, Probability
from ..random.stream import UniformStream

__all__ = [
    "standard_normal",
    "TruncatedNormalSampler",
    "StudentTSampler",
    "GammaSampler",
    "AliasTable",
    "BernoulliSampler",
    "PoissonSampler",
]


# Leva (1992), "A fast normal random number generator", ACM TOMS 18(4).
_LEVA_S = 0.449871
_LEVA_T = -0.386595
_LEVA_A = 0.19600
_LEVA_B = 0.25472
_LEVA_R1 = 0.27597
_LEVA_R2 = 0.27846
_LEVA_SCALE = 1.7156  # 2 * sqrt(2 / e)


def standard_normal(stream: UniformStream) -> float:
    """N(0, 1) variate by Leva's ratio-of-uniforms method.

    The quadratic bounds accept or reject the vast majority of (u, v) pairs
    without evaluating the log; the exact test is only reached in the thin
    band between them.
    """
    while True:
        u = 1.0 - stream.next(1.0)  # (0, 1]
        v = _LEVA_SCALE * (stream.next(1.0) - 0.5)
        x = u - _LEVA_S
        y = abs(v) - _LEVA_T
        q = x * x + y * (_LEVA_A * y - _LEVA_B * x)
        if q < _LEVA_R1:
            return v / u
        if q > _LEVA_R2:
            continue
        if v * v <= -4.0 * u * u * math.log(u):
            return v / u


class TruncatedNormalSampler:
    """Standard normal restricted to [a, inf).

    For a <= 0 the acceptance probability of plain rejection is at least 1/2,
    so standard normals are drawn until one lands above a. For a > 0 proposals
    are a + Exp(alpha) with the optimal rate alpha = (a + sqrt(a^2 + 4)) / 2
    (Robert, 1995), accepted with probability exp(-(z - alpha)^2 / 2).
    """

    def __init__(self, a: float) -> None:
        self.a = float(a)
        self.tilted = self.a > 0.0
        self.alpha = 0.5 * (self.a + math.sqrt(self.a * self.a + 4.0)) if self.tilted else None

    def draw(self, stream: UniformStream) -> float:
        a = self.a
        if not self.tilted:
            while True:
                z = standard_normal(stream)
                if z >= a:
                    return z

        alpha = self.alpha
        while True:
            z = a + stream.standard_exponential() / alpha
            rho = math.exp(-0.5 * (z - alpha) ** 2)
            if stream.next(1.0) <= rho:
                return z


class StudentTSampler:
    """Standard Student-t with nu degrees of freedom by Bailey's polar method.

    A point (u, v) uniform on the unit disc gives
    t = u * sqrt(nu * (w^(-2/nu) - 1) / w), with w = u^2 + v^2.
    """

    def __init__(self, nu: float) -> None:
        self.nu = float(nu)
        self._exponent = -2.0 / self.nu

    def draw(self, stream: UniformStream) -> float:
        while True:
            u = 2.0 * stream.next(1.0) - 1.0
            v = 2.0 * stream.next(1.0) - 1.0
            w = u * u + v * v
            if 0.0 < w <= 1.0:
                break
        return u * math.sqrt(self.nu * (w ** self._exponent - 1.0) / w)


class GammaSampler:
    """Gamma(alpha, 1) variates by the Marsaglia-Tsang squeeze method.

    For alpha < 1 the sampler draws from Gamma(alpha + 1, 1) and multiplies by
    U^(1/alpha). The constants d = a - 1/3 and c = 1/sqrt(9 d) use the boosted
    shape a = alpha + 1 in that case.
    """

    def __init__(self, alpha: float) -> None:
        self.alpha = float(alpha)
        self.boosted = self.alpha < 1.0
        shape = self.alpha + 1.0 if self.boosted else self.alpha
        self.d = shape - 1.0 / 3.0
        self.c = 1.0 / math.sqrt(9.0 * self.d)
        self._inv_alpha = 1.0 / self.alpha

    def draw(self, stream: UniformStream) -> float:
        d, c = self.d, self.c
        while True:
            x = standard_normal(stream)
            v = 1.0 + c * x
            if v <= 0.0:
                continue
            v = v * v * v
            u = 1.0 - stream.next(1.0)
            x2 = x * x
            if u < 1.0 - 0.0331 * x2 * x2:
                break
            if math.log(u) < 0.5 * x2 + d * (1.0 - v + math.log(v)):
                break

        g = d * v
        if self.boosted:
            g *= (1.0 - stream.next(1.0)) ** self._inv_alpha
        return g


class AliasTable:
    """Vose's alias method over indices 0..n-1.

    Setup is O(n): scaled probabilities n*p are split into a `small` (< 1)
    and a `large` (>= 1) work list; each small entry is topped up from a large
    one, which becomes its alias. Every index passes through exactly one of
    the two lists. A draw is O(1): split one uniform on [0, n) into a column
    j and a fraction f, and return j if f < prob[j], else alias[j].
    """

    def __init__(self, probabilities: Sequence[float] | Array) -> None:
        p = np.asarray(probabilities, dtype=float)
        n = p.size
        scaled = p * n
        prob = np.zeros(n)
        alias = np.arange(n)

        small = [i for i in range(n) if scaled[i] < 1.0]
        large = [i for i in range(n) if scaled[i] >= 1.0]

        while small and large:
            s = small.pop()
            g = large.pop()
            prob[s] = scaled[s]
            alias[s] = g
            scaled[g] = (scaled[g] + scaled[s]) - 1.0
            if scaled[g] < 1.0:
                small.append(g)
            else:
                large.append(g)

        # leftovers are 1 up to round-off
        for i in large:
            prob[i] = 1.0
        for i in small:
            prob[i] = 1.0

        prob.flags.writeable = False
        alias.flags.writeable = False
        self.n = n
        self.prob = prob
        self.alias = alias

    def draw(self, stream: UniformStream) -> int:
        j, f = stream.split(self.n)
        if f < self.prob[j]:
            return j
        return int(self.alias[j])


class BernoulliSampler:
    """Success with probability pr.

    Float pr compares one uniform on [0, 1) against pr. A `Fraction` pr = a/b
    is decided exactly with an integer draw on [0, b), avoiding the bias of
    rounding pr to a double.
    """

    def __init__(self, pr: Probability) -> None:
        self.pr = pr
        self.exact = isinstance(pr, Fraction)

    def draw(self, stream: UniformStream) -> bool:
        if self.exact:
            return stream.next(self.pr.denominator) < self.pr.numerator
        return stream.next(1.0) < self.pr


class PoissonSampler:
    """Poisson(lam) by Knuth's multiplication method.

    Multiplies uniforms until the running product drops to exp(-lam) or below
    and returns the number of factors minus one. Expected cost is O(lam), and
    for large lam (roughly lam > 700) exp(-lam) underflows, so the draws are
    no longer Poisson distributed. No large-lam algorithm is substituted.
    """

    def __init__(self, lam: float) -> None:
        self.lam = float(lam)
        self.threshold = math.exp(-self.lam)

    def draw(self, stream: UniformStream) -> int:
        k = 0
        p = 1.0
        while p > self.threshold:
            k += 1
            p *= stream.next(1.0)
        return k - 1
