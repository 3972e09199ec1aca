# distributions/discrete.py
"""
Integer (and boolean) valued univariate families.

`log_pdf` is the log probability mass; it is -inf at non-integers and outside
the support. `cdf(k)` is P(X <= k) and accepts real k. `quantile(p)` is the
smallest support point k with cdf(k) >= p.
"""

from __future__ import annotations

import math
from typing import Any, Sequence

import numpy as np

from ..custom_types import Array, ArrayLike, Probability
from ..errors import ParameterError
from ..array_backend.utils import _frozen
from ..random.stream import UniformStream
from .cache import derived
from .distribution import Univariate
from .samplers import AliasTable, BernoulliSampler, PoissonSampler
from .dist_utils import (
    _positive,
    _positive_int,
    _probability,
    _scalar_or_array,
    binomial_cdf,
    poisson_cdf,
    gammaln,
    xlogy,
    xlog1py,
)

__all__ = [
    "Discrete",
    "Bernoulli",
    "Binomial",
    "Geometric",
    "Poisson",
]


def _arr(x: ArrayLike) -> np.ndarray:
    return np.asarray(x, dtype=float)


def _is_integer(x: np.ndarray) -> np.ndarray:
    with np.errstate(invalid="ignore"):
        return np.isfinite(x) & (x == np.floor(x))


def _search_table(cumulative: Array, p: ArrayLike) -> Any:
    """Smallest index k with cumulative[k] >= p; nan for p outside [0, 1]."""
    p = _arr(p)
    k = np.searchsorted(cumulative, p, side="left")
    k = np.minimum(k, cumulative.size - 1).astype(float)
    return _scalar_or_array(np.where((p >= 0.0) & (p <= 1.0), k, np.nan))


class Discrete(Univariate):
    """Categorical law on {0, ..., n-1} with the given (unnormalized) weights.

    Draws use Vose's alias table, built once per instance on first draw.
    """

    def __init__(self, probabilities: Sequence[float] | ArrayLike) -> None:
        w = np.asarray(probabilities, dtype=float)
        if w.ndim != 1 or w.size == 0:
            raise ParameterError(f"Discrete probabilities must be a non-empty 1d sequence. Got shape {w.shape}.")
        if not np.all(np.isfinite(w)):
            raise ParameterError("Discrete probabilities must be finite.")
        if np.any(w < 0.0):
            raise ParameterError("Discrete probabilities must be non-negative.")
        total = float(np.sum(w))
        if not total > 0.0:
            raise ParameterError("Discrete probabilities must have a positive sum.")
        self._probabilities = _frozen(w / total)

    @property
    def probabilities(self) -> Array:
        """Normalized probability vector (read-only)."""
        return self._probabilities

    @property
    def size(self) -> int:
        return self._probabilities.size

    @derived
    def alias_table(self) -> AliasTable:
        return AliasTable(self._probabilities)

    @derived
    def _cumulative(self) -> Array:
        c = np.cumsum(self._probabilities)
        c[-1] = 1.0
        return _frozen(c)

    def _support(self) -> Array:
        return np.arange(self.size, dtype=float)

    def mean(self) -> float:
        return float(self._support() @ self._probabilities)

    def variance(self) -> float:
        dev = self._support() - self.mean()
        return float((dev * dev) @ self._probabilities)

    def _log_kernel(self, x: ArrayLike) -> Any:
        x = _arr(x)
        inside = _is_integer(x) & (x >= 0) & (x < self.size)
        idx = np.where(inside, x, 0).astype(int)
        with np.errstate(divide="ignore"):
            logp = np.log(self._probabilities[idx])
        return np.where(inside, logp, -np.inf)

    def cdf(self, x: ArrayLike) -> Any:
        x = _arr(x)
        k = np.floor(np.where(np.isnan(x), -1.0, x))
        idx = np.clip(k, 0, self.size - 1).astype(int)
        out = np.where(k < 0, 0.0, self._cumulative()[idx])
        return _scalar_or_array(np.where(np.isnan(x), np.nan, out))

    def quantile(self, p: ArrayLike) -> Any:
        return _search_table(self._cumulative(), p)

    def _draw(self, stream: UniformStream) -> int:
        return self.alias_table().draw(stream)

    def _params(self) -> dict[str, Any]:
        return {"probabilities": self._probabilities.tolist()}


class Bernoulli(Univariate):
    """Single trial succeeding with probability `pr`; draws are booleans.

    Integer and `Fraction` probabilities are kept exact and sampled without
    floating point rounding.
    """

    def __init__(self, pr: Probability) -> None:
        self._pr = _probability("pr", pr)

    @property
    def pr(self) -> Probability:
        return self._pr

    @derived
    def _sampler(self) -> BernoulliSampler:
        return BernoulliSampler(self._pr)

    def mean(self) -> float:
        return float(self._pr)

    def variance(self) -> float:
        return float(self._pr * (1 - self._pr))

    def _log_kernel(self, x: ArrayLike) -> Any:
        x = _arr(x)
        p = float(self._pr)
        with np.errstate(divide="ignore"):
            log_p, log_q = np.log(p), np.log1p(-p)
        return np.where(x == 1.0, log_p, np.where(x == 0.0, log_q, -np.inf))

    def cdf(self, x: ArrayLike) -> Any:
        x = _arr(x)
        q = 1.0 - float(self._pr)
        return _scalar_or_array(np.where(x < 0.0, 0.0, np.where(x < 1.0, q, 1.0)))

    def quantile(self, p: ArrayLike) -> Any:
        return _search_table(np.array([1.0 - float(self._pr), 1.0]), p)

    def _draw(self, stream: UniformStream) -> bool:
        return self._sampler().draw(stream)

    def _params(self) -> dict[str, Any]:
        return {"pr": self._pr}


class Binomial(Univariate):
    """Number of successes in `n` independent Bernoulli(pr) trials.

    A draw performs all n trials, so it costs O(n).
    """

    def __init__(self, pr: Probability, n: int) -> None:
        self._pr = _probability("pr", pr)
        self._n = _positive_int("n", n)

    @property
    def pr(self) -> Probability:
        return self._pr

    @property
    def n(self) -> int:
        return self._n

    @derived
    def _sampler(self) -> BernoulliSampler:
        return BernoulliSampler(self._pr)

    @derived
    def _cumulative(self) -> Array:
        k = np.arange(self._n + 1, dtype=float)
        c = np.asarray(binomial_cdf(k, self._n, float(self._pr)), dtype=float)
        c[-1] = 1.0
        return _frozen(c)

    def mean(self) -> float:
        return float(self._n * self._pr)

    def variance(self) -> float:
        return float(self._n * self._pr * (1 - self._pr))

    def _log_kernel(self, x: ArrayLike) -> Any:
        x = _arr(x)
        n, p = self._n, float(self._pr)
        inside = _is_integer(x) & (x >= 0) & (x <= n)
        k = np.where(inside, x, 0.0)
        out = (gammaln(n + 1.0) - np.asarray(gammaln(k + 1.0)) - np.asarray(gammaln(n - k + 1.0))
               + np.asarray(xlogy(k, p)) + np.asarray(xlog1py(n - k, -p)))
        return np.where(inside, out, -np.inf)

    def cdf(self, x: ArrayLike) -> Any:
        x = _arr(x)
        k = np.floor(x)
        inner = np.asarray(binomial_cdf(np.clip(k, 0, self._n), self._n, float(self._pr)))
        out = np.where(k < 0, 0.0, np.where(k >= self._n, 1.0, inner))
        return _scalar_or_array(np.where(np.isnan(x), np.nan, out))

    def quantile(self, p: ArrayLike) -> Any:
        return _search_table(self._cumulative(), p)

    def _draw(self, stream: UniformStream) -> int:
        trial = self._sampler()
        return sum(1 for _ in range(self._n) if trial.draw(stream))

    def _params(self) -> dict[str, Any]:
        return {"pr": self._pr, "n": self._n}


class Geometric(Univariate):
    """Number of Bernoulli(pr) trials up to and including the first success.

    Support is {1, 2, ...}; pr must lie in (0, 1].
    """

    def __init__(self, pr: Probability) -> None:
        self._pr = _probability("pr", pr)
        if self._pr == 0:
            raise ParameterError("Geometric requires pr > 0.")

    @property
    def pr(self) -> Probability:
        return self._pr

    @derived
    def _sampler(self) -> BernoulliSampler:
        return BernoulliSampler(self._pr)

    def mean(self) -> float:
        return float(1 / self._pr)

    def variance(self) -> float:
        p = self._pr
        return float((1 - p) / (p * p))

    def _log_kernel(self, x: ArrayLike) -> Any:
        x = _arr(x)
        p = float(self._pr)
        inside = _is_integer(x) & (x >= 1)
        k = np.where(inside, x, 1.0)
        out = np.asarray(xlog1py(k - 1.0, -p)) + math.log(p)
        return np.where(inside, out, -np.inf)

    def cdf(self, x: ArrayLike) -> Any:
        x = _arr(x)
        k = np.floor(np.maximum(x, 0.0))
        with np.errstate(divide="ignore", invalid="ignore"):
            out = -np.expm1(k * np.log1p(-float(self._pr)))
        out = np.where(x < 1.0, 0.0, out)
        return _scalar_or_array(np.where(np.isnan(x), np.nan, out))

    def quantile(self, p: ArrayLike) -> Any:
        p = _arr(p)
        pr = float(self._pr)
        if pr == 1.0:
            k = np.ones_like(p)
        else:
            with np.errstate(divide="ignore"):
                k = np.maximum(np.ceil(np.log1p(-p) / math.log1p(-pr)), 1.0)
        return _scalar_or_array(np.where((p >= 0.0) & (p <= 1.0), k, np.nan))

    def _draw(self, stream: UniformStream) -> int:
        trial = self._sampler()
        k = 1
        while not trial.draw(stream):
            k += 1
        return k

    def _params(self) -> dict[str, Any]:
        return {"pr": self._pr}


class Poisson(Univariate):
    """Poisson with rate `lam`.

    Draws use Knuth's multiplication method, which costs O(lam) uniforms per
    draw and breaks down once exp(-lam) underflows (lam above roughly 700).
    Use it for moderate rates only.
    """

    def __init__(self, lam: float) -> None:
        self._lam = _positive("lam", lam)

    @property
    def lam(self) -> float:
        return self._lam

    @derived
    def _sampler(self) -> PoissonSampler:
        return PoissonSampler(self._lam)

    def mean(self) -> float:
        return self._lam

    def variance(self) -> float:
        return self._lam

    def _log_kernel(self, x: ArrayLike) -> Any:
        x = _arr(x)
        inside = _is_integer(x) & (x >= 0)
        k = np.where(inside, x, 0.0)
        out = np.asarray(xlogy(k, self._lam)) - self._lam - np.asarray(gammaln(k + 1.0))
        return np.where(inside, out, -np.inf)

    def cdf(self, x: ArrayLike) -> Any:
        x = _arr(x)
        k = np.floor(np.maximum(x, 0.0))
        out = np.where(x < 0.0, 0.0, poisson_cdf(k, self._lam))
        return _scalar_or_array(np.where(np.isnan(x), np.nan, out))

    def _quantile_scalar(self, p: float) -> float:
        if not 0.0 <= p <= 1.0:
            return math.nan
        if p == 1.0:
            return math.inf
        k = 0
        term = math.exp(-self._lam)
        total = term
        while total < p:
            k += 1
            term *= self._lam / k
            total += term
            if term == 0.0 and total < p:
                # mass beyond this point is below double precision
                break
        return float(k)

    def quantile(self, p: ArrayLike) -> Any:
        p = _arr(p)
        out = np.array([self._quantile_scalar(float(v)) for v in p.ravel()]).reshape(p.shape)
        return _scalar_or_array(out)

    def _draw(self, stream: UniformStream) -> int:
        return self._sampler().draw(stream)

    def _params(self) -> dict[str, Any]:
        return {"lam": self._lam}
