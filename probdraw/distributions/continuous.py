# distributions/continuous.py
"""
Continuous univariate families.

Every family validates its parameters at construction (raising
`ParameterError`), stores them as floats, and builds its sampler lazily
through the derived-quantity cache. Densities, cdfs and quantiles accept
scalars or arrays and evaluate elementwise; out-of-support points get log
density -inf rather than an error.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np

from ..custom_types import ArrayLike
from ..errors import DomainError, ParameterError
from ..random.stream import UniformStream
from .cache import derived
from .distribution import Univariate
from .samplers import (
    standard_normal,
    TruncatedNormalSampler,
    StudentTSampler,
    GammaSampler,
)
from .dist_utils import (
    LOG_TWO_PI,
    _finite,
    _positive,
    _scalar_or_array,
    norm_cdf,
    norm_quantile,
    norm_logcdf,
    norm_quantile_from_log,
    gammaln,
    betaln,
    xlogy,
    xlog1py,
    student_t_cdf,
    student_t_quantile,
    gamma_cdf,
    gamma_sf,
    gamma_quantile,
    gamma_isf,
    beta_cdf,
    beta_quantile,
)

__all__ = [
    "Uniform",
    "Exponential",
    "Normal",
    "TruncatedNormal",
    "LogNormal",
    "StudentT",
    "Gamma",
    "InverseGamma",
    "ChiSquare",
    "InverseChiSquare",
    "Beta",
]

# Truncated normal moments switch to the Mills-ratio continued fraction past
# this standardized boundary.
_MILLS_CF_FROM = 6.0
_MILLS_CF_DEPTH = 200


def _arr(x: ArrayLike) -> np.ndarray:
    return np.asarray(x, dtype=float)


def _prob_arr(p: ArrayLike) -> np.ndarray:
    """Probabilities as an array; entries outside [0, 1] become nan."""
    p = _arr(p)
    return np.where((p >= 0.0) & (p <= 1.0), p, np.nan)


class Uniform(Univariate):
    """Uniform density on [left, right]; draws fall in [left, right)."""

    def __init__(self, left: float = 0.0, right: float = 1.0) -> None:
        self._left = _finite("left", left)
        self._right = _finite("right", right)
        if not self._left < self._right:
            raise ParameterError(f"Uniform requires left < right. Got left={self._left}, right={self._right}.")

    @property
    def left(self) -> float:
        return self._left

    @property
    def right(self) -> float:
        return self._right

    @derived
    def width(self) -> float:
        return self._right - self._left

    def mean(self) -> float:
        return 0.5 * (self._left + self._right)

    def variance(self) -> float:
        return self.width() ** 2 / 12.0

    def _log_kernel(self, x: ArrayLike) -> Any:
        x = _arr(x)
        return np.where((x >= self._left) & (x <= self._right), 0.0, -np.inf)

    def _log_normalizer(self) -> float:
        return -math.log(self.width())

    def cdf(self, x: ArrayLike) -> Any:
        return _scalar_or_array(np.clip((_arr(x) - self._left) / self.width(), 0.0, 1.0))

    def quantile(self, p: ArrayLike) -> Any:
        return _scalar_or_array(self._left + _prob_arr(p) * self.width())

    def _draw(self, stream: UniformStream) -> float:
        return self._left + stream.next(self.width())

    def _params(self) -> dict[str, Any]:
        return {"left": self._left, "right": self._right}


class Exponential(Univariate):
    """Exponential with rate `rate` (mean 1/rate)."""

    def __init__(self, rate: float = 1.0) -> None:
        self._rate = _positive("rate", rate)

    @property
    def rate(self) -> float:
        return self._rate

    def mean(self) -> float:
        return 1.0 / self._rate

    def variance(self) -> float:
        return 1.0 / self._rate ** 2

    def _log_kernel(self, x: ArrayLike) -> Any:
        x = _arr(x)
        return np.where(x >= 0.0, -self._rate * x, -np.inf)

    def _log_normalizer(self) -> float:
        return math.log(self._rate)

    def cdf(self, x: ArrayLike) -> Any:
        x = _arr(x)
        return _scalar_or_array(np.where(x > 0.0, -np.expm1(-self._rate * np.maximum(x, 0.0)), 0.0))

    def quantile(self, p: ArrayLike) -> Any:
        with np.errstate(divide="ignore"):
            return _scalar_or_array(-np.log1p(-_prob_arr(p)) / self._rate)

    def _draw(self, stream: UniformStream) -> float:
        return stream.standard_exponential() / self._rate

    def _params(self) -> dict[str, Any]:
        return {"rate": self._rate}


class Normal(Univariate):
    """Normal with mean `mean` and variance `variance`."""

    def __init__(self, mean: float = 0.0, variance: float = 1.0) -> None:
        self._mean = _finite("mean", mean)
        self._variance = _positive("variance", variance)

    @derived
    def sd(self) -> float:
        return math.sqrt(self._variance)

    def mean(self) -> float:
        return self._mean

    def variance(self) -> float:
        return self._variance

    def std(self) -> float:
        return self.sd()

    def _log_kernel(self, x: ArrayLike) -> Any:
        return -0.5 * (_arr(x) - self._mean) ** 2 / self._variance

    def _log_normalizer(self) -> float:
        return -0.5 * (LOG_TWO_PI + math.log(self._variance))

    def cdf(self, x: ArrayLike) -> Any:
        return norm_cdf((_arr(x) - self._mean) / self.sd())

    def quantile(self, p: ArrayLike) -> Any:
        return _scalar_or_array(self._mean + self.sd() * norm_quantile(_prob_arr(p)))

    def _draw(self, stream: UniformStream) -> float:
        return self._mean + self.sd() * standard_normal(stream)

    def _params(self) -> dict[str, Any]:
        return {"mean": self._mean, "variance": self._variance}


class TruncatedNormal(Univariate):
    """Normal(mu, sigma^2) conditioned on X >= left.

    Only left truncation is supported; passing `right` raises
    NotImplementedError.
    """

    def __init__(self, mu: float = 0.0, sigma: float = 1.0, left: float = 0.0,
                 right: float | None = None) -> None:
        if right is not None:
            raise NotImplementedError("TruncatedNormal supports a left boundary only; two-sided truncation is not implemented.")
        self._mu = _finite("mu", mu)
        self._sigma = _positive("sigma", sigma)
        self._left = _finite("left", left)
        self._a = (self._left - self._mu) / self._sigma

    @property
    def mu(self) -> float:
        return self._mu

    @property
    def sigma(self) -> float:
        return self._sigma

    @property
    def left(self) -> float:
        return self._left

    @derived
    def _sampler(self) -> TruncatedNormalSampler:
        return TruncatedNormalSampler(self._a)

    @derived
    def _log_tail_mass(self) -> float:
        """log P(Z >= a) for the standardized boundary a."""
        return norm_logcdf(-self._a)

    @derived
    def _standard_moments(self) -> tuple[float, float]:
        """Mean and variance of Z given Z >= a, for Z ~ N(0, 1).

        The mean is the inverse Mills ratio lam. Past _MILLS_CF_FROM both come
        from Laplace's continued fraction lam = a + 1/(a + 2/(a + 3/(a + ...))),
        which keeps the variance 1 + a*lam - lam^2 accurate near 1/a^2.
        """
        a = self._a
        if a <= _MILLS_CF_FROM:
            lam = math.exp(-0.5 * a * a - 0.5 * LOG_TWO_PI - self._log_tail_mass())
            return lam, 1.0 + a * lam - lam * lam
        t = a
        for k in range(_MILLS_CF_DEPTH, 2, -1):
            t = a + k / t
        e = 2.0 / t
        delta = 1.0 / (a + e)
        # lam = a + delta and 1 + a*lam - lam^2 = delta * (e - delta)
        return a + delta, delta * (e - delta)

    def mean(self) -> float:
        return self._mu + self._sigma * self._standard_moments()[0]

    def variance(self) -> float:
        return self._sigma ** 2 * self._standard_moments()[1]

    def _log_kernel(self, x: ArrayLike) -> Any:
        x = _arr(x)
        z = (x - self._mu) / self._sigma
        return np.where(x >= self._left, -0.5 * z * z, -np.inf)

    def _log_normalizer(self) -> float:
        return -math.log(self._sigma) - 0.5 * LOG_TWO_PI - self._log_tail_mass()

    def cdf(self, x: ArrayLike) -> Any:
        x = _arr(x)
        z = (x - self._mu) / self._sigma
        with np.errstate(invalid="ignore"):
            log_upper = np.asarray(norm_logcdf(-z)) - self._log_tail_mass()
            out = -np.expm1(np.minimum(log_upper, 0.0))
        out = np.where(x <= self._left, 0.0, out)
        return _scalar_or_array(np.where(np.isnan(x), np.nan, out))

    def quantile(self, p: ArrayLike) -> Any:
        # solve log P(Z >= z) = log P(Z >= a) + log(1 - p)
        with np.errstate(divide="ignore"):
            log_upper = self._log_tail_mass() + np.log1p(-_prob_arr(p))
        z = -np.asarray(norm_quantile_from_log(log_upper))
        return _scalar_or_array(np.maximum(self._mu + self._sigma * z, self._left))

    def _draw(self, stream: UniformStream) -> float:
        z = self._sampler().draw(stream)
        return max(self._left, self._mu + self._sigma * z)

    def _params(self) -> dict[str, Any]:
        return {"mu": self._mu, "sigma": self._sigma, "left": self._left}


class LogNormal(Univariate):
    """exp(N(mu, sigma^2)); `mu` and `sigma` are the log-scale mean and sd."""

    def __init__(self, mu: float = 0.0, sigma: float = 1.0) -> None:
        self._mu = _finite("mu", mu)
        self._sigma = _positive("sigma", sigma)

    @property
    def mu(self) -> float:
        return self._mu

    @property
    def sigma(self) -> float:
        return self._sigma

    def mean(self) -> float:
        return math.exp(self._mu + 0.5 * self._sigma ** 2)

    def variance(self) -> float:
        s2 = self._sigma ** 2
        return math.expm1(s2) * math.exp(2.0 * self._mu + s2)

    def _log_kernel(self, x: ArrayLike) -> Any:
        x = _arr(x)
        with np.errstate(divide="ignore", invalid="ignore"):
            logx = np.log(x)
            out = -logx - 0.5 * ((logx - self._mu) / self._sigma) ** 2
        return np.where(x > 0.0, out, -np.inf)

    def _log_normalizer(self) -> float:
        return -math.log(self._sigma) - 0.5 * LOG_TWO_PI

    def cdf(self, x: ArrayLike) -> Any:
        x = _arr(x)
        with np.errstate(divide="ignore", invalid="ignore"):
            z = (np.log(np.maximum(x, 0.0)) - self._mu) / self._sigma
        return _scalar_or_array(np.where(x > 0.0, norm_cdf(z), 0.0))

    def quantile(self, p: ArrayLike) -> Any:
        return _scalar_or_array(np.exp(self._mu + self._sigma * np.asarray(norm_quantile(_prob_arr(p)))))

    def _draw(self, stream: UniformStream) -> float:
        return math.exp(self._mu + self._sigma * standard_normal(stream))

    def _params(self) -> dict[str, Any]:
        return {"mu": self._mu, "sigma": self._sigma}


class StudentT(Univariate):
    """Location-scale Student-t with `nu` degrees of freedom.

    `mean()` returns the location parameter for every nu.
    """

    def __init__(self, mean: float = 0.0, scale: float = 1.0, nu: float = 1.0) -> None:
        self._mean = _finite("mean", mean)
        self._scale = _positive("scale", scale)
        self._nu = _positive("nu", nu)

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def nu(self) -> float:
        return self._nu

    @derived
    def _sampler(self) -> StudentTSampler:
        return StudentTSampler(self._nu)

    def mean(self) -> float:
        return self._mean

    def variance(self) -> float:
        nu = self._nu
        if nu <= 2.0:
            raise DomainError("variance", "StudentT", "nu > 2")
        return self._scale ** 2 * nu / (nu - 2.0)

    def _log_kernel(self, x: ArrayLike) -> Any:
        z = (_arr(x) - self._mean) / self._scale
        return -0.5 * (self._nu + 1.0) * np.log1p(z * z / self._nu)

    def _log_normalizer(self) -> float:
        nu = self._nu
        return (gammaln(0.5 * (nu + 1.0)) - gammaln(0.5 * nu)
                - 0.5 * math.log(nu * math.pi) - math.log(self._scale))

    def cdf(self, x: ArrayLike) -> Any:
        return student_t_cdf(self._nu, (_arr(x) - self._mean) / self._scale)

    def quantile(self, p: ArrayLike) -> Any:
        t = student_t_quantile(self._nu, _prob_arr(p))
        return _scalar_or_array(self._mean + self._scale * np.asarray(t))

    def _draw(self, stream: UniformStream) -> float:
        return self._mean + self._scale * self._sampler().draw(stream)

    def _params(self) -> dict[str, Any]:
        return {"mean": self._mean, "scale": self._scale, "nu": self._nu}


class Gamma(Univariate):
    """Gamma with shape `alpha` and rate `beta` (mean alpha / beta)."""

    def __init__(self, alpha: float = 1.0, beta: float = 1.0) -> None:
        self._alpha = _positive("alpha", alpha)
        self._beta = _positive("beta", beta)

    @property
    def alpha(self) -> float:
        return self._alpha

    @property
    def beta(self) -> float:
        return self._beta

    @derived
    def _sampler(self) -> GammaSampler:
        return GammaSampler(self._alpha)

    def mean(self) -> float:
        return self._alpha / self._beta

    def variance(self) -> float:
        return self._alpha / self._beta ** 2

    def _log_kernel(self, x: ArrayLike) -> Any:
        x = _arr(x)
        xp = np.maximum(x, 0.0)
        out = np.asarray(xlogy(self._alpha - 1.0, xp)) - self._beta * xp
        return np.where(x >= 0.0, out, -np.inf)

    def _log_normalizer(self) -> float:
        return self._alpha * math.log(self._beta) - gammaln(self._alpha)

    def cdf(self, x: ArrayLike) -> Any:
        return gamma_cdf(self._alpha, self._beta * _arr(x))

    def quantile(self, p: ArrayLike) -> Any:
        return _scalar_or_array(np.asarray(gamma_quantile(self._alpha, _prob_arr(p))) / self._beta)

    def _draw(self, stream: UniformStream) -> float:
        return self._sampler().draw(stream) / self._beta

    def _params(self) -> dict[str, Any]:
        return {"alpha": self._alpha, "beta": self._beta}


class InverseGamma(Univariate):
    """1/X for X ~ Gamma(alpha, rate=beta); `beta` is the inverse-gamma scale."""

    def __init__(self, alpha: float = 1.0, beta: float = 1.0) -> None:
        self._alpha = _positive("alpha", alpha)
        self._beta = _positive("beta", beta)

    @property
    def alpha(self) -> float:
        return self._alpha

    @property
    def beta(self) -> float:
        return self._beta

    @derived
    def _sampler(self) -> GammaSampler:
        return GammaSampler(self._alpha)

    def mean(self) -> float:
        a = self._alpha
        if a <= 1.0:
            raise DomainError("mean", type(self).__name__, "alpha > 1")
        return self._beta / (a - 1.0)

    def variance(self) -> float:
        a = self._alpha
        if a <= 2.0:
            raise DomainError("variance", type(self).__name__, "alpha > 2")
        return self._beta ** 2 / ((a - 1.0) ** 2 * (a - 2.0))

    def _log_kernel(self, x: ArrayLike) -> Any:
        x = _arr(x)
        with np.errstate(divide="ignore", invalid="ignore"):
            out = -(self._alpha + 1.0) * np.log(x) - self._beta / x
        return np.where(x > 0.0, out, -np.inf)

    def _log_normalizer(self) -> float:
        return self._alpha * math.log(self._beta) - gammaln(self._alpha)

    def cdf(self, x: ArrayLike) -> Any:
        x = _arr(x)
        with np.errstate(divide="ignore"):
            y = self._beta / np.where(x > 0.0, x, np.inf)
        return _scalar_or_array(np.where(x > 0.0, gamma_sf(self._alpha, y), 0.0))

    def quantile(self, p: ArrayLike) -> Any:
        with np.errstate(divide="ignore"):
            return _scalar_or_array(self._beta / np.asarray(gamma_isf(self._alpha, _prob_arr(p))))

    def _draw(self, stream: UniformStream) -> float:
        g = self._sampler().draw(stream)
        # tiny shapes underflow the gamma variate to 0; the draw is then +inf
        return self._beta / g if g > 0.0 else math.inf

    def _params(self) -> dict[str, Any]:
        return {"alpha": self._alpha, "beta": self._beta}


class ChiSquare(Gamma):
    """Chi-square with `nu` degrees of freedom, i.e. Gamma(nu/2, rate 1/2)."""

    def __init__(self, nu: float) -> None:
        self._nu = _positive("nu", nu)
        super().__init__(0.5 * self._nu, 0.5)

    @property
    def nu(self) -> float:
        return self._nu

    def _params(self) -> dict[str, Any]:
        return {"nu": self._nu}


class InverseChiSquare(InverseGamma):
    """Scaled inverse chi-square: InverseGamma(nu/2, nu * s2 / 2)."""

    def __init__(self, nu: float, s2: float = 1.0) -> None:
        self._nu = _positive("nu", nu)
        self._s2 = _positive("s2", s2)
        super().__init__(0.5 * self._nu, 0.5 * self._nu * self._s2)

    @property
    def nu(self) -> float:
        return self._nu

    @property
    def s2(self) -> float:
        return self._s2

    def _params(self) -> dict[str, Any]:
        return {"nu": self._nu, "s2": self._s2}


class Beta(Univariate):
    """Beta(alpha, beta) on [0, 1]."""

    def __init__(self, alpha: float = 1.0, beta: float = 1.0) -> None:
        self._alpha = _positive("alpha", alpha)
        self._beta = _positive("beta", beta)

    @property
    def alpha(self) -> float:
        return self._alpha

    @property
    def beta(self) -> float:
        return self._beta

    @derived
    def _samplers(self) -> tuple[GammaSampler, GammaSampler]:
        return GammaSampler(self._alpha), GammaSampler(self._beta)

    def mean(self) -> float:
        return self._alpha / (self._alpha + self._beta)

    def variance(self) -> float:
        a, b = self._alpha, self._beta
        s = a + b
        return a * b / (s * s * (s + 1.0))

    def _log_kernel(self, x: ArrayLike) -> Any:
        x = _arr(x)
        xc = np.clip(x, 0.0, 1.0)
        out = np.asarray(xlogy(self._alpha - 1.0, xc)) + np.asarray(xlog1py(self._beta - 1.0, -xc))
        return np.where((x >= 0.0) & (x <= 1.0), out, -np.inf)

    def _log_normalizer(self) -> float:
        return -betaln(self._alpha, self._beta)

    def cdf(self, x: ArrayLike) -> Any:
        return beta_cdf(self._alpha, self._beta, x)

    def quantile(self, p: ArrayLike) -> Any:
        return beta_quantile(self._alpha, self._beta, _prob_arr(p))

    def _draw(self, stream: UniformStream) -> float:
        ga, gb = self._samplers()
        g1 = ga.draw(stream)
        g2 = gb.draw(stream)
        total = g1 + g2
        if total == 0.0:
            # both variates underflowed (tiny shapes): fall back to the limit law
            return float(stream.next(1.0) < self.mean())
        return g1 / total

    def _params(self) -> dict[str, Any]:
        return {"alpha": self._alpha, "beta": self._beta}
