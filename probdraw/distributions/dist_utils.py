from __future__ import annotations

import functools
import math
from fractions import Fraction
from typing import Any, Callable

import numpy as np
from scipy import special as sc

from ..errors import ParameterError


LOG_TWO_PI = math.log(2.0 * math.pi)


def _scalar_or_array(out: Any) -> Any:
    """Unwrap 0-d results to Python floats, leave arrays as is."""
    out = np.asarray(out)
    return float(out) if out.ndim == 0 else out


# -----------------------------------------------------------------------------
# Special functions. Arguments close to a distribution's support boundary can
# overflow/underflow or divide by zero; those cases are masked here and the
# IEEE result (0, inf, nan) is returned instead of trapping.
# -----------------------------------------------------------------------------

def _masked(fn: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        with np.errstate(all="ignore"):
            return _scalar_or_array(fn(*args, **kwargs))
    return wrapper


norm_cdf = _masked(sc.ndtr)
norm_quantile = _masked(sc.ndtri)
norm_logcdf = _masked(sc.log_ndtr)
norm_quantile_from_log = _masked(sc.ndtri_exp)
gammaln = _masked(sc.gammaln)
betaln = _masked(sc.betaln)
xlogy = _masked(sc.xlogy)
xlog1py = _masked(sc.xlog1py)
student_t_cdf = _masked(sc.stdtr)
student_t_quantile = _masked(sc.stdtrit)
binomial_cdf = _masked(sc.bdtr)
poisson_cdf = _masked(sc.pdtr)


@_masked
def gamma_cdf(alpha: float, x: Any) -> Any:
    """Regularized lower incomplete gamma P(alpha, x); zero for x <= 0."""
    x = np.asarray(x, dtype=float)
    return np.where(x > 0, sc.gammainc(alpha, np.maximum(x, 0.0)), 0.0)


@_masked
def gamma_sf(alpha: float, x: Any) -> Any:
    x = np.asarray(x, dtype=float)
    return np.where(x > 0, sc.gammaincc(alpha, np.maximum(x, 0.0)), 1.0)


gamma_quantile = _masked(sc.gammaincinv)
gamma_isf = _masked(sc.gammainccinv)


@_masked
def beta_cdf(alpha: float, beta: float, x: Any) -> Any:
    x = np.asarray(x, dtype=float)
    return sc.betainc(alpha, beta, np.clip(x, 0.0, 1.0))


beta_quantile = _masked(sc.betaincinv)


def multigammaln(a: float, d: int) -> float:
    with np.errstate(all="ignore"):
        return float(sc.multigammaln(a, d))


# -----------------------------------------------------------------------------
# Parameter validation
# -----------------------------------------------------------------------------

def _real(name: str, value: Any) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError) as e:
        raise ParameterError(f"{name} must be a real number. Got {value!r}.") from e
    if math.isnan(out):
        raise ParameterError(f"{name} must not be NaN.")
    return out


def _finite(name: str, value: Any) -> float:
    out = _real(name, value)
    if not math.isfinite(out):
        raise ParameterError(f"{name} must be finite. Got {out}.")
    return out


def _positive(name: str, value: Any) -> float:
    out = _finite(name, value)
    if out <= 0.0:
        raise ParameterError(f"{name} must be > 0. Got {out}.")
    return out


def _positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not _finite(name, value).is_integer():
        raise ParameterError(f"{name} must be an integer. Got {value!r}.")
    out = int(value)
    if out <= 0:
        raise ParameterError(f"{name} must be > 0. Got {out}.")
    return out


def _probability(name: str, value: Any) -> float | Fraction:
    """Validate pr in [0, 1]; integers and Fractions are kept exact."""
    if isinstance(value, bool):
        raise ParameterError(f"{name} must be a number, not a bool.")
    if isinstance(value, (int, np.integer)):
        value = Fraction(int(value))
    if isinstance(value, Fraction):
        if not 0 <= value <= 1:
            raise ParameterError(f"{name} must lie in [0, 1]. Got {value}.")
        return value
    out = _real(name, value)
    if not 0.0 <= out <= 1.0:
        raise ParameterError(f"{name} must lie in [0, 1]. Got {out}.")
    return out
