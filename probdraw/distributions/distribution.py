# distributions/distribution.py
from __future__ import annotations

from typing import Generic, Any
from abc import ABC, abstractmethod

import numpy as np

from ..custom_types import Array, ArrayLike, T
from ..random.stream import UniformStream, as_stream
from .cache import get_or_compute
from .dist_utils import _scalar_or_array

__all__ = [
    "Distribution",
    "Univariate",
    "Multivariate",
]

# -------------------------- Abstract Classes ----------------------------


class Distribution(Generic[T], ABC):
    """
    Abstract base class for any distribution class.

    A distribution holds validated, immutable canonical parameters. Anything
    expensive derived from them (normalizing constants, matrix roots, sampler
    constants) lives in the per-instance derived-quantity cache, see
    `probdraw.distributions.cache`.

    Subclasses implement `_draw` and, where a density exists, `_log_kernel`
    (the log-density up to an additive constant) and `_log_normalizer` (that
    constant). `log_pdf` combines the two and caches the constant.
    """

    # ---- Sampling ----

    def draw(self, stream: UniformStream) -> T:
        """Return one sample, consuming values from `stream`."""
        return self._draw(as_stream(stream))

    @abstractmethod
    def _draw(self, stream: UniformStream) -> T:
        raise NotImplementedError

    def sample(self, stream: UniformStream, n_samples: int = 1) -> Array:
        """
        Draw n_samples values sequentially from `stream` and stack them along
        a new leading axis.
        """
        stream = as_stream(stream)
        return np.asarray([self._draw(stream) for _ in range(int(n_samples))])

    # ---- Densities ----

    def log_pdf(self, x: ArrayLike, ignore_normalizing_constant: bool = False) -> Any:
        """
        Log density (log mass for discrete families) at `x`.

        With `ignore_normalizing_constant=True` the parameter-only additive
        constant is dropped, which is all that is needed for ratios between
        points under the same distribution.
        """
        kernel = self._log_kernel(x)
        if ignore_normalizing_constant:
            return _scalar_or_array(kernel)
        return _scalar_or_array(np.asarray(kernel) + self.log_normalizer())

    def pdf(self, x: ArrayLike) -> Any:
        return _scalar_or_array(np.exp(self.log_pdf(x)))

    def log_normalizer(self) -> float:
        """The cached additive constant of `log_pdf`."""
        return get_or_compute(self, "log_normalizer", type(self)._log_normalizer)

    def _log_kernel(self, x: ArrayLike) -> Any:
        raise NotImplementedError(f"log_pdf is not implemented for {type(self).__name__}.")

    def _log_normalizer(self) -> float:
        return 0.0

    # ---- Moments and distribution functions ----

    @abstractmethod
    def mean(self) -> Any:
        """
        Return the mean. Raise DomainError if the mean does not exist for the
        distribution's parameters.
        """
        raise NotImplementedError

    def cdf(self, x: ArrayLike) -> Any:
        raise NotImplementedError(f"cdf is not implemented for {type(self).__name__}.")

    def quantile(self, p: ArrayLike) -> Any:
        raise NotImplementedError(f"quantile is not implemented for {type(self).__name__}.")

    # ---- Representation ----

    def _params(self) -> dict[str, Any]:
        return {}

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v!r}" for k, v in self._params().items())
        return f"{type(self).__name__}({args})"


class Univariate(Distribution[float], ABC):
    """
    Abstract base for scalar distributions. `sample` returns shape (n,);
    analytic functions accept scalars or arrays and evaluate elementwise.
    """

    @abstractmethod
    def variance(self) -> float:
        """
        Return the variance. Raise DomainError if it does not exist.
        """
        raise NotImplementedError

    def std(self) -> float:
        return float(np.sqrt(self.variance()))


class Multivariate(Distribution[Array], ABC):
    """
    Abstract base for vector or matrix valued distributions with fixed
    dimension. Joint cdf and quantile functions are not provided.
    """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Number of coordinates d (vector families) or matrix order k."""
        ...

    def covariance(self) -> Array:
        """
        Return the covariance matrix with shape (d, d).
        Raise DomainError if the covariance does not exist.
        """
        raise NotImplementedError(f"covariance is not implemented for {type(self).__name__}.")

    def marginal(self, indices: ArrayLike) -> Multivariate:
        """Distribution of the sub-vector selected by `indices`."""
        raise NotImplementedError(f"Marginals are not implemented for {type(self).__name__}.")

    def cdf(self, x: ArrayLike) -> Any:
        raise NotImplementedError(f"Joint cdf is not implemented for {type(self).__name__}.")

    def quantile(self, p: ArrayLike) -> Any:
        raise NotImplementedError(f"Quantiles are not defined for multivariate {type(self).__name__}.")
