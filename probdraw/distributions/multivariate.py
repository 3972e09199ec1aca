# distributions/multivariate.py
"""
Vector and matrix valued families built on Cholesky factors.

All matrices handed to a constructor are copied and frozen, so later
mutation of the caller's buffers never reaches the distribution. Factors
that were not supplied are computed once, on first use, through the
derived-quantity cache.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np
from scipy.linalg import cholesky

from ..custom_types import Array, ArrayLike
from ..errors import DomainError, ParameterError
from ..array_backend.utils import _ensure_vector, _ensure_square_matrix, _frozen
from ..linalg import (
    TriangularLinOp,
    CholeskyLinOp,
    robust_cholesky,
    log_det_tri,
    gram,
    outer_gram,
    tri_solve,
    trace_Ainv_B,
    mah_dist_squared,
    symmetrize,
    is_symmetric,
    is_positive_semidefinite,
    is_positive_definite,
    is_upper_triangular,
)
from ..random.stream import UniformStream, as_stream
from .cache import derived
from .distribution import Multivariate
from .continuous import InverseChiSquare
from .samplers import standard_normal, GammaSampler
from .dist_utils import LOG_TWO_PI, _positive, gammaln, multigammaln

__all__ = [
    "MultivariateNormal",
    "MultivariateT",
    "Wishart",
    "InverseWishart",
    "standard_wishart_root",
]


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _owned_vector(name: str, x: ArrayLike, length: int | None = None) -> Array:
    try:
        return _frozen(_ensure_vector(x, length=length))
    except ValueError as e:
        raise ParameterError(f"{name}: {e}") from e


def _owned_square(name: str, x: ArrayLike, n: int | None = None) -> Array:
    try:
        return _frozen(_ensure_square_matrix(x, n))
    except ValueError as e:
        raise ParameterError(f"{name}: {e}") from e


def _spd_matrix(name: str, x: ArrayLike) -> Array:
    """Copy of a symmetric positive definite matrix, or ParameterError."""
    A = _owned_square(name, x)
    if not is_symmetric(A):
        raise ParameterError(f"{name} must be symmetric.")
    if not is_positive_definite(A):
        raise ParameterError(f"{name} must be positive definite.")
    return _frozen(symmetrize(A))


def _matrix_batch(x: ArrayLike, k: int) -> tuple[Array, bool]:
    X = np.asarray(x, dtype=float)
    single = X.ndim == 2
    if single:
        X = X[np.newaxis]
    if X.ndim != 3 or X.shape[1:] != (k, k):
        raise ValueError(f"Expected a ({k}, {k}) matrix or a stack of them. Got shape {np.shape(x)}.")
    return X, single


def _lower_factor(X: Array) -> Array | None:
    """Lower Cholesky factor of X, or None if X is not positive definite."""
    try:
        return cholesky(symmetrize(X), lower=True)
    except np.linalg.LinAlgError:
        return None


def _batch_result(values: list[float], single: bool) -> Any:
    return values[0] if single else np.asarray(values)


def _bartlett_samplers(nu: float, k: int) -> tuple[GammaSampler, ...]:
    # chi-square(nu - i) = 2 * Gamma((nu - i) / 2, 1)
    return tuple(GammaSampler(0.5 * (nu - i)) for i in range(k))


def standard_wishart_root(stream: UniformStream, samplers: tuple[GammaSampler, ...]) -> Array:
    """
    Random lower triangular L with L @ L.T ~ Wishart(nu, I) (Bartlett).

    Row i holds i independent N(0, 1) entries below the diagonal and
    sqrt(chi-square(nu - i)) on the diagonal. `samplers` are the per-row
    gamma samplers returned by `_bartlett_samplers(nu, k)`.
    """
    k = len(samplers)
    L = np.zeros((k, k))
    for i in range(k):
        for j in range(i):
            L[i, j] = standard_normal(stream)
        L[i, i] = math.sqrt(2.0 * samplers[i].draw(stream))
    return L


# -----------------------------------------------------------------------------
# Multivariate normal
# -----------------------------------------------------------------------------

class MultivariateNormal(Multivariate):
    """
    Multivariate normal N(mean, C).

    Exactly one of `cov` (symmetric positive semi-definite C) or `root`
    (upper triangular U with U.T @ U = C) must be supplied; the other is
    derived on demand. A semi-definite covariance is factored with diagonal
    jitter, see `probdraw.linalg.robust_cholesky`.
    """

    def __init__(self, mean: ArrayLike, cov: ArrayLike | None = None, *,
                 root: ArrayLike | None = None) -> None:
        if (cov is None) == (root is None):
            raise ParameterError("MultivariateNormal requires exactly one of `cov` or `root`.")

        self._mean = _owned_vector("mean", mean)
        d = self._mean.size
        self._cov = None
        self._root = None

        if cov is not None:
            C = _owned_square("cov", cov, d)
            if not is_symmetric(C):
                raise ParameterError("cov must be symmetric.")
            if not is_positive_semidefinite(C):
                raise ParameterError("cov must be positive semi-definite.")
            self._cov = _frozen(symmetrize(C))
        else:
            U = _owned_square("root", root, d)
            if not is_upper_triangular(U):
                raise ParameterError("root must be upper triangular (U.T @ U = cov).")
            self._root = U

    @property
    def dimension(self) -> int:
        return self._mean.size

    def mean(self) -> Array:
        return self._mean

    @derived
    def _root_from_cov(self) -> Array:
        return _frozen(robust_cholesky(self._cov, lower=False))

    @derived
    def _cov_from_root(self) -> Array:
        return _frozen(gram(self._root))

    def root(self) -> Array:
        """Upper triangular U with U.T @ U equal to the covariance."""
        return self._root if self._root is not None else self._root_from_cov()

    def covariance(self) -> Array:
        return self._cov if self._cov is not None else self._cov_from_root()

    @derived
    def _root_op(self) -> TriangularLinOp:
        return TriangularLinOp(self.root(), lower=False, copy=False)

    def _log_kernel(self, x: ArrayLike) -> Any:
        q = mah_dist_squared(x, self.root(), self._mean)
        out = -0.5 * q
        return out[0] if np.ndim(x) == 1 else out

    def _log_normalizer(self) -> float:
        return -0.5 * self.dimension * LOG_TWO_PI - self._root_op().logdet()

    def marginal(self, indices: ArrayLike) -> MultivariateNormal:
        idx = np.atleast_1d(np.asarray(indices, dtype=int))
        C = self.covariance()
        return MultivariateNormal(self._mean[idx], C[np.ix_(idx, idx)])

    def draw(self, stream: UniformStream, scale: float | None = None) -> Array:
        """
        One draw mean + s * z @ U with z a vector of independent N(0, 1)
        entries; `scale` s defaults to 1.
        """
        return self._draw_scaled(as_stream(stream), scale)

    def _draw(self, stream: UniformStream) -> Array:
        return self._draw_scaled(stream, None)

    def _draw_scaled(self, stream: UniformStream, scale: float | None) -> Array:
        z = np.array([standard_normal(stream) for _ in range(self.dimension)])
        y = z @ self.root()
        if scale is not None:
            # U has structural zeros and scale may be inf
            y *= scale
        return y + self._mean

    def _params(self) -> dict[str, Any]:
        return {"mean": self._mean.tolist(), "dimension": self.dimension}


# -----------------------------------------------------------------------------
# Multivariate Student-t
# -----------------------------------------------------------------------------

class MultivariateT(Multivariate):
    """
    Multivariate Student-t with `nu` degrees of freedom, location `mean` and
    scale matrix C (given as `cov` or upper `root`, as for MultivariateNormal).

    A draw is x = mean + sqrt(w) * z @ U with w ~ InverseChiSquare(nu, 1);
    `draw` returns the pair (x, w) because w is needed when conditioning on
    the latent scale.
    """

    def __init__(self, mean: ArrayLike, cov: ArrayLike | None = None, *,
                 root: ArrayLike | None = None, nu: float) -> None:
        self._nu = _positive("nu", nu)
        self._normal = MultivariateNormal(mean, cov, root=root)
        self._scaling = InverseChiSquare(self._nu, 1.0)

    @property
    def nu(self) -> float:
        return self._nu

    @property
    def dimension(self) -> int:
        return self._normal.dimension

    @property
    def scale_matrix(self) -> Array:
        return self._normal.covariance()

    def root(self) -> Array:
        return self._normal.root()

    def mean(self) -> Array:
        if self._nu <= 1.0:
            raise DomainError("mean", "MultivariateT", "nu > 1")
        return self._normal.mean()

    def covariance(self) -> Array:
        nu = self._nu
        if nu <= 2.0:
            raise DomainError("covariance", "MultivariateT", "nu > 2")
        return nu / (nu - 2.0) * self._normal.covariance()

    def _log_kernel(self, x: ArrayLike) -> Any:
        q = mah_dist_squared(x, self.root(), self._normal.mean())
        out = -0.5 * (self._nu + self.dimension) * np.log1p(q / self._nu)
        return out[0] if np.ndim(x) == 1 else out

    def _log_normalizer(self) -> float:
        nu, d = self._nu, self.dimension
        return (gammaln(0.5 * (nu + d)) - gammaln(0.5 * nu)
                - 0.5 * d * math.log(nu * math.pi) - self._normal._root_op().logdet())

    def marginal(self, indices: ArrayLike) -> Multivariate:
        raise NotImplementedError("Marginals of MultivariateT are not implemented.")

    def _draw(self, stream: UniformStream) -> tuple[Array, float]:
        w = self._scaling.draw(stream)
        return self._normal.draw(stream, scale=math.sqrt(w)), w

    def sample(self, stream: UniformStream, n_samples: int = 1) -> tuple[Array, Array]:
        """Return draws with shape (n, d) and their scaling factors, shape (n,)."""
        stream = as_stream(stream)
        pairs = [self._draw(stream) for _ in range(int(n_samples))]
        X = np.asarray([p[0] for p in pairs]).reshape(len(pairs), self.dimension)
        return X, np.asarray([p[1] for p in pairs])

    def _params(self) -> dict[str, Any]:
        return {"mean": self._normal.mean().tolist(), "nu": self._nu}


# -----------------------------------------------------------------------------
# Wishart and inverse Wishart
# -----------------------------------------------------------------------------

class Wishart(Multivariate):
    """Wishart(nu, S) on k x k symmetric positive definite matrices, nu >= k."""

    def __init__(self, nu: float, scale: ArrayLike) -> None:
        self._scale = _spd_matrix("scale", scale)
        k = self._scale.shape[0]
        self._nu = _positive("nu", nu)
        if self._nu < k:
            raise ParameterError(f"Wishart requires nu >= dimension ({k}). Got nu={self._nu}.")

    @property
    def nu(self) -> float:
        return self._nu

    @property
    def scale(self) -> Array:
        return self._scale

    @property
    def dimension(self) -> int:
        return self._scale.shape[0]

    @derived
    def _scale_op(self) -> CholeskyLinOp:
        L = robust_cholesky(self._scale, lower=True)
        return CholeskyLinOp(TriangularLinOp(L, lower=True))

    def scale_left_root(self) -> Array:
        """Lower Cholesky factor L_S of the scale matrix."""
        return self._scale_op().cholesky(lower=True).to_dense()

    @derived
    def _samplers(self) -> tuple[GammaSampler, ...]:
        return _bartlett_samplers(self._nu, self.dimension)

    def mean(self) -> Array:
        return self._nu * self._scale

    def variance(self) -> Array:
        """Elementwise variances Var(X_ij) = nu * (S_ij^2 + S_ii * S_jj)."""
        s = np.diag(self._scale)
        return self._nu * (self._scale ** 2 + np.outer(s, s))

    def _log_kernel(self, x: ArrayLike) -> Any:
        X, single = _matrix_batch(x, self.dimension)
        Ls = self.scale_left_root()
        k, nu = self.dimension, self._nu
        values = []
        for Xi in X:
            Lx = _lower_factor(Xi)
            if Lx is None:
                values.append(-np.inf)
                continue
            logdet_x = 2.0 * log_det_tri(Lx)
            values.append(0.5 * (nu - k - 1.0) * logdet_x - 0.5 * trace_Ainv_B(Ls, Lx))
        return _batch_result(values, single)

    def _log_normalizer(self) -> float:
        k, nu = self.dimension, self._nu
        return (-0.5 * nu * k * math.log(2.0) - 0.5 * nu * self._scale_op().logdet()
                - multigammaln(0.5 * nu, k))

    def _draw(self, stream: UniformStream) -> Array:
        A = self.scale_left_root() @ standard_wishart_root(stream, self._samplers())
        return outer_gram(A)

    def _params(self) -> dict[str, Any]:
        return {"nu": self._nu, "dimension": self.dimension}


class InverseWishart(Multivariate):
    """
    Inverse-Wishart(nu, Psi): X such that X^-1 ~ Wishart(nu, Psi^-1).

    `inverse_scale` is the matrix Psi; the mean is Psi / (nu - k - 1).
    Draws never form an explicit inverse: with U the upper Cholesky factor of
    Psi and L a standard Bartlett root, X = M.T @ M for M = L^-1 U.
    """

    def __init__(self, nu: float, inverse_scale: ArrayLike) -> None:
        self._inverse_scale = _spd_matrix("inverse_scale", inverse_scale)
        k = self._inverse_scale.shape[0]
        self._nu = _positive("nu", nu)
        if self._nu < k:
            raise ParameterError(f"InverseWishart requires nu >= dimension ({k}). Got nu={self._nu}.")

    @property
    def nu(self) -> float:
        return self._nu

    @property
    def inverse_scale(self) -> Array:
        return self._inverse_scale

    @property
    def dimension(self) -> int:
        return self._inverse_scale.shape[0]

    @derived
    def _inverse_scale_op(self) -> CholeskyLinOp:
        L = robust_cholesky(self._inverse_scale, lower=True)
        return CholeskyLinOp(TriangularLinOp(L, lower=True))

    def inverse_scale_right_root(self) -> Array:
        """Upper Cholesky factor U of Psi (U.T @ U = Psi)."""
        return self._inverse_scale_op().cholesky(lower=False).to_dense()

    @derived
    def _samplers(self) -> tuple[GammaSampler, ...]:
        return _bartlett_samplers(self._nu, self.dimension)

    def mean(self) -> Array:
        k, nu = self.dimension, self._nu
        if nu <= k + 1:
            raise DomainError("mean", "InverseWishart", "nu > dimension + 1")
        return self._inverse_scale / (nu - k - 1.0)

    def variance(self) -> Array:
        """Elementwise variances of X; defined for nu > k + 3."""
        k, nu = self.dimension, self._nu
        if nu <= k + 3:
            raise DomainError("variance", "InverseWishart", "nu > dimension + 3")
        P = self._inverse_scale
        s = np.diag(P)
        num = (nu - k + 1.0) * P ** 2 + (nu - k - 1.0) * np.outer(s, s)
        return num / ((nu - k) * (nu - k - 1.0) ** 2 * (nu - k - 3.0))

    def _log_kernel(self, x: ArrayLike) -> Any:
        X, single = _matrix_batch(x, self.dimension)
        Lp = self._inverse_scale_op().cholesky(lower=True).to_dense()
        k, nu = self.dimension, self._nu
        values = []
        for Xi in X:
            Lx = _lower_factor(Xi)
            if Lx is None:
                values.append(-np.inf)
                continue
            logdet_x = 2.0 * log_det_tri(Lx)
            values.append(-0.5 * (nu + k + 1.0) * logdet_x - 0.5 * trace_Ainv_B(Lx, Lp))
        return _batch_result(values, single)

    def _log_normalizer(self) -> float:
        k, nu = self.dimension, self._nu
        return (0.5 * nu * self._inverse_scale_op().logdet() - 0.5 * nu * k * math.log(2.0)
                - multigammaln(0.5 * nu, k))

    def _draw(self, stream: UniformStream) -> Array:
        L = standard_wishart_root(stream, self._samplers())
        M = tri_solve(L, self.inverse_scale_right_root(), lower=True)
        return gram(M)

    def _params(self) -> dict[str, Any]:
        return {"nu": self._nu, "dimension": self.dimension}
