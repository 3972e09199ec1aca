# linalg/operations.py
"""
Functions on matrices and linear operators used by the multivariate
distributions. These wrap the scipy factorizations with the conventions
probdraw relies on:

- `robust_cholesky` returns a lower factor L (A = L L^T) or an upper factor
  U (A = U^T U), retrying with diagonal jitter for semi-definite input.
- Quadratic forms and traces are always computed through triangular solves
  against a Cholesky factor, never through an explicit inverse.
"""

import logging

import numpy as np
from scipy.linalg import cholesky, solve_triangular

from ..custom_types import Array, ArrayLike
from ..array_backend.utils import _ensure_matrix, _ensure_square_matrix
from .linop import TriangularLinOp
from .utils import add_diag_jitter

logger = logging.getLogger(__name__)

DEFAULT_JITTER = 1e-10


def robust_cholesky(
    matrix: ArrayLike,
    *,
    lower: bool = True,
    jitter: float = DEFAULT_JITTER,
    symmetrize: bool = True,
) -> Array:
    """Return the Cholesky factor of a symmetric positive (semi-)definite matrix.

    Optionally symmetrizes the matrix before attempting the factorization. If
    the initial call fails (typically because the matrix is only positive
    semi-definite), `jitter` scaled by the mean diagonal is added to the
    diagonal and the call is attempted again.

    Args:
        matrix: square 2d array (d, d).
        lower: if True return L with matrix = L @ L.T, otherwise U with
               matrix = U.T @ U.
        jitter: relative jitter magnitude added to the diagonal on failure.
        symmetrize: if True, use (matrix + matrix.T)/2 before factorization.

    Raises:
        numpy.linalg.LinAlgError if factorization fails after adding jitter.
    """
    C = _ensure_square_matrix(matrix)
    if symmetrize:
        C = 0.5 * (C + C.T)

    try:
        return cholesky(C, lower=lower)
    except np.linalg.LinAlgError:
        scale = float(np.mean(np.abs(np.diag(C)))) if C.size else 1.0
        amount = jitter * (scale if scale > 0 else 1.0)
        logger.warning("Cholesky factorization failed; retrying with diagonal jitter %.3g", amount)
        try:
            return cholesky(add_diag_jitter(C, amount), lower=lower)
        except np.linalg.LinAlgError as e:
            raise np.linalg.LinAlgError(
                f"Cholesky factorization failed, even after adding jitter {amount:.3g}"
            ) from e


def gram(A: ArrayLike) -> Array:
    """Return A^T A."""
    A = _ensure_matrix(A, copy=False)
    return A.T @ A


def outer_gram(A: ArrayLike) -> Array:
    """Return A A^T."""
    A = _ensure_matrix(A, copy=False)
    return A @ A.T


def tri_solve(T: ArrayLike, b: ArrayLike, *, lower: bool, trans: bool = False) -> Array:
    """Solve T x = b (or T^T x = b) for triangular T."""
    return TriangularLinOp(T, lower=lower, copy=False).solve(b, trans=int(trans))


def log_det_tri(T: ArrayLike) -> float:
    """
    Computes log|det T| for triangular T. For a Cholesky factor this is half
    the log-determinant of the factored matrix.
    """
    return TriangularLinOp(T, copy=False).logdet()


def trace_Ainv_B(A_chol: ArrayLike, B_chol: ArrayLike) -> float:
    """
    A_chol, B_chol are lower Cholesky factors of A = A_chol @ A_chol.T,
    B = B_chol @ B_chol.T.

    Computes tr(A^{-1}B) = ||A_chol^{-1} B_chol||_F^2 using the factors.
    """
    return float(np.sum(tri_solve(A_chol, B_chol, lower=True) ** 2))


def mah_dist_squared(x: ArrayLike, upper_root: ArrayLike, mean: ArrayLike | None = None) -> Array:
    """Squared Mahalanobis distance(s) under covariance C = U^T U.

    Computes (x - m)^T C^{-1} (x - m) for each row of `x` by solving
    U^T y = (x - m) and summing squares of y.

    Args:
        x: shape (d,) or (n, d).
        upper_root: upper triangular U, shape (d, d).
        mean: optional shape (d,) vector subtracted from each row.

    Returns:
        Array of shape (n,).
    """
    U = np.asarray(upper_root, dtype=float)
    d = U.shape[0]
    X = np.asarray(x, dtype=float)
    X = X.reshape(1, -1) if X.ndim < 2 else X
    if X.shape[1] != d:
        raise ValueError(f"mah_dist_squared: Required {d} columns. Got {X.shape[1]}.")
    if mean is not None:
        X = X - np.asarray(mean, dtype=float)

    y = solve_triangular(U, X.T, trans=1, lower=False)  # (d, n)
    return np.sum(y ** 2, axis=0)
