# linalg/utils.py

from __future__ import annotations

import numpy as np

from ..custom_types import Array, ArrayLike
from ..array_backend.utils import _ensure_square_matrix

# Tolerances for structural checks on user supplied matrices.
SYMMETRY_RTOL = 1e-10
SYMMETRY_ATOL = 1e-12
PSD_TOL = 1e-10


def add_diag_jitter(matrix: ArrayLike, jitter: float | ArrayLike = 1e-10, *, copy: bool = True) -> Array:
    """
    Return matrix + diag(jitter).

    Args:
      matrix: 2D square array-like
      jitter: scalar or array-like of length n (interpreted elementwise)
      copy: if True (default) operate on and return a copy; if False the
            input array is updated in place when its dtype allows it.

    Raises:
        ValueError on invalid shapes or non-real jitter values.
    """
    mat = _ensure_square_matrix(matrix, copy=copy)
    n = mat.shape[0]

    jitter_arr = np.asarray(jitter, dtype=float)
    if jitter_arr.ndim == 0:
        jitter_arr = np.full((n,), float(jitter_arr))
    elif jitter_arr.shape != (n,):
        raise ValueError(f"add_diag_jitter: jitter must be scalar or shape ({n},). Got {jitter_arr.shape}.")

    diag_idcs = np.diag_indices(n)
    mat[diag_idcs] = mat[diag_idcs] + jitter_arr
    return mat


def symmetrize(matrix: ArrayLike, *, copy: bool = True) -> Array:
    """Return 0.5 * (A + A.T), removing round-off asymmetry."""
    C = _ensure_square_matrix(matrix, copy=copy)
    return 0.5 * (C + C.T)


def is_symmetric(matrix: ArrayLike, *, rtol: float = SYMMETRY_RTOL,
                 atol: float = SYMMETRY_ATOL) -> bool:
    """True if the (real) matrix equals its transpose up to tolerance."""
    A = np.asarray(matrix, dtype=float)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        return False
    return bool(np.allclose(A, A.T, rtol=rtol, atol=atol))


def is_positive_semidefinite(matrix: ArrayLike, *, tol: float = PSD_TOL) -> bool:
    """
    True if a symmetric matrix has no eigenvalue below -tol * max|eigenvalue|.

    Only the lower triangle is read, so call `is_symmetric` first.
    """
    A = np.asarray(matrix, dtype=float)
    if A.size == 0:
        return True
    eig = np.linalg.eigvalsh(A)
    scale = max(float(np.max(np.abs(eig))), 1.0)
    return bool(eig.min() >= -tol * scale)


def is_upper_triangular(matrix: ArrayLike) -> bool:
    A = np.asarray(matrix)
    return A.ndim == 2 and A.shape[0] == A.shape[1] and not np.any(np.tril(A, -1))


def is_positive_definite(matrix: ArrayLike, *, tol: float = PSD_TOL) -> bool:
    """True if every eigenvalue of a symmetric matrix exceeds tol * max|eigenvalue|."""
    A = np.asarray(matrix, dtype=float)
    if A.size == 0:
        return False
    eig = np.linalg.eigvalsh(A)
    scale = max(float(np.max(np.abs(eig))), 1.0)
    return bool(eig.min() > tol * scale)
