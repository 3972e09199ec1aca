# array_backend/utils.py
"""
Shape canonicalization for vector and matrix parameters.

Every helper returning an array takes `copy: bool = True`; with the default
the result never aliases the input. Distributions rely on this to own the
means, covariances and scales they are built from, so a caller mutating its
buffer afterwards cannot change a constructed distribution. `_frozen`
additionally makes the owned copy read-only.

All shape failures raise ValueError; callers that validate user parameters
convert it to ParameterError.
"""

from __future__ import annotations

import numpy as np
from typing import Any

from ..custom_types import Array, ArrayLike


def _as_array(x: Any, dtype: Any = float) -> Array:
    try:
        return np.asarray(x, dtype=dtype)
    except (TypeError, ValueError) as e:
        raise TypeError(f"Cannot interpret {type(x).__name__} value {x!r} as a numeric array.") from e


def _ensure_vector(x: ArrayLike, *, length: int | None = None,
                   dtype: Any = float, copy: bool = True) -> Array:
    """
    Return `x` as shape (n,).

    Scalars become (1,), and (n, 1) or (1, n) matrices are flattened. Anything
    else with ndim >= 2 is rejected.
    """
    arr = _as_array(x, dtype=dtype)
    if arr.ndim == 2 and 1 in arr.shape:
        arr = arr.ravel()
    elif arr.ndim == 0:
        arr = arr.reshape(1)
    elif arr.ndim != 1:
        raise ValueError(f"Expected a vector. Got shape {arr.shape}.")

    if length is not None and arr.size != length:
        raise ValueError(f"Expected a vector of length {length}. Got {arr.size}.")
    return arr.copy() if copy else arr


def _ensure_matrix(x: ArrayLike, *, num_rows: int | None = None,
                   num_cols: int | None = None, dtype: Any = float,
                   copy: bool = True) -> Array:
    """Return `x` as a 2d array; scalars become (1, 1) and vectors columns."""
    arr = _as_array(x, dtype=dtype)
    if arr.ndim > 2:
        raise ValueError(f"Expected at most 2 dimensions. Got shape {arr.shape}.")
    if arr.ndim < 2:
        arr = arr.reshape(-1, 1) if arr.ndim == 1 else arr.reshape(1, 1)

    rows, cols = arr.shape
    if num_rows is not None and rows != num_rows:
        raise ValueError(f"Expected {num_rows} rows. Got {rows}.")
    if num_cols is not None and cols != num_cols:
        raise ValueError(f"Expected {num_cols} columns. Got {cols}.")
    return arr.copy() if copy else arr


def _ensure_square_matrix(x: ArrayLike, n: int | None = None, *,
                          dtype: Any = float, copy: bool = True) -> Array:
    matrix = _ensure_matrix(x, dtype=dtype, copy=copy)
    rows, cols = matrix.shape
    if rows != cols:
        raise ValueError(f"Expected a square matrix. Got shape {matrix.shape}.")
    if n is not None and rows != n:
        raise ValueError(f"Expected a {n} x {n} matrix. Got {rows} x {cols}.")
    return matrix


def _frozen(arr: Array) -> Array:
    """Read-only copy of `arr`."""
    out = np.array(arr, copy=True)
    out.flags.writeable = False
    return out
