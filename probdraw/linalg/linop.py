# linop.py
"""
Matrix wrappers used to hold covariance and scale parameters.

The multivariate families keep their positive definite parameters as a
triangular root and only ever need three things from it: the dense matrix,
triangular solves and the log-determinant.
"""
from __future__ import annotations

import numpy as np
from abc import ABC, abstractmethod
from scipy.linalg import solve_triangular

from ..custom_types import Array, ArrayLike
from ..array_backend.utils import (
    _ensure_vector,
    _ensure_matrix,
    _ensure_square_matrix
)

__all__ = [
    "LinOp",
    "TriangularLinOp",
    "CholeskyLinOp"
]


class LinOp(ABC):
    """Square matrix with a factored representation."""

    @property
    @abstractmethod
    def shape(self) -> tuple[int, int]:
        ...

    @abstractmethod
    def to_dense(self) -> Array:
        ...

    @abstractmethod
    def logdet(self) -> float:
        """log |det A|."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(shape={self.shape})"


class TriangularLinOp(LinOp):
    """Lower (`lower=True`) or upper triangular square matrix."""

    def __init__(self, tri: ArrayLike, *, lower: bool = True, copy: bool = True) -> None:
        tri = _ensure_square_matrix(tri, copy=copy)
        if copy:
            tri.flags.writeable = False
        self.tri = tri
        self.lower = bool(lower)

    @property
    def shape(self) -> tuple[int, int]:
        return self.tri.shape

    def to_dense(self) -> Array:
        return self.tri

    def _check_nonsingular(self) -> Array:
        d = np.abs(np.diag(self.tri))
        if np.any(d == 0):
            raise np.linalg.LinAlgError("Triangular matrix has a zero on its diagonal.")
        return d

    def _as_rhs(self, b: ArrayLike) -> Array:
        """Canonicalize a right-hand side to shape (n, k)."""
        b = np.asarray(b, dtype=float)
        if b.ndim < 2:
            b = _ensure_vector(b).reshape(-1, 1)
        return _ensure_matrix(b, num_rows=self.shape[0])

    def solve(self, b: ArrayLike, *, trans: int = 0) -> Array:
        """Solve T x = b (trans=0) or T.T x = b (trans=1) by substitution."""
        self._check_nonsingular()
        return solve_triangular(self.tri, self._as_rhs(b), trans=trans, lower=self.lower)

    def logdet(self) -> float:
        return float(np.sum(np.log(self._check_nonsingular())))

    @property
    def T(self) -> TriangularLinOp:
        return TriangularLinOp(self.tri.T, lower=not self.lower)


class CholeskyLinOp(LinOp):
    """Positive definite A stored through its triangular root.

    A lower root L gives A = L @ L.T, an upper root U gives A = U.T @ U.
    """

    def __init__(self, root: TriangularLinOp) -> None:
        if not isinstance(root, TriangularLinOp):
            raise ValueError("CholeskyLinOp requires a TriangularLinOp root.")
        self.root = root

    @property
    def shape(self) -> tuple[int, int]:
        return self.root.shape

    def to_dense(self) -> Array:
        L = self.cholesky(lower=True).tri
        return L @ L.T

    def cholesky(self, lower: bool = True) -> TriangularLinOp:
        """Root in the requested orientation, without refactoring."""
        return self.root if lower == self.root.lower else self.root.T

    def logdet(self) -> float:
        return 2.0 * self.root.logdet()
