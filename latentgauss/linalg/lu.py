# linalg/lu.py
from __future__ import annotations

import warnings
from typing import Any
import numpy as np
from scipy.linalg import lu_factor, lu_solve, LinAlgWarning

from ..custom_types import Array, ArrayLike
from ..exceptions import SingularMatrixError
from ..array_backend.utils import _ensure_square_matrix, _ensure_rhs
from .linop import LinOp

__all__ = [
    "LULinOp",
    "lu",
    "try_lu",
]


class LULinOp(LinOp):
    """A general square operator A held as its LU factorization with partial
    pivoting, P @ A = L @ U.

    Storage follows LAPACK getrf: the strictly lower part of `lu` holds L
    (unit diagonal implied), the upper part holds U, and `piv` records the
    row interchanges. Use `lu()` to construct.
    """

    def __init__(self, lu_and_piv: tuple[Array, Array]) -> None:
        super().__init__()
        lu_arr, piv = lu_and_piv
        self._lu = np.asarray(lu_arr)
        self._piv = np.asarray(piv)
        self._lu.setflags(write=False)
        self._piv.setflags(write=False)

    @property
    def shape(self) -> tuple[int, int]:
        return self._lu.shape

    @property
    def dtype(self) -> Any:
        return self._lu.dtype

    @property
    def lower(self) -> Array:
        """Unit lower triangular factor L."""
        return np.tril(self._lu, k=-1) + np.eye(self.dim, dtype=self.dtype)

    @property
    def upper(self) -> Array:
        """Upper triangular factor U."""
        return np.triu(self._lu)

    @property
    def perm(self) -> Array:
        """Row permutation `p` such that A[p] = L @ U."""
        p = np.arange(self.dim)
        for i, j in enumerate(self._piv):
            p[i], p[j] = p[j], p[i]
        return p

    def to_dense(self) -> Array:
        A = np.empty(self.shape, dtype=self.dtype)
        A[self.perm] = self.lower @ self.upper
        return A

    def solve(self, b: ArrayLike) -> Array:
        """Solve A x = b: permute b, then forward and backward substitution.
        b can be (n,) or (n,k)."""
        B, was_vector = _ensure_rhs(b, self.dim)
        x = lu_solve((self._lu, self._piv), B, check_finite=False)
        return x.ravel() if was_vector else x

    def log_abs_det(self) -> float:
        """log|det A| from the diagonal of U."""
        return float(np.sum(np.log(np.abs(np.diag(self._lu)))))

    def diag(self) -> Array:
        return np.diag(self.to_dense()).copy()


def lu(A: ArrayLike, *, name: str = "matrix", check_finite: bool = True) -> LULinOp:
    """LU factorization with partial pivoting.

    A pivot is treated as zero when |U_ii| <= n * eps * max|A|, the maximum
    taken over the finite entries of A.

    With `check_finite=False` non-finite entries are not rejected; they
    propagate into the factors and from there into every solve, and only
    finite pivots are tested against the threshold.

    Raises:
        SingularMatrixError: if A is singular to working precision or, when
            `check_finite` is True, contains non-finite entries.
    """
    A = _ensure_square_matrix(A)
    n = A.shape[0]
    finite = np.isfinite(A)
    if check_finite and not np.all(finite):
        raise SingularMatrixError(f"{name} contains non-finite entries.", matrix_name=name)

    with warnings.catch_warnings():
        # exact zero pivots are reported below
        warnings.simplefilter("ignore", LinAlgWarning)
        lu_arr, piv = lu_factor(A, check_finite=False)

    pivots = np.abs(np.diag(lu_arr))
    scale = np.max(np.abs(A[finite])) if np.any(finite) else 0.0
    tol = n * np.finfo(lu_arr.dtype).eps * scale
    bad = np.flatnonzero(np.isfinite(pivots) & (pivots <= tol))
    if bad.size:
        raise SingularMatrixError(
            f"{name} is singular to working precision (pivot {int(bad[0])}).",
            matrix_name=name, pivot_index=int(bad[0]),
        )
    return LULinOp((lu_arr, piv))


def try_lu(A: ArrayLike, *, name: str = "matrix",
           check_finite: bool = True) -> LULinOp | None:
    """Like `lu`, but returns None when A is singular."""
    try:
        return lu(A, name=name, check_finite=check_finite)
    except SingularMatrixError:
        return None
