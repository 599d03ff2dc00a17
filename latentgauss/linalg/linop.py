# linop.py
from __future__ import annotations

from typing import Any, FrozenSet, TypeAlias, Union
import numpy as np
from abc import ABC, abstractmethod
from scipy.linalg import solve_triangular

from ..custom_types import Array, ArrayLike
from ..exceptions import DimensionMismatchError
from ..array_backend.utils import (
    _ensure_vector,
    _ensure_matrix,
    _ensure_square_matrix,
    _ensure_rhs,
)

__all__ = [
    "LinOp",
    "DenseLinOp",
    "DiagonalLinOp",
    "TriangularLinOp",
    "LinOpLike",
]


# --- Flags: canonical set and helpers ----------------------------------------
ALLOWED_FLAGS = frozenset({
    "symmetric",
    "positive_definite",
    "diagonal",
    "triangular_lower",
    "triangular_upper",
    "dense",
})


# ---- Core abstract class ----

class LinOp(ABC):
    """Abstract base class for a square or rectangular linear operator.

    Concrete subclasses must provide `shape`, `dtype` and `to_dense`. The
    `matvec`/`rmatvec` and `matmat` methods fall back to the dense
    representation; subclasses with structure override them.

    Flags are restricted to ALLOWED_FLAGS. Use `.flags` (frozenset) to inspect.
    """

    def __init__(self) -> None:
        self._flags: set[str] = set()

    @property
    @abstractmethod
    def shape(self) -> tuple[int, int]:
        """Return (n_out, n_in)."""
        ...

    @property
    @abstractmethod
    def dtype(self) -> Any:
        """Return dtype (e.g., np.float64)."""
        ...

    @abstractmethod
    def to_dense(self) -> Array:
        """Return dense array representation of the operator."""
        ...

    @property
    def dim(self) -> int:
        """Number of rows; the operator dimension for square operators."""
        return self.shape[0]

    # ---- Utility methods for validation ----

    def _check_square(self) -> None:
        """ Throw error if operator is not square """
        n_out, n_in = self.shape
        if n_out != n_in:
            raise DimensionMismatchError(
                f"Linear operator is not square. Has shape ({n_out}, {n_in})",
                expected=(n_out, n_out), actual=(n_out, n_in),
            )

    # ---- Optional convenience methods that implementors may override for speed ----
    def matvec(self, x: ArrayLike) -> Array:
        """Return A @ x for x shape (n_in,) -> (n_out,)."""
        x = _ensure_vector(x, length=self.shape[1])
        return self.to_dense() @ x

    def rmatvec(self, x: ArrayLike) -> Array:
        """Return A^T @ x for x shape (n_out,) -> (n_in,)."""
        x = _ensure_vector(x, length=self.shape[0])
        return self.to_dense().T @ x

    def matmat(self, X: ArrayLike) -> Array:
        """Return A @ X for X shape (n_in, k) or (n_in,)"""
        X = _ensure_matrix(X, num_rows=self.shape[1])
        return self.to_dense() @ X

    def solve(self, b: ArrayLike) -> Array:
        """Solve A x = b; default uses dense fallback. b can be (n,) or (n,k)."""
        self._check_square()
        B, was_vector = _ensure_rhs(b, self.shape[0])
        x = np.linalg.solve(self.to_dense(), B)
        return x.ravel() if was_vector else x

    def diag(self) -> Array:
        """Return diagonal of operator; default uses dense fallback."""
        return np.diag(self.to_dense()).copy()

    def logdet(self) -> float:
        """Return log determinant; default uses dense fallback. Raises if sign <= 0"""
        self._check_square()
        sign, log_det = np.linalg.slogdet(self.to_dense())
        if sign <= 0:
            raise np.linalg.LinAlgError("Log-determinant undefined: matrix has non-positive determinant.")
        return float(log_det)

    # ---- Flags API ----
    def add_flag(self, flag: str) -> None:
        """Attach a semantic flag (must be one of ALLOWED_FLAGS)."""
        if flag not in ALLOWED_FLAGS:
            raise ValueError(f"Unknown flag {flag!r}. Allowed: {sorted(ALLOWED_FLAGS)}")
        self._flags.add(flag)

    def has_flag(self, flag: str) -> bool:
        """Return True if flag attached."""
        return flag in self._flags

    @property
    def flags(self) -> FrozenSet[str]:
        """Return frozenset of current flags (read-only view)."""
        return frozenset(self._flags)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(shape={self.shape}, dtype={self.dtype})"


# ---- Concrete linear operator subclasses ----

class DenseLinOp(LinOp):
    """Dense linear operator backed by a numpy array."""

    def __init__(self, arr: ArrayLike, copy: bool = True) -> None:
        super().__init__()
        self.array = _ensure_matrix(arr, copy=copy)
        if copy:
            self.array.setflags(write=False)
        self.add_flag("dense")
        if self.array.shape[0] == self.array.shape[1] and np.array_equal(self.array, self.array.T):
            self.add_flag("symmetric")

    @property
    def shape(self) -> tuple[int, int]:
        return self.array.shape

    @property
    def dtype(self) -> Any:
        return self.array.dtype

    def to_dense(self) -> Array:
        return self.array


class DiagonalLinOp(LinOp):
    """Diagonal operator represented by a 1D array of diagonal entries."""

    def __init__(self, diag: ArrayLike, copy: bool = True) -> None:
        super().__init__()
        self.diagonal = _ensure_vector(diag, copy=copy)
        if copy:
            self.diagonal.setflags(write=False)
        self._n = int(self.diagonal.size)

        self.add_flag("diagonal")
        self.add_flag("symmetric")
        if np.all(self.diagonal > 0):
            self.add_flag("positive_definite")

    @property
    def shape(self) -> tuple[int, int]:
        return (self._n, self._n)

    @property
    def dtype(self) -> Any:
        return self.diagonal.dtype

    def matvec(self, x: ArrayLike) -> Array:
        x = _ensure_vector(x, length=self._n)
        return self.diagonal * x

    def rmatvec(self, x: ArrayLike) -> Array:
        return self.matvec(x)

    def matmat(self, X: ArrayLike) -> Array:
        X = _ensure_matrix(X, num_rows=self._n)
        return X * self.diagonal[:, np.newaxis]

    def to_dense(self) -> Array:
        return np.diag(self.diagonal)

    def solve(self, b: ArrayLike) -> Array:
        """
        For consistency with np.linalg.solve(), b can be (n,) or (n,k).
        """
        if np.any(self.diagonal == 0):
            raise np.linalg.LinAlgError("Diagonal contains zero entries; not invertible.")

        B, was_vector = _ensure_rhs(b, self._n)
        x = B / self.diagonal[:, np.newaxis]
        return x.ravel() if was_vector else x

    def diag(self) -> Array:
        return self.diagonal.copy()

    def logdet(self) -> float:
        if np.any(self.diagonal <= 0):
            raise np.linalg.LinAlgError("Non-positive diagonal entries; logdet undefined.")
        return float(np.sum(np.log(self.diagonal)))


class TriangularLinOp(LinOp):
    """Triangular operator represented by lower or upper triangular matrix (2D array).

    The operator interprets stored matrix `tri` so that:
      - if lower==True: stored tri is lower triangular and operator is L @ x
      - if lower==False: stored tri is upper triangular and operator is U @ x
    """

    def __init__(self, tri: ArrayLike, *, lower: bool = True, copy: bool = True) -> None:
        super().__init__()
        tri = _ensure_square_matrix(tri, copy=copy)
        self.lower = bool(lower)
        self.tri = np.tril(tri) if self.lower else np.triu(tri)
        self.tri.setflags(write=False)
        self._n = self.tri.shape[0]
        self.add_flag("triangular_lower" if self.lower else "triangular_upper")

    @property
    def shape(self) -> tuple[int, int]:
        return (self._n, self._n)

    @property
    def dtype(self) -> Any:
        return self.tri.dtype

    def matvec(self, x: ArrayLike) -> Array:
        x = _ensure_vector(x, length=self._n)
        return self.tri @ x

    def rmatvec(self, x: ArrayLike) -> Array:
        x = _ensure_vector(x, length=self._n)
        return self.tri.T @ x

    def matmat(self, X: ArrayLike) -> Array:
        X = _ensure_matrix(X, num_rows=self._n)
        return self.tri @ X

    def to_dense(self) -> Array:
        return np.array(self.tri)

    def solve(self, b: ArrayLike, *, trans: bool = False) -> Array:
        """
        Solve the triangular system Tx=b (or T^T x = b when `trans` is True)
        by forward or backward substitution.
        """
        B, was_vector = _ensure_rhs(b, self._n)
        x = solve_triangular(self.tri, B, lower=self.lower, trans=1 if trans else 0)
        return x.ravel() if was_vector else x

    def logdet(self) -> float:
        """log|det T| for a triangular operator with positive diagonal."""
        d = np.diag(self.tri)
        if np.any(d <= 0):
            raise np.linalg.LinAlgError("Triangular operator has non-positive diagonal; logdet undefined.")
        return float(np.sum(np.log(d)))


LinOpLike: TypeAlias = Union[LinOp, ArrayLike]


def _as_linear_operator(A: LinOpLike) -> LinOp:
    """Wrap arrays as operators: 2D -> DenseLinOp, 1D -> DiagonalLinOp."""
    if isinstance(A, LinOp):
        return A
    arr = np.asarray(A)
    if arr.ndim == 1:
        return DiagonalLinOp(arr)
    if arr.ndim == 2:
        return DenseLinOp(arr)
    raise ValueError(f"Cannot interpret array of shape {arr.shape} as a linear operator.")
