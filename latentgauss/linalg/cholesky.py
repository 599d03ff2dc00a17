# linalg/cholesky.py
"""
Symmetric positive definite factorizations of covariance matrices.

Every factorization represents an SPD matrix A through a root R with
A = R @ R.T and exposes the same capability interface:

    root_matvec(v)   R @ v       (standard normal space -> covariance space)
    root_solve(v)    R^{-1} @ v  (covariance space -> standard normal space)
    solve(b)         A^{-1} @ b
    logdet()         log det A, from the root's diagonal

The set of representations is closed: `CovarianceFactor` lists them, and
consumers such as `MvNormal` accept nothing else.

    CholeskyLinOp           dense A, lower Cholesky factor L
    DiagonalCholeskyLinOp   diagonal A, elementwise square roots
    LaplaceCholeskyLinOp    A = (K^{-1} + W)^{-1} held as the pair (L, M)
                            with K = L L^T and M M^T = I + L^T W L
"""
from __future__ import annotations

from typing import Any, TypeAlias, Union
import numpy as np
from scipy.linalg import cholesky as _scipy_cholesky

from ..custom_types import Array, ArrayLike
from ..exceptions import DimensionMismatchError, NotPositiveDefiniteError
from ..array_backend.utils import (
    _ensure_vector,
    _ensure_square_matrix,
    _ensure_rhs,
)
from .linop import (
    LinOp,
    DiagonalLinOp,
    TriangularLinOp,
    LinOpLike,
    _as_linear_operator,
)

__all__ = [
    "CholeskyLinOp",
    "DiagonalCholeskyLinOp",
    "LaplaceCholeskyLinOp",
    "CovarianceFactor",
    "cholesky",
    "try_cholesky",
    "laplace_cholesky",
]


class CholeskyLinOp(LinOp):
    """A dense positive definite operator A stored together with its lower
       Cholesky factor L such that A = L @ L.T

    Use `cholesky()` to construct; the constructor trusts its inputs.
    """

    def __init__(self, array: ArrayLike, root: TriangularLinOp) -> None:
        super().__init__()
        if not isinstance(root, TriangularLinOp) or not root.lower:
            raise ValueError("CholeskyLinOp requires a lower TriangularLinOp root.")
        self.array = _ensure_square_matrix(array, n=root.dim)
        self.array.setflags(write=False)
        self.root = root
        self.add_flag("symmetric")
        self.add_flag("positive_definite")

    @property
    def shape(self) -> tuple[int, int]:
        return self.array.shape

    @property
    def dtype(self) -> Any:
        return self.array.dtype

    @property
    def L(self) -> Array:
        """The lower triangular factor as an array."""
        return self.root.tri

    def to_dense(self) -> Array:
        return self.array

    def matvec(self, x: ArrayLike) -> Array:
        return self.array @ _ensure_vector(x, length=self.dim)

    def root_matvec(self, x: ArrayLike) -> Array:
        return self.root.matmat(x) if np.ndim(x) == 2 else self.root.matvec(x)

    def root_solve(self, b: ArrayLike) -> Array:
        return self.root.solve(b)

    def solve(self, b: ArrayLike) -> Array:
        """Linear solve using forward backward triangular substitution

        To compute A^{-1}b = (L @ L.T)^{-1}b first compute y = L^{-1}b
        then L.T^{-1}y.
        """
        y = self.root.solve(b)
        return self.root.solve(y, trans=True)

    def logdet(self) -> float:
        return 2.0 * float(np.sum(np.log(np.diag(self.root.tri))))

    def diag(self) -> Array:
        return np.diag(self.array).copy()


class DiagonalCholeskyLinOp(LinOp):
    """A diagonal positive definite operator with variances d**2, stored with
       its root diag(d)."""

    def __init__(self, variances: ArrayLike) -> None:
        super().__init__()
        variances = _ensure_vector(variances)
        self.variances = variances
        self.variances.setflags(write=False)
        self.root = DiagonalLinOp(np.sqrt(variances))
        self.add_flag("diagonal")
        self.add_flag("symmetric")
        self.add_flag("positive_definite")

    @property
    def shape(self) -> tuple[int, int]:
        return self.root.shape

    @property
    def dtype(self) -> Any:
        return self.variances.dtype

    @property
    def L(self) -> Array:
        """The root as a vector of standard deviations."""
        return self.root.diagonal

    def to_dense(self) -> Array:
        return np.diag(self.variances)

    def matvec(self, x: ArrayLike) -> Array:
        return self.variances * _ensure_vector(x, length=self.dim)

    def root_matvec(self, x: ArrayLike) -> Array:
        return self.root.matmat(x) if np.ndim(x) == 2 else self.root.matvec(x)

    def root_solve(self, b: ArrayLike) -> Array:
        return self.root.solve(b)

    def solve(self, b: ArrayLike) -> Array:
        B, was_vector = _ensure_rhs(b, self.dim)
        x = B / self.variances[:, np.newaxis]
        return x.ravel() if was_vector else x

    def logdet(self) -> float:
        return 2.0 * float(np.sum(np.log(self.root.diagonal)))

    def diag(self) -> Array:
        return self.variances.copy()


class LaplaceCholeskyLinOp(LinOp):
    """The Laplace approximated covariance (K^{-1} + W)^{-1}, never formed.

    With K = L L^T and M M^T = I + L^T W L,

        (K^{-1} + W)^{-1} = L (I + L^T W L)^{-1} L^T = (L M^{-T}) (L M^{-T})^T,

    so R = L M^{-T} is a root of the covariance. Applying R or R^{-1} costs
    two triangular operations.

    Args:
        prior_root: lower Cholesky factor L of the prior covariance K.
        posterior_root: lower Cholesky factor M of I + L^T W L.
    """

    def __init__(self, prior_root: ArrayLike | TriangularLinOp,
                 posterior_root: ArrayLike | TriangularLinOp) -> None:
        super().__init__()
        if not isinstance(prior_root, TriangularLinOp):
            prior_root = TriangularLinOp(prior_root, lower=True)
        if not isinstance(posterior_root, TriangularLinOp):
            posterior_root = TriangularLinOp(posterior_root, lower=True)
        if prior_root.shape != posterior_root.shape:
            raise DimensionMismatchError(
                f"Prior factor {prior_root.shape} and posterior factor "
                f"{posterior_root.shape} differ in shape.",
                expected=prior_root.shape, actual=posterior_root.shape,
            )
        self.prior_root = prior_root
        self.posterior_root = posterior_root
        self.add_flag("symmetric")
        self.add_flag("positive_definite")

    @property
    def shape(self) -> tuple[int, int]:
        return self.prior_root.shape

    @property
    def dtype(self) -> Any:
        return np.result_type(self.prior_root.dtype, self.posterior_root.dtype)

    def to_dense(self) -> Array:
        # R^T = M^{-1} L^T
        Rt = self.posterior_root.solve(self.prior_root.tri.T)
        return Rt.T @ Rt

    def root_matvec(self, z: ArrayLike) -> Array:
        """L M^{-T} z; accepts (n,) or (n, k)."""
        v = self.posterior_root.solve(z, trans=True)
        return self.prior_root.matmat(v) if v.ndim == 2 else self.prior_root.matvec(v)

    def root_solve(self, b: ArrayLike) -> Array:
        """M^T L^{-1} b; accepts (n,) or (n, k)."""
        y = self.prior_root.solve(b)
        M = self.posterior_root.tri
        return M.T @ y

    def solve(self, b: ArrayLike) -> Array:
        """(K^{-1} + W) b = L^{-T} M M^T L^{-1} b."""
        y = self.root_solve(b)
        M = self.posterior_root.tri
        return self.prior_root.solve(M @ y, trans=True)

    def matvec(self, x: ArrayLike) -> Array:
        x = _ensure_vector(x, length=self.dim)
        return self.root_matvec(self.posterior_root.solve(self.prior_root.rmatvec(x)))

    def logdet(self) -> float:
        return 2.0 * (self.prior_root.logdet() - self.posterior_root.logdet())


CovarianceFactor: TypeAlias = Union[CholeskyLinOp, DiagonalCholeskyLinOp, LaplaceCholeskyLinOp]
COVARIANCE_FACTOR_TYPES = (CholeskyLinOp, DiagonalCholeskyLinOp, LaplaceCholeskyLinOp)


# -----------------------------------------------------------------------------
# Construction
# -----------------------------------------------------------------------------

def _dense_cholesky(A: Array, name: str) -> CholeskyLinOp:
    if not np.all(np.isfinite(A)):
        raise NotPositiveDefiniteError(f"{name} contains non-finite entries.", matrix_name=name)
    try:
        L = _scipy_cholesky(A, lower=True, check_finite=False)
    except np.linalg.LinAlgError as e:
        raise NotPositiveDefiniteError(f"{name} is not positive definite: {e}", matrix_name=name) from e
    if not np.all(np.diag(L) > 0):
        raise NotPositiveDefiniteError(f"{name} has a zero pivot.", matrix_name=name)
    return CholeskyLinOp(A, TriangularLinOp(L, lower=True, copy=False))


def _diagonal_cholesky(d: Array, name: str) -> DiagonalCholeskyLinOp:
    if not np.all(np.isfinite(d)) or np.any(d <= 0):
        raise NotPositiveDefiniteError(
            f"{name} has non-positive or non-finite diagonal entries.", matrix_name=name)
    return DiagonalCholeskyLinOp(d)


def cholesky(A: LinOpLike, *, name: str = "matrix") -> CovarianceFactor:
    """Factor a symmetric positive definite matrix.

    A 2D array or `DenseLinOp` is factored densely (only the lower triangle is
    read; symmetry is the caller's responsibility). A 1D array of variances or
    a `DiagonalLinOp` yields the diagonal factorization. A covariance factor is
    returned unchanged.

    Raises:
        NotPositiveDefiniteError: if elimination meets a zero, negative or
            non-finite pivot.
    """
    if isinstance(A, COVARIANCE_FACTOR_TYPES):
        return A
    op = _as_linear_operator(A)
    op._check_square()
    if op.has_flag("diagonal"):
        return _diagonal_cholesky(op.diag(), name)
    return _dense_cholesky(op.to_dense(), name)


def try_cholesky(A: LinOpLike, *, name: str = "matrix") -> CovarianceFactor | None:
    """Like `cholesky`, but returns None when A is not positive definite."""
    try:
        return cholesky(A, name=name)
    except NotPositiveDefiniteError:
        return None


def laplace_cholesky(K_chol: CholeskyLinOp | DiagonalCholeskyLinOp,
                     W: ArrayLike) -> LaplaceCholeskyLinOp:
    """Build the Laplace pair for (K^{-1} + W)^{-1} from a prior factor and W.

    W is the (symmetric, positive semidefinite) negative Hessian of the
    log-likelihood. Only I + L^T W L is factored.

    Raises:
        NotPositiveDefiniteError: if I + L^T W L is not positive definite,
            which happens when W has sufficiently negative curvature.
    """
    if not isinstance(K_chol, (CholeskyLinOp, DiagonalCholeskyLinOp)):
        raise TypeError(f"Expected a prior Cholesky factorization, got {type(K_chol).__name__}.")
    n = K_chol.dim
    W = _ensure_square_matrix(W, n=n)
    L = np.diag(K_chol.L) if isinstance(K_chol, DiagonalCholeskyLinOp) else K_chol.L
    S = np.eye(n) + L.T @ W @ L
    S = 0.5 * (S + S.T)
    M = _dense_cholesky(S, "I + L^T W L")
    return LaplaceCholeskyLinOp(TriangularLinOp(L, lower=True), M.root)
