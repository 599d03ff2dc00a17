# linalg/operations.py
"""
Functions that accept linear operator inputs. This includes the core basic
operations like `solve()` that are also implemented as `LinOp` methods, so
users can call `solve(linop, ...)` rather than `linop.solve(...)`, and
specialized operations like `mah_dist_squared()` that are not in
one-to-one correspondence with `LinOp` methods.
"""

import numpy as np

from ..custom_types import Array, ArrayLike
from ..array_backend.utils import _ensure_matrix
from .linop import _as_linear_operator, LinOpLike
from .cholesky import COVARIANCE_FACTOR_TYPES


# -----------------------------------------------------------------------------
# Expose LinOp methods as functions
# -----------------------------------------------------------------------------

def solve(A: LinOpLike, b: ArrayLike) -> Array:
    return _as_linear_operator(A).solve(b)

def logdet(A: LinOpLike) -> float:
    return _as_linear_operator(A).logdet()

# -----------------------------------------------------------------------------
# Other specialized operations, not core LinOp methods
# -----------------------------------------------------------------------------

def mah_dist_squared(x: ArrayLike,
                     A: LinOpLike,
                     y: ArrayLike | None = None) -> Array:
    """ Compute squared Mahalanobis distance(s) between one or more vectors

    The squared Mahalanobis distance between vectors :math:`x` and :math:`y`
    with respect to the invertible weight matrix :math:`A` is defined as:

    .. math::

        D^2(x, y; A) = (x - y)^\\top A^{-1} (x - y)

    Multiple observations may be passed as rows of `x` (and `y`); either both
    have the same number of rows, or one of them is a single point. If `y`
    is `None`, it is the zero vector.

    When `A` is a covariance factorization the distance is computed as
    :math:`\\|R^{-1}(x - y)\\|^2` from its root, which avoids the second
    triangular solve and is never negative.

    Args:
        x: ArrayLike, of shape (d,) or (n,d).
        A: LinOpLike, invertible and shape (d,d).
        y: ArrayLike or None, shape (d,) or (n,d).

    Returns:
        Array of shape (n,)
    """
    A = _as_linear_operator(A)
    A._check_square()
    d = A.shape[0]
    X = _ensure_matrix(x, as_row_matrix=True, num_cols=d)
    if y is not None:
        Y = _ensure_matrix(y, as_row_matrix=True, num_cols=d)
        if Y.shape[0] not in (1, X.shape[0]) and X.shape[0] != 1:
            raise ValueError("y must have same batch dimension `n` as x, or have batch dimension one.")
        X = X - Y

    if isinstance(A, COVARIANCE_FACTOR_TYPES):
        Z = A.root_solve(X.T)  # (d, n)
        return np.sum(Z ** 2, axis=0)

    Ainv_Xt = A.solve(X.T).T  # (n, d)
    return np.sum(X * Ainv_Xt, axis=1)
