# inference/laplace.py
"""
Laplace approximation for latent Gaussian models.

Locates the posterior mode of f under a Gaussian prior N(0, K) and a
non-Gaussian likelihood with Newton's method (GPML, Algorithm 3.1). The
negative Hessian W of the log-likelihood need not be diagonal, so instead
of the symmetric B = I + W^{1/2} K W^{1/2} of the textbook algorithm the
iteration factors the non-symmetric B = I + W K with LU. With the Woodbury
identity

    (K^{-1} + W)^{-1} = K (I - (I + W K)^{-1} W K) = K (I - B^{-1} W K)

the Newton step needs a single decomposition per iteration and never
inverts K.
"""
from __future__ import annotations

import logging
from typing import Callable, NamedTuple, Optional

import numpy as np

from ..custom_types import Array, ArrayLike, LogLikeGradNegHess
from ..array_backend.utils import _ensure_vector, _ensure_square_matrix
from ..linalg.cholesky import CholeskyLinOp, DiagonalCholeskyLinOp
from ..linalg.lu import LULinOp, try_lu
from ..distributions.gaussian import MvNormal

__all__ = [
    "LaplaceResult",
    "laplace_approximation",
    "laplace_posterior",
    "DEFAULT_MAX_ITER",
    "DEFAULT_TOL",
]

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITER = 20
DEFAULT_TOL = 1e-3

CONVERGED = "converged"
MAX_ITER = "max_iter"
SINGULAR = "singular"


class LaplaceResult(NamedTuple):
    """Outcome of `laplace_approximation`.

    Attributes:
        mode: the last iterate f.
        WK: W K from the last completed Newton step.
        B_lu: LU factorization of B = I + W K from the last completed step;
            None only if B was singular on the first iteration.
        n_iter: number of completed Newton steps.
        status: "converged", "max_iter" or "singular".
    """
    mode: Array
    WK: Optional[Array]
    B_lu: Optional[LULinOp]
    n_iter: int
    status: str

    @property
    def converged(self) -> bool:
        return self.status == CONVERGED

    def posterior_cov(self, K_chol: CholeskyLinOp | DiagonalCholeskyLinOp) -> Array:
        """Dense (K^{-1} + W)^{-1} = K (I - B^{-1} W K), reusing `B_lu`."""
        if self.B_lu is None:
            raise ValueError("No LU factorization of B is available; the first Newton step failed.")
        K = K_chol.to_dense()
        cov = K - K @ self.B_lu.solve(self.WK)
        return 0.5 * (cov + cov.T)


def laplace_approximation(
    K_chol: CholeskyLinOp | DiagonalCholeskyLinOp,
    f0: ArrayLike,
    loglike_grad_neghess: LogLikeGradNegHess,
    max_iter: int = DEFAULT_MAX_ITER,
    *,
    tol: float = DEFAULT_TOL,
    callback: Callable[[int, Array, float], None] | None = None,
) -> LaplaceResult:
    """Find the mode of p(f | y) ∝ p(y | f) N(f; 0, K) by Newton's method.

    Each iteration, given the current estimate f:

        gradient, W = loglike_grad_neghess(f)
        b      = W f + gradient
        B      = I + W K                  (LU factorized)
        a      = b - B^{-1} W K b
        f_next = K a

    and stops once ||f - f_next|| < tol. The step size is fixed; there is no
    damping or line search.

    Args:
        K_chol: factorization of the prior covariance K.
        f0: starting point, shape (n,).
        loglike_grad_neghess: callable returning the gradient (n,) and the
            negative Hessian (n, n) of the log-likelihood at f. Non-finite
            output in either is not checked and propagates into the mode;
            the status then ends at "max_iter".
        max_iter: maximum number of Newton steps.
        tol: convergence threshold on the Euclidean norm of the update.
        callback: optional observer called as callback(iteration, f, norm)
            after every step.

    Returns:
        LaplaceResult. Hitting `max_iter` or a singular B is not an error;
        check `status`/`converged` before trusting the approximation.
    """
    K = K_chol.to_dense()
    n = K.shape[0]
    f = _ensure_vector(f0, length=n)
    eye = np.eye(n)

    WK = None
    B_lu = None
    status = MAX_ITER
    n_iter = 0
    for i in range(max_iter):
        gradient, W = loglike_grad_neghess(f)
        gradient = _ensure_vector(gradient, length=n)
        W = _ensure_square_matrix(W, n=n)

        b = W @ f + gradient
        WK_i = W @ K
        B_lu_i = try_lu(eye + WK_i, name="I + WK", check_finite=False)
        if B_lu_i is None:
            logger.warning("laplace_approximation: B = I + WK is singular at iteration %d; "
                           "returning the previous iterate.", i)
            status = SINGULAR
            break
        WK, B_lu = WK_i, B_lu_i

        BinvWKb = B_lu.solve(WK @ b)
        a = b - BinvWKb
        f_next = K @ a

        delta = float(np.linalg.norm(f - f_next))
        f = f_next
        n_iter = i + 1

        logger.debug("laplace_approximation: iter = %d, norm = %g", i, delta)
        if callback is not None:
            callback(i, f, delta)

        if delta < tol:
            status = CONVERGED
            break

    if status == MAX_ITER:
        logger.warning("laplace_approximation: no convergence after %d iterations (tol=%g).",
                       max_iter, tol)

    return LaplaceResult(mode=f, WK=WK, B_lu=B_lu, n_iter=n_iter, status=status)


def laplace_posterior(result: LaplaceResult,
                      K_chol: CholeskyLinOp | DiagonalCholeskyLinOp) -> MvNormal:
    """Gaussian approximation N(mode, (K^{-1} + W)^{-1}) from a mode-finder result.

    W is recovered from the returned W K as K^{-1} (W K)^T using the prior
    factorization, then the covariance is held as a Laplace factor pair.

    Raises:
        ValueError: if the first Newton step failed and no W K is available.
        NotPositiveDefiniteError: if I + L^T W L is not positive definite.
    """
    if result.WK is None:
        raise ValueError("No W K is available; the first Newton step failed.")
    W = K_chol.solve(result.WK.T)
    W = 0.5 * (W + W.T)
    return MvNormal.from_laplace(result.mode, K_chol, W)
