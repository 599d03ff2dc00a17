# gaussian.py
from __future__ import annotations

import math
import numpy as np

from ..custom_types import Array, ArrayLike, Float, PRNG
from ..exceptions import DimensionMismatchError
from ..array_backend.utils import _ensure_vector, _ensure_matrix
from ..linalg.linop import LinOpLike
from ..linalg.cholesky import (
    CholeskyLinOp,
    DiagonalCholeskyLinOp,
    CovarianceFactor,
    COVARIANCE_FACTOR_TYPES,
    cholesky,
    laplace_cholesky,
)
from ..linalg.operations import mah_dist_squared
from .distribution import RealVectorDistribution

__all__ = [
    "MvNormal",
    "standard_normal_log_density",
    "standard_normal_density",
]

LOG_TWO_PI = math.log(2.0 * math.pi)


class MvNormal(RealVectorDistribution[Float]):
    """Multivariate normal N(mean, Σ) parameterized by a covariance factor.

    The factor is one of the covariance factorizations in
    `latentgauss.linalg.cholesky`; its root R (Σ = R R^T) drives both density
    evaluation and sampling:

        whiten(x)   = R^{-1} (x - mean)
        unwhiten(z) = mean + R z

    Shape policy:
      - single point (d,) in -> scalar / (d,) out
      - batch (n, d) in -> (n,) / (n, d) out
    """

    def __init__(self, mean: ArrayLike, cov_factor: CovarianceFactor):
        mean = _ensure_vector(mean)
        if not isinstance(cov_factor, COVARIANCE_FACTOR_TYPES):
            raise TypeError(
                f"cov_factor must be one of {[t.__name__ for t in COVARIANCE_FACTOR_TYPES]}, "
                f"got {type(cov_factor).__name__}. Use MvNormal.from_cov() to factor a matrix."
            )
        if cov_factor.dim != mean.shape[0]:
            raise DimensionMismatchError(
                f"Dimension mismatch between mean {mean.shape} and covariance {cov_factor.shape}.",
                expected=mean.shape[0], actual=cov_factor.dim,
            )
        mean.setflags(write=False)
        self._mean = mean
        self._cov_factor = cov_factor

    @classmethod
    def from_cov(cls, mean: ArrayLike, cov: LinOpLike) -> MvNormal:
        """Factor `cov` (2D matrix or 1D vector of variances) and build the distribution.

        Raises:
            NotPositiveDefiniteError: if `cov` is not positive definite.
        """
        return cls(mean, cholesky(cov, name="cov"))

    @classmethod
    def standard(cls, dim: int) -> MvNormal:
        """The standard normal N(0, I) in `dim` dimensions."""
        return cls(np.zeros(dim), DiagonalCholeskyLinOp(np.ones(dim)))

    @classmethod
    def from_laplace(cls, mean: ArrayLike,
                     K_chol: CholeskyLinOp | DiagonalCholeskyLinOp,
                     W: ArrayLike) -> MvNormal:
        """N(mean, (K^{-1} + W)^{-1}) held through the Laplace factor pair."""
        return cls(mean, laplace_cholesky(K_chol, W))

    @property
    def mean(self) -> Array[Float]:
        return self._mean

    @property
    def cov(self) -> Array[Float]:
        """Dense covariance matrix. Formed on request for the Laplace variant."""
        return self._cov_factor.to_dense()

    @property
    def cov_factor(self) -> CovarianceFactor:
        return self._cov_factor

    @property
    def dim(self) -> int:
        return self._mean.shape[0]

    def _as_points(self, x: ArrayLike) -> tuple[Array, bool]:
        single = np.ndim(x) <= 1
        X = _ensure_matrix(x, as_row_matrix=True, num_cols=self.dim)
        return X, single

    def whiten(self, x: ArrayLike) -> Array[Float]:
        """Map points in distribution space to standard normal space."""
        X, single = self._as_points(x)
        Z = self._cov_factor.root_solve((X - self._mean).T).T
        return Z[0] if single else Z

    def unwhiten(self, z: ArrayLike) -> Array[Float]:
        """Map standard normal draws to distribution space."""
        Z, single = self._as_points(z)
        X = self._mean + self._cov_factor.root_matvec(Z.T).T
        return X[0] if single else X

    def sample(self, rng: PRNG, n_samples: int | None = None) -> Array[Float]:
        """
        Draw one sample of shape (d,) or, if `n_samples` is given, (n, d).
        """
        if n_samples is None:
            return self.unwhiten(rng.standard_normal(self.dim))
        Z = rng.standard_normal(size=(int(n_samples), self.dim))
        return self.unwhiten(Z)

    def log_density(self, x: ArrayLike) -> float | Array[Float]:
        X, single = self._as_points(x)

        logdet_term = self.dim * LOG_TWO_PI + self._cov_factor.logdet()
        quadratic_term = mah_dist_squared(X, self._cov_factor, self._mean)
        log_dens = -0.5 * (logdet_term + quadratic_term)

        return float(log_dens[0]) if single else log_dens

    def density(self, x: ArrayLike) -> float | Array[Float]:
        log_dens = self.log_density(x)
        return float(np.exp(log_dens)) if np.ndim(log_dens) == 0 else np.exp(log_dens)

    def __repr__(self) -> str:
        return f"MvNormal(dim={self.dim}, cov_factor={self._cov_factor!r})"


def standard_normal_log_density(x: ArrayLike) -> float | Array[Float]:
    """log N(x; 0, I) for x of shape (d,) or (n, d)."""
    X = _ensure_matrix(x, as_row_matrix=True)
    log_dens = -0.5 * (X.shape[1] * LOG_TWO_PI + np.sum(X ** 2, axis=1))
    return float(log_dens[0]) if np.ndim(x) <= 1 else log_dens


def standard_normal_density(x: ArrayLike) -> float | Array[Float]:
    log_dens = standard_normal_log_density(x)
    return float(np.exp(log_dens)) if np.ndim(log_dens) == 0 else np.exp(log_dens)
