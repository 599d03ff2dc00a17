"""
latentgauss: numerical core for Laplace approximations of latent Gaussian models.

Submodules:
    linalg: covariance factorizations (dense, diagonal, Laplace pair) and LU
    distributions: multivariate normal over a covariance factor
    inference: Newton mode finder for the Laplace approximation
    quadrature: Gauss-Hermite rule
"""
import logging as _logging

from latentgauss.exceptions import (
    LatentGaussError,
    DimensionMismatchError,
    NumericalError,
    NotPositiveDefiniteError,
    SingularMatrixError,
)
from latentgauss.linalg import (
    CholeskyLinOp,
    DiagonalCholeskyLinOp,
    LaplaceCholeskyLinOp,
    LULinOp,
    cholesky,
    try_cholesky,
    laplace_cholesky,
    lu,
    try_lu,
)
from latentgauss.distributions import (
    MvNormal,
    standard_normal_density,
    standard_normal_log_density,
)
from latentgauss.inference import LaplaceResult, laplace_approximation, laplace_posterior
from latentgauss.quadrature import gauss_hermite, gauss_hermite_normal

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "LatentGaussError",
    "DimensionMismatchError",
    "NumericalError",
    "NotPositiveDefiniteError",
    "SingularMatrixError",
    "CholeskyLinOp",
    "DiagonalCholeskyLinOp",
    "LaplaceCholeskyLinOp",
    "LULinOp",
    "cholesky",
    "try_cholesky",
    "laplace_cholesky",
    "lu",
    "try_lu",
    "MvNormal",
    "standard_normal_density",
    "standard_normal_log_density",
    "LaplaceResult",
    "laplace_approximation",
    "laplace_posterior",
    "gauss_hermite",
    "gauss_hermite_normal",
]

_logging.getLogger(__name__).addHandler(_logging.NullHandler())
