from .linop import LinOp, DenseLinOp, DiagonalLinOp, TriangularLinOp, LinOpLike
from .cholesky import (
    CholeskyLinOp,
    DiagonalCholeskyLinOp,
    LaplaceCholeskyLinOp,
    CovarianceFactor,
    cholesky,
    try_cholesky,
    laplace_cholesky,
)
from .lu import LULinOp, lu, try_lu
from .operations import solve, logdet, mah_dist_squared

__all__ = [
    "LinOp",
    "DenseLinOp",
    "DiagonalLinOp",
    "TriangularLinOp",
    "LinOpLike",
    "CholeskyLinOp",
    "DiagonalCholeskyLinOp",
    "LaplaceCholeskyLinOp",
    "CovarianceFactor",
    "cholesky",
    "try_cholesky",
    "laplace_cholesky",
    "LULinOp",
    "lu",
    "try_lu",
    "solve",
    "logdet",
    "mah_dist_squared",
]
