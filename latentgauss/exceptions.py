"""
Exception hierarchy for latentgauss.

All exceptions inherit from LatentGaussError so callers can catch any
library-specific error. Numerical failures additionally derive from
numpy.linalg.LinAlgError, so code written against plain numpy/scipy
error handling keeps working.
"""

import numpy as np


class LatentGaussError(Exception):
    """Base exception for all latentgauss errors."""
    pass


class DimensionMismatchError(LatentGaussError, ValueError):
    """
    Array dimensions are inconsistent.

    Raised when a mean, a covariance factor and a query point (or any
    other pair of operands) disagree in size.

    Attributes:
        expected: The required dimension or shape
        actual: The dimension or shape that was supplied
    """

    def __init__(self, message: str, expected=None, actual=None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class NumericalError(LatentGaussError, np.linalg.LinAlgError):
    """Base class for failed factorizations."""
    pass


class NotPositiveDefiniteError(NumericalError):
    """
    Matrix is not positive definite.

    Raised when a Cholesky factorization meets a zero, negative or
    non-finite pivot.

    Attributes:
        matrix_name: Name/description of the problematic matrix
    """

    def __init__(self, message: str, matrix_name: str | None = None):
        super().__init__(message)
        self.matrix_name = matrix_name


class SingularMatrixError(NumericalError):
    """
    Matrix is singular to working precision.

    Raised by the LU factorization when a pivot is numerically zero.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        pivot_index: Index of the first offending pivot, if known
    """

    def __init__(self, message: str, matrix_name: str | None = None,
                 pivot_index: int | None = None):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.pivot_index = pivot_index
