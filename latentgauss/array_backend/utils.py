# array_backend/utils.py
"""
Utility functions for array canonicalization used by latentgauss.

Structural problems with an input (wrong number of axes, a 2D input that
is not a vector) raise ValueError. A well-formed input whose size disagrees
with the size the caller requires raises DimensionMismatchError, so shape
disagreements between a distribution and its arguments can be told apart
from malformed arrays.

All functions that return arrays accept `copy: bool = True`. When `copy=True`
the returned array is guaranteed to be a different object from the input.
"""

from __future__ import annotations

import numpy as np
from typing import Any

from ..custom_types import Array, ArrayLike
from ..exceptions import DimensionMismatchError


def _as_array(x: Any, dtype: Any = None) -> Array:
    try:
        return np.asarray(x, dtype=dtype)
    except Exception as e:
        raise TypeError(
            f"Could not convert input to array.\n"
            f"Input type: {type(x).__name__}\n"
            f"Original error: {e}"
        ) from e


def _as_float_array(x: Any) -> Array:
    """Convert to a floating point array, promoting integer input to float64."""
    arr = _as_array(x)
    if not np.issubdtype(arr.dtype, np.floating):
        arr = arr.astype(np.float64)
    return arr


def _ensure_vector(x: ArrayLike, *, as_column: bool = False,
                   length: int | None = None, copy: bool = True) -> Array:
    """
    Ensure input is returned as a 1-D float vector (canonical shape (n,)) by
    default. If as_column=True, return shape (n,1).

    Accepts:
      - 1D arrays -> (n,) (or (n,1) if as_column)
      - 2D arrays shaped (n,1) or (1,n) -> converted appropriately
      - 0D scalar -> treated as length-1 vector (1,) or (1,1) if as_column

    Raises:
      ValueError for incompatible shapes (ndim > 2 or 2D with both dims >1)
      DimensionMismatchError if `length` is given and does not match
    """
    arr = _as_float_array(x)

    if arr.ndim == 0:
        v = arr.reshape((1,))
    elif arr.ndim == 1:
        v = arr
    elif arr.ndim == 2 and 1 in arr.shape:
        v = np.ravel(arr)
    elif arr.ndim == 2:
        raise ValueError(f"_ensure_vector: 2D input has shape {arr.shape}, which is not a vector (expected (n,1) or (1,n)).")
    else:
        raise ValueError(f"_ensure_vector: input has too many dimensions (ndim={arr.ndim}).")

    if length is not None and v.size != length:
        raise DimensionMismatchError(
            f"Required vector of length {length}. Got {v.size}.",
            expected=length, actual=v.size,
        )

    out = v.reshape((-1, 1)) if as_column else v
    return out.copy() if copy else out


def _ensure_matrix(x: ArrayLike, *, as_row_matrix: bool = False,
                   num_rows: int | None = None, num_cols: int | None = None,
                   copy: bool = True) -> Array:
    """ Ensure input is a 2D float matrix

    - Scalar inputs (0D) become arrays of shape (1, 1)
    - 1D inputs become:
        - shape (1, n) if as_row_matrix is True
        - shape (n, 1) if as_row_matrix is False
    - 2D inputs are passed through as is
    - Other shapes raise an error
    """
    arr = _as_float_array(x)

    if arr.ndim == 2:
        out = arr
    elif arr.ndim == 1:
        out = arr.reshape(1, -1) if as_row_matrix else arr.reshape(-1, 1)
    elif arr.ndim == 0:
        out = arr.reshape(1, 1)
    else:
        raise ValueError(f"_ensure_matrix: Input cannot be converted to a 2D matrix. Shape {arr.shape}")

    if num_rows is not None and out.shape[0] != num_rows:
        raise DimensionMismatchError(
            f"Required {num_rows} rows. Got {out.shape[0]}.",
            expected=num_rows, actual=out.shape[0],
        )

    if num_cols is not None and out.shape[1] != num_cols:
        raise DimensionMismatchError(
            f"Required {num_cols} columns. Got {out.shape[1]}.",
            expected=num_cols, actual=out.shape[1],
        )

    return out.copy() if copy else out


def _ensure_square_matrix(x: ArrayLike, n: int | None = None, *, copy: bool = True) -> Array:
    """Ensure input is a 2d square matrix"""
    matrix = _ensure_matrix(x, copy=copy)
    num_rows, num_cols = matrix.shape
    if num_rows != num_cols:
        raise DimensionMismatchError(
            f"Array is not square. Shape {matrix.shape}",
            expected=(num_rows, num_rows), actual=matrix.shape,
        )

    if n is not None and num_rows != n:
        raise DimensionMismatchError(
            f"Required matrix dimension {n}. Got {num_rows}.",
            expected=n, actual=num_rows,
        )

    return matrix


def _ensure_rhs(b: ArrayLike, n: int) -> tuple[Array, bool]:
    """Canonicalize the right-hand side of a linear solve.

    Accepts (n,) or (n,k). Returns the (n,k) matrix and whether the input was
    a single vector, so callers can hand back the shape they were given.
    """
    arr = _as_float_array(b)
    if arr.ndim < 2:
        return _ensure_vector(arr, as_column=True, length=n), True
    return _ensure_matrix(arr, num_rows=n), False
