# tests/array_backend/test_array_backend_utils.py
import numpy as np
import pytest

from latentgauss.array_backend import utils as U
from latentgauss.exceptions import DimensionMismatchError


def test_ensure_vector_scalar_and_1d_and_2d():
    v0 = U._ensure_vector(5)
    assert v0.shape == (1,)
    v1 = U._ensure_vector([1, 2, 3])
    assert v1.shape == (3,)
    assert v1.dtype == np.float64
    vcol = U._ensure_vector([1, 2], as_column=True)
    assert vcol.shape == (2, 1)
    # 2D (1,n)
    v2 = U._ensure_vector(np.array([[1, 2, 3]]), length=3)
    assert v2.shape == (3,)


def test_ensure_vector_rejects_matrix():
    with pytest.raises(ValueError):
        U._ensure_vector(np.ones((2, 2)))


def test_ensure_vector_length_check_is_dimension_mismatch():
    with pytest.raises(DimensionMismatchError) as excinfo:
        U._ensure_vector([1, 2, 3], length=2)
    assert excinfo.value.expected == 2
    assert excinfo.value.actual == 3
    # still a ValueError for callers that only know numpy conventions
    assert isinstance(excinfo.value, ValueError)


def test_ensure_vector_copy_semantics():
    x = np.array([1.0, 2.0])
    assert U._ensure_vector(x) is not x
    assert U._ensure_vector(x, copy=False) is x


def test_ensure_matrix_scalar_1d_2d():
    m0 = U._ensure_matrix(2)
    assert m0.shape == (1, 1)
    m1 = U._ensure_matrix([1, 2], as_row_matrix=True)
    assert m1.shape == (1, 2)
    m2 = U._ensure_matrix([1, 2], as_row_matrix=False)
    assert m2.shape == (2, 1)
    m3 = U._ensure_matrix(np.array([[1, 2], [3, 4]]))
    assert m3.shape == (2, 2)


def test_ensure_matrix_rejects_ndim_gt2():
    with pytest.raises(ValueError):
        U._ensure_matrix(np.zeros((2, 2, 2)))


def test_ensure_matrix_row_and_col_checks():
    with pytest.raises(DimensionMismatchError):
        U._ensure_matrix(np.zeros((2, 3)), num_rows=3)
    with pytest.raises(DimensionMismatchError):
        U._ensure_matrix(np.zeros((2, 3)), num_cols=2)


def test_ensure_square_matrix():
    assert U._ensure_square_matrix(np.eye(3), n=3).shape == (3, 3)
    with pytest.raises(DimensionMismatchError):
        U._ensure_square_matrix(np.zeros((2, 3)))
    with pytest.raises(DimensionMismatchError):
        U._ensure_square_matrix(np.eye(3), n=2)


def test_ensure_rhs_vector_and_matrix():
    B, was_vector = U._ensure_rhs([1.0, 2.0], 2)
    assert B.shape == (2, 1) and was_vector
    B, was_vector = U._ensure_rhs(np.ones((2, 4)), 2)
    assert B.shape == (2, 4) and not was_vector
    with pytest.raises(DimensionMismatchError):
        U._ensure_rhs([1.0, 2.0, 3.0], 2)
