# test_linop.py
import numpy as np
import pytest

from latentgauss.exceptions import DimensionMismatchError
from latentgauss.linalg.linop import (
    DenseLinOp, DiagonalLinOp, TriangularLinOp, ALLOWED_FLAGS, _as_linear_operator
)


def approx(a, b, tol=1e-12):
    return np.allclose(a, b, atol=tol, rtol=0)

class TestDenseLinOp:
    @classmethod
    def setup_class(cls):
        cls.n = 3
        cls.arr = 2 * np.identity(cls.n, dtype=np.float64)
        cls.op = DenseLinOp(cls.arr, copy=True)

    def test_array_properties(self):
        assert self.op.shape == (self.n, self.n)
        assert self.op.dtype == self.arr.dtype
        assert self.op.has_flag("dense")
        assert self.op.dim == self.n
        assert np.array_equal(self.op.to_dense(), self.arr)

    def test_copy_is_read_only(self):
        with pytest.raises(ValueError):
            self.op.to_dense()[0, 0] = 5.0

    def test_linalg_operations(self):
        assert approx(self.op.logdet(), np.linalg.slogdet(self.arr)[1])
        assert np.array_equal(self.op.diag(), np.diag(self.arr))

        b1 = np.ones((self.n,))
        b2 = np.ones((self.n, 1))
        B = np.ones((self.n, 4))
        assert approx(self.op.solve(b1), np.linalg.solve(self.arr, b1))
        assert self.op.solve(b1).shape == (self.n,)
        assert approx(self.op.solve(b2), np.linalg.solve(self.arr, b2))
        assert approx(self.op.solve(B), np.linalg.solve(self.arr, B))

    def test_matvec_matmat(self):
        b1 = np.ones((self.n,))
        b2 = np.ones((self.n, 1))
        B = np.ones((self.n, 4))

        assert np.array_equal(self.op.matvec(b1), self.arr @ b1)
        assert np.array_equal(self.op.matvec(b2), (self.arr @ b2).ravel())
        assert np.array_equal(self.op.matmat(b1), (self.arr @ b1).reshape(-1, 1))
        assert np.array_equal(self.op.matmat(b2), self.arr @ b2)
        assert np.array_equal(self.op.matmat(B), self.arr @ B)


def test_dense_matvec_matmat_dtype():
    A = np.array([[1.0, 2.0], [3.0, 4.0]], dtype=np.float64)
    op = DenseLinOp(A)
    x = np.array([1.0, 1.0])
    assert approx(op.matvec(x), A @ x)
    assert approx(op.rmatvec(x), A.T @ x)
    X = np.stack([x, x], axis=1)
    assert approx(op.matmat(X), A @ X)
    assert op.dtype == A.dtype
    assert "dense" in op.flags
    assert "symmetric" not in op.flags


def test_dense_symmetric_flag():
    A = np.array([[2.0, 1.0], [1.0, 2.0]])
    assert DenseLinOp(A).has_flag("symmetric")


def test_diagonal_matvec_solve_flags():
    diag = np.array([2.0, 3.0])
    d = DiagonalLinOp(diag)
    x = np.array([1.0, 2.0])
    assert approx(d.matvec(x), diag * x)
    b = np.array([2.0, 6.0])
    sol = d.solve(b)
    assert approx(sol, np.array([1.0, 2.0]))
    assert approx(d.solve(np.ones((2, 3))), np.ones((2, 3)) / diag[:, None])
    assert approx(d.logdet(), np.log(6.0))
    assert "diagonal" in d.flags
    assert "symmetric" in d.flags
    assert "positive_definite" in d.flags


def test_diagonal_zero_entry_not_invertible():
    d = DiagonalLinOp(np.array([1.0, 0.0]))
    assert "positive_definite" not in d.flags
    with pytest.raises(np.linalg.LinAlgError):
        d.solve(np.ones(2))
    with pytest.raises(np.linalg.LinAlgError):
        d.logdet()


def test_triangular_solve_and_flags():
    L = np.array([[1.0, 0.0], [2.0, 3.0]])
    tri = TriangularLinOp(L, lower=True)
    b = np.array([1.0, 5.0])
    x = tri.solve(b)
    # verify forward solve L x = b
    assert approx(tri.matvec(x), b)
    # transposed solve L^T x = b
    xt = tri.solve(b, trans=True)
    assert approx(L.T @ xt, b)
    assert "triangular_lower" in tri.flags
    # test rmatvec equivalence
    v = np.array([1.0, 2.0])
    assert approx(tri.rmatvec(v), L.T @ v)
    assert approx(tri.logdet(), np.log(3.0))


def test_triangular_discards_other_triangle():
    A = np.array([[1.0, 9.0], [2.0, 3.0]])
    assert approx(TriangularLinOp(A, lower=True).to_dense(), np.tril(A))
    upper = TriangularLinOp(A, lower=False)
    assert approx(upper.to_dense(), np.triu(A))
    assert "triangular_upper" in upper.flags


def test_logdet_sign_error():
    A = np.array([[0.0, 1.0], [1.0, 0.0]])
    op = DenseLinOp(A)
    # determinant is -1 so slogdet sign = -1 -> logdet should raise
    with pytest.raises(np.linalg.LinAlgError):
        _ = op.logdet()


def test_non_square_solve_raises():
    op = DenseLinOp(np.ones((2, 3)))
    with pytest.raises(DimensionMismatchError):
        op.solve(np.ones(2))


def test_unknown_flag_rejected():
    op = DiagonalLinOp(np.ones(2))
    with pytest.raises(ValueError):
        op.add_flag("banded")
    for flag in ALLOWED_FLAGS:
        op.add_flag(flag)
    assert op.flags == ALLOWED_FLAGS


def test_as_linear_operator():
    assert isinstance(_as_linear_operator(np.ones(3)), DiagonalLinOp)
    assert isinstance(_as_linear_operator(np.eye(3)), DenseLinOp)
    op = DenseLinOp(np.eye(2))
    assert _as_linear_operator(op) is op
    with pytest.raises(ValueError):
        _as_linear_operator(np.ones((2, 2, 2)))
