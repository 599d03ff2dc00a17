# tests/linalg/test_cholesky.py
import numpy as np
import pytest
from numpy.testing import assert_allclose

from latentgauss.exceptions import (
    DimensionMismatchError, NotPositiveDefiniteError, NumericalError
)
from latentgauss.linalg.linop import DenseLinOp, DiagonalLinOp, TriangularLinOp
from latentgauss.linalg.cholesky import (
    CholeskyLinOp,
    DiagonalCholeskyLinOp,
    LaplaceCholeskyLinOp,
    cholesky,
    try_cholesky,
    laplace_cholesky,
)


@pytest.fixture
def spd():
    return np.array([[3.0, 1.0, 1.0],
                     [1.0, 3.0, 1.0],
                     [1.0, 1.0, 3.0]])


class TestDenseCholesky:

    def test_factor_matches_numpy(self, spd):
        chol = cholesky(spd)
        assert isinstance(chol, CholeskyLinOp)
        assert_allclose(chol.L, np.linalg.cholesky(spd), atol=1e-12)
        assert_allclose(chol.to_dense(), spd)
        assert chol.has_flag("positive_definite")

    def test_solve_and_logdet(self, spd, rng):
        chol = cholesky(spd)
        b = rng.normal(size=3)
        B = rng.normal(size=(3, 4))
        assert_allclose(chol.solve(b), np.linalg.solve(spd, b), atol=1e-12)
        assert chol.solve(b).shape == (3,)
        assert_allclose(chol.solve(B), np.linalg.solve(spd, B), atol=1e-12)
        assert_allclose(chol.logdet(), np.linalg.slogdet(spd)[1], atol=1e-12)

    def test_root_round_trip(self, spd, rng):
        chol = cholesky(spd)
        z = rng.normal(size=3)
        assert_allclose(chol.root_solve(chol.root_matvec(z)), z, atol=1e-12)
        Z = rng.normal(size=(3, 5))
        assert_allclose(chol.root_matvec(Z), chol.L @ Z, atol=1e-12)

    def test_dense_linop_input(self, spd):
        assert isinstance(cholesky(DenseLinOp(spd)), CholeskyLinOp)

    def test_factor_passes_through(self, spd):
        chol = cholesky(spd)
        assert cholesky(chol) is chol

    @pytest.mark.parametrize("A", [
        np.array([[1.0, 2.0], [2.0, 1.0]]),
        np.array([[-1.0, 0.0], [0.0, 1.0]]),
        np.zeros((2, 2)),
        np.array([[1.0, np.nan], [np.nan, 1.0]]),
    ], ids=["indefinite", "negative", "zero", "nan"])
    def test_not_positive_definite(self, A):
        with pytest.raises(NotPositiveDefiniteError) as excinfo:
            cholesky(A, name="K")
        assert excinfo.value.matrix_name == "K"
        assert isinstance(excinfo.value, np.linalg.LinAlgError)
        assert isinstance(excinfo.value, NumericalError)
        assert try_cholesky(A) is None

    def test_non_square_raises(self):
        with pytest.raises(DimensionMismatchError):
            cholesky(np.ones((2, 3)))


class TestDiagonalCholesky:

    def test_vector_input(self):
        d = np.array([1.0, 2.0, 3.0])
        chol = cholesky(d)
        assert isinstance(chol, DiagonalCholeskyLinOp)
        assert_allclose(chol.L, np.sqrt(d))
        assert_allclose(chol.to_dense(), np.diag(d))
        assert_allclose(chol.diag(), d)
        assert_allclose(chol.logdet(), np.log(6.0))
        assert_allclose(chol.solve(np.ones(3)), 1.0 / d)
        assert_allclose(chol.matvec(np.ones(3)), d)

    def test_diagonal_linop_input(self):
        chol = cholesky(DiagonalLinOp(np.array([4.0, 9.0])))
        assert isinstance(chol, DiagonalCholeskyLinOp)
        assert_allclose(chol.root_matvec(np.ones(2)), [2.0, 3.0])
        assert_allclose(chol.root_solve(np.array([2.0, 3.0])), [1.0, 1.0])

    @pytest.mark.parametrize("d", [[1.0, 0.0], [1.0, -2.0], [1.0, np.inf]])
    def test_not_positive_definite(self, d):
        with pytest.raises(NotPositiveDefiniteError):
            cholesky(np.array(d))
        assert try_cholesky(np.array(d)) is None


class TestLaplaceCholesky:

    @pytest.fixture
    def laplace(self, prior_cov, neg_hessian):
        return laplace_cholesky(cholesky(prior_cov), neg_hessian)

    @pytest.fixture
    def expected_cov(self, prior_cov, neg_hessian):
        return np.linalg.inv(np.linalg.inv(prior_cov) + neg_hessian)

    def test_to_dense(self, laplace, expected_cov):
        assert isinstance(laplace, LaplaceCholeskyLinOp)
        assert_allclose(laplace.to_dense(), expected_cov, rtol=1e-10, atol=1e-12)

    def test_logdet(self, laplace, expected_cov):
        assert_allclose(laplace.logdet(), np.linalg.slogdet(expected_cov)[1], rtol=1e-10)

    def test_solve_and_matvec(self, laplace, expected_cov, rng):
        b = rng.normal(size=3)
        B = rng.normal(size=(3, 2))
        assert_allclose(laplace.solve(b), np.linalg.solve(expected_cov, b), rtol=1e-9)
        assert_allclose(laplace.solve(B), np.linalg.solve(expected_cov, B), rtol=1e-9)
        assert_allclose(laplace.matvec(b), expected_cov @ b, rtol=1e-9)

    def test_root_reproduces_covariance(self, laplace, expected_cov, rng):
        R = laplace.root_matvec(np.eye(3))
        assert_allclose(R @ R.T, expected_cov, rtol=1e-10, atol=1e-12)
        z = rng.normal(size=3)
        assert_allclose(laplace.root_solve(laplace.root_matvec(z)), z, atol=1e-12)

    def test_diagonal_prior(self, neg_hessian):
        d = np.array([1.0, 2.0, 3.0])
        laplace = laplace_cholesky(cholesky(d), neg_hessian)
        expected = np.linalg.inv(np.diag(1.0 / d) + neg_hessian)
        assert_allclose(laplace.to_dense(), expected, rtol=1e-10, atol=1e-12)

    def test_zero_neg_hessian_gives_prior(self, prior_cov):
        laplace = laplace_cholesky(cholesky(prior_cov), np.zeros((3, 3)))
        assert_allclose(laplace.to_dense(), prior_cov, rtol=1e-12)

    def test_negative_curvature_raises(self, prior_cov):
        W = -2.0 * np.linalg.inv(prior_cov)
        with pytest.raises(NotPositiveDefiniteError):
            laplace_cholesky(cholesky(prior_cov), W)

    def test_requires_prior_factor(self, prior_cov, neg_hessian):
        with pytest.raises(TypeError):
            laplace_cholesky(prior_cov, neg_hessian)

    def test_dimension_mismatch(self, prior_cov):
        with pytest.raises(DimensionMismatchError):
            laplace_cholesky(cholesky(prior_cov), np.eye(2))
        with pytest.raises(DimensionMismatchError):
            LaplaceCholeskyLinOp(np.eye(3), TriangularLinOp(np.eye(2)))
