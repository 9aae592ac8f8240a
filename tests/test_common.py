"""Tests for recursive_estimation.common helpers."""

import numpy as np
import pytest

from recursive_estimation.common import (
    block_sym_diag, symmetrize, row_sums, col_sums, rows_mean, cols_mean,
    cov, sqrt_cov, inverse, with_cov_n, roulette_draw_n,
    JacobianConfig, jacobian, PropagationFunction, ObservationFunction,
    euler_step, rk4_step, expm_discretize,
)
from recursive_estimation.models import Discrete

# ---------------------------------------------------------------------------
# linalg
# ---------------------------------------------------------------------------


class TestBlockSymDiag:
    """Tests for block_sym_diag()."""

    def test_blocks_on_diagonal(self):
        m = block_sym_diag([np.eye(2) * 2.0, [[3.0]]])
        expected = np.array([[2.0, 0.0, 0.0], [0.0, 2.0, 0.0], [0.0, 0.0, 3.0]])
        np.testing.assert_array_equal(m, expected)

    def test_zero_size_blocks_skipped(self):
        m = block_sym_diag([np.eye(2), np.zeros((0, 0)), [[3.0]]])
        assert m.shape == (3, 3)

    def test_all_empty(self):
        assert block_sym_diag([np.zeros((0, 0))]).shape == (0, 0)

    def test_non_square_block(self):
        with pytest.raises(ValueError, match="square"):
            block_sym_diag([np.ones((2, 3))])


class TestSymmetrize:
    """Tests for symmetrize()."""

    def test_mirrors_upper_triangle(self):
        m = np.array([[1.0, 2.0], [5.0, 3.0]])
        np.testing.assert_array_equal(symmetrize(m), [[1.0, 2.0], [2.0, 3.0]])


class TestSumsAndMeans:
    """Tests for row/column sums and means."""

    def test_values(self):
        m = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
        np.testing.assert_array_equal(row_sums(m), [6.0, 15.0])
        np.testing.assert_array_equal(col_sums(m), [5.0, 7.0, 9.0])
        np.testing.assert_array_equal(rows_mean(m), [2.5, 3.5, 4.5])
        np.testing.assert_array_equal(cols_mean(m), [2.0, 5.0])


class TestCov:
    """Tests for cov()."""

    def test_matches_numpy(self):
        rng = np.random.default_rng(0)
        data = rng.standard_normal((3, 50))
        np.testing.assert_allclose(cov(data, 'cols'), np.cov(data))
        np.testing.assert_allclose(cov(data.T, 'rows'), np.cov(data))

    def test_single_observation(self):
        np.testing.assert_array_equal(cov(np.ones((2, 1))), np.zeros((2, 2)))

    def test_unknown_axis(self):
        with pytest.raises(ValueError, match="axis"):
            cov(np.ones((2, 2)), 'diag')


class TestSqrtCov:
    """Tests for sqrt_cov() and inverse()."""

    def test_square_root(self):
        c = np.array([[4.0, 1.0], [1.0, 3.0]])
        S = sqrt_cov(c)
        np.testing.assert_allclose(S @ S.T, c, atol=1e-12)

    def test_singular(self):
        c = np.array([[1.0, 1.0], [1.0, 1.0]])
        S = sqrt_cov(c)
        np.testing.assert_allclose(S @ S.T, c, atol=1e-12)

    def test_inverse_singular(self):
        with pytest.raises(np.linalg.LinAlgError, match="innovation"):
            inverse(np.zeros((2, 2)), 'innovation covariance')


# ---------------------------------------------------------------------------
# sampling
# ---------------------------------------------------------------------------


class TestWithCovN:
    """Tests for with_cov_n()."""

    def test_shape_and_statistics(self):
        c = np.array([[2.0, 0.3], [0.3, 0.5]])
        m = with_cov_n(c, 20000)
        assert m.shape == (2, 20000)
        np.testing.assert_allclose(m.mean(axis=1), [0.0, 0.0], atol=0.05)
        np.testing.assert_allclose(np.cov(m), c, atol=0.1)

    def test_explicit_rng_reproducible(self):
        a = with_cov_n(np.eye(2), 3, np.random.default_rng(1))
        b = with_cov_n(np.eye(2), 3, np.random.default_rng(1))
        np.testing.assert_array_equal(a, b)

    @pytest.mark.parametrize("n", [0, -3])
    def test_invalid_count(self, n):
        with pytest.raises(ValueError, match="number of samples"):
            with_cov_n(np.eye(2), n)


class TestRouletteDrawN:
    """Tests for roulette_draw_n()."""

    def test_degenerate_weights(self):
        np.testing.assert_array_equal(roulette_draw_n([0.0, 1.0, 0.0], 5), [1, 1, 1, 1, 1])

    def test_unnormalized_weights(self):
        idx = roulette_draw_n([0.0, 0.0, 7.0], 4)
        np.testing.assert_array_equal(idx, [2, 2, 2, 2])

    def test_proportional(self):
        idx = roulette_draw_n([1.0, 3.0], 40000)
        assert np.mean(idx == 1) == pytest.approx(0.75, abs=0.01)

    def test_zero_draws(self):
        assert roulette_draw_n([1.0], 0).shape == (0,)

    @pytest.mark.parametrize("p", [None, [], [1.0, -0.5], [0.0, 0.0]])
    def test_invalid_weights(self, p):
        with pytest.raises(ValueError):
            roulette_draw_n(p, 3)

    def test_negative_count(self):
        with pytest.raises(ValueError, match="draws"):
            roulette_draw_n([1.0], -1)


# ---------------------------------------------------------------------------
# jacobian
# ---------------------------------------------------------------------------


def _f(x):
    return np.array([x[0]**2 + x[1], np.sin(x[0]) * x[1], 3.0 * x[1]])


def _jac(x):
    return np.array([
        [2.0 * x[0], 1.0],
        [np.cos(x[0]) * x[1], np.sin(x[0])],
        [0.0, 3.0],
    ])


class TestJacobian:
    """Tests for jacobian()."""

    def test_default_step(self):
        assert JacobianConfig().step is None
        assert JacobianConfig().formula == 'central'

    @pytest.mark.parametrize("formula,atol", [("central", 1e-8), ("forward", 1e-6), ("backward", 1e-6)])
    def test_formulas(self, formula, atol):
        x = np.array([0.7, -1.2])
        J = jacobian(_f, x, JacobianConfig(formula=formula))
        assert J.shape == (3, 2)
        np.testing.assert_allclose(J, _jac(x), atol=atol)

    def test_concurrent_matches_serial(self):
        x = np.array([0.3, 2.0])
        serial = jacobian(_f, x)
        concurrent = jacobian(_f, x, JacobianConfig(concurrent=True))
        np.testing.assert_array_equal(serial, concurrent)

    def test_errors_propagate(self):
        def boom(x):
            raise KeyError("bad state")

        with pytest.raises(KeyError):
            jacobian(boom, np.zeros(2))

    def test_unknown_formula(self):
        with pytest.raises(ValueError, match="formula"):
            jacobian(_f, np.zeros(2), JacobianConfig(formula="spline"))

    def test_model_functions(self, ball):
        x = np.array([1.0, 1.0])
        u = np.array([-1.0])
        np.testing.assert_allclose(jacobian(PropagationFunction(ball, u), x), ball.A, atol=1e-8)
        np.testing.assert_allclose(jacobian(ObservationFunction(ball, u), x), ball.C, atol=1e-8)


# ---------------------------------------------------------------------------
# discretization
# ---------------------------------------------------------------------------


class TestDiscretization:
    """Tests for integration steps and expm_discretize()."""

    def test_euler_step(self):
        x = euler_step(lambda x, u: -x, np.array([1.0]), None, 0.1)
        np.testing.assert_allclose(x, [0.9])

    def test_rk4_step(self):
        x = rk4_step(lambda x, u: -x, np.array([1.0]), None, 0.1)
        np.testing.assert_allclose(x, [np.exp(-0.1)], rtol=1e-6)

    def test_expm_invertible(self):
        A = np.array([[-1.0]])
        B = np.array([[1.0]])
        Ad, Bd = expm_discretize(A, B, 0.5)
        np.testing.assert_allclose(Ad, [[np.exp(-0.5)]])
        np.testing.assert_allclose(Bd, [[1.0 - np.exp(-0.5)]])

    def test_expm_singular_uses_quadrature(self):
        A = np.array([[0.0, 1.0], [0.0, 0.0]])
        B = np.array([[0.0], [1.0]])
        Ad, Bd = expm_discretize(A, B, 1.0)
        np.testing.assert_allclose(Ad, [[1.0, 1.0], [0.0, 1.0]])
        np.testing.assert_allclose(Bd, [[0.5], [1.0]], atol=1e-10)

    def test_no_control_matrix(self):
        _, Bd = expm_discretize([[0.0]], None, 1.0)
        assert Bd is None

    def test_invalid_period(self):
        with pytest.raises(ValueError):
            expm_discretize([[0.0]], None, 0.0)


def test_falling_ball_matches_discretized_double_integrator():
    """The falling ball matrices are the exact discretization of a double integrator."""
    Ad, Bd = expm_discretize([[0.0, 1.0], [0.0, 0.0]], [[0.0], [1.0]], 1.0)
    ball = Discrete(Ad, Bd, [[1.0, 0.0]])
    np.testing.assert_allclose(ball.propagate([1.0, 1.0], [-1.0]), [1.5, 0.0], atol=1e-10)
