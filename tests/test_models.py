"""Tests for linear and nonlinear models."""

import numpy as np
import pytest

from recursive_estimation.models import Discrete, Continuous, NonlinearModel, System


class TestDiscrete:
    """Tests for the Discrete linear model."""

    def test_dims(self, ball):
        assert ball.dims() == (2, 1, 1, 0)

    def test_propagate(self, ball):
        np.testing.assert_allclose(ball.propagate([1.0, 1.0], [-1.0]), [1.5, 0.0])

    def test_propagate_without_input(self, ball):
        np.testing.assert_allclose(ball.propagate([1.0, 1.0]), [2.0, 1.0])

    def test_propagate_adds_matching_noise(self, ball):
        x = ball.propagate([1.0, 1.0], [-1.0], [0.1, 0.2])
        np.testing.assert_allclose(x, [1.6, 0.2])

    def test_ignores_mismatched_noise(self, ball):
        np.testing.assert_allclose(ball.propagate([1.0, 1.0], [-1.0], [0.1]), [1.5, 0.0])
        np.testing.assert_allclose(ball.propagate([1.0, 1.0], [-1.0], np.zeros(0)), [1.5, 0.0])

    def test_observe(self, ball):
        np.testing.assert_allclose(ball.observe([1.5, 0.0], [-1.0]), [1.5])
        np.testing.assert_allclose(ball.observe([1.5, 0.0], [-1.0], [0.5]), [2.0])

    def test_invalid_input(self, ball):
        with pytest.raises(ValueError, match="input vector"):
            ball.propagate([1.0, 1.0], [1.0, 2.0, 3.0])

    def test_invalid_state(self, ball):
        with pytest.raises(ValueError, match="state vector"):
            ball.observe([1.0, 1.0, 1.0])

    def test_matrices_are_copies(self, ball):
        A = ball.system_matrix()
        A[0, 0] = 100.0
        assert ball.system_matrix()[0, 0] == 1.0

    def test_missing_system_matrix(self):
        with pytest.raises(ValueError, match="system matrix"):
            Discrete(None)

    def test_optional_matrices(self):
        m = Discrete([[1.0]])
        assert m.dims() == (1, 0, 0, 0)
        assert m.control_matrix() is None
        assert m.feedforward_matrix() is None

    def test_system_propagate_not_implemented(self):
        with pytest.raises(NotImplementedError):
            System([[1.0]]).propagate([1.0])


class TestContinuous:
    """Tests for the Continuous linear model."""

    def test_euler_propagate(self):
        m = Continuous([[-1.0]], [[1.0]], [[1.0]], dt=0.1)
        np.testing.assert_allclose(m.propagate([1.0], [0.0]), [0.9])
        np.testing.assert_allclose(m.propagate([1.0], [0.0], dt=0.5), [0.5])

    def test_to_discrete(self):
        m = Continuous([[0.0, 1.0], [0.0, 0.0]], [[0.0], [1.0]], [[1.0, 0.0]], [[0.0]])
        d = m.to_discrete(1.0)
        assert isinstance(d, Discrete)
        np.testing.assert_allclose(d.system_matrix(), [[1.0, 1.0], [0.0, 1.0]])
        np.testing.assert_allclose(d.control_matrix(), [[0.5], [1.0]], atol=1e-10)
        np.testing.assert_allclose(d.output_matrix(), [[1.0, 0.0]])


def _pendulum(x, u):
    return np.array([x[1], -9.81 * np.sin(x[0]) + u[0]])


class TestNonlinearModel:
    """Tests for NonlinearModel."""

    def test_propagate_and_observe(self):
        m = NonlinearModel(lambda x, u: 2.0 * x, lambda x, u: x[:1], nx=2, ny=1)
        np.testing.assert_allclose(m.propagate([1.0, 2.0]), [2.0, 4.0])
        np.testing.assert_allclose(m.propagate([1.0, 2.0], None, [0.5, 0.5]), [2.5, 4.5])
        np.testing.assert_allclose(m.observe([1.0, 2.0], None, [0.1]), [1.1])
        assert m.dims() == (2, 0, 1, 0)

    def test_missing_input_is_zero(self):
        m = NonlinearModel(lambda x, u: x + u.sum(), lambda x, u: x, nx=1, ny=1, nu=2)
        np.testing.assert_allclose(m.propagate([1.0]), [1.0])
        np.testing.assert_allclose(m.propagate([1.0], [1.0, 2.0]), [4.0])

    def test_wrong_output_length(self):
        m = NonlinearModel(lambda x, u: x[:1], lambda x, u: x, nx=2, ny=2)
        with pytest.raises(ValueError, match="dynamics returned"):
            m.propagate([1.0, 2.0])

    def test_not_callable(self):
        with pytest.raises(ValueError, match="callable"):
            NonlinearModel(None, lambda x, u: x, nx=1, ny=1)

    @pytest.mark.parametrize("method", ["euler", "rk4"])
    def test_from_continuous(self, method):
        m = NonlinearModel.from_continuous(
            _pendulum, lambda x, u: np.array([x[0]]), dt=0.01, nx=2, ny=1, nu=1, method=method)
        x = m.propagate([0.1, 0.0], [0.0])
        assert x[0] == pytest.approx(0.1, abs=1e-3)
        assert x[1] < 0.0

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="discretization method"):
            NonlinearModel.from_continuous(_pendulum, lambda x, u: x, 0.01, 2, 1, method="midpoint")
