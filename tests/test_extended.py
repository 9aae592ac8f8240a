"""Tests for the extended and iterated extended Kalman filters."""

import numpy as np
import pytest

from recursive_estimation import config
from recursive_estimation.common import JacobianConfig
from recursive_estimation.estimate import InitCond
from recursive_estimation.filters import (
    KalmanFilter, ExtendedKalmanFilter, IteratedExtendedKalmanFilter,
)
from recursive_estimation.models import NonlinearModel
from recursive_estimation.noise import Gaussian


def _range_model():
    """Constant velocity target observed through its range from (0, 1)."""
    def f(x, u):
        return np.array([x[0] + x[1], x[1]])

    def h(x, u):
        return np.array([np.sqrt(x[0]**2 + 1.0)])

    return NonlinearModel(f, h, nx=2, ny=1)


class TestExtendedKalmanFilter:
    """Tests for ExtendedKalmanFilter."""

    def test_matches_kf_on_linear_model(self, ball, ball_init, ball_step):
        x, u, z = ball_step
        kf = KalmanFilter(ball, ball_init)
        ekf = ExtendedKalmanFilter(ball, ball_init)

        kf_est = kf.run(x, u, z)
        ekf_est = ekf.run(x, u, z)

        np.testing.assert_allclose(ekf_est.val, kf_est.val, atol=1e-6)
        np.testing.assert_allclose(ekf_est.cov, kf_est.cov, atol=1e-6)

    def test_falling_ball_noisy(self, ball, ball_init, ball_q, ball_r, ball_step):
        x, u, z = ball_step
        ekf = ExtendedKalmanFilter(ball, ball_init, ball_q, ball_r)
        pred = ekf.predict(x, u)
        est = ekf.update(pred.val, u, z)

        assert np.all(np.isfinite(est.val))
        np.testing.assert_array_equal(est.cov, est.cov.T)
        assert np.all(np.linalg.eigvalsh(est.cov) >= -1e-12)

    def test_wrong_input_length(self, ball, ball_init, ball_step):
        x, _, z = ball_step
        with pytest.raises(ValueError, match="input"):
            ExtendedKalmanFilter(ball, ball_init).run(x, [1.0, 2.0, 3.0], z)

    def test_wrong_measurement_length(self, ball, ball_init, ball_step):
        x, u, _ = ball_step
        with pytest.raises(ValueError, match="measurement"):
            ExtendedKalmanFilter(ball, ball_init).update(x, u, [0.0, 0.0])

    def test_nonlinear_jacobian(self):
        """Observation Jacobian of the range model is x0 / sqrt(x0^2 + 1)."""
        ic = InitCond([1.0, 0.5], np.eye(2))
        ekf = ExtendedKalmanFilter(_range_model(), ic, output_noise=Gaussian([0.0], [[0.1]]))
        ekf.update([1.0, 0.5], None, [1.5])

        H = np.array([[1.0 / np.sqrt(2.0), 0.0]])
        S = H @ np.eye(2) @ H.T + 0.1
        expected_gain = np.eye(2) @ H.T / S[0, 0]
        np.testing.assert_allclose(ekf.gain, expected_gain, atol=1e-7)

    @pytest.mark.parametrize("formula", ["central", "forward", "backward"])
    def test_jacobian_config(self, ball, ball_init, ball_step, formula):
        x, u, z = ball_step
        cfg = JacobianConfig(formula=formula, concurrent=True)
        est = ExtendedKalmanFilter(ball, ball_init, jacobian_config=cfg).run(x, u, z)
        np.testing.assert_allclose(est.val, [-1.5, -1.5], atol=1e-5)

    def test_model_failure_is_wrapped(self, ball_init):
        def f(x, u):
            raise ArithmeticError("diverged")

        model = NonlinearModel(f, lambda x, u: x[:1], nx=2, ny=1)
        ekf = ExtendedKalmanFilter(model, ball_init)
        with pytest.raises(RuntimeError, match="system state propagation failed") as info:
            ekf.predict([1.0, 1.0])
        assert isinstance(info.value.__cause__, ArithmeticError)


class TestIteratedExtendedKalmanFilter:
    """Tests for IteratedExtendedKalmanFilter."""

    @pytest.mark.parametrize("n", [0, -1, 0.5, 1.5, True])
    def test_invalid_iterations(self, ball, ball_init, n):
        with pytest.raises(ValueError, match="iterations"):
            IteratedExtendedKalmanFilter(ball, ball_init, n=n)

    def test_integral_float_iterations(self, ball, ball_init):
        iekf = IteratedExtendedKalmanFilter(ball, ball_init, n=3.0)
        assert iekf.n == 3
        assert isinstance(iekf.n, int)

    def test_single_iteration_is_ekf(self):
        ic = InitCond([1.0, 0.5], np.eye(2))
        r = Gaussian([0.0], [[0.1]])
        model = _range_model()

        ekf = ExtendedKalmanFilter(model, ic, output_noise=r)
        iekf = IteratedExtendedKalmanFilter(model, ic, output_noise=r, n=1)

        config.set_seed(10)
        a = ekf.update([1.0, 0.5], None, [1.5])
        config.set_seed(10)
        b = iekf.update([1.0, 0.5], None, [1.5])

        np.testing.assert_allclose(b.val, a.val, atol=1e-12)
        np.testing.assert_allclose(b.cov, a.cov, atol=1e-12)

    def test_linear_model_iterations_agree(self, ball, ball_init, ball_step):
        """Re-linearizing a linear model changes nothing."""
        x, u, z = ball_step
        one = IteratedExtendedKalmanFilter(ball, ball_init, n=1).run(x, u, z)
        five = IteratedExtendedKalmanFilter(ball, ball_init, n=5).run(x, u, z)
        np.testing.assert_allclose(five.val, one.val, atol=1e-6)
        np.testing.assert_allclose(five.cov, one.cov, atol=1e-6)

    def test_iterations_reduce_residual(self):
        """Without measurement noise the iterations solve h(x) = z."""
        ic = InitCond([3.0, 0.0], np.eye(2) * 4.0)
        model = _range_model()
        z = np.array([1.2])

        def residual(est):
            return abs(z[0] - model.observe(est.val)[0])

        ekf = IteratedExtendedKalmanFilter(model, ic, n=1).update([3.0, 0.0], None, z)
        iekf = IteratedExtendedKalmanFilter(model, ic, n=10).update([3.0, 0.0], None, z)

        assert residual(iekf) < residual(ekf)
        assert residual(iekf) < 1e-6
        np.testing.assert_array_equal(iekf.cov, iekf.cov.T)
