"""Tests for the linear Kalman filter."""

import numpy as np
import pytest

from recursive_estimation.estimate import InitCond
from recursive_estimation.filters import Filter, KalmanFilter, KalmanFilterBase
from recursive_estimation.models import Discrete, NonlinearModel
from recursive_estimation.noise import Gaussian, NoneNoise, ZeroNoise


class TestConstruction:
    """Tests for KalmanFilter construction."""

    def test_defaults_to_no_noise(self, ball, ball_init):
        kf = KalmanFilter(ball, ball_init)
        assert kf.state_noise.size == 0
        assert kf.output_noise.size == 0
        np.testing.assert_array_equal(kf.cov, ball_init.cov)

    def test_invalid_model_dims(self, ball_init):
        with pytest.raises(ValueError, match="model dimensions"):
            KalmanFilter(Discrete([[1.0, 0.0], [0.0, 1.0]]), ball_init)

    def test_invalid_state_noise(self, ball, ball_init):
        with pytest.raises(ValueError, match="state noise"):
            KalmanFilter(ball, ball_init, Gaussian([0.0], [[1.0]]))

    def test_invalid_output_noise(self, ball, ball_init):
        with pytest.raises(ValueError, match="output noise"):
            KalmanFilter(ball, ball_init, None, ZeroNoise(3))

    def test_none_noise_accepted(self, ball, ball_init):
        KalmanFilter(ball, ball_init, NoneNoise(), NoneNoise())

    def test_invalid_init_cond(self, ball):
        with pytest.raises(ValueError, match="initial state"):
            KalmanFilter(ball, InitCond([1.0, 2.0, 3.0], np.eye(3)))

    def test_requires_system_matrices(self, ball_init):
        model = NonlinearModel(lambda x, u: x, lambda x, u: x[:1], nx=2, ny=1)
        with pytest.raises(ValueError, match="system matrices"):
            KalmanFilter(model, ball_init)

    @pytest.mark.parametrize("cls", [Filter, KalmanFilterBase])
    def test_abstract_base_not_instantiable(self, ball, ball_init, cls):
        with pytest.raises(TypeError, match="abstract"):
            cls(ball, ball_init)

    def test_subclass_must_implement_update(self, ball, ball_init):
        class PredictOnly(Filter):
            def predict(self, x, u=None):
                return x

        with pytest.raises(TypeError, match="update"):
            PredictOnly(ball, ball_init)


class TestFallingBall:
    """Single predict / update step on the falling ball."""

    def test_zero_noise_values(self, ball, ball_init, ball_step):
        """Exact values of a noise-free step."""
        x, u, z = ball_step
        kf = KalmanFilter(ball, ball_init)

        pred = kf.predict(x, u)
        np.testing.assert_allclose(pred.val, [1.5, 0.0])
        np.testing.assert_allclose(pred.cov, [[0.5, 0.25], [0.25, 0.25]])

        est = kf.update(pred.val, u, z)
        np.testing.assert_allclose(est.val, [-1.5, -1.5])
        np.testing.assert_allclose(est.cov, [[0.0, 0.0], [0.0, 0.125]], atol=1e-12)
        np.testing.assert_allclose(kf.gain, [[1.0], [0.5]])
        np.testing.assert_allclose(kf.innovation, [-3.0])

    def test_noisy_step_finite_symmetric_psd(self, ball, ball_init, ball_q, ball_r, ball_step):
        x, u, z = ball_step
        kf = KalmanFilter(ball, ball_init, ball_q, ball_r)
        est = kf.run(x, u, z)

        assert est.val.shape == (2,)
        assert np.all(np.isfinite(est.val))
        assert est.cov.shape == (2, 2)
        np.testing.assert_array_equal(est.cov, est.cov.T)
        assert np.all(np.linalg.eigvalsh(est.cov) >= -1e-12)

    def test_noisy_covariance(self, ball, ball_init, ball_q, ball_r, ball_step):
        """Covariance does not depend on the noise samples."""
        x, u, z = ball_step
        kf = KalmanFilter(ball, ball_init, ball_q, ball_r)
        pred = kf.predict(x, u)
        np.testing.assert_allclose(pred.cov, [[0.75, 0.25], [0.25, 0.5]])
        kf.update(pred.val, u, z)
        np.testing.assert_allclose(kf.gain, [[0.75], [0.25]])

    def test_zero_noise_deterministic(self, ball, ball_init, ball_step):
        x, u, z = ball_step
        first = KalmanFilter(ball, ball_init).run(x, u, z)
        second = KalmanFilter(ball, ball_init).run(x, u, z)
        np.testing.assert_array_equal(first.val, second.val)
        np.testing.assert_array_equal(first.cov, second.cov)

    def test_wrong_input_length(self, ball, ball_init, ball_step):
        x, _, z = ball_step
        kf = KalmanFilter(ball, ball_init)
        with pytest.raises(ValueError, match="input"):
            kf.predict(x, [1.0, 2.0, 3.0])
        with pytest.raises(ValueError, match="input"):
            kf.run(x, [1.0, 2.0, 3.0], z)

    def test_wrong_measurement_length(self, ball, ball_init, ball_step):
        x, u, _ = ball_step
        kf = KalmanFilter(ball, ball_init)
        with pytest.raises(ValueError, match="measurement"):
            kf.update(x, u, [1.0, 2.0])

    def test_failed_update_leaves_state(self, ball, ball_init, ball_step):
        """A rejected call does not touch the covariance."""
        x, u, _ = ball_step
        kf = KalmanFilter(ball, ball_init)
        with pytest.raises(ValueError):
            kf.run(x, u, [1.0, 2.0])
        np.testing.assert_array_equal(kf.cov, ball_init.cov)

    def test_update_without_predict_uses_current_cov(self, ball, ball_init, ball_step):
        x, u, z = ball_step
        kf = KalmanFilter(ball, ball_init)
        kf.update(x, u, z)
        # S = C P C^T = 0.25, K = P C^T / S
        np.testing.assert_allclose(kf.gain, [[1.0], [0.0]])

    def test_singular_innovation_covariance(self, ball, ball_step):
        x, u, z = ball_step
        kf = KalmanFilter(ball, InitCond([1.0, 3.0], np.zeros((2, 2))))
        with pytest.raises(np.linalg.LinAlgError, match="innovation covariance"):
            kf.update(x, u, z)


class TestAccessors:
    """Tests for covariance, gain and innovation accessors."""

    def test_copies(self, ball, ball_init):
        kf = KalmanFilter(ball, ball_init)
        kf.cov[0, 0] = 100.0
        kf.gain[0, 0] = 100.0
        kf.innovation[0] = 100.0
        assert kf.cov[0, 0] == 0.25
        assert kf.gain[0, 0] == 0.0
        assert kf.innovation[0] == 0.0

    def test_set_cov(self, ball, ball_init):
        kf = KalmanFilter(ball, ball_init)
        kf.set_cov(np.eye(2))
        np.testing.assert_array_equal(kf.cov, np.eye(2))

    def test_set_cov_invalid(self, ball, ball_init):
        kf = KalmanFilter(ball, ball_init)
        with pytest.raises(ValueError):
            kf.set_cov(None)
        with pytest.raises(ValueError):
            kf.set_cov(np.eye(3))

    def test_model(self, ball, ball_init):
        assert KalmanFilter(ball, ball_init).model is ball


def test_tracking_error_within_covariance_bound(ball, ball_init, ball_r):
    """Position error over a noisy run stays inside three steady-state sigmas."""
    rng = np.random.default_rng(0)
    q = Gaussian([0.0, 0.0], np.eye(2) * 0.01)
    kf = KalmanFilter(ball, ball_init, q, ball_r)

    x_true = np.array([1.0, 3.0])
    x_est = ball_init.state
    u = np.array([-0.1])
    errs = []
    for _ in range(100):
        x_true = ball.propagate(x_true, u, rng.normal(0.0, 0.1, 2))
        z = ball.observe(x_true, u, rng.normal(0.0, 0.5, 1))
        x_est = kf.run(x_est, u, z).val
        errs.append(x_est[0] - x_true[0])

    rmse = np.sqrt(np.mean(np.square(errs)))
    assert np.all(np.isfinite(errs))
    assert rmse < 3.0 * np.sqrt(kf.cov[0, 0])
