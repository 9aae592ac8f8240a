"""
Extended Kalman Filter (EKF) and Iterated Extended Kalman Filter (IEKF).

Generalizes the Kalman filter to nonlinear models: the state is propagated
through the model itself and the covariance through finite-difference
Jacobians of the model functions, evaluated at the current state.
"""

import logging

from ..common.jacobian import JacobianConfig, jacobian, PropagationFunction, ObservationFunction
from ..common.linalg import inverse
from .base import KalmanFilterBase, sample

logger = logging.getLogger(__name__)


class ExtendedKalmanFilter(KalmanFilterBase):
    """
    Extended Kalman Filter for nonlinear systems.

    The model supplies ``propagate`` and ``observe``; their Jacobians

        F = df/dx (x, u)
        H = dh/dx (x, u)

    are computed numerically at every step.

    Parameters
    ----------
    model : Model
        System model
    init_cond : InitCond
        Initial state and covariance
    state_noise : Noise, optional
        Process noise. Defaults to no noise.
    output_noise : Noise, optional
        Measurement noise. Defaults to no noise.
    jacobian_config : JacobianConfig, optional
        Finite-difference settings (central differences by default)

    Examples
    --------
    >>> ekf = ExtendedKalmanFilter(model, InitCond(x0, P0), q, r)
    >>> pred = ekf.predict(x, u)
    >>> est = ekf.update(pred.val, u, z)
    """

    def __init__(self, model, init_cond, state_noise=None, output_noise=None,
                 jacobian_config=None):
        super().__init__(model, init_cond, state_noise, output_noise)
        if jacobian_config is None:
            jacobian_config = JacobianConfig()
        self.jacobian_config = jacobian_config

        logger.debug("%s created: nx=%d, nu=%d, ny=%d, jacobian=%s",
                     type(self).__name__, self._nx, self._nu, self._ny, jacobian_config)

    def _state_jacobian(self, x, u):
        try:
            return jacobian(PropagationFunction(self._model, u), x, self.jacobian_config)
        except Exception as err:
            raise RuntimeError(f"state propagation Jacobian failed: {err}") from err

    def _output_jacobian(self, x, u):
        try:
            return jacobian(ObservationFunction(self._model, u), x, self.jacobian_config)
        except Exception as err:
            raise RuntimeError(f"output observation Jacobian failed: {err}") from err

    def predict(self, x, u=None):
        """
        Propagate ``x`` through the model and the covariance through ``F``.

            x' = f(x, u, q)
            P' = F P F^T + Q

        Returns
        -------
        Estimate
            Predicted state and covariance
        """
        x = self._check_state(x)
        u = self._check_input(u)

        x_next = self._propagate(x, u, sample(self._q))
        F = self._state_jacobian(x, u)

        self._store(self._predict_cov(F))

        return self._estimate(x_next)

    def update(self, x, u, z):
        """
        Correct ``x`` with measurement ``z``.

            e = z - h(x, u, r)
            S = H P H^T + R
            K = P H^T S^-1
            x_corr = x + K e

        The covariance is corrected in Joseph form.

        Raises
        ------
        ValueError
            If ``z`` is not of length ny.
        numpy.linalg.LinAlgError
            If ``S`` is singular.
        """
        x = self._check_state(x)
        u = self._check_input(u)
        z = self._check_measurement(z)

        y = self._observe(x, u, sample(self._r))
        H = self._output_jacobian(x, u)

        inn = z - y
        S = self._innovation_cov(H, self._P)
        K = self._P @ H.T @ inverse(S, 'innovation covariance')

        x_corr = x + K @ inn
        P_corr = self._joseph_update(self._P, K, H)

        self._store(P_corr, K, inn)

        return self._estimate(x_corr)


class IteratedExtendedKalmanFilter(ExtendedKalmanFilter):
    """
    Iterated Extended Kalman Filter.

    Repeats the EKF correction ``n`` times, re-linearizing the observation
    around the latest corrected state:

        H_i = dh/dx (x_i)
        K_i = P H_i^T (H_i P H_i^T + R)^-1
        x_{i+1} = x_0 + K_i (z - h(x_i, u, r) - H_i (x_0 - x_i))

    where ``x_0`` is the predicted state and ``r`` a single measurement noise
    sample held fixed over the iterations. With ``n = 1`` this is the EKF
    update. The covariance is corrected once, in Joseph form, with the
    final ``K`` and ``H``.

    Parameters
    ----------
    n : int
        Number of iterations, at least 1

    Raises
    ------
    ValueError
        If ``n`` is not a positive integer.
    """

    def __init__(self, model, init_cond, state_noise=None, output_noise=None,
                 n=1, jacobian_config=None):
        if isinstance(n, bool) or int(n) != n or n <= 0:
            raise ValueError(f"invalid number of update iterations: {n}")
        self.n = int(n)
        super().__init__(model, init_cond, state_noise, output_noise, jacobian_config)

    def update(self, x, u, z):
        x0 = self._check_state(x)
        u = self._check_input(u)
        z = self._check_measurement(z)

        r = sample(self._r)
        P = self._P
        x_i = x0.copy()

        for _ in range(self.n):
            y = self._observe(x_i, u, r)
            H = self._output_jacobian(x_i, u)

            S = self._innovation_cov(H, P)
            K = P @ H.T @ inverse(S, 'innovation covariance')

            inn = z - y
            x_i = x0 + K @ (inn - H @ (x0 - x_i))

        P_corr = self._joseph_update(P, K, H)

        self._store(P_corr, K, inn)
        logger.debug("IEKF update finished after %d iterations", self.n)

        return self._estimate(x_i)
