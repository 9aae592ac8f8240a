"""
Linear Kalman Filter (KF).

Uses the static system matrices of a linear discrete-time model directly,
so no linearization is needed.
"""

import logging

import numpy as np

from ..common.linalg import inverse
from ..models.base import DiscreteControlSystem
from .base import KalmanFilterBase, sample

logger = logging.getLogger(__name__)


def check_system_matrices(model, nx, nu, ny):
    """
    Fetch and validate the matrices of a linear model.

    Returns
    -------
    tuple
        ``(A, B, C, D)``. ``B`` and ``D`` may be ``None``.
    """
    if not isinstance(model, DiscreteControlSystem):
        raise ValueError(f"model must expose its system matrices: {type(model).__name__}")

    A = model.system_matrix()
    B = model.control_matrix()
    C = model.output_matrix()
    D = model.feedforward_matrix()

    if A is None or np.shape(A) != (nx, nx):
        raise ValueError(f"invalid system matrix dims: {np.shape(A)}")
    if B is not None and np.shape(B)[0] != nx:
        raise ValueError(f"invalid control matrix dims: {np.shape(B)}")
    if C is None or np.shape(C) != (ny, nx):
        raise ValueError(f"invalid output matrix dims: {np.shape(C)}")
    if D is not None and np.shape(D)[0] != ny:
        raise ValueError(f"invalid feedforward matrix dims: {np.shape(D)}")

    def as_matrix(m):
        return None if m is None else np.atleast_2d(np.asarray(m, dtype=float))

    return as_matrix(A), as_matrix(B), as_matrix(C), as_matrix(D)


class KalmanFilter(KalmanFilterBase):
    """
    Kalman Filter for linear systems.

        x_{k+1} = A x_k + B u_k + q_k
        y_k = C x_k + D u_k + r_k

    Parameters
    ----------
    model : DiscreteControlSystem
        Linear model exposing ``A``, ``B``, ``C``, ``D``
    init_cond : InitCond
        Initial state and covariance
    state_noise : Noise, optional
        Process noise. Defaults to no noise.
    output_noise : Noise, optional
        Measurement noise. Defaults to no noise.

    Examples
    --------
    >>> model = Discrete([[1, 1], [0, 1]], [[0.5], [1]], [[1, 0]], [[0]])
    >>> kf = KalmanFilter(model, InitCond([1.0, 3.0], np.eye(2) * 0.25))
    >>> est = kf.run([1.0, 1.0], [-1.0], [-1.5])
    """

    def __init__(self, model, init_cond, state_noise=None, output_noise=None):
        super().__init__(model, init_cond, state_noise, output_noise)
        self._A, self._B, self._C, self._D = check_system_matrices(
            model, self._nx, self._nu, self._ny)

        logger.debug("KF created: nx=%d, nu=%d, ny=%d, q=%r, r=%r",
                     self._nx, self._nu, self._ny, self._q, self._r)

    def predict(self, x, u=None):
        """
        Propagate ``x`` and the covariance one step.

            x' = A x + B u + q
            P' = A P A^T + Q

        Returns
        -------
        Estimate
            Predicted state and covariance
        """
        x = self._check_state(x)
        u = self._check_input(u)

        x_next = self._A @ x
        if u is not None and self._B is not None:
            x_next = x_next + self._B @ u
        q = sample(self._q)
        if q is not None:
            x_next = x_next + q

        self._store(self._predict_cov(self._A))

        return self._estimate(x_next)

    def update(self, x, u, z):
        """
        Correct ``x`` with measurement ``z``.

            e = z - (C x + D u + r)
            S = C P C^T + R
            K = P C^T S^-1

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

        y = self._C @ x
        if u is not None and self._D is not None:
            y = y + self._D @ u
        r = sample(self._r)
        if r is not None:
            y = y + r

        inn = z - y
        S = self._innovation_cov(self._C, self._P)
        K = self._P @ self._C.T @ inverse(S, 'innovation covariance')

        x_corr = x + K @ inn
        P_corr = self._joseph_update(self._P, K, self._C)

        self._store(P_corr, K, inn)

        return self._estimate(x_corr)
