"""
Unscented Kalman Filter (UKF) implementation.

Propagates a deterministic set of weighted sigma points through the model
instead of linearizing it. The sigma points are drawn from the augmented
state ``[x, q, r]`` so that process and measurement noise pass through the
nonlinear functions as well.
"""

import logging
from typing import NamedTuple

import numpy as np

from ..common.linalg import block_sym_diag, sqrt_cov, inverse, symmetrize
from .base import KalmanFilterBase, sample

logger = logging.getLogger(__name__)


class UKFConfig(NamedTuple):
    """
    Unscented transform parameters.

    Attributes
    ----------
    alpha : float
        Spread of the sigma points around the mean
    beta : float
        Prior knowledge of the distribution (2 is optimal for Gaussian)
    kappa : float
        Secondary scaling parameter
    """
    alpha: float = 1.0
    beta: float = 2.0
    kappa: float = 0.0


class ScaledSigmaPoints:
    """
    Scaled sigma points and their weights.

    Parameters
    ----------
    n : int
        Dimension of the (augmented) sigma point vector
    alpha, beta, kappa : float
        Unscented transform parameters

    Attributes
    ----------
    gamma : float
        Square root covariance scaling factor, ``sqrt(n + lambda)``
    Wm : np.ndarray
        Mean weights (2n+1,)
    Wc : np.ndarray
        Covariance weights (2n+1,)
    """

    def __init__(self, n, alpha, beta, kappa):
        self.n = n
        self.alpha = alpha
        self.beta = beta
        self.kappa = kappa

        self._lambda = alpha**2 * (n + kappa) - n
        if n + self._lambda <= 0:
            raise ValueError(
                f"invalid sigma point scaling: n + lambda = {n + self._lambda}, increase alpha or kappa"
            )
        self.gamma = np.sqrt(n + self._lambda)

        W = 1.0 / (2.0 * (n + self._lambda))
        self.Wm = np.full(2*n + 1, W)
        self.Wc = np.copy(self.Wm)
        self.Wm[0] = self._lambda / (n + self._lambda)
        self.Wc[0] = self.Wm[0] + (1 - alpha**2 + beta)

    def sigma_points(self, x, cov):
        """
        Generate sigma points around ``x``.

        Parameters
        ----------
        x : np.ndarray
            Mean vector (n,)
        cov : np.ndarray
            Covariance (n, n), factorized with SVD

        Returns
        -------
        np.ndarray
            Sigma points stored in columns (n, 2n+1). Column 0 is ``x``,
            columns ``1..n`` are ``x + gamma S_i`` and columns ``n+1..2n``
            are ``x - gamma S_i``.
        """
        try:
            S = sqrt_cov(cov) * self.gamma
        except np.linalg.LinAlgError as err:
            raise np.linalg.LinAlgError(f"failed to generate sigma points: {err}") from err

        x = np.asarray(x, dtype=float)
        return np.column_stack([x, x[:, None] + S, x[:, None] - S])


def gen_sigma_points(x, cov, alpha=1.0, beta=2.0, kappa=0.0):
    """
    Sigma points of ``(x, cov)`` with the given scaling.

    Returns
    -------
    np.ndarray
        Sigma points stored in columns (n, 2n+1)
    """
    x = np.asarray(x, dtype=float).ravel()
    return ScaledSigmaPoints(x.shape[0], alpha, beta, kappa).sigma_points(x, cov)


class UnscentedKalmanFilter(KalmanFilterBase):
    """
    Unscented Kalman Filter for nonlinear systems.

    The sigma point dimension is ``nx + nq + nr`` where ``nq`` and ``nr`` are
    the sizes of the process and measurement noise. A noise of size 0 is
    left out of the augmented state altogether.

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
    config : UKFConfig, optional
        ``alpha``, ``beta``, ``kappa``; all must be non-negative

    Examples
    --------
    >>> ukf = UnscentedKalmanFilter(model, InitCond(x0, P0), q, r,
    ...                             UKFConfig(alpha=0.75, beta=2.0, kappa=3.0))
    >>> est = ukf.run(x, u, z)
    """

    def __init__(self, model, init_cond, state_noise=None, output_noise=None, config=None):
        super().__init__(model, init_cond, state_noise, output_noise)

        if config is None:
            config = UKFConfig()
        if config.alpha < 0 or config.beta < 0 or config.kappa < 0:
            raise ValueError(f"invalid UKF config: {config}")
        self.config = config

        self._nq = self._q.size
        self._nr = self._r.size
        sp_dim = self._nx + self._nq + self._nr
        self.points = ScaledSigmaPoints(sp_dim, config.alpha, config.beta, config.kappa)

        # latest sigma points and their propagated states
        self._sp = np.zeros((sp_dim, 2*sp_dim + 1))
        self._sp_next = None
        self._x_mean = None

        logger.debug("UKF created: nx=%d, nq=%d, nr=%d, sigma point dim=%d, config=%s",
                     self._nx, self._nq, self._nr, sp_dim, config)

    @property
    def sigma_points(self):
        """Copy of the latest augmented sigma points (spDim, 2 spDim + 1)."""
        return self._sp.copy()

    @property
    def weights(self):
        """Mean and covariance weights ``(Wm, Wc)``."""
        return self.points.Wm.copy(), self.points.Wc.copy()

    def gen_sigma_points(self, x):
        """
        Generate augmented sigma points around state ``x``.

        The augmented mean is ``[x, mean(q), mean(r)]`` and the augmented
        covariance is ``blockdiag(P, Q, R)``.

        Raises
        ------
        numpy.linalg.LinAlgError
            If the SVD factorization fails.
        """
        x = self._check_state(x)
        mean = np.concatenate([x, self._q.mean, self._r.mean])
        cov = block_sym_diag([self._P, self._q.cov, self._r.cov])
        return self.points.sigma_points(mean, cov)

    def _noise_slices(self, sp):
        nx, nq = self._nx, self._nq
        q = sp[nx:nx+nq] if nq > 0 else None
        r = sp[nx+nq:] if self._nr > 0 else None
        return q, r

    def predict(self, x, u=None):
        """
        Propagate the sigma points and ``x`` one step.

        The predicted covariance is the ``Wc``-weighted spread of the
        propagated sigma points around their ``Wm``-weighted mean. The
        returned state is ``x`` itself propagated through the model.

        Returns
        -------
        Estimate
            Propagated ``x`` and the predicted covariance
        """
        x = self._check_state(x)
        u = self._check_input(u)

        sp = self.gen_sigma_points(x)
        x_next = self._propagate(x, u, sample(self._q))

        q_slices, _ = self._noise_slices(sp)
        X = np.zeros((self._nx, sp.shape[1]))
        for c in range(sp.shape[1]):
            q = q_slices[:, c] if q_slices is not None else None
            X[:, c] = self._propagate(sp[:self._nx, c], u, q, stage='sigma point state')

        x_mean = X @ self.points.Wm
        dev = X - x_mean[:, None]
        P = symmetrize((dev * self.points.Wc) @ dev.T)

        self._sp = sp
        self._sp_next = X
        self._x_mean = x_mean
        self._store(P)

        return self._estimate(x_next)

    def update(self, x, u, z):
        """
        Correct the predicted sigma point mean with measurement ``z``.

            K = Pxy Pyy^-1
            x_corr = x_mean + K (z - y_mean)
            P_corr = P - K Pyy K^T

        Without a preceding predict, sigma points are generated around
        ``x`` from the current covariance.

        Raises
        ------
        ValueError
            If ``z`` is not of length ny.
        numpy.linalg.LinAlgError
            If ``Pyy`` is singular or the sigma points cannot be generated.
        """
        x = self._check_state(x)
        u = self._check_input(u)
        z = self._check_measurement(z)

        if self._sp_next is None:
            sp = self.gen_sigma_points(x)
            X = sp[:self._nx]
            x_mean = X @ self.points.Wm
            self._sp = sp
        else:
            X = self._sp_next
            x_mean = self._x_mean

        _, r_slices = self._noise_slices(self._sp)
        Y = np.zeros((self._ny, X.shape[1]))
        for c in range(X.shape[1]):
            r = r_slices[:, c] if r_slices is not None else None
            Y[:, c] = self._observe(X[:, c], u, r, stage='sigma point output')

        y_mean = Y @ self.points.Wm
        dx = X - x_mean[:, None]
        dy = Y - y_mean[:, None]
        Pxy = (dx * self.points.Wc) @ dy.T
        Pyy = (dy * self.points.Wc) @ dy.T

        K = Pxy @ inverse(Pyy, 'predicted output covariance')
        inn = z - y_mean

        x_corr = x_mean + K @ inn
        P_corr = symmetrize(self._P - K @ Pyy @ K.T)

        self._store(P_corr, K, inn)
        self._sp_next = None
        self._x_mean = None

        return self._estimate(x_corr)
