"""
Shared machinery of the recursive filters.

Every filter is built around a :class:`~recursive_estimation.models.Model`,
an :class:`~recursive_estimation.estimate.InitCond` and two noise sources,
and exposes the same lifecycle:

- ``predict(x, u)``: propagate state ``x`` one step, return an Estimate.
- ``update(x, u, z)``: correct state ``x`` with measurement ``z``.
- ``run(x, u, z)``: ``update(predict(x, u).val, u, z)``.

Filters own their covariance (or particle set) but not the state vector:
the caller passes the state in and receives a new Estimate back.
"""

import logging
from abc import ABC, abstractmethod

import numpy as np

from ..estimate import Estimate, InitCond
from ..noise import Noise, NoneNoise
from ..common.linalg import symmetrize

logger = logging.getLogger(__name__)


def check_model(model):
    """
    Validate model dimensions.

    Returns
    -------
    tuple
        ``(nx, nu, ny, nz)``
    """
    nx, nu, ny, nz = model.dims()
    if nx <= 0 or ny <= 0:
        raise ValueError(f"invalid model dimensions: [{nx} x {ny}]")
    return nx, nu, ny, nz


def check_noise(noise, size, what, default):
    """
    Validate a noise source against the dimension it perturbs.

    Parameters
    ----------
    noise : Noise or None
        Supplied noise. ``None`` selects ``default``.
    size : int
        Expected dimension (``nx`` or ``ny``)
    what : str
        Name used in error messages
    default : callable
        Factory ``default(size)`` of the fallback noise

    Returns
    -------
    Noise
    """
    if noise is None:
        return default(size)
    if not isinstance(noise, Noise):
        raise ValueError(f"invalid {what} noise: {noise!r}")
    if noise.size not in (size, 0):
        raise ValueError(f"invalid {what} noise dimension: {noise.size}")
    return noise


def none_noise(size):
    """Default noise factory: no noise regardless of ``size``."""
    return NoneNoise()


def check_init_cond(init_cond, nx):
    """Validate that ``init_cond`` matches the state dimension ``nx``."""
    if not isinstance(init_cond, InitCond):
        raise ValueError(f"invalid initial condition: {init_cond!r}")
    if init_cond.state.shape[0] != nx:
        raise ValueError(f"invalid initial state dimension: {init_cond.state.shape[0]}")
    if init_cond.cov.shape != (nx, nx):
        raise ValueError(f"invalid initial covariance dimensions: {init_cond.cov.shape}")
    return init_cond


def sample(noise):
    """Draw a noise vector, or ``None`` when the noise is absent."""
    if noise.size == 0:
        return None
    return noise.sample()


class Filter(ABC):
    """
    Base class of all filters.

    Parameters
    ----------
    model : Model
        System model
    init_cond : InitCond
        Initial state and covariance
    state_noise : Noise, optional
        Process noise ``q``
    output_noise : Noise, optional
        Measurement noise ``r``
    """

    # fallback noise factory used when no noise is supplied
    default_noise = staticmethod(none_noise)

    def __init__(self, model, init_cond, state_noise=None, output_noise=None):
        nx, nu, ny, _ = check_model(model)
        self._q = check_noise(state_noise, nx, 'state', self.default_noise)
        self._r = check_noise(output_noise, ny, 'output', self.default_noise)
        self._init_cond = check_init_cond(init_cond, nx)

        self._model = model
        self._nx = nx
        self._nu = nu
        self._ny = ny

    @property
    def model(self):
        """Filter model."""
        return self._model

    @property
    def state_noise(self):
        """Process noise source."""
        return self._q

    @property
    def output_noise(self):
        """Measurement noise source."""
        return self._r

    @property
    def init_cond(self):
        """Initial condition the filter was built from."""
        return self._init_cond

    def _check_state(self, x):
        x = np.asarray(x, dtype=float).ravel()
        if x.shape[0] != self._nx:
            raise ValueError(f"invalid state supplied: expected length {self._nx}, got {x.shape[0]}")
        return x

    def _check_input(self, u):
        if u is None:
            return None
        u = np.asarray(u, dtype=float).ravel()
        if u.shape[0] != self._nu:
            raise ValueError(f"invalid input supplied: expected length {self._nu}, got {u.shape[0]}")
        return u

    def _check_measurement(self, z):
        z = np.asarray(z, dtype=float).ravel()
        if z.shape[0] != self._ny:
            raise ValueError(f"invalid measurement supplied: expected length {self._ny}, got {z.shape[0]}")
        return z

    def _propagate(self, x, u, q, stage='system state'):
        try:
            return np.asarray(self._model.propagate(x, u, q), dtype=float).ravel()
        except Exception as err:
            raise RuntimeError(f"{stage} propagation failed: {err}") from err

    def _observe(self, x, u, r, stage='system state'):
        try:
            return np.asarray(self._model.observe(x, u, r), dtype=float).ravel()
        except Exception as err:
            raise RuntimeError(f"{stage} observation failed: {err}") from err

    @abstractmethod
    def predict(self, x, u=None):
        """
        Propagate state ``x`` one step with input ``u``.

        Returns
        -------
        Estimate
            Predicted state and covariance
        """

    @abstractmethod
    def update(self, x, u, z):
        """
        Correct state ``x`` with measurement ``z``.

        Returns
        -------
        Estimate
            Corrected state and covariance
        """

    def run(self, x, u, z):
        """
        One full filter step: predict then update.

        Parameters
        ----------
        x : array_like
            Current state (nx,)
        u : array_like or None
            Input vector (nu,)
        z : array_like
            Measurement (ny,)

        Returns
        -------
        Estimate
            Corrected estimate
        """
        # validate everything up front so a bad measurement leaves no trace
        self._check_measurement(z)
        pred = self.predict(x, u)
        return self.update(pred.val, u, z)


class KalmanFilterBase(Filter):
    """
    Covariance bookkeeping shared by the Kalman-family filters.

    Holds the state covariance ``P`` and pre-sized gain and innovation
    buffers that are refreshed in place on every update.
    """

    def __init__(self, model, init_cond, state_noise=None, output_noise=None):
        super().__init__(model, init_cond, state_noise, output_noise)

        self._P = init_cond.cov
        self._K = np.zeros((self._nx, self._ny))
        self._inn = np.zeros(self._ny)

    @property
    def cov(self):
        """Copy of the current state covariance."""
        return self._P.copy()

    def set_cov(self, cov):
        """
        Replace the state covariance.

        Raises
        ------
        ValueError
            If ``cov`` is ``None`` or not (nx, nx).
        """
        if cov is None:
            raise ValueError("invalid covariance matrix: None")
        cov = np.asarray(cov, dtype=float)
        if cov.shape != (self._nx, self._nx):
            raise ValueError(f"invalid covariance matrix dims: {cov.shape}")
        self._P = symmetrize(cov)

    @property
    def gain(self):
        """Copy of the last Kalman gain (nx, ny)."""
        return self._K.copy()

    @property
    def innovation(self):
        """Copy of the last innovation vector (ny,)."""
        return self._inn.copy()

    def _predict_cov(self, F):
        P = F @ self._P @ F.T
        if self._q.size > 0:
            P = P + self._q.cov
        return symmetrize(P)

    def _innovation_cov(self, H, P):
        S = H @ P @ H.T
        if self._r.size > 0:
            S = S + self._r.cov
        return S

    def _joseph_update(self, P, K, H):
        """
        Joseph form covariance update.

            P = (I - K H) P (I - K H)^T + K R K^T
        """
        I_KH = np.eye(self._nx) - K @ H
        P_corr = I_KH @ P @ I_KH.T
        if self._r.size > 0:
            P_corr = P_corr + K @ self._r.cov @ K.T
        return symmetrize(P_corr)

    def _store(self, P, K=None, inn=None):
        self._P = P
        if K is not None:
            self._K[...] = K
        if inn is not None:
            self._inn[...] = inn

    def _estimate(self, x):
        return Estimate(x, self._P)
