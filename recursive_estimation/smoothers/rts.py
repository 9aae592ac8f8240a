"""
Rauch-Tung-Striebel (RTS) smoothers.

Backward pass over a sequence of forward filter estimates. For
``k = N-2, ..., 0``:

    x_{k+1|k} = f(x_k, u_k)
    P_{k+1|k} = F P_k F^T + Q
    C = P_k F^T P_{k+1|k}^-1
    x_k^s = x_k + C (x_{k+1}^s - x_{k+1|k})
    P_k^s = P_k + C (P_{k+1}^s - P_{k+1|k}) C^T

starting from the last filtered estimate, which is its own smoothed
estimate. :class:`RTSSmoother` uses the matrices of a linear model,
:class:`ExtendedRTSSmoother` differentiates a nonlinear model numerically.
"""

import logging

import numpy as np

from ..common.jacobian import JacobianConfig, jacobian, PropagationFunction
from ..common.linalg import inverse, symmetrize
from ..estimate import Estimate
from ..filters.base import check_model, check_noise, check_init_cond, none_noise
from ..filters.kalman import check_system_matrices

logger = logging.getLogger(__name__)


class Smoother:
    """
    Base RTS smoother.

    Parameters
    ----------
    model : Model
        System model used by the forward filter
    init_cond : InitCond
        Initial condition of the forward filter. It is checked against the
        model dimensions and kept for reference only; the backward pass is
        anchored on the last filtered estimate, so it does not affect the
        smoothed sequence.
    state_noise : Noise, optional
        Process noise. Only its covariance is used. Defaults to no noise.
    """

    def __init__(self, model, init_cond, state_noise=None):
        nx, nu, ny, _ = check_model(model)
        self._q = check_noise(state_noise, nx, 'state', none_noise)
        self._init_cond = check_init_cond(init_cond, nx)

        self._model = model
        self._nx = nx
        self._nu = nu

    @property
    def model(self):
        return self._model

    @property
    def state_noise(self):
        return self._q

    @property
    def init_cond(self):
        return self._init_cond

    def _transition(self, x, u):
        """Return ``(x_{k+1|k}, F)`` for state ``x`` and input ``u``."""
        raise NotImplementedError

    def _check_estimates(self, estimates, inputs):
        if estimates is None:
            raise ValueError("invalid filter estimates: None")
        estimates = list(estimates)

        if inputs is not None:
            inputs = list(inputs)
            if len(inputs) != len(estimates):
                raise ValueError(
                    f"input count {len(inputs)} does not match estimate count {len(estimates)}"
                )
        else:
            inputs = [None] * len(estimates)

        for i, est in enumerate(estimates):
            if est.cov is None:
                raise ValueError(f"estimate {i} has no covariance")
            if len(est) != self._nx:
                raise ValueError(f"estimate {i} has invalid dimension: {len(est)}")

        checked = []
        for i, u in enumerate(inputs):
            if u is not None:
                u = np.asarray(u, dtype=float).ravel()
                if u.shape[0] != self._nu:
                    raise ValueError(f"input {i} has invalid dimension: {u.shape[0]}")
            checked.append(u)

        return estimates, checked

    def smooth(self, estimates, inputs=None):
        """
        Smooth a sequence of forward filter estimates.

        Parameters
        ----------
        estimates : sequence of Estimate
            Forward (filtered) estimates in chronological order. Each must
            carry a covariance.
        inputs : sequence of array_like, optional
            Input applied after each estimate. Must match ``estimates`` in
            length when given.

        Returns
        -------
        list of Estimate
            Smoothed estimates in chronological order

        Raises
        ------
        ValueError
            If ``estimates`` is ``None``, the input count differs or an
            estimate lacks a covariance or has the wrong dimension.
        numpy.linalg.LinAlgError
            If a predicted covariance is singular.
        """
        estimates, inputs = self._check_estimates(estimates, inputs)
        if not estimates:
            return []

        Q = self._q.cov if self._q.size > 0 else None

        smoothed = [None] * len(estimates)
        last = estimates[-1]
        smoothed[-1] = Estimate(last.val, last.cov)

        for k in range(len(estimates) - 2, -1, -1):
            x_k = np.array(estimates[k].val)
            P_k = np.array(estimates[k].cov)

            x_pred, F = self._transition(x_k, inputs[k])
            P_pred = F @ P_k @ F.T
            if Q is not None:
                P_pred = P_pred + Q

            C = P_k @ F.T @ inverse(P_pred, f'predicted covariance at step {k}')

            x_s = x_k + C @ (smoothed[k + 1].val - x_pred)
            P_s = P_k + C @ (smoothed[k + 1].cov - P_pred) @ C.T

            smoothed[k] = Estimate(x_s, symmetrize(P_s))

        logger.debug("%s smoothed %d estimates", type(self).__name__, len(smoothed))

        return smoothed


class RTSSmoother(Smoother):
    """
    RTS smoother for linear models.

    Examples
    --------
    >>> rts = RTSSmoother(model, InitCond(x0, P0), q)
    >>> smoothed = rts.smooth(filtered, inputs)
    """

    def __init__(self, model, init_cond, state_noise=None):
        super().__init__(model, init_cond, state_noise)
        _, _, ny, _ = model.dims()
        self._A, self._B, _, _ = check_system_matrices(model, self._nx, self._nu, ny)

    def _transition(self, x, u):
        x_pred = self._A @ x
        if u is not None and self._B is not None:
            x_pred = x_pred + self._B @ u
        return x_pred, self._A


class ExtendedRTSSmoother(Smoother):
    """
    RTS smoother for nonlinear models.

    The state is re-propagated through the model with zero process noise
    and ``F`` is a finite-difference Jacobian at each filtered estimate.

    Parameters
    ----------
    jacobian_config : JacobianConfig, optional
        Finite-difference settings (central differences by default)
    """

    def __init__(self, model, init_cond, state_noise=None, jacobian_config=None):
        super().__init__(model, init_cond, state_noise)
        if jacobian_config is None:
            jacobian_config = JacobianConfig()
        self.jacobian_config = jacobian_config

    def _transition(self, x, u):
        f = PropagationFunction(self._model, u)
        try:
            x_pred = np.asarray(f(x), dtype=float).ravel()
            F = jacobian(f, x, self.jacobian_config)
        except Exception as err:
            raise RuntimeError(f"smoothed state propagation failed: {err}") from err
        return x_pred, F
