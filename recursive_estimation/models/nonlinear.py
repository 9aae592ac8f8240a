"""
Nonlinear model built from user-defined dynamics and measurement functions.
"""

import numpy as np

from ..common.discretization import euler_step, rk4_step
from .base import Model, check_vectors, add_noise

_METHODS = {
    'euler': euler_step,
    'rk4': rk4_step,
}


class NonlinearModel(Model):
    """
    Discrete-time nonlinear model.

        x_{k+1} = f(x_k, u_k) (+ q_k)
        y_k = h(x_k, u_k) (+ r_k)

    Parameters
    ----------
    f : callable
        Dynamics function ``f(x, u) -> x_next``
    h : callable
        Measurement function ``h(x, u) -> y``
    nx : int
        State dimension
    ny : int
        Output dimension
    nu : int, optional
        Input dimension (default: 0)

    Notes
    -----
    When no input is given, ``f`` and ``h`` receive a zero vector of length
    ``nu``. Noise vectors are added only when their length matches.

    Examples
    --------
    >>> pendulum = NonlinearModel(
    ...     f=lambda x, u: np.array([x[0] + 0.01 * x[1], x[1] - 0.01 * 9.81 * np.sin(x[0])]),
    ...     h=lambda x, u: np.array([np.sin(x[0])]),
    ...     nx=2, ny=1)
    """

    def __init__(self, f, h, nx, ny, nu=0):
        if not callable(f) or not callable(h):
            raise ValueError("dynamics f(x, u) and measurement h(x, u) must be callable")
        self.f = f
        self.h = h
        self.nx = int(nx)
        self.ny = int(ny)
        self.nu = int(nu)

    @classmethod
    def from_continuous(cls, f, h, dt, nx, ny, nu=0, method='rk4'):
        """
        Discretize continuous dynamics ``dx/dt = f(x, u)``.

        Parameters
        ----------
        f : callable
            Continuous dynamics returning dx/dt
        h : callable
            Measurement function ``h(x, u)``
        dt : float
            Integration step
        nx, ny, nu : int
            State, output and input dimensions
        method : {'rk4', 'euler'}
            Integration scheme
        """
        try:
            step = _METHODS[method]
        except KeyError:
            raise ValueError(
                f"unknown discretization method {method!r}, use one of {sorted(_METHODS)}"
            ) from None
        if dt <= 0:
            raise ValueError(f"invalid time step: {dt}")

        def f_discrete(x, u):
            return step(f, x, u, dt)

        return cls(f_discrete, h, nx, ny, nu)

    def dims(self):
        return self.nx, self.nu, self.ny, 0

    def _input(self, u):
        if u is None:
            return np.zeros(self.nu)
        return u

    def propagate(self, x, u=None, q=None):
        x, u = check_vectors(x, u, self.nx, self.nu)
        out = np.asarray(self.f(x, self._input(u)), dtype=float).ravel()
        if out.shape[0] != self.nx:
            raise ValueError(f"dynamics returned a vector of length {out.shape[0]}, expected {self.nx}")
        return add_noise(out, q)

    def observe(self, x, u=None, r=None):
        x, u = check_vectors(x, u, self.nx, self.nu)
        y = np.asarray(self.h(x, self._input(u)), dtype=float).ravel()
        if y.shape[0] != self.ny:
            raise ValueError(f"measurement returned a vector of length {y.shape[0]}, expected {self.ny}")
        return add_noise(y, r)

    def __repr__(self):
        return f"NonlinearModel(nx={self.nx}, nu={self.nu}, ny={self.ny})"
