"""
Discretization of continuous-time dynamics.

Single integration steps (Euler, RK4) for nonlinear dynamics and the exact
zero-order-hold conversion of a linear state-space pair ``(A, B)``.
"""

import numpy as np
from scipy import integrate
from scipy.linalg import expm


def euler_step(f, x, u, dt):
    """
    One forward Euler step: ``x + dt * f(x, u)``.

    Parameters
    ----------
    f : callable
        Continuous dynamics ``f(x, u)`` returning dx/dt
    x : np.ndarray
        Current state
    u : np.ndarray or None
        Input held constant over the step
    dt : float
        Step size
    """
    return x + dt * np.asarray(f(x, u), dtype=float)


def rk4_step(f, x, u, dt):
    """
    One classical Runge-Kutta 4th order step.

    Notes
    -----
        k1 = f(x, u)
        k2 = f(x + dt/2 * k1, u)
        k3 = f(x + dt/2 * k2, u)
        k4 = f(x + dt * k3, u)
        x_{k+1} = x + dt/6 * (k1 + 2*k2 + 2*k3 + k4)
    """
    k1 = np.asarray(f(x, u), dtype=float)
    k2 = np.asarray(f(x + 0.5 * dt * k1, u), dtype=float)
    k3 = np.asarray(f(x + 0.5 * dt * k2, u), dtype=float)
    k4 = np.asarray(f(x + dt * k3, u), dtype=float)

    return x + (dt / 6.0) * (k1 + 2*k2 + 2*k3 + k4)


def expm_discretize(A, B, ts):
    """
    Zero-order-hold discretization of ``dx/dt = A x + B u``.

    Parameters
    ----------
    A : array_like
        System matrix (nx, nx)
    B : array_like or None
        Control matrix (nx, nu)
    ts : float
        Sampling period, must be positive

    Returns
    -------
    Ad : np.ndarray
        ``expm(A ts)``
    Bd : np.ndarray or None
        ``(Ad - I) A^-1 B`` when ``A`` is invertible, otherwise
        ``(integral_0^ts expm(A t) dt) B`` evaluated by quadrature.
        ``None`` when ``B`` is ``None``.

    Examples
    --------
    >>> Ad, Bd = expm_discretize([[0.0, 1.0], [0.0, 0.0]], [[0.0], [1.0]], 1.0)
    >>> Bd.ravel()
    array([0.5, 1. ])
    """
    if ts <= 0:
        raise ValueError(f"invalid sampling period: {ts}")

    A = np.atleast_2d(np.asarray(A, dtype=float))
    Ad = expm(A * ts)
    if B is None:
        return Ad, None

    B = np.atleast_2d(np.asarray(B, dtype=float))
    try:
        if np.linalg.cond(A) > 1.0 / np.finfo(float).eps:
            raise np.linalg.LinAlgError("system matrix is singular")
        Bd = (Ad - np.eye(A.shape[0])) @ np.linalg.solve(A, B)
    except np.linalg.LinAlgError:
        # trapezoidal quadrature of expm(A t) over [0, ts]
        t = np.linspace(0.0, ts, 100)
        samples = np.array([expm(A * ti) for ti in t])
        Bd = integrate.trapezoid(samples, t, axis=0) @ B

    return Ad, Bd
