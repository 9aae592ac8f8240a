"""
Linear state-space models.

    x_{k+1} = A x_k + B u_k (+ q_k)
    y_k = C x_k + D u_k (+ r_k)

:class:`Discrete` is used directly by the linear Kalman filter and the RTS
smoother. :class:`Continuous` models ``dx/dt = A x + B u`` and converts to a
:class:`Discrete` model with :meth:`Continuous.to_discrete`.
"""

import numpy as np

from ..common.discretization import expm_discretize
from .base import DiscreteControlSystem, check_vectors, add_noise


def _matrix(m):
    if m is None:
        return None
    return np.atleast_2d(np.array(m, dtype=float, copy=True))


class System(DiscreteControlSystem):
    """
    Matrices of a linear plant.

    Parameters
    ----------
    A : array_like
        System matrix (nx, nx)
    B : array_like, optional
        Control matrix (nx, nu)
    C : array_like, optional
        Output matrix (ny, nx)
    D : array_like, optional
        Feedforward matrix (ny, nu)
    E : array_like, optional
        Disturbance matrix (nx, nz)

    Raises
    ------
    ValueError
        If ``A`` is missing.
    """

    def __init__(self, A, B=None, C=None, D=None, E=None):
        if A is None:
            raise ValueError("system matrix must be defined for a model")
        self.A = _matrix(A)
        self.B = _matrix(B)
        self.C = _matrix(C)
        self.D = _matrix(D)
        self.E = _matrix(E)

    def dims(self):
        nx = self.A.shape[0]
        nu = self.B.shape[1] if self.B is not None else 0
        ny = self.C.shape[0] if self.C is not None else 0
        nz = self.E.shape[1] if self.E is not None else 0
        return nx, nu, ny, nz

    def system_matrix(self):
        return self.A.copy()

    def control_matrix(self):
        return None if self.B is None else self.B.copy()

    def output_matrix(self):
        return None if self.C is None else self.C.copy()

    def feedforward_matrix(self):
        return None if self.D is None else self.D.copy()

    def observe(self, x, u=None, r=None):
        nx, nu, _, _ = self.dims()
        x, u = check_vectors(x, u, nx, nu)
        if self.C is None:
            raise ValueError("output matrix must be defined to observe a model")

        y = self.C @ x
        if u is not None and self.D is not None:
            y = y + self.D @ u

        return add_noise(y, r)

    def propagate(self, x, u=None, q=None):
        raise NotImplementedError

    def __repr__(self):
        nx, nu, ny, nz = self.dims()
        return f"{type(self).__name__}(nx={nx}, nu={nu}, ny={ny}, nz={nz})"


class Discrete(System):
    """
    Linear discrete-time model.

    Examples
    --------
    >>> ball = Discrete([[1, 1], [0, 1]], [[0.5], [1]], [[1, 0]], [[0]])
    >>> ball.propagate([1.0, 1.0], [-1.0])
    array([1.5, 0. ])
    """

    def propagate(self, x, u=None, q=None):
        nx, nu, _, _ = self.dims()
        x, u = check_vectors(x, u, nx, nu)

        out = self.A @ x
        if u is not None and self.B is not None:
            out = out + self.B @ u

        return add_noise(out, q)


class Continuous(System):
    """
    Linear continuous-time model ``dx/dt = A x + B u``.

    :meth:`propagate` takes a single forward Euler step of length ``dt``.
    Use :meth:`to_discrete` for the exact sampled-data model.
    """

    def __init__(self, A, B=None, C=None, D=None, E=None, dt=1.0):
        super().__init__(A, B, C, D, E)
        self.dt = dt

    def derivative(self, x, u=None, q=None):
        """State derivative ``A x + B u (+ q)``."""
        nx, nu, _, _ = self.dims()
        x, u = check_vectors(x, u, nx, nu)

        dx = self.A @ x
        if u is not None and self.B is not None:
            dx = dx + self.B @ u

        return add_noise(dx, q)

    def propagate(self, x, u=None, q=None, dt=None):
        if dt is None:
            dt = self.dt
        x = np.asarray(x, dtype=float).ravel()
        return x + dt * self.derivative(x, u, q)

    def to_discrete(self, ts):
        """
        Zero-order-hold discretization with sampling period ``ts``.

        Returns
        -------
        Discrete
            Model with ``A = expm(A ts)`` and the matching control matrix.
            ``C``, ``D`` and ``E`` are carried over unchanged.
        """
        Ad, Bd = expm_discretize(self.A, self.B, ts)
        return Discrete(Ad, Bd, self.C, self.D, self.E)
