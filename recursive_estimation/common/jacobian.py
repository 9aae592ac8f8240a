"""
Finite-difference Jacobians.

Nonlinear filters linearize the model functions around the current state
estimate. :func:`jacobian` differentiates any ``f(x) -> y`` numerically;
:class:`PropagationFunction` and :class:`ObservationFunction` bind a model
and an input vector into such an ``f``, with the noise held at zero.
"""

from multiprocessing.pool import ThreadPool
from typing import NamedTuple, Optional

import numpy as np

CENTRAL_STEP = 6.0554544523933395e-06
ONE_SIDED_STEP = 1.4901161193847656e-08

_FORMULAS = ('central', 'forward', 'backward')


class JacobianConfig(NamedTuple):
    """
    Finite-difference settings.

    Attributes
    ----------
    formula : str
        ``'central'``, ``'forward'`` or ``'backward'`` differences
    step : float, optional
        Absolute step size. ``None`` picks the default for the formula.
    concurrent : bool
        Evaluate the columns on a thread pool.
    """
    formula: str = 'central'
    step: Optional[float] = None
    concurrent: bool = False


def _step_size(config):
    if config.step is not None:
        if config.step <= 0:
            raise ValueError(f"invalid finite difference step: {config.step}")
        return float(config.step)
    if config.formula == 'central':
        return CENTRAL_STEP
    return ONE_SIDED_STEP


def jacobian(f, x, config=None):
    """
    Numerically differentiate ``f`` at ``x``.

    Parameters
    ----------
    f : callable
        Function ``f(x) -> y`` mapping an (n,) vector to an (m,) vector
    x : array_like
        Point of evaluation (n,)
    config : JacobianConfig, optional
        Difference formula, step and concurrency. Central differences by
        default.

    Returns
    -------
    np.ndarray
        Jacobian matrix (m, n), ``J[i, j] = d f_i / d x_j``

    Notes
    -----
    Exceptions raised by ``f`` propagate unchanged. The concurrent path
    produces the same values in the same order as the serial one.
    """
    if config is None:
        config = JacobianConfig()
    if config.formula not in _FORMULAS:
        raise ValueError(f"unknown finite difference formula: {config.formula!r}")

    x = np.asarray(x, dtype=float).ravel()
    h = _step_size(config)
    n = x.shape[0]

    f0 = None
    if config.formula != 'central':
        f0 = np.atleast_1d(np.asarray(f(x.copy()), dtype=float))

    def column(j):
        xp = x.copy()
        if config.formula == 'central':
            xp[j] += h
            xm = x.copy()
            xm[j] -= h
            fp = np.atleast_1d(np.asarray(f(xp), dtype=float))
            fm = np.atleast_1d(np.asarray(f(xm), dtype=float))
            return (fp - fm) / (2.0 * h)
        if config.formula == 'forward':
            xp[j] += h
            return (np.atleast_1d(np.asarray(f(xp), dtype=float)) - f0) / h
        xp[j] -= h
        return (f0 - np.atleast_1d(np.asarray(f(xp), dtype=float))) / h

    if config.concurrent and n > 1:
        with ThreadPool(min(n, 8)) as pool:
            cols = pool.map(column, range(n))
    else:
        cols = [column(j) for j in range(n)]

    return np.column_stack(cols)


class PropagationFunction:
    """
    State propagation ``x -> model.propagate(x, u)`` with zero process noise.

    Parameters
    ----------
    model : Model
        Model to differentiate
    u : array_like or None
        Input vector held fixed
    """

    def __init__(self, model, u=None):
        self.model = model
        self.u = u

    def __call__(self, x):
        return self.model.propagate(x, self.u, None)


class ObservationFunction:
    """State observation ``x -> model.observe(x, u)`` with zero measurement noise."""

    def __init__(self, model, u=None):
        self.model = model
        self.u = u

    def __call__(self, x):
        return self.model.observe(x, self.u, None)
