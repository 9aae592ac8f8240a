"""
Value objects exchanged between filters and their callers.

- :class:`Estimate`: immutable snapshot of a state vector and, optionally,
  its covariance. Returned by every filter and smoother operation.
- :class:`InitCond`: initial mean state and covariance a filter starts from.
"""

import numpy as np


def _frozen(a):
    a = np.array(a, dtype=float, copy=True)
    a.setflags(write=False)
    return a


class Estimate:
    """
    Immutable state estimate.

    Parameters
    ----------
    val : array_like
        State vector (nx,)
    cov : array_like, optional
        State covariance (nx, nx)

    Raises
    ------
    ValueError
        If ``val`` is not a vector or ``cov`` does not match its length.

    Examples
    --------
    >>> est = Estimate([1.0, 2.0], np.eye(2))
    >>> est.val
    array([1., 2.])
    """

    __slots__ = ('_val', '_cov')

    def __init__(self, val, cov=None):
        val = np.asarray(val, dtype=float)
        if val.ndim != 1:
            raise ValueError(f"invalid state vector shape: {val.shape}")

        if cov is not None:
            cov = np.asarray(cov, dtype=float)
            if cov.shape != (val.shape[0], val.shape[0]):
                raise ValueError(
                    f"invalid covariance shape: {cov.shape} for state of length {val.shape[0]}"
                )
            cov = _frozen(cov)

        self._val = _frozen(val)
        self._cov = cov

    @property
    def val(self):
        """Read-only state vector."""
        return self._val

    @property
    def cov(self):
        """Read-only covariance matrix, or ``None``."""
        return self._cov

    def __len__(self):
        return self._val.shape[0]

    def __repr__(self):
        return f"Estimate(val={self._val!r}, cov={self._cov!r})"


class InitCond:
    """
    Initial condition of a filter.

    Parameters
    ----------
    state : array_like
        Initial state mean (nx,)
    cov : array_like
        Initial state covariance (nx, nx)
    """

    def __init__(self, state, cov):
        state = np.asarray(state, dtype=float)
        cov = np.asarray(cov, dtype=float)

        if state.ndim != 1 or state.shape[0] == 0:
            raise ValueError(f"invalid initial state shape: {state.shape}")
        if cov.shape != (state.shape[0], state.shape[0]):
            raise ValueError(f"invalid initial covariance shape: {cov.shape}")

        self._state = state.copy()
        self._cov = cov.copy()

    @property
    def state(self):
        """Copy of the initial state."""
        return self._state.copy()

    @property
    def cov(self):
        """Copy of the initial covariance."""
        return self._cov.copy()

    def __repr__(self):
        return f"InitCond(state={self._state!r}, cov={self._cov!r})"
