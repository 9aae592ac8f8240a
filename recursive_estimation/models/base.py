"""
Abstract model interfaces consumed by the filters.
"""

from abc import ABC, abstractmethod

import numpy as np


class Model(ABC):
    """
    Discrete-time dynamical system.

    Subclasses implement

        x_{k+1} = f(x_k, u_k) + q_k
        y_k = h(x_k, u_k) + r_k

    where ``q`` and ``r`` are optional noise vectors.
    """

    @abstractmethod
    def propagate(self, x, u=None, q=None):
        """
        Propagate the internal state one step.

        Parameters
        ----------
        x : np.ndarray
            State vector (nx,)
        u : np.ndarray, optional
            Input vector (nu,). ``None`` means no input.
        q : np.ndarray, optional
            Process noise sample (nx,)

        Returns
        -------
        np.ndarray
            Next state (nx,)
        """

    @abstractmethod
    def observe(self, x, u=None, r=None):
        """
        Compute the observable output of state ``x``.

        Parameters
        ----------
        x : np.ndarray
            State vector (nx,)
        u : np.ndarray, optional
            Input vector (nu,)
        r : np.ndarray, optional
            Measurement noise sample (ny,)

        Returns
        -------
        np.ndarray
            Output vector (ny,)
        """

    @abstractmethod
    def dims(self):
        """Return ``(nx, nu, ny, nz)``: state, input, output and disturbance sizes."""


class DiscreteControlSystem(Model):
    """Linear discrete-time model exposing its static system matrices."""

    @abstractmethod
    def system_matrix(self):
        """State propagation matrix ``A``."""

    @abstractmethod
    def control_matrix(self):
        """Control matrix ``B`` or ``None``."""

    @abstractmethod
    def output_matrix(self):
        """Observation matrix ``C``."""

    @abstractmethod
    def feedforward_matrix(self):
        """Feedforward matrix ``D`` or ``None``."""


def check_vectors(x, u, nx, nu):
    """
    Convert and validate state and input vectors.

    Returns
    -------
    x : np.ndarray
    u : np.ndarray or None

    Raises
    ------
    ValueError
        If ``x`` does not have length ``nx`` or ``u`` does not have length
        ``nu``.
    """
    x = np.asarray(x, dtype=float).ravel()
    if x.shape[0] != nx:
        raise ValueError(f"invalid state vector: expected length {nx}, got {x.shape[0]}")

    if u is not None:
        u = np.asarray(u, dtype=float).ravel()
        if u.shape[0] != nu:
            raise ValueError(f"invalid input vector: expected length {nu}, got {u.shape[0]}")

    return x, u


def add_noise(v, w):
    """Add ``w`` to ``v`` when ``w`` is given and its length matches ``v``."""
    if w is None:
        return v
    w = np.asarray(w, dtype=float).ravel()
    if w.shape[0] == v.shape[0]:
        return v + w
    return v
