"""
Noise sources consumed by filters and models.

A noise object owns a covariance matrix and draws sample vectors from it.
Three variants are provided:

- :class:`Gaussian`: multivariate normal noise.
- :class:`ZeroNoise`: zero-mean, zero-covariance noise of a given size.
- :class:`NoneNoise`: zero-size noise, i.e. no noise at all.

Filters treat any noise whose ``size`` is 0 as absent: its covariance block
is left out of augmented sigma point covariances and its term is skipped in
covariance propagation.
"""

from abc import ABC, abstractmethod

import numpy as np
from scipy.stats import multivariate_normal

from . import config


class Noise(ABC):
    """Abstract noise source."""

    @property
    @abstractmethod
    def mean(self):
        """Mean vector (size,)."""

    @property
    @abstractmethod
    def cov(self):
        """Covariance matrix (size, size)."""

    @abstractmethod
    def sample(self):
        """Draw a single noise vector (size,)."""

    @abstractmethod
    def reset(self):
        """Reset the noise source."""

    @property
    def size(self):
        """Dimension of the noise vector."""
        return self.cov.shape[0]


class Gaussian(Noise):
    """
    Multivariate Gaussian noise.

    Parameters
    ----------
    mean : array_like
        Mean vector (n,)
    cov : array_like
        Symmetric positive semi-definite covariance (n, n)
    seed : int, optional
        Seed of a private generator. When given, :meth:`reset` replays
        the same sample stream.
    rng : numpy.random.Generator, optional
        Generator to draw from. Ignored if ``seed`` is given. When neither
        is given, samples come from the module-wide generator
        (see :mod:`recursive_estimation.config`).

    Raises
    ------
    ValueError
        If mean and covariance sizes disagree or the covariance is not
        symmetric positive semi-definite.

    Examples
    --------
    >>> q = Gaussian([0.0, 0.0], np.eye(2) * 0.25)
    >>> q.sample().shape
    (2,)
    """

    def __init__(self, mean, cov, seed=None, rng=None):
        mean = np.atleast_1d(np.asarray(mean, dtype=float))
        cov = np.atleast_2d(np.asarray(cov, dtype=float))

        if mean.ndim != 1:
            raise ValueError(f"invalid noise mean shape: {mean.shape}")
        if cov.shape != (mean.shape[0], mean.shape[0]):
            raise ValueError(
                f"invalid noise covariance shape: {cov.shape} for mean of length {mean.shape[0]}"
            )
        if not np.allclose(cov, cov.T):
            raise ValueError("noise covariance must be symmetric")

        # scipy rejects matrices that are not positive semi-definite
        self._dist = multivariate_normal(mean=mean, cov=cov, allow_singular=True)

        self._mean = mean
        self._cov = cov
        self._seed = seed
        self._rng = None
        if seed is not None:
            self._rng = np.random.default_rng(seed)
        elif rng is not None:
            self._rng = rng

    @property
    def mean(self):
        return self._mean.copy()

    @property
    def cov(self):
        return self._cov.copy()

    def sample(self):
        rng = config.resolve_rng(self._rng)
        return np.atleast_1d(np.asarray(self._dist.rvs(random_state=rng), dtype=float))

    def reset(self):
        """
        Reset the sample stream.

        With a seed the stream restarts from the beginning; otherwise the
        noise switches to a fresh generator seeded from its current source.
        """
        if self._seed is not None:
            self._rng = np.random.default_rng(self._seed)
        else:
            source = config.resolve_rng(self._rng)
            self._rng = np.random.default_rng(source.integers(2**32))

    def __repr__(self):
        return f"Gaussian(mean={self._mean!r}, cov={self._cov!r})"


class ZeroNoise(Noise):
    """
    Zero noise: zero mean and zero covariance of the given size.

    Parameters
    ----------
    size : int
        Noise dimension. Must be non-negative.
    """

    def __init__(self, size):
        if size < 0:
            raise ValueError(f"invalid noise dimension: {size}")
        self._size = int(size)

    @property
    def mean(self):
        return np.zeros(self._size)

    @property
    def cov(self):
        return np.zeros((self._size, self._size))

    @property
    def size(self):
        return self._size

    def sample(self):
        return np.zeros(self._size)

    def reset(self):
        pass

    def __repr__(self):
        return f"{type(self).__name__}(size={self._size})"


class NoneNoise(ZeroNoise):
    """Absence of noise: zero-length mean and sample, 0x0 covariance."""

    def __init__(self):
        super().__init__(0)

    def __repr__(self):
        return "NoneNoise()"
