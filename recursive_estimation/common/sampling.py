"""
Random sampling primitives.

- :func:`with_cov_n`: zero-mean Gaussian samples with a given covariance.
- :func:`roulette_draw_n`: fitness proportionate (roulette wheel) selection.
"""

import numpy as np

from .. import config
from .linalg import sqrt_cov


def with_cov_n(cov, n, rng=None):
    """
    Draw ``n`` samples from a zero-mean Gaussian with covariance ``cov``.

    The covariance square root is computed with SVD so that (nearly)
    singular covariances can be sampled.

    Parameters
    ----------
    cov : array_like
        Covariance matrix (dim, dim)
    n : int
        Number of samples
    rng : numpy.random.Generator, optional
        Random source. Defaults to the module-wide generator.

    Returns
    -------
    np.ndarray
        Samples stored in columns (dim, n)

    Raises
    ------
    ValueError
        If ``n`` is not positive.
    numpy.linalg.LinAlgError
        If the SVD factorization of ``cov`` fails.
    """
    if n <= 0:
        raise ValueError(f"invalid number of samples requested: {n}")

    rng = config.resolve_rng(rng)
    S = sqrt_cov(cov)
    return S @ rng.standard_normal((S.shape[0], n))


def roulette_draw_n(p, n, rng=None):
    """
    Draw ``n`` indices with replacement, proportionally to the weights ``p``.

    Implements roulette wheel a.k.a. fitness proportionate selection: build
    the discrete CDF of ``p``, scale uniform draws by the CDF total and
    binary-search the smallest index whose CDF value exceeds each draw.

    Parameters
    ----------
    p : array_like
        Non-negative weights. They need not sum to one.
    n : int
        Number of indices to draw
    rng : numpy.random.Generator, optional
        Random source. Defaults to the module-wide generator.

    Returns
    -------
    np.ndarray
        Integer indices into ``p`` (n,)

    Raises
    ------
    ValueError
        If ``p`` is empty, has negative entries or sums to zero, or if
        ``n`` is negative.

    Examples
    --------
    >>> roulette_draw_n([0.0, 1.0, 0.0], 3)
    array([1, 1, 1])
    """
    if p is None:
        raise ValueError("invalid probability weights: None")

    p = np.asarray(p, dtype=float).ravel()
    if p.size == 0:
        raise ValueError("invalid probability weights: empty")
    if np.any(p < 0) or not np.all(np.isfinite(p)):
        raise ValueError(f"probability weights must be finite and non-negative: {p}")
    if n < 0:
        raise ValueError(f"invalid number of draws: {n}")

    cdf = np.cumsum(p)
    total = cdf[-1]
    if total <= 0:
        raise ValueError("probability weights sum to zero")

    rng = config.resolve_rng(rng)
    draws = rng.random(n) * total
    indices = np.searchsorted(cdf, draws, side='right')

    # guards against draws landing exactly on the CDF total
    return np.minimum(indices, p.size - 1)
