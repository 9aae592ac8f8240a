"""
Module-wide random source configuration.

Every random draw in the library (noise samples, particle initialization,
roulette-wheel resampling, regularization jitter) goes through a single
:class:`numpy.random.Generator`. Functions that draw random numbers accept an
optional ``rng`` argument; when it is omitted the generator returned by
:func:`get_rng` is looked up at call time, so reseeding takes effect
immediately for all existing filters and noise objects.

Examples
--------
>>> from recursive_estimation import config
>>> config.set_seed(42)
>>> rng = config.get_rng()
"""

import numpy as np

_rng = np.random.default_rng()


def set_seed(seed):
    """
    Replace the module-wide generator with a freshly seeded one.

    Parameters
    ----------
    seed : int or None
        Seed passed to :func:`numpy.random.default_rng`. ``None`` draws
        fresh entropy from the OS.
    """
    global _rng
    _rng = np.random.default_rng(seed)


def set_rng(rng):
    """
    Inject an existing generator as the module-wide random source.

    Parameters
    ----------
    rng : numpy.random.Generator
        Generator to use for all subsequent draws.

    Raises
    ------
    TypeError
        If ``rng`` is not a :class:`numpy.random.Generator`.
    """
    global _rng
    if not isinstance(rng, np.random.Generator):
        raise TypeError(
            f"Unsupported random source {type(rng).__name__}. "
            f"Must be a numpy.random.Generator"
        )
    _rng = rng


def get_rng():
    """
    Return the active module-wide generator.

    Returns
    -------
    numpy.random.Generator
    """
    return _rng


def resolve_rng(rng=None):
    """Return ``rng`` if given, otherwise the module-wide generator."""
    if rng is None:
        return _rng
    return rng
