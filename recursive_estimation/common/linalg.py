"""
Matrix helpers shared by the filters.

Covariance square roots are computed with SVD rather than Cholesky so that
(nearly) singular covariance matrices still factorize.
"""

import numpy as np
from scipy import linalg


def block_sym_diag(mats):
    """
    Build a symmetric block-diagonal matrix.

    Parameters
    ----------
    mats : sequence of array_like
        Square symmetric matrices. Zero-size blocks are skipped.

    Returns
    -------
    np.ndarray
        Block-diagonal matrix whose side is the sum of the block sides.

    Examples
    --------
    >>> block_sym_diag([np.eye(2), np.zeros((0, 0)), [[3.0]]]).shape
    (3, 3)
    """
    blocks = []
    for m in mats:
        m = np.atleast_2d(np.asarray(m, dtype=float))
        if m.shape[0] != m.shape[1]:
            raise ValueError(f"block must be square: {m.shape}")
        if m.shape[0] > 0:
            blocks.append(m)

    if not blocks:
        return np.zeros((0, 0))

    return linalg.block_diag(*blocks)


def symmetrize(m):
    """
    Mirror the upper triangle of a square matrix into its lower triangle.

    Parameters
    ----------
    m : array_like
        Square matrix

    Returns
    -------
    np.ndarray
        Exactly symmetric matrix
    """
    m = np.asarray(m, dtype=float)
    upper = np.triu(m)
    return upper + np.triu(m, k=1).T


def row_sums(m):
    """Sum of each row of ``m``."""
    return np.asarray(m, dtype=float).sum(axis=1)


def col_sums(m):
    """Sum of each column of ``m``."""
    return np.asarray(m, dtype=float).sum(axis=0)


def rows_mean(m):
    """Mean of the rows of ``m``, i.e. the average row vector."""
    m = np.asarray(m, dtype=float)
    return col_sums(m) / m.shape[0]


def cols_mean(m):
    """Mean of the columns of ``m``, i.e. the average column vector."""
    m = np.asarray(m, dtype=float)
    return row_sums(m) / m.shape[1]


def cov(m, axis='cols'):
    """
    Sample covariance of data stored in the columns or rows of a matrix.

    Parameters
    ----------
    m : array_like
        Data matrix
    axis : {'cols', 'rows'}, optional
        ``'cols'``: each column is an observation (default).
        ``'rows'``: each row is an observation.

    Returns
    -------
    np.ndarray
        Symmetric covariance matrix normalized by ``n - 1``. A zero matrix
        is returned when fewer than two observations are available.
    """
    m = np.atleast_2d(np.asarray(m, dtype=float))
    axis = axis.lower()
    if axis == 'rows':
        data = m.T
    elif axis == 'cols':
        data = m
    else:
        raise ValueError(f"unknown axis: {axis!r}")

    dim, count = data.shape
    if count < 2:
        return np.zeros((dim, dim))

    centered = data - cols_mean(data)[:, None]
    return symmetrize(centered @ centered.T / (count - 1.0))


def sqrt_cov(c):
    """
    Matrix square root of a covariance matrix via SVD.

    Returns ``U @ diag(sqrt(s))`` so that ``S @ S.T == c``.

    Parameters
    ----------
    c : array_like
        Symmetric positive semi-definite matrix (n, n)

    Returns
    -------
    np.ndarray
        Square root factor (n, n)

    Raises
    ------
    numpy.linalg.LinAlgError
        If the SVD does not converge.
    """
    c = np.atleast_2d(np.asarray(c, dtype=float))
    try:
        U, s, _ = linalg.svd(c)
    except (np.linalg.LinAlgError, ValueError) as err:
        raise np.linalg.LinAlgError(f"SVD factorization failed: {err}") from err

    # clip round-off negatives before the square root
    return U * np.sqrt(np.maximum(s, 0.0))


def inverse(m, what='matrix'):
    """
    Invert a square matrix.

    Parameters
    ----------
    m : array_like
        Square matrix
    what : str, optional
        Name used in the error message

    Raises
    ------
    numpy.linalg.LinAlgError
        If ``m`` is singular.
    """
    try:
        return np.linalg.inv(np.asarray(m, dtype=float))
    except np.linalg.LinAlgError as err:
        raise np.linalg.LinAlgError(f"failed to invert {what}: {err}") from err
