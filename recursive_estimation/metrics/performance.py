"""
Performance metrics for evaluating state estimation quality.

Includes RMSE, MAE, NEES and NIS. All functions accept plain arrays; use
:func:`stack_estimates` to turn a sequence of
:class:`~recursive_estimation.estimate.Estimate` objects into arrays.
"""

import numpy as np

from ..common.linalg import inverse


def stack_estimates(estimates):
    """
    Stack Estimate objects into arrays.

    Parameters
    ----------
    estimates : sequence of Estimate

    Returns
    -------
    states : np.ndarray
        State vectors (N, nx)
    covs : np.ndarray or None
        Covariances (N, nx, nx), or ``None`` if any estimate has none
    """
    estimates = list(estimates)
    if not estimates:
        return np.zeros((0, 0)), None

    states = np.array([est.val for est in estimates])
    if any(est.cov is None for est in estimates):
        return states, None

    return states, np.array([est.cov for est in estimates])


def rmse(estimates, ground_truth, axis=0):
    """
    Root Mean Square Error.

    Parameters
    ----------
    estimates : np.ndarray
        Estimated states (N, dim) or (N,)
    ground_truth : np.ndarray
        True states (N, dim) or (N,)
    axis : int, optional
        Axis along which to compute RMSE

    Returns
    -------
    float or np.ndarray
        RMSE value(s)
    """
    err = np.asarray(estimates, dtype=float) - np.asarray(ground_truth, dtype=float)
    return np.sqrt(np.mean(err**2, axis=axis))


def mae(estimates, ground_truth, axis=0):
    """Mean Absolute Error along ``axis``."""
    err = np.asarray(estimates, dtype=float) - np.asarray(ground_truth, dtype=float)
    return np.mean(np.abs(err), axis=axis)


def nees(estimates, ground_truth, covariances):
    """
    Normalized Estimation Error Squared (NEES).

    Parameters
    ----------
    estimates : np.ndarray
        Estimated states (N, nx)
    ground_truth : np.ndarray
        True states (N, nx)
    covariances : np.ndarray
        Estimation error covariances (N, nx, nx)

    Returns
    -------
    np.ndarray
        NEES value of each time step (N,)

    Notes
    -----
    For a consistent filter NEES follows a chi-squared distribution with
    ``nx`` degrees of freedom, so its average should be close to ``nx``.
    """
    errors = np.atleast_2d(np.asarray(estimates, dtype=float) - np.asarray(ground_truth, dtype=float))
    values = np.zeros(len(errors))

    for i, e in enumerate(errors):
        values[i] = e @ inverse(covariances[i], f'covariance at step {i}') @ e

    return values


def nis(innovations, innovation_covariances):
    """
    Normalized Innovation Squared (NIS).

    Parameters
    ----------
    innovations : np.ndarray
        Innovation vectors (N, ny)
    innovation_covariances : np.ndarray
        Innovation covariances (N, ny, ny)

    Returns
    -------
    np.ndarray
        NIS value of each time step (N,). Its average should be close to
        ``ny`` for a consistent filter.
    """
    innovations = np.atleast_2d(np.asarray(innovations, dtype=float))
    values = np.zeros(len(innovations))

    for i, y in enumerate(innovations):
        values[i] = y @ inverse(innovation_covariances[i], f'innovation covariance at step {i}') @ y

    return values


def compute_all_metrics(estimates, ground_truth, covariances=None,
                        innovations=None, innovation_covariances=None):
    """
    Compute all available metrics.

    Parameters
    ----------
    estimates : np.ndarray
        Estimated states (N, nx)
    ground_truth : np.ndarray
        True states (N, nx)
    covariances : np.ndarray, optional
        State covariances (N, nx, nx)
    innovations : np.ndarray, optional
        Innovation vectors (N, ny)
    innovation_covariances : np.ndarray, optional
        Innovation covariances (N, ny, ny)

    Returns
    -------
    dict
        ``rmse``, ``mae`` per dimension and their totals, plus ``nees`` and
        ``nis`` statistics when covariances are supplied
    """
    metrics = {
        'rmse': rmse(estimates, ground_truth, axis=0),
        'mae': mae(estimates, ground_truth, axis=0),
    }
    metrics['rmse_total'] = float(np.mean(metrics['rmse']))
    metrics['mae_total'] = float(np.mean(metrics['mae']))

    if covariances is not None:
        values = nees(estimates, ground_truth, covariances)
        metrics['nees'] = values
        metrics['nees_mean'] = float(np.mean(values))
        metrics['nees_std'] = float(np.std(values))

    if innovations is not None and innovation_covariances is not None:
        values = nis(innovations, innovation_covariances)
        metrics['nis'] = values
        metrics['nis_mean'] = float(np.mean(values))
        metrics['nis_std'] = float(np.std(values))

    return metrics


def format_metrics(metrics, filter_name="Filter"):
    """
    Render metrics from :func:`compute_all_metrics` as a text table.

    Returns
    -------
    str
    """
    lines = [f"{filter_name} performance metrics", "=" * 50]

    if 'rmse' in metrics:
        lines.append(f"RMSE per dimension: {metrics['rmse']}")
        lines.append(f"Total RMSE: {metrics['rmse_total']:.6f}")
    if 'mae' in metrics:
        lines.append(f"MAE per dimension: {metrics['mae']}")
        lines.append(f"Total MAE: {metrics['mae_total']:.6f}")
    if 'nees_mean' in metrics:
        lines.append(f"NEES (mean +/- std): {metrics['nees_mean']:.2f} +/- {metrics['nees_std']:.2f}")
    if 'nis_mean' in metrics:
        lines.append(f"NIS (mean +/- std): {metrics['nis_mean']:.2f} +/- {metrics['nis_std']:.2f}")

    lines.append("=" * 50)
    return "\n".join(lines)
