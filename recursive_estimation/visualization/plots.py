"""
Estimate, covariance and particle visualization.

All functions draw on a supplied axes (or create a new figure) and only
display the figure when ``show=True``.
"""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.patches import Ellipse

from ..metrics.performance import stack_estimates


def _axes(ax, figsize):
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure
    return fig, ax


def plot_estimates(time, estimates, ground_truth=None, measurements=None,
                   component=0, n_std=2.0, ax=None, label='Estimate',
                   title=None, figsize=(10, 6), save_path=None, show=False):
    """
    Plot one state component of an estimate sequence over time.

    Parameters
    ----------
    time : np.ndarray
        Time vector (N,)
    estimates : sequence of Estimate or np.ndarray
        Estimates, or an array of states (N, nx)
    ground_truth : np.ndarray, optional
        True states (N, nx)
    measurements : np.ndarray, optional
        Measurements of this component (N,)
    component : int, optional
        State index to plot
    n_std : float, optional
        Width of the confidence band in standard deviations. The band is
        drawn only when the estimates carry covariances.
    ax : matplotlib.axes.Axes, optional
        Axes to plot on. If None, creates a new figure.
    label : str, optional
        Legend label of the estimate line
    title : str, optional
        Plot title
    figsize : tuple, optional
        Figure size when a new figure is created
    save_path : str, optional
        Path to save the figure
    show : bool, optional
        Whether to display the plot

    Returns
    -------
    fig, ax
        Matplotlib figure and axes
    """
    if isinstance(estimates, np.ndarray):
        states, covs = np.atleast_2d(estimates), None
    else:
        states, covs = stack_estimates(estimates)

    fig, ax = _axes(ax, figsize)
    time = np.asarray(time)
    values = states[:, component]

    ax.plot(time, values, linewidth=2, label=label, alpha=0.8)

    if covs is not None:
        sigma = np.sqrt(np.maximum(covs[:, component, component], 0.0))
        ax.fill_between(time, values - n_std * sigma, values + n_std * sigma,
                        alpha=0.2, label=f'{n_std:g}-sigma bound')

    if ground_truth is not None:
        truth = np.atleast_2d(np.asarray(ground_truth))
        ax.plot(time, truth[:, component], 'k--', linewidth=1.5,
                label='Ground Truth', alpha=0.6)

    if measurements is not None:
        ax.plot(time, np.asarray(measurements), 'r.', markersize=4,
                label='Measurements', alpha=0.5)

    ax.set_xlabel('Time', fontsize=12)
    ax.set_ylabel(f'State {component}', fontsize=12)
    if title:
        ax.set_title(title, fontsize=14)
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    if save_path:
        fig.savefig(save_path, dpi=300, bbox_inches='tight')

    if show:
        plt.show()

    return fig, ax


def plot_covariance_ellipse(mean, cov, n_std=3.0, ax=None, **kwargs):
    """
    Plot the covariance ellipse of a 2D distribution.

    Parameters
    ----------
    mean : array-like
        Mean of distribution [x, y]
    cov : np.ndarray
        2x2 covariance matrix
    n_std : float, optional
        Number of standard deviations for ellipse (default: 3-sigma)
    ax : matplotlib.axes.Axes, optional
        Axes to plot on. If None, uses the current axes.
    **kwargs : dict
        Additional arguments passed to Ellipse patch

    Returns
    -------
    matplotlib.patches.Ellipse
        The ellipse patch object
    """
    if ax is None:
        ax = plt.gca()

    mean = np.asarray(mean, dtype=float)
    cov = np.asarray(cov, dtype=float)
    if cov.shape != (2, 2):
        raise ValueError(f"covariance ellipse needs a 2x2 matrix, got {cov.shape}")

    eigenvalues, eigenvectors = np.linalg.eigh(cov)
    angle = np.degrees(np.arctan2(eigenvectors[1, 0], eigenvectors[0, 0]))
    width, height = 2 * n_std * np.sqrt(np.maximum(eigenvalues, 0.0))

    kwargs.setdefault('fill', False)
    ellipse = Ellipse(xy=mean, width=width, height=height, angle=angle, **kwargs)
    ax.add_patch(ellipse)
    ax.autoscale_view()

    return ellipse


def plot_particles(particles, weights=None, dims=(0, 1), ax=None,
                   figsize=(8, 8), save_path=None, show=False):
    """
    Scatter a particle set, sized by weight.

    Parameters
    ----------
    particles : np.ndarray
        Particles stored in columns (nx, n)
    weights : np.ndarray, optional
        Particle weights (n,). Uniform if omitted.
    dims : tuple of int, optional
        Two state indices to plot
    ax : matplotlib.axes.Axes, optional
        Axes to plot on. If None, creates a new figure.

    Returns
    -------
    fig, ax
        Matplotlib figure and axes
    """
    particles = np.atleast_2d(np.asarray(particles, dtype=float))
    n = particles.shape[1]
    if weights is None:
        weights = np.full(n, 1.0 / n)
    weights = np.asarray(weights, dtype=float)

    fig, ax = _axes(ax, figsize)

    i, j = dims
    sizes = 5.0 + 200.0 * weights / np.max(weights)
    ax.scatter(particles[i], particles[j], s=sizes, alpha=0.4, label='Particles')

    mean = particles @ (weights / np.sum(weights))
    ax.plot(mean[i], mean[j], 'r+', markersize=12, markeredgewidth=2, label='Weighted mean')

    ax.set_xlabel(f'State {i}', fontsize=12)
    ax.set_ylabel(f'State {j}', fontsize=12)
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    if save_path:
        fig.savefig(save_path, dpi=300, bbox_inches='tight')

    if show:
        plt.show()

    return fig, ax
