"""
Visualization utilities for state estimation.
"""

from .plots import plot_estimates, plot_covariance_ellipse, plot_particles

__all__ = [
    'plot_estimates',
    'plot_covariance_ellipse',
    'plot_particles',
]
