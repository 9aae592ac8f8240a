"""
Performance metrics for state estimation evaluation.
"""

from .performance import (
    stack_estimates, rmse, mae, nees, nis, compute_all_metrics, format_metrics,
)

__all__ = [
    'stack_estimates',
    'rmse',
    'mae',
    'nees',
    'nis',
    'compute_all_metrics',
    'format_metrics',
]
