"""
Recursive state estimation filters.

This module provides implementations of:
- Linear Kalman Filter (KF)
- Extended Kalman Filter (EKF) and its iterated variant (IEKF)
- Unscented Kalman Filter (UKF)
- Bootstrap Particle Filter (BF)

All filters share the same predict / update / run lifecycle.
"""

from .base import Filter, KalmanFilterBase
from .kalman import KalmanFilter
from .extended import ExtendedKalmanFilter, IteratedExtendedKalmanFilter
from .unscented import UKFConfig, ScaledSigmaPoints, UnscentedKalmanFilter, gen_sigma_points
from .particle import BootstrapFilter, alpha_gauss

__all__ = [
    'Filter',
    'KalmanFilterBase',
    'KalmanFilter',
    'ExtendedKalmanFilter',
    'IteratedExtendedKalmanFilter',
    'UKFConfig',
    'ScaledSigmaPoints',
    'UnscentedKalmanFilter',
    'gen_sigma_points',
    'BootstrapFilter',
    'alpha_gauss',
]
