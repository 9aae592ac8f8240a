"""
Recursive Estimation Library

Recursive Bayesian state estimators for discrete-time dynamical systems:
Kalman Filter (KF), Extended and Iterated Extended Kalman Filter (EKF, IEKF),
Unscented Kalman Filter (UKF), Bootstrap Particle Filter (BF) and
Rauch-Tung-Striebel smoothers (RTS, ERTS).

License: MIT
"""

__version__ = "1.0.0"

from .estimate import Estimate, InitCond
from .noise import Noise, Gaussian, ZeroNoise, NoneNoise
from .models import Model, DiscreteControlSystem, System, Discrete, Continuous, NonlinearModel
from .filters.kalman import KalmanFilter
from .filters.extended import ExtendedKalmanFilter, IteratedExtendedKalmanFilter
from .filters.unscented import UnscentedKalmanFilter, UKFConfig
from .filters.particle import BootstrapFilter, alpha_gauss
from .smoothers.rts import RTSSmoother, ExtendedRTSSmoother

__all__ = [
    'Estimate',
    'InitCond',
    'Noise',
    'Gaussian',
    'ZeroNoise',
    'NoneNoise',
    'Model',
    'DiscreteControlSystem',
    'System',
    'Discrete',
    'Continuous',
    'NonlinearModel',
    'KalmanFilter',
    'ExtendedKalmanFilter',
    'IteratedExtendedKalmanFilter',
    'UnscentedKalmanFilter',
    'UKFConfig',
    'BootstrapFilter',
    'alpha_gauss',
    'RTSSmoother',
    'ExtendedRTSSmoother',
]
