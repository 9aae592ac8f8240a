"""
System models consumed by the filters.
"""

from .base import Model, DiscreteControlSystem
from .linear import System, Discrete, Continuous
from .nonlinear import NonlinearModel

__all__ = [
    'Model',
    'DiscreteControlSystem',
    'System',
    'Discrete',
    'Continuous',
    'NonlinearModel',
]
