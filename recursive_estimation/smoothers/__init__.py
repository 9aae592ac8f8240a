"""
Fixed-interval smoothers run backward over forward filter estimates.
"""

from .rts import Smoother, RTSSmoother, ExtendedRTSSmoother

__all__ = [
    'Smoother',
    'RTSSmoother',
    'ExtendedRTSSmoother',
]
