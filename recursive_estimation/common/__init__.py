"""
Common numerical helpers for state estimation.

Includes matrix utilities, random sampling, finite-difference Jacobians and
discretization methods.
"""

from .linalg import (
    block_sym_diag, symmetrize, row_sums, col_sums, rows_mean, cols_mean,
    cov, sqrt_cov, inverse,
)
from .sampling import with_cov_n, roulette_draw_n
from .jacobian import JacobianConfig, jacobian, PropagationFunction, ObservationFunction
from .discretization import euler_step, rk4_step, expm_discretize

__all__ = [
    'block_sym_diag',
    'symmetrize',
    'row_sums',
    'col_sums',
    'rows_mean',
    'cols_mean',
    'cov',
    'sqrt_cov',
    'inverse',
    'with_cov_n',
    'roulette_draw_n',
    'JacobianConfig',
    'jacobian',
    'PropagationFunction',
    'ObservationFunction',
    'euler_step',
    'rk4_step',
    'expm_discretize',
]
