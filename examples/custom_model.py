"""
Custom Model Example

Demonstrates the filters on a user-defined nonlinear model: a pendulum
observed through the horizontal position of its bob. Compares the EKF and
IEKF and smooths the EKF run with the extended RTS smoother.
"""

import numpy as np
import matplotlib.pyplot as plt
import sys
import os
from pathlib import Path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from recursive_estimation import (
    Estimate, InitCond, Gaussian, ExtendedKalmanFilter, IteratedExtendedKalmanFilter,
    ExtendedRTSSmoother,
)
from recursive_estimation.common import JacobianConfig
from recursive_estimation.metrics import compute_all_metrics, format_metrics, stack_estimates
from recursive_estimation.visualization import plot_estimates

from trajectory_generators import generate_pendulum

# ============================================================================
# CONFIGURATION
# ============================================================================
N_POINTS = 500
DT = 0.01
SEED = 3
IEKF_ITERATIONS = 5
JACOBIAN = JacobianConfig(formula='central')
SHOW_PLOTS = True
RESULTS_PATH = Path(__file__).parent / 'results' / 'custom_model'
# ============================================================================


def _run(filt, x0, cov0, measurements):
    estimates = [Estimate(x0, cov0)]
    x = x0
    for z in measurements[1:]:
        x = filt.run(x, None, z).val
        estimates.append(Estimate(x, filt.cov))
    return estimates


def run_custom_model_example():
    """Run EKF, IEKF and ERTS on the pendulum."""

    print("\n" + "="*60)
    print("Custom Model - Pendulum")
    print("="*60 + "\n")

    data = generate_pendulum(N=N_POINTS, dt=DT, seed=SEED)
    model = data['model']
    measurements = data['measurements']
    ground_truth = data['ground_truth']

    init_cond = InitCond([0.5, 0.0], np.diag([0.25, 0.25]))
    q = Gaussian([0.0, 0.0], np.eye(2) * 1e-6)
    r = Gaussian([0.0], [[0.05**2]])

    ekf = ExtendedKalmanFilter(model, init_cond, q, r, jacobian_config=JACOBIAN)
    iekf = IteratedExtendedKalmanFilter(model, init_cond, q, r, n=IEKF_ITERATIONS,
                                        jacobian_config=JACOBIAN)

    ekf_estimates = _run(ekf, init_cond.state, init_cond.cov, measurements)
    iekf_estimates = _run(iekf, init_cond.state, init_cond.cov, measurements)
    erts_estimates = ExtendedRTSSmoother(model, init_cond, q, JACOBIAN).smooth(ekf_estimates)

    for name, estimates in (("EKF", ekf_estimates), ("IEKF", iekf_estimates), ("ERTS", erts_estimates)):
        states, covs = stack_estimates(estimates)
        print(format_metrics(compute_all_metrics(states, ground_truth, covs), filter_name=name))

    RESULTS_PATH.mkdir(parents=True, exist_ok=True)
    fig, ax = plot_estimates(data['time'], ekf_estimates, ground_truth=ground_truth,
                             label='EKF', title='Pendulum angle')
    plot_estimates(data['time'], iekf_estimates, ax=ax, label='IEKF')
    plot_estimates(data['time'], erts_estimates, ax=ax, label='ERTS')
    fig.savefig(RESULTS_PATH / 'pendulum_angle.png', dpi=150, bbox_inches='tight')
    print(f"\nSaved figure to: {RESULTS_PATH}")

    if SHOW_PLOTS:
        plt.show()


if __name__ == "__main__":
    run_custom_model_example()
