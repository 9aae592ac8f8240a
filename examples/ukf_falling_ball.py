"""
Unscented Kalman Filter Example

Tracks the falling ball with the UKF. Process and measurement noise are
part of the augmented sigma points, so the filter never draws random
samples and its result is reproducible.
"""

import numpy as np
import matplotlib.pyplot as plt
import sys
import os
from pathlib import Path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from recursive_estimation import Estimate, InitCond, Gaussian, UnscentedKalmanFilter, UKFConfig
from recursive_estimation.metrics import compute_all_metrics, format_metrics, stack_estimates
from recursive_estimation.visualization import plot_estimates, plot_covariance_ellipse

from trajectory_generators import generate_falling_ball

# ============================================================================
# CONFIGURATION
# ============================================================================
N_POINTS = 200
DT = 0.1
SEED = 42
UKF_CONFIG = UKFConfig(alpha=1.0, beta=2.0, kappa=0.0)
SHOW_PLOTS = True
RESULTS_PATH = Path(__file__).parent / 'results' / 'ukf'
# ============================================================================


def run_ukf_example():
    """Run the UKF on simulated falling ball data."""

    print("\n" + "="*60)
    print("Unscented Kalman Filter - Falling Ball")
    print("="*60 + "\n")

    data = generate_falling_ball(N=N_POINTS, dt=DT, seed=SEED)
    model = data['model']
    controls = data['controls']
    measurements = data['measurements']
    ground_truth = data['ground_truth']
    N = len(data['time'])

    init_cond = InitCond([1995.0, 0.0], np.diag([25.0, 4.0]))
    q = Gaussian([0.0, 0.0], np.diag([1e-6, 0.05**2]))
    r = Gaussian([0.0], [[2.0**2]])

    ukf = UnscentedKalmanFilter(model, init_cond, q, r, UKF_CONFIG)
    print(f"Augmented sigma points: {ukf.sigma_points.shape}")

    estimates = [Estimate(init_cond.state, init_cond.cov)]
    x = init_cond.state
    for k in range(N - 1):
        x = ukf.run(x, controls[k], measurements[k + 1]).val
        estimates.append(Estimate(x, ukf.cov))

    states, covs = stack_estimates(estimates)
    print(format_metrics(compute_all_metrics(states, ground_truth, covs), filter_name="UKF"))

    RESULTS_PATH.mkdir(parents=True, exist_ok=True)
    fig, axes = plt.subplots(1, 2, figsize=(14, 6))
    plot_estimates(data['time'], estimates, ground_truth=ground_truth,
                   measurements=measurements[:, 0], ax=axes[0], label='UKF',
                   title='Position')

    axes[1].plot(ground_truth[:, 0], ground_truth[:, 1], 'k--', alpha=0.6, label='Ground Truth')
    axes[1].plot(states[:, 0], states[:, 1], alpha=0.8, label='UKF')
    for k in range(0, N, 20):
        plot_covariance_ellipse(states[k], covs[k], n_std=2.0, ax=axes[1], color='tab:blue', alpha=0.5)
    axes[1].set_xlabel('Position', fontsize=12)
    axes[1].set_ylabel('Velocity', fontsize=12)
    axes[1].set_title('Phase plane with 2-sigma ellipses', fontsize=14)
    axes[1].legend(fontsize=10)
    axes[1].grid(True, alpha=0.3)

    fig.savefig(RESULTS_PATH / 'ukf_states.png', dpi=150, bbox_inches='tight')
    print(f"\nSaved figure to: {RESULTS_PATH}")

    if SHOW_PLOTS:
        plt.show()


if __name__ == "__main__":
    run_ukf_example()
