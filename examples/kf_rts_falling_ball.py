"""
Kalman Filter and RTS Smoother Example

Tracks a falling ball from noisy altitude measurements with the linear
Kalman filter, then smooths the whole run backward with the RTS smoother.
"""

import numpy as np
import matplotlib.pyplot as plt
import sys
import os
import time
from pathlib import Path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from recursive_estimation import Estimate, InitCond, Gaussian, KalmanFilter, RTSSmoother, config
from recursive_estimation.metrics import compute_all_metrics, format_metrics, stack_estimates
from recursive_estimation.visualization import plot_estimates

from trajectory_generators import generate_falling_ball

# ============================================================================
# CONFIGURATION
# ============================================================================
N_POINTS = 200
DT = 0.1
SEED = 42
SHOW_PLOTS = True
RESULTS_PATH = Path(__file__).parent / 'results' / 'kf_rts'
# ============================================================================


def run_kf_rts_example():
    """Run the KF forward, smooth with RTS and compare both."""

    print("\n" + "="*60)
    print("Kalman Filter + RTS Smoother - Falling Ball")
    print("="*60 + "\n")

    config.set_seed(SEED)
    data = generate_falling_ball(N=N_POINTS, dt=DT, seed=SEED)
    model = data['model']
    controls = data['controls']
    measurements = data['measurements']
    ground_truth = data['ground_truth']
    N = len(data['time'])

    init_cond = InitCond([1995.0, 0.0], np.diag([25.0, 4.0]))
    q = Gaussian([0.0, 0.0], np.diag([1e-6, 0.05**2]))
    r = Gaussian([0.0], [[2.0**2]])

    kf = KalmanFilter(model, init_cond, q, r)

    estimates = [Estimate(init_cond.state, init_cond.cov)]
    x = init_cond.state
    times = []
    for k in range(N - 1):
        t_start = time.perf_counter()
        x = kf.run(x, controls[k], measurements[k + 1]).val
        times.append((time.perf_counter() - t_start) * 1000)
        estimates.append(Estimate(x, kf.cov))

    print(f"KF Average Time: {np.mean(times):.4f} ms/iteration")

    rts = RTSSmoother(model, init_cond, q)
    smoothed = rts.smooth(estimates, controls)

    kf_states, kf_covs = stack_estimates(estimates)
    rts_states, rts_covs = stack_estimates(smoothed)

    print(format_metrics(compute_all_metrics(kf_states, ground_truth, kf_covs), filter_name="KF"))
    print(format_metrics(compute_all_metrics(rts_states, ground_truth, rts_covs), filter_name="RTS"))

    RESULTS_PATH.mkdir(parents=True, exist_ok=True)
    fig, axes = plt.subplots(2, 1, figsize=(10, 8), sharex=True)
    for component, ax in enumerate(axes):
        plot_estimates(data['time'], estimates, ground_truth=ground_truth,
                       measurements=measurements[:, 0] if component == 0 else None,
                       component=component, ax=ax, label='KF')
        plot_estimates(data['time'], smoothed, component=component, ax=ax, label='RTS')
    axes[0].set_title('Falling ball: filtered vs smoothed', fontsize=14)
    fig.savefig(RESULTS_PATH / 'kf_rts_states.png', dpi=150, bbox_inches='tight')
    print(f"\nSaved figure to: {RESULTS_PATH}")

    if SHOW_PLOTS:
        plt.show()


if __name__ == "__main__":
    run_kf_rts_example()
