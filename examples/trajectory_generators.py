"""
Trajectory Generators for State Estimation Examples

Simulated data for the example scripts. All generators produce the same
output format:
    - time: array of timestamps
    - controls: array of control inputs
    - measurements: array of noisy measurements
    - ground_truth: array of true states
    - dt: time step
"""

import numpy as np
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from recursive_estimation.models import Discrete, NonlinearModel


def falling_ball_model(dt=0.1):
    """
    Falling ball with position / velocity state and acceleration input.

    State: x = [p, v], control: u = [a], measurement: z = [p].
    """
    A = np.array([[1.0, dt], [0.0, 1.0]])
    B = np.array([[0.5 * dt**2], [dt]])
    C = np.array([[1.0, 0.0]])
    D = np.array([[0.0]])
    return Discrete(A, B, C, D)


def generate_falling_ball(N=200, dt=0.1, x0=(2000.0, 0.0), g=-9.81,
                          process_std=0.05, measurement_std=2.0, seed=0):
    """
    Simulate a ball dropped from ``x0`` and measured by a noisy altimeter.

    Parameters
    ----------
    N : int, optional
        Number of samples (default: 200)
    dt : float, optional
        Time step in seconds (default: 0.1)
    x0 : tuple, optional
        Initial position and velocity
    g : float, optional
        Gravitational acceleration used as the control input
    process_std : float, optional
        Standard deviation of the velocity disturbance
    measurement_std : float, optional
        Standard deviation of the position measurement
    seed : int, optional
        Seed of the simulation noise

    Returns
    -------
    dict
        ``time`` (N,), ``controls`` (N, 1), ``measurements`` (N, 1),
        ``ground_truth`` (N, 2), ``dt`` and the ``model`` used
    """
    rng = np.random.default_rng(seed)
    model = falling_ball_model(dt)

    time = np.arange(N) * dt
    controls = np.full((N, 1), g)
    ground_truth = np.zeros((N, 2))
    measurements = np.zeros((N, 1))

    ground_truth[0] = x0
    measurements[0] = model.observe(ground_truth[0], controls[0], rng.normal(0.0, measurement_std, 1))
    for k in range(1, N):
        q = np.array([0.0, rng.normal(0.0, process_std)])
        ground_truth[k] = model.propagate(ground_truth[k - 1], controls[k - 1], q)
        measurements[k] = model.observe(ground_truth[k], controls[k], rng.normal(0.0, measurement_std, 1))

    return {
        'time': time,
        'controls': controls,
        'measurements': measurements,
        'ground_truth': ground_truth,
        'dt': dt,
        'model': model,
    }


def pendulum_model(dt=0.01, length=1.0, g=9.81):
    """
    Pendulum with angle / angular rate state, observed through the
    horizontal position of its bob.
    """
    def dynamics(x, u):
        return np.array([x[1], -g / length * np.sin(x[0])])

    def measurement(x, u):
        return np.array([length * np.sin(x[0])])

    return NonlinearModel.from_continuous(dynamics, measurement, dt, nx=2, ny=1, method='rk4')


def generate_pendulum(N=500, dt=0.01, x0=(1.0, 0.0), measurement_std=0.05, seed=0):
    """
    Simulate a swinging pendulum.

    Returns
    -------
    dict
        ``time`` (N,), ``controls`` (N, 0), ``measurements`` (N, 1),
        ``ground_truth`` (N, 2), ``dt`` and the ``model`` used
    """
    rng = np.random.default_rng(seed)
    model = pendulum_model(dt)

    ground_truth = np.zeros((N, 2))
    measurements = np.zeros((N, 1))
    ground_truth[0] = x0
    for k in range(N):
        if k > 0:
            ground_truth[k] = model.propagate(ground_truth[k - 1])
        measurements[k] = model.observe(ground_truth[k], None, rng.normal(0.0, measurement_std, 1))

    return {
        'time': np.arange(N) * dt,
        'controls': np.zeros((N, 0)),
        'measurements': measurements,
        'ground_truth': ground_truth,
        'dt': dt,
        'model': model,
    }
