import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from recursive_estimation import config
from recursive_estimation.estimate import InitCond
from recursive_estimation.models import Discrete
from recursive_estimation.noise import Gaussian


@pytest.fixture(autouse=True)
def _reseed():
    """Reseed the module-wide generator before every test.

    Filters and noise sources draw from the shared generator at call time,
    so every test starts from the same random stream regardless of order.
    """
    config.set_seed(1234)


@pytest.fixture
def ball():
    """Falling ball: position/velocity state, acceleration input, position output."""
    A = np.array([[1.0, 1.0], [0.0, 1.0]])
    B = np.array([[0.5], [1.0]])
    C = np.array([[1.0, 0.0]])
    D = np.array([[0.0]])
    return Discrete(A, B, C, D)


@pytest.fixture
def ball_init():
    return InitCond([1.0, 3.0], np.eye(2) * 0.25)


@pytest.fixture
def ball_q():
    return Gaussian([0.0, 0.0], np.eye(2) * 0.25)


@pytest.fixture
def ball_r():
    return Gaussian([0.0], [[0.25]])


@pytest.fixture
def ball_step():
    """State, input and measurement of a single filter step."""
    return np.array([1.0, 1.0]), np.array([-1.0]), np.array([-1.5])
