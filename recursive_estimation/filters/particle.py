"""
Bootstrap Particle Filter (BF) implementation.

Sequential importance resampling filter whose proposal is the model's own
state transition: particles are propagated through the model with
independent process noise, weighted by the likelihood of the measurement
innovation and resampled with kernel regularization.
"""

import logging

import numpy as np

from .. import config
from ..common import linalg
from ..common.sampling import with_cov_n, roulette_draw_n
from ..estimate import Estimate
from ..noise import ZeroNoise
from .base import Filter

logger = logging.getLogger(__name__)


def alpha_gauss(r, c):
    """
    Optimal regularization bandwidth for a Gaussian kernel.

        alpha = (4 / (c (r + 2)))^(1 / (r + 4))

    Parameters
    ----------
    r : int
        State dimension
    c : int
        Number of particles
    """
    return (4.0 / (c * (r + 2.0))) ** (1.0 / (r + 4.0))


def _log_prob(err_pdf):
    if hasattr(err_pdf, 'logpdf'):
        return err_pdf.logpdf
    if callable(err_pdf):
        return err_pdf
    raise ValueError(f"invalid output error log density: {err_pdf!r}")


class BootstrapFilter(Filter):
    """
    Bootstrap particle filter.

    Parameters
    ----------
    model : Model
        System model
    init_cond : InitCond
        Initial state and covariance the particles are drawn from
    state_noise : Noise, optional
        Process noise, sampled once per particle. Defaults to zero noise.
    output_noise : Noise, optional
        Measurement noise, sampled once per particle. Defaults to zero noise.
    n_particles : int
        Number of particles
    err_pdf : callable or object with ``logpdf``
        Log density of the output error ``z - y``, e.g. a frozen
        ``scipy.stats.multivariate_normal``
    rng : numpy.random.Generator, optional
        Random source for particle initialization and resampling. Defaults
        to the module-wide generator.

    Raises
    ------
    ValueError
        If ``n_particles`` is not positive, the model dimensions are invalid,
        a noise size does not match or ``err_pdf`` is not usable.

    Examples
    --------
    >>> pdf = multivariate_normal(mean=np.zeros(1), cov=np.eye(1) * 0.25)
    >>> bf = BootstrapFilter(model, InitCond(x0, P0), q, r, n_particles=500, err_pdf=pdf)
    >>> est = bf.run(x, u, z)
    >>> bf.resample(0.0)
    """

    default_noise = staticmethod(ZeroNoise)

    def __init__(self, model, init_cond, state_noise=None, output_noise=None,
                 n_particles=100, err_pdf=None, rng=None):
        if n_particles <= 0:
            raise ValueError(f"invalid particle count: {n_particles}")
        super().__init__(model, init_cond, state_noise, output_noise)

        self._log_prob = _log_prob(err_pdf)
        self._rng = rng
        self._n = int(n_particles)

        self._w = np.full(self._n, 1.0 / self._n)
        try:
            x = with_cov_n(init_cond.cov, self._n, config.resolve_rng(rng))
        except np.linalg.LinAlgError as err:
            raise np.linalg.LinAlgError(f"failed to generate filter particles: {err}") from err
        self._x = x + init_cond.state[:, None]
        self._y = np.zeros((self._ny, self._n))

        logger.debug("BF created: nx=%d, ny=%d, particles=%d", self._nx, self._ny, self._n)

    @property
    def particles(self):
        """Copy of the particles stored in columns (nx, n_particles)."""
        return self._x.copy()

    @property
    def weights(self):
        """Copy of the particle weights (n_particles,)."""
        return self._w.copy()

    @property
    def outputs(self):
        """Copy of the particle outputs of the last update (ny, n_particles)."""
        return self._y.copy()

    def effective_sample_size(self):
        """
        Effective sample size ``1 / sum(w^2)``.

        Ranges from 1 (a single particle carries all the weight) to the
        number of particles (uniform weights).
        """
        return 1.0 / np.sum(self._w**2)

    def _weighted_cov(self, mean):
        dev = self._x - mean[:, None]
        return linalg.symmetrize((dev * self._w) @ dev.T)

    def predict(self, x, u=None):
        """
        Propagate ``x`` and every particle one step.

        Each particle receives its own process noise sample.

        Returns
        -------
        Estimate
            Propagated ``x`` with the weighted covariance of the propagated
            particles
        """
        x = self._check_state(x)
        u = self._check_input(u)

        x_next = self._propagate(x, u, self._q.sample())

        x_pred = np.zeros_like(self._x)
        for c in range(self._n):
            x_pred[:, c] = self._propagate(self._x[:, c], u, self._q.sample(), stage='particle state')

        self._x = x_pred

        return Estimate(x_next, self._weighted_cov(x_next))

    def update(self, x, u, z):
        """
        Weight the particles by the likelihood of measurement ``z``.

        Each weight is multiplied by ``exp(logpdf(z - y_i))`` where ``y_i`` is
        the particle output, then the weights are normalized. If every weight
        vanishes they are reset to uniform.

        Returns
        -------
        Estimate
            Weighted particle mean and covariance
        """
        self._check_state(x)
        u = self._check_input(u)
        z = self._check_measurement(z)

        y_pred = np.zeros_like(self._y)
        for c in range(self._n):
            y_pred[:, c] = self._observe(self._x[:, c], u, self._r.sample(), stage='particle state')

        log_lik = np.array([float(self._log_prob(z - y_pred[:, c])) for c in range(self._n)])

        with np.errstate(divide='ignore'):
            log_w = np.log(self._w) + log_lik
        top = np.max(log_w)
        if not np.isfinite(top):
            logger.warning("all particle weights vanished, resetting to uniform")
            self._w = np.full(self._n, 1.0 / self._n)
        else:
            w = np.exp(log_w - top)
            self._w = w / np.sum(w)

        self._y = y_pred

        x_est = self._x @ self._w
        return Estimate(x_est, self._weighted_cov(x_est))

    def resample(self, alpha=0.0):
        """
        Resample the particles and regularize the new set.

        Particles are drawn with replacement proportionally to their weights
        (roulette wheel) and the weights reset to uniform. The new set is
        then perturbed with Gaussian noise of the resampled particle
        covariance scaled by ``alpha``.

        Parameters
        ----------
        alpha : float, optional
            Regularization bandwidth. Values ``<= 0`` select
            :func:`alpha_gauss`.

        Raises
        ------
        numpy.linalg.LinAlgError
            If the perturbation covariance cannot be factorized.
        """
        rng = config.resolve_rng(self._rng)
        logger.debug("resampling %d particles, effective sample size %.1f",
                     self._n, self.effective_sample_size())

        indices = roulette_draw_n(self._w, self._n, rng)
        self._x = self._x[:, indices].copy()
        self._w = np.full(self._n, 1.0 / self._n)

        cov = linalg.cov(self._x, 'cols')
        try:
            m = with_cov_n(cov, self._n, rng)
        except np.linalg.LinAlgError as err:
            raise np.linalg.LinAlgError(f"failed to draw random particle perturbations: {err}") from err

        if alpha <= 0:
            alpha = alpha_gauss(self._nx, self._n)

        self._x += alpha * m
