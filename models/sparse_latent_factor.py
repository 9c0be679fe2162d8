# models/sparse_latent_factor.py
"""Gibbs sampler for the Bayesian sparse latent factor model.

Model (variables in rows, samples in columns):

    X[i, j] = sum_k alpha[i, k] * lambda[k, j] + eps[i, j],  eps ~ N(0, sigma2[i])

with sigma2[i] ~ InvGamma(a, b), lambda[k, j] ~ N(0, 1), q[k] ~ Beta(gamma_a, gamma_b),
z[i, k] ~ Bernoulli(q[k]) and alpha[i, k] drawn from the slab N(0, omega_1) when
z = 1 and from the spike otherwise. The spike is a point mass at zero for the
degenerate mixture or N(0, omega_0) for the normal-normal mixture.

References:
- Duarte, J. D. N. and Mayrink, V. D. (2015). Factor analysis with mixture
  modeling to evaluate coherent patterns in microarray data. Interdisciplinary
  Bayesian Statistics, Springer Proceedings in Mathematics & Statistics 118.
- Lopes, H. F. and West, M. (2004). Bayesian model assessment in factor
  analysis. Statistica Sinica 14, 41-67.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.linalg import LinAlgError, cho_solve, cholesky, solve_triangular
from scipy.special import expit, logit

from core.config_schema import SLFMConfig
from core.error_handling import NumericalInstabilityError, SamplingCancelledError
from core.pca_initialization import compute_pca_initialization, rotate_to_reference_structure
from core.validation_utils import validate_data_matrix

from .base import MixtureComponent
from .chain_store import ChainStore
from .components import NormalComponent
from .factory import ComponentFactory

logger = logging.getLogger(__name__)

SIGMA2_FLOOR = 1e-10


@dataclass
class SamplerState:
    """Current values of every parameter between two Gibbs sweeps."""

    alpha: np.ndarray  # (n, K)
    lam: np.ndarray  # (K, p)
    sigma2: np.ndarray  # (n,)
    z: np.ndarray  # (n, K) int8
    q: np.ndarray  # (K,)
    z_count: np.ndarray  # (n, K) int64, number of iterations with z == 1

    def p_star(self, iteration: int) -> np.ndarray:
        """Running mean of z over iterations 1..iteration."""
        return self.z_count / iteration


class SparseLatentFactorSampler:
    """Gibbs sampler shared by the degenerate and normal-normal variants.

    Identifiability: the top K x K block of alpha is kept lower-triangular
    with a strictly positive diagonal. Entries above the diagonal are fixed
    at zero with z = 0, diagonal entries always belong to the slab (z = 1) and
    are drawn from the slab conditional truncated to (0, inf). Neither kind
    enters the update of q.
    """

    def __init__(
        self,
        config: SLFMConfig,
        slab: Optional[NormalComponent] = None,
        spike: Optional[MixtureComponent] = None,
        progress_interval: int = 250,
    ):
        self.config = config.validate_or_raise()
        self.K = config.factors
        default_slab, default_spike = ComponentFactory.create_components(config)
        self.slab = slab if slab is not None else default_slab
        self.spike = spike if spike is not None else default_spike
        self.progress_interval = progress_interval

    def get_model_name(self) -> str:
        spike = "MDN" if self.config.degenerate else "MNN"
        return f"SLFM_{spike}_K{self.K}"

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------
    def run(
        self,
        X: np.ndarray,
        rng: Optional[np.random.Generator] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> ChainStore:
        """Run ``sample + burnin`` Gibbs sweeps and return the frozen chains.

        Parameters
        ----------
        X : np.ndarray
            Data matrix, shape (n_variables, n_samples)
        rng : np.random.Generator, optional
            Random generator; defaults to ``default_rng(config.seed)``
        stop_event : threading.Event, optional
            Checked between iterations; when set, sampling stops with
            SamplingCancelledError and no chain is returned

        Raises
        ------
        DataValidationError
            If X is incompatible with the number of factors
        NumericalInstabilityError
            If a conditional draw cannot be computed
        """
        X = np.array(X, dtype=float, copy=True)
        validate_data_matrix(X, self.K)
        X.flags.writeable = False

        if rng is None:
            rng = np.random.default_rng(self.config.seed)

        n, p = X.shape
        ite = self.config.ite
        logger.info(
            f"Running {self.get_model_name()} on {n} variables x {p} samples "
            f"({self.config.burnin} burn-in + {self.config.sample} sampling iterations, "
            f"spike={self.spike.get_component_name()})"
        )

        state = self.initialize(X, rng)
        store = ChainStore.allocate(ite, n, p, self.K)

        start = time.time()
        for t in range(ite):
            if stop_event is not None and stop_event.is_set():
                logger.warning(f"Sampling cancelled after {t} iterations")
                raise SamplingCancelledError(t)

            iteration = t + 1
            self.sweep(X, state, rng, iteration)
            store.record(
                t, state.alpha, state.lam, state.sigma2, state.z, state.q, state.p_star(iteration)
            )

            if iteration % self.progress_interval == 0 or iteration == ite:
                phase = "burn-in" if iteration <= self.config.burnin else "sampling"
                logger.info(f"Iteration {iteration}/{ite} ({phase}), {time.time() - start:.1f}s elapsed")

        store.freeze()
        logger.info(f"Sampling finished in {time.time() - start:.1f}s")
        return store

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------
    def initialize(self, X: np.ndarray, rng: np.random.Generator) -> SamplerState:
        """Starting values that already satisfy the identifiability structure."""
        n, p = X.shape
        K = self.K
        cfg = self.config

        if cfg.init == "pca":
            init = compute_pca_initialization(X, K)
            alpha, lam, sigma2 = init["alpha"], init["lambda"], init["sigma2"]
        else:
            alpha, lam = rotate_to_reference_structure(
                rng.standard_normal((n, K)), rng.standard_normal((K, p))
            )
            prior_mean = cfg.b / (cfg.a - 1.0) if cfg.a > 1.0 else cfg.b
            sigma2 = np.full(n, prior_mean)

        z = np.zeros((n, K), dtype=np.int8)
        z[np.arange(K), np.arange(K)] = 1
        q = np.full(K, cfg.gamma_a / (cfg.gamma_a + cfg.gamma_b))

        return SamplerState(
            alpha=np.array(alpha, dtype=float),
            lam=np.array(lam, dtype=float),
            sigma2=np.array(sigma2, dtype=float),
            z=z,
            q=q,
            z_count=np.zeros((n, K), dtype=np.int64),
        )

    # ------------------------------------------------------------------
    # One Gibbs sweep
    # ------------------------------------------------------------------
    def sweep(self, X: np.ndarray, state: SamplerState, rng: np.random.Generator, iteration: int) -> None:
        """Update lambda, (z, alpha), q, sigma2 and the z counts, in that order."""
        self._update_lambda(X, state, rng, iteration)
        self._update_loadings(X, state, rng, iteration)
        self._update_q(state, rng)
        self._update_sigma2(X, state, rng, iteration)
        state.z_count += state.z

    def _update_lambda(self, X, state, rng, iteration):
        """Draw every column of lambda from its multivariate-normal conditional."""
        K = self.K
        weighted = state.alpha / state.sigma2[:, None]  # (n, K)
        precision = state.alpha.T @ weighted + np.eye(K)

        if not np.all(np.isfinite(precision)):
            raise NumericalInstabilityError(
                "non-finite posterior precision", iteration=iteration, quantity="lambda"
            )
        try:
            chol = cholesky(precision, lower=True)
        except LinAlgError as e:
            raise NumericalInstabilityError(
                f"posterior precision is not positive definite ({e})",
                iteration=iteration,
                quantity="lambda",
            ) from e

        mean = cho_solve((chol, True), weighted.T @ X)  # (K, p)
        noise = rng.standard_normal(mean.shape)
        # L^T x = eps gives x ~ N(0, (L L^T)^-1)
        lam = mean + solve_triangular(chol, noise, lower=True, trans="T")

        if not np.all(np.isfinite(lam)):
            raise NumericalInstabilityError(
                "non-finite factor scores", iteration=iteration, quantity="lambda"
            )
        state.lam = lam

    def _update_loadings(self, X, state, rng, iteration):
        """Draw z and alpha jointly, one factor at a time, all variables at once."""
        n = X.shape[0]
        alpha, lam, z = state.alpha, state.lam, state.z
        precision_i = 1.0 / state.sigma2
        residual = X - alpha @ lam

        for k in range(self.K):
            lam_k = lam[k]
            c = precision_i * (lam_k @ lam_k)
            # Residual with factor k's own contribution added back
            d = precision_i * (residual @ lam_k) + c * alpha[:, k]
            if not (np.all(np.isfinite(c)) and np.all(np.isfinite(d))):
                raise NumericalInstabilityError(
                    f"non-finite loading likelihood for factor {k}",
                    iteration=iteration,
                    quantity="alpha",
                )

            new_alpha = np.zeros(n)
            new_z = np.zeros(n, dtype=np.int8)

            new_alpha[k] = self.slab.draw_positive(c[k], d[k], rng)
            new_z[k] = 1

            free = slice(k + 1, n)
            c_free, d_free = c[free], d[free]
            log_odds = (
                logit(state.q[k])
                + self.slab.log_marginal(c_free, d_free)
                - self.spike.log_marginal(c_free, d_free)
            )
            if np.any(np.isnan(log_odds)):
                raise NumericalInstabilityError(
                    f"undefined inclusion log-odds for factor {k}",
                    iteration=iteration,
                    quantity="z",
                )

            in_slab = rng.random(c_free.shape) < expit(log_odds)
            slab_draw = self.slab.draw(c_free, d_free, rng)
            spike_draw = self.spike.draw(c_free, d_free, rng)
            new_alpha[free] = np.where(in_slab, slab_draw, spike_draw)
            new_z[free] = in_slab

            if not np.all(np.isfinite(new_alpha)):
                raise NumericalInstabilityError(
                    f"non-finite loadings for factor {k}", iteration=iteration, quantity="alpha"
                )

            residual -= np.outer(new_alpha - alpha[:, k], lam_k)
            alpha[:, k] = new_alpha
            z[:, k] = new_z

    def _update_q(self, state, rng):
        """Beta posterior of q[k] over the free entries (rows below the diagonal)."""
        n = state.z.shape[0]
        cfg = self.config
        for k in range(self.K):
            included = int(state.z[k + 1:, k].sum())
            excluded = (n - k - 1) - included
            state.q[k] = rng.beta(cfg.gamma_a + included, cfg.gamma_b + excluded)

    def _update_sigma2(self, X, state, rng, iteration):
        """InverseGamma posterior of each residual variance, floored on underflow."""
        cfg = self.config
        p = X.shape[1]
        residual = X - state.alpha @ state.lam
        shape = cfg.a + 0.5 * p
        scale = cfg.b + 0.5 * np.sum(residual**2, axis=1)

        sigma2 = scale / rng.gamma(shape, size=scale.shape)

        if not np.all(np.isfinite(sigma2)):
            raise NumericalInstabilityError(
                "non-finite residual variance", iteration=iteration, quantity="sigma2"
            )
        underflow = sigma2 < SIGMA2_FLOOR
        if np.any(underflow):
            logger.debug(
                f"Iteration {iteration}: clamping {int(underflow.sum())} residual variances to {SIGMA2_FLOOR}"
            )
            sigma2[underflow] = SIGMA2_FLOOR
        state.sigma2 = sigma2
