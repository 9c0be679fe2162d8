# models/chain_store.py
"""Pre-allocated storage for the per-iteration MCMC chains."""

import logging
from dataclasses import dataclass
from typing import Dict

import numpy as np

logger = logging.getLogger(__name__)

CHAIN_NAMES = ("alpha", "lambda", "sigma2", "z", "q", "p_star")


@dataclass
class ChainStore:
    """One row per MCMC iteration for every tracked quantity.

    Attributes:
        alpha: Loadings, shape (ite, n_variables, K)
        lambda_: Factor scores, shape (ite, K, n_samples)
        sigma2: Residual variances, shape (ite, n_variables)
        z: Inclusion indicators, shape (ite, n_variables, K), int8
        q: Inclusion probabilities, shape (ite, K)
        p_star: Running mean of z, shape (ite, n_variables, K)
    """

    alpha: np.ndarray
    lambda_: np.ndarray
    sigma2: np.ndarray
    z: np.ndarray
    q: np.ndarray
    p_star: np.ndarray
    n_recorded: int = 0
    frozen: bool = False

    @classmethod
    def allocate(cls, ite: int, n_variables: int, n_samples: int, K: int) -> "ChainStore":
        """Allocate every chain with exactly ``ite`` rows."""
        size_mb = (ite * (3 * n_variables * K + K * n_samples + n_variables + K) * 8) / 1024**2
        logger.debug(f"Allocating chains for {ite} iterations (~{size_mb:.1f}MB)")
        return cls(
            alpha=np.zeros((ite, n_variables, K)),
            lambda_=np.zeros((ite, K, n_samples)),
            sigma2=np.zeros((ite, n_variables)),
            z=np.zeros((ite, n_variables, K), dtype=np.int8),
            q=np.zeros((ite, K)),
            p_star=np.zeros((ite, n_variables, K)),
        )

    @property
    def ite(self) -> int:
        return self.alpha.shape[0]

    def record(
        self,
        t: int,
        alpha: np.ndarray,
        lam: np.ndarray,
        sigma2: np.ndarray,
        z: np.ndarray,
        q: np.ndarray,
        p_star: np.ndarray,
    ) -> None:
        """Write the state of iteration ``t`` (0-based) into row ``t``."""
        if self.frozen:
            raise RuntimeError("Chain store is frozen; sampling has finished")
        if t != self.n_recorded:
            raise RuntimeError(f"Iterations must be recorded in order: expected {self.n_recorded}, got {t}")

        self.alpha[t] = alpha
        self.lambda_[t] = lam
        self.sigma2[t] = sigma2
        self.z[t] = z
        self.q[t] = q
        self.p_star[t] = p_star
        self.n_recorded += 1

    def freeze(self) -> "ChainStore":
        """Mark every chain read-only once all iterations are recorded."""
        if self.n_recorded != self.ite:
            raise RuntimeError(
                f"Cannot freeze a partial chain: {self.n_recorded}/{self.ite} iterations recorded"
            )
        for name in CHAIN_NAMES:
            self.get(name).flags.writeable = False
        self.frozen = True
        return self

    def get(self, name: str) -> np.ndarray:
        """Chain by name ('lambda' maps to the ``lambda_`` attribute)."""
        if name not in CHAIN_NAMES:
            raise KeyError(f"Unknown chain '{name}'. Available: {list(CHAIN_NAMES)}")
        return getattr(self, "lambda_" if name == "lambda" else name)

    def after_burnin(self, rows: slice) -> Dict[str, np.ndarray]:
        """Read-only views of the ``rows`` of every chain, e.g. ``SLFMConfig.thin_slice``."""
        start = 0 if rows.start is None else rows.start
        step = 1 if rows.step is None else rows.step
        if not 0 <= start < self.ite:
            raise ValueError(f"burnin must be in [0, {self.ite}), got {start}")
        if step < 1:
            raise ValueError(f"lag must be >= 1, got {step}")

        views = {}
        for name in CHAIN_NAMES:
            view = self.get(name)[rows]
            view.flags.writeable = False
            views[name] = view
        return views
