# models/components.py
"""Spike and slab components of the loading prior.

The slab is always a Normal(0, omega_1). The spike is either a point mass at
zero (degenerate mixture) or a tight Normal(0, omega_0) (normal-normal
mixture). Swapping the spike object is the only difference between the two
sampler variants.
"""

from typing import Tuple

import numpy as np
from scipy.stats import truncnorm

from .base import MixtureComponent


class NormalComponent(MixtureComponent):
    """Zero-mean Normal prior with fixed variance."""

    def __init__(self, variance: float):
        if not variance > 0:
            raise ValueError(f"Component variance must be positive, got {variance}")
        self.variance = float(variance)

    def posterior_params(self, c: np.ndarray, d: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Posterior mean and precision of alpha under this component."""
        precision = c + 1.0 / self.variance
        return d / precision, precision

    def log_marginal(self, c: np.ndarray, d: np.ndarray) -> np.ndarray:
        precision = c + 1.0 / self.variance
        return -0.5 * np.log1p(self.variance * c) + 0.5 * d**2 / precision

    def draw(self, c: np.ndarray, d: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        mean, precision = self.posterior_params(c, d)
        return mean + rng.standard_normal(np.shape(mean)) / np.sqrt(precision)

    def draw_positive(self, c: np.ndarray, d: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        """Draw alpha from the conditional posterior truncated to (0, inf)."""
        mean, precision = self.posterior_params(c, d)
        sd = 1.0 / np.sqrt(precision)
        return truncnorm.rvs(-mean / sd, np.inf, loc=mean, scale=sd, random_state=rng)

    def get_component_name(self) -> str:
        return f"Normal(0, {self.variance:g})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(variance={self.variance!r})"


class NormalSlab(NormalComponent):
    """Diffuse slab component, Normal(0, omega_1)."""

    def get_component_name(self) -> str:
        return f"NormalSlab(omega_1={self.variance:g})"


class NormalSpike(NormalComponent):
    """Tight spike component of the normal-normal mixture, Normal(0, omega_0)."""

    def get_component_name(self) -> str:
        return f"NormalSpike(omega_0={self.variance:g})"


class ZeroSpike(MixtureComponent):
    """Point mass at zero, the spike of the degenerate mixture."""

    def log_marginal(self, c: np.ndarray, d: np.ndarray) -> np.ndarray:
        return np.zeros(np.shape(c))

    def draw(self, c: np.ndarray, d: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        return np.zeros(np.shape(c))

    def get_component_name(self) -> str:
        return "ZeroSpike"

    def __repr__(self) -> str:
        return "ZeroSpike()"
