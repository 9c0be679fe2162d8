# models/base.py
"""Base interface for the mixture components of the spike-and-slab prior."""

from abc import ABC, abstractmethod

import numpy as np


class MixtureComponent(ABC):
    """Abstract base class for one component of the loading prior.

    The sampler integrates a loading alpha out of its Gaussian likelihood,
    which for a given variable and factor reduces to

        exp(-0.5 * c * alpha**2 + d * alpha)

    with ``c = sum_j lambda_j**2 / sigma2`` and ``d = sum_j lambda_j r_j / sigma2``.
    A component exposes the log marginal likelihood of that term under its
    prior (up to a constant shared by every component) and a draw from the
    resulting conditional posterior. Both work elementwise on arrays.
    """

    @abstractmethod
    def log_marginal(self, c: np.ndarray, d: np.ndarray) -> np.ndarray:
        """Log marginal likelihood of alpha under this component."""
        pass

    @abstractmethod
    def draw(self, c: np.ndarray, d: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        """Draw alpha from its conditional posterior under this component."""
        pass

    @abstractmethod
    def get_component_name(self) -> str:
        """Return component name for logging."""
        pass
