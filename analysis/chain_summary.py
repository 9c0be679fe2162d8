# analysis/chain_summary.py
"""Summary statistics and HPD intervals of MCMC chains.

The classifier and the summary tables only depend on the small
``ChainSummarizer`` protocol; the default implementation delegates the
interval search to ``numpyro.diagnostics.hpdi``.
"""

import logging
from typing import Optional, Protocol, Sequence, Tuple

import numpy as np
import pandas as pd
from numpyro.diagnostics import hpdi

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = ["mean", "sd", "naive_se", "hpd_lower", "hpd_upper"]


class ChainSummarizer(Protocol):
    """Turns draws of one or more parameters into summary statistics.

    ``draws`` always has the draw axis first, shape (S, ...).
    """

    prob: float

    def hpd_interval(self, draws: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        ...

    def summarize(self, draws: np.ndarray, index: Optional[Sequence] = None) -> pd.DataFrame:
        ...


class NumpyroChainSummarizer:
    """Default summarizer built on numpyro's shortest-interval HPD search."""

    def __init__(self, prob: float = 0.95):
        if not 0 < prob < 1:
            raise ValueError(f"prob must be between 0 and 1 (exclusive), got {prob}")
        self.prob = prob

    def hpd_interval(self, draws: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Lower and upper HPD bounds per parameter.

        Parameters
        ----------
        draws : np.ndarray
            Draws, shape (S, ...) with S >= 1

        Returns
        -------
        Tuple[np.ndarray, np.ndarray]
            Bounds, each of shape ``draws.shape[1:]``
        """
        draws = np.asarray(draws, dtype=float)
        if draws.shape[0] == 0:
            raise ValueError("Cannot compute an HPD interval from zero draws")
        bounds = np.asarray(hpdi(draws, prob=self.prob, axis=0))
        return bounds[0], bounds[1]

    def summarize(self, draws: np.ndarray, index: Optional[Sequence] = None) -> pd.DataFrame:
        """Mean, sd, naive standard error and HPD bounds, one row per parameter.

        Parameters
        ----------
        draws : np.ndarray
            Draws, shape (S,) for one parameter or (S, m) for m parameters
        index : sequence, optional
            Row labels, length m

        Returns
        -------
        pd.DataFrame
            Columns ``mean, sd, naive_se, hpd_lower, hpd_upper`` in the
            nullable Float64 dtype; sd and naive_se are NA when S < 2
        """
        draws = np.asarray(draws, dtype=float)
        if draws.ndim == 1:
            draws = draws[:, None]
        n_draws = draws.shape[0]

        lower, upper = self.hpd_interval(draws)
        table = pd.DataFrame(
            {
                "mean": draws.mean(axis=0),
                "sd": np.zeros(draws.shape[1]),
                "naive_se": np.zeros(draws.shape[1]),
                "hpd_lower": lower,
                "hpd_upper": upper,
            },
            index=index,
        ).astype("Float64")

        if n_draws > 1:
            sd = draws.std(axis=0, ddof=1)
            table["sd"] = pd.array(sd, dtype="Float64")
            table["naive_se"] = pd.array(sd / np.sqrt(n_draws), dtype="Float64")
        else:
            table["sd"] = pd.NA
            table["naive_se"] = pd.NA
            table = table.astype("Float64")

        return table
