# analysis/classification.py
"""Three-level classification of the loadings from the p_star chain."""

import logging
from enum import Enum
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from .chain_summary import ChainSummarizer, NumpyroChainSummarizer

logger = logging.getLogger(__name__)

CALL_THRESHOLD = 0.5


class LoadingCall(str, Enum):
    """Posterior call of one loading entry."""

    PRESENT = "present"
    MARGINAL = "marginal"
    ABSENT = "absent"


CALL_ORDER = [call.value for call in LoadingCall]


def factor_labels(K: int) -> list:
    return [f"F{k + 1}" for k in range(K)]


def loading_index(variable_names: Sequence, K: int) -> pd.MultiIndex:
    """(variable, factor) index in row-major order of an n x K matrix."""
    return pd.MultiIndex.from_product(
        [list(variable_names), factor_labels(K)], names=["variable", "factor"]
    )


def classify_interval(lower, upper) -> np.ndarray:
    """Apply the decision rule elementwise.

    present if the whole interval lies above 0.5, absent if it lies below,
    marginal when it contains 0.5.
    """
    lower = np.asarray(lower, dtype=float)
    upper = np.asarray(upper, dtype=float)
    return np.where(
        lower > CALL_THRESHOLD,
        LoadingCall.PRESENT.value,
        np.where(upper < CALL_THRESHOLD, LoadingCall.ABSENT.value, LoadingCall.MARGINAL.value),
    )


def classify_loadings(
    p_star_chain: np.ndarray,
    summarizer: Optional[ChainSummarizer] = None,
    variable_names: Optional[Sequence] = None,
) -> pd.DataFrame:
    """
    Classify every loading entry from its post burn-in p_star draws.

    Parameters
    ----------
    p_star_chain : np.ndarray
        Post burn-in (thinned) chain, shape (S, n_variables, K)
    summarizer : ChainSummarizer, optional
        Provides the HPD interval; defaults to NumpyroChainSummarizer(0.95)
    variable_names : sequence, optional
        Labels of the variables; defaults to 0..n-1

    Returns
    -------
    pd.DataFrame
        Indexed by (variable, factor), columns ``mean, hpd_lower, hpd_upper, call``
    """
    p_star_chain = np.asarray(p_star_chain, dtype=float)
    if p_star_chain.ndim != 3 or p_star_chain.shape[0] == 0:
        raise ValueError(
            f"p_star chain must have shape (S, n_variables, K) with S >= 1, got {p_star_chain.shape}"
        )
    summarizer = summarizer if summarizer is not None else NumpyroChainSummarizer()

    _, n, K = p_star_chain.shape
    if variable_names is None:
        variable_names = range(n)

    mean = p_star_chain.mean(axis=0)
    lower, upper = summarizer.hpd_interval(p_star_chain)
    calls = classify_interval(lower, upper)

    table = pd.DataFrame(
        {
            "mean": mean.ravel(),
            "hpd_lower": np.asarray(lower).ravel(),
            "hpd_upper": np.asarray(upper).ravel(),
            "call": pd.Categorical(calls.ravel(), categories=CALL_ORDER),
        },
        index=loading_index(variable_names, K),
    )

    counts = table["call"].value_counts()
    logger.info(
        "Loading classification: "
        + ", ".join(f"{call}={int(counts.get(call, 0))}" for call in CALL_ORDER)
    )
    return table
