# analysis/conditional_summary.py
"""Loading summaries restricted to the draws of the called component.

For a loading called present only the draws taken from the slab enter its
summary, for one called absent only the spike draws. A marginal loading
follows the side of its mean p_star.
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from .chain_summary import SUMMARY_COLUMNS, ChainSummarizer, NumpyroChainSummarizer
from .classification import CALL_THRESHOLD, LoadingCall

logger = logging.getLogger(__name__)

MEMBERSHIP_SOURCES = ("z", "p_star")
SLAB = "slab"
SPIKE = "spike"


def membership_from_chain(chain: np.ndarray, membership: str = "z") -> np.ndarray:
    """Per-draw slab membership, boolean array of the chain's shape."""
    if membership == "z":
        return np.asarray(chain) == 1
    if membership == "p_star":
        return np.asarray(chain) > CALL_THRESHOLD
    raise ValueError(f"membership must be one of {list(MEMBERSHIP_SOURCES)}, got '{membership}'")


def selected_components(classification: pd.DataFrame) -> np.ndarray:
    """'slab' or 'spike' per row of a classification table."""
    calls = classification["call"].astype(str).to_numpy()
    slab_side = classification["mean"].to_numpy(dtype=float) > CALL_THRESHOLD
    return np.where(
        calls == LoadingCall.PRESENT.value,
        SLAB,
        np.where(calls == LoadingCall.ABSENT.value, SPIKE, np.where(slab_side, SLAB, SPIKE)),
    )


def build_conditional_summary(
    alpha_chain: np.ndarray,
    membership_chain: np.ndarray,
    classification: pd.DataFrame,
    summarizer: Optional[ChainSummarizer] = None,
    membership: str = "z",
) -> pd.DataFrame:
    """
    Summarize each loading over the draws consistent with its call.

    Parameters
    ----------
    alpha_chain : np.ndarray
        Post burn-in loadings, shape (S, n_variables, K)
    membership_chain : np.ndarray
        Post burn-in z chain (membership='z') or p_star chain
        (membership='p_star'), same shape as alpha_chain
    classification : pd.DataFrame
        Output of ``classify_loadings`` for the same chain
    summarizer : ChainSummarizer, optional
        Defaults to NumpyroChainSummarizer(0.95)
    membership : str
        Source of the per-draw membership indicator

    Returns
    -------
    pd.DataFrame
        Indexed like ``classification`` with columns ``component, n_draws,
        mean, sd, naive_se, hpd_lower, hpd_upper, insufficient_data``.
        Statistics are NA, never NaN, when the sub-chain is empty.
    """
    alpha_chain = np.asarray(alpha_chain, dtype=float)
    if alpha_chain.ndim != 3:
        raise ValueError(f"alpha chain must have shape (S, n_variables, K), got {alpha_chain.shape}")
    if np.shape(membership_chain) != alpha_chain.shape:
        raise ValueError(
            f"membership chain shape {np.shape(membership_chain)} does not match alpha chain {alpha_chain.shape}"
        )
    n_draws_total, n, K = alpha_chain.shape
    if len(classification) != n * K:
        raise ValueError(f"classification has {len(classification)} rows, expected {n * K}")

    summarizer = summarizer if summarizer is not None else NumpyroChainSummarizer()

    in_slab = membership_from_chain(membership_chain, membership).reshape(n_draws_total, n * K)
    draws = alpha_chain.reshape(n_draws_total, n * K)
    components = selected_components(classification)

    stats = {column: [pd.NA] * (n * K) for column in SUMMARY_COLUMNS}
    counts = np.zeros(n * K, dtype=int)
    empty = []

    for entry in range(n * K):
        keep = in_slab[:, entry] if components[entry] == SLAB else ~in_slab[:, entry]
        sub_chain = draws[keep, entry]
        counts[entry] = sub_chain.size
        if sub_chain.size == 0:
            empty.append(classification.index[entry])
            continue

        row = summarizer.summarize(sub_chain).iloc[0]
        for column in SUMMARY_COLUMNS:
            stats[column][entry] = row[column]

    if empty:
        logger.warning(
            f"{len(empty)} loading(s) have no draws in their selected component; "
            f"statistics reported as missing (first: {empty[0]})"
        )

    table = pd.DataFrame(
        {
            "component": components,
            "n_draws": counts,
            **{column: pd.array(stats[column], dtype="Float64") for column in SUMMARY_COLUMNS},
            "insufficient_data": counts == 0,
        },
        index=classification.index,
    )
    return table
