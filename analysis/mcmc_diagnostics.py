# analysis/mcmc_diagnostics.py
"""
MCMC Diagnostics for the sparse latent factor sampler.

Convergence summaries of a single Gibbs chain:
- Effective sample size (ESS)
- Split R-hat (the chain is split in halves and compared)

Inclusion indicators and p_star are deliberately left out: they are often
constant over a chain and their R-hat is undefined.
"""

import logging
from typing import Any, Dict

import numpy as np
import pandas as pd
from numpyro.diagnostics import effective_sample_size, split_gelman_rubin

from core.error_handling import ConvergenceError, validate_convergence

logger = logging.getLogger(__name__)

MIN_DRAWS = 4


def _chain_diagnostics(draws: np.ndarray, labels) -> pd.DataFrame:
    """ESS and split R-hat for draws of shape (S, m)."""
    chains = np.asarray(draws, dtype=float)[None, ...]  # (1, S, m)
    return pd.DataFrame(
        {
            "ess": np.asarray(effective_sample_size(chains), dtype=float),
            "r_hat": np.asarray(split_gelman_rubin(chains), dtype=float),
        },
        index=pd.Index(labels, name="parameter"),
    )


def compute_chain_diagnostics(result) -> pd.DataFrame:
    """Compute ESS and split R-hat for the factor scores and residual variances.

    Parameters
    ----------
    result : SLFMResult
        Fitted model

    Returns
    -------
    pd.DataFrame
        One row per parameter (``lambda[F1, s]``, ``sigma2[v]``), columns
        ``ess`` and ``r_hat``

    Raises
    ------
    ValueError
        If fewer than 4 post burn-in draws are available
    """
    n_draws = result.lambda_chain.shape[0]
    if n_draws < MIN_DRAWS:
        raise ValueError(f"Need at least {MIN_DRAWS} post burn-in draws for diagnostics, got {n_draws}")

    K = result.lambda_chain.shape[1]
    lambda_labels = [
        f"lambda[F{k + 1}, {sample}]" for k in range(K) for sample in result.sample_names
    ]
    sigma_labels = [f"sigma2[{variable}]" for variable in result.variable_names]

    diagnostics = pd.concat(
        [
            _chain_diagnostics(result.lambda_chain.reshape(n_draws, -1), lambda_labels),
            _chain_diagnostics(result.sigma2_chain, sigma_labels),
        ]
    )

    logger.info(
        f"Chain diagnostics over {n_draws} draws: min ESS={diagnostics['ess'].min():.1f}, "
        f"max R-hat={diagnostics['r_hat'].max():.3f}"
    )
    return diagnostics


def check_convergence(
    diagnostics: pd.DataFrame, min_ess: float = 100.0, max_rhat: float = 1.1
) -> Dict[str, Any]:
    """Gate a fit on its worst ESS and R-hat.

    Returns
    -------
    Dict with 'ess' (minimum), 'rhat' (maximum) and the names of the
    parameters that attain them

    Raises
    ------
    ConvergenceError
        If the minimum ESS is below ``min_ess`` or the maximum R-hat above
        ``max_rhat``
    """
    summary = {
        "ess": float(diagnostics["ess"].min()),
        "rhat": float(diagnostics["r_hat"].max()),
        "worst_ess_parameter": diagnostics["ess"].idxmin(),
        "worst_rhat_parameter": diagnostics["r_hat"].idxmax(),
    }
    try:
        validate_convergence(summary, min_ess=min_ess, max_rhat=max_rhat)
    except ConvergenceError:
        logger.warning(
            f"Convergence check failed (worst ESS: {summary['worst_ess_parameter']}, "
            f"worst R-hat: {summary['worst_rhat_parameter']})"
        )
        raise
    return summary
