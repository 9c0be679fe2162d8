# analysis/model_runner.py
"""Module for running the sparse latent factor model."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from core.config_schema import SLFMConfig
from core.error_handling import SamplingCancelledError, SLFMError, log_and_return_error
from data.data_matrix import as_data_matrix
from models import ChainStore, create_sampler

from .chain_summary import ChainSummarizer, NumpyroChainSummarizer
from .classification import CALL_ORDER, classify_loadings, factor_labels
from .conditional_summary import MEMBERSHIP_SOURCES, build_conditional_summary

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class SLFMResult:
    """Everything a fit produces.

    Attributes:
        x: The data matrix the model was fitted to, shape (n, p)
        p_star: Post burn-in p_star chain, shape (S, n, K)
        classification: Call per loading, indexed by (variable, factor)
        alpha: Loading summaries over the draws of the called component
        lambda_: Factor-score summaries, indexed by (factor, sample)
        sigma: Residual-variance summaries, indexed by variable
        alpha_chain: Post burn-in loadings, shape (S, n, K)
        lambda_chain: Post burn-in factor scores, shape (S, K, p)
        sigma2_chain: Post burn-in residual variances, shape (S, n)
        z_chain: Post burn-in inclusion indicators, shape (S, n, K)
        q_chain: Post burn-in inclusion probabilities, shape (S, K)
        config: Configuration of the fit
        variable_names: Row labels of x
        sample_names: Column labels of x
    """

    x: np.ndarray
    p_star: np.ndarray
    classification: pd.DataFrame
    alpha: pd.DataFrame
    lambda_: pd.DataFrame
    sigma: pd.DataFrame
    alpha_chain: np.ndarray
    lambda_chain: np.ndarray
    sigma2_chain: np.ndarray
    z_chain: np.ndarray
    q_chain: np.ndarray
    config: SLFMConfig
    variable_names: List[str]
    sample_names: List[str]

    @property
    def n_variables(self) -> int:
        return self.x.shape[0]

    @property
    def n_samples(self) -> int:
        return self.x.shape[1]

    @property
    def factors(self) -> int:
        return self.config.factors

    @property
    def n_draws(self) -> int:
        return self.p_star.shape[0]

    def classification_counts(self) -> Dict[str, int]:
        """Number of loadings per call, every call listed."""
        counts = self.classification["call"].value_counts()
        return {call: int(counts.get(call, 0)) for call in CALL_ORDER}

    def loading_calls(self) -> np.ndarray:
        """Calls as an n x K array of strings."""
        calls = self.classification["call"].astype(str).to_numpy()
        return calls.reshape(self.n_variables, self.factors)


class ModelRunner:
    """Handles sampling and posterior summaries of one configuration."""

    def __init__(
        self,
        config: SLFMConfig,
        summarizer: Optional[ChainSummarizer] = None,
        membership: str = "z",
        progress_interval: int = 250,
    ):
        """Initialize ModelRunner.

        Args:
            config: SLFMConfig instance
            summarizer: Chain summarizer; NumpyroChainSummarizer at the
                configured credible mass by default
            membership: Per-draw membership source for the loading
                summaries, 'z' or 'p_star'
            progress_interval: Iterations between progress log lines

        Raises:
            TypeError: If config is not an SLFMConfig instance
        """
        if not isinstance(config, SLFMConfig):
            raise TypeError(
                f"ModelRunner requires SLFMConfig, got {type(config).__name__}. "
                f"Use SLFMConfig.from_dict(config) to convert your config first."
            )
        if membership not in MEMBERSHIP_SOURCES:
            raise ValueError(f"membership must be one of {list(MEMBERSHIP_SOURCES)}, got '{membership}'")

        self.config = config.validate_or_raise()
        self.summarizer = summarizer or NumpyroChainSummarizer(config.credible_mass)
        self.membership = membership
        self.progress_interval = progress_interval

    def run(
        self,
        x,
        stop_event: Optional[threading.Event] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> SLFMResult:
        """Fit the model to one data matrix.

        Args:
            x: Array, DataFrame or nested lists, variables in rows
            stop_event: Optional cancellation flag checked between iterations
            rng: Optional random generator, overriding the configured seed

        Returns:
            SLFMResult
        """
        matrix = as_data_matrix(x)
        sampler = create_sampler(self.config, progress_interval=self.progress_interval)

        start_time = time.time()
        store = sampler.run(matrix.values, rng=rng, stop_event=stop_event)
        result = self.summarize(matrix.values, store, matrix.variable_names, matrix.sample_names)
        logger.info(f"Model fit completed in {time.time() - start_time:.1f}s")
        return result

    def summarize(
        self,
        X: np.ndarray,
        store: ChainStore,
        variable_names: Sequence[str],
        sample_names: Sequence[str],
    ) -> SLFMResult:
        """Build the result bundle from a frozen chain store."""
        cfg = self.config
        chains = store.after_burnin(cfg.thin_slice)
        K = chains["alpha"].shape[2]
        n_draws = chains["alpha"].shape[0]
        logger.info(f"Summarizing {n_draws} post burn-in draws")

        classification = classify_loadings(
            chains["p_star"], summarizer=self.summarizer, variable_names=variable_names
        )

        membership_chain = chains["z"] if self.membership == "z" else chains["p_star"]
        alpha_table = build_conditional_summary(
            chains["alpha"],
            membership_chain,
            classification,
            summarizer=self.summarizer,
            membership=self.membership,
        )

        lambda_index = pd.MultiIndex.from_product(
            [factor_labels(K), list(sample_names)], names=["factor", "sample"]
        )
        lambda_table = self.summarizer.summarize(
            chains["lambda"].reshape(n_draws, -1), index=lambda_index
        )
        sigma_table = self.summarizer.summarize(
            chains["sigma2"], index=pd.Index(list(variable_names), name="variable")
        )

        x = np.array(X, dtype=float, copy=True)
        x.flags.writeable = False

        return SLFMResult(
            x=x,
            p_star=chains["p_star"],
            classification=classification,
            alpha=alpha_table,
            lambda_=lambda_table,
            sigma=sigma_table,
            alpha_chain=chains["alpha"],
            lambda_chain=chains["lambda"],
            sigma2_chain=chains["sigma2"],
            z_chain=chains["z"],
            q_chain=chains["q"],
            config=cfg,
            variable_names=list(variable_names),
            sample_names=list(sample_names),
        )

    def run_batch(
        self, matrices: Union[Mapping[Any, Any], Sequence[Any]]
    ) -> Dict[Any, Union[SLFMResult, Dict[str, Any]]]:
        """Fit every matrix independently.

        Args:
            matrices: Mapping of name to data, or a sequence (keys become 0..m-1)

        Returns:
            Dict of name to SLFMResult, or to the standard error dictionary
            when that fit failed
        """
        items = matrices.items() if isinstance(matrices, Mapping) else enumerate(matrices)
        results = {}

        for key, x in items:
            logger.info(f"Starting fit '{key}'")
            try:
                results[key] = self.run(x)
                logger.info(f"✅ Fit '{key}' completed")
            except SamplingCancelledError:
                raise
            except (SLFMError, ValueError) as e:
                results[key] = log_and_return_error(
                    e, logger, context=f"Fit '{key}' failed", additional_fields={"name": key}
                )

        n_failed = sum(1 for value in results.values() if isinstance(value, dict))
        logger.info(f"Batch finished: {len(results) - n_failed} succeeded, {n_failed} failed")
        return results


def slfm(
    x,
    factors: int,
    a: float = 2.1,
    b: float = 1.1,
    gamma_a: float = 1.0,
    gamma_b: float = 1.0,
    omega_0: float = 0.01,
    omega_1: float = 10.0,
    sample: int = 1000,
    burnin: Optional[int] = None,
    lag: int = 1,
    degenerate: bool = False,
    seed: Optional[int] = None,
    credible_mass: float = 0.95,
    init: str = "pca",
    membership: str = "z",
    summarizer: Optional[ChainSummarizer] = None,
    stop_event: Optional[threading.Event] = None,
) -> SLFMResult:
    """Fit a Bayesian sparse latent factor model.

    Args:
        x: Data, variables in rows and samples in columns
        factors: Number of latent factors
        a, b: InverseGamma prior of the residual variances
        gamma_a, gamma_b: Beta prior of the inclusion probabilities
        omega_0: Spike variance (ignored when degenerate)
        omega_1: Slab variance
        sample: Number of retained iterations
        burnin: Burn-in iterations, round(0.25 * sample) by default
        lag: Thinning stride of the retained iterations
        degenerate: Use a point mass at zero as spike
        seed: Random seed; equal seeds give identical chains

    Returns:
        SLFMResult

    Examples:
        >>> result = slfm(np.random.randn(20, 100), factors=2, sample=500, seed=1)
        >>> result.classification_counts()
    """
    config = SLFMConfig(
        factors=factors,
        a=a,
        b=b,
        gamma_a=gamma_a,
        gamma_b=gamma_b,
        omega_0=omega_0,
        omega_1=omega_1,
        sample=sample,
        burnin=burnin,
        lag=lag,
        degenerate=degenerate,
        credible_mass=credible_mass,
        init=init,
        seed=seed,
    )
    runner = ModelRunner(config, summarizer=summarizer, membership=membership)
    return runner.run(x, stop_event=stop_event)
