"""Analysis package: model entry point and posterior summaries."""

from .chain_summary import ChainSummarizer, NumpyroChainSummarizer
from .classification import LoadingCall, classify_loadings
from .conditional_summary import build_conditional_summary
from .mcmc_diagnostics import check_convergence, compute_chain_diagnostics
from .model_runner import ModelRunner, SLFMResult, slfm

__all__ = [
    "ChainSummarizer",
    "LoadingCall",
    "ModelRunner",
    "NumpyroChainSummarizer",
    "SLFMResult",
    "build_conditional_summary",
    "check_convergence",
    "classify_loadings",
    "compute_chain_diagnostics",
    "slfm",
]
