"""Models package - Gibbs sampler and spike/slab components."""

from .base import MixtureComponent
from .chain_store import ChainStore
from .components import NormalSlab, NormalSpike, ZeroSpike
from .factory import ComponentFactory
from .sparse_latent_factor import SparseLatentFactorSampler


def create_sampler(config, **kwargs):
    """
    Create a sampler whose spike component matches ``config.degenerate``.

    Parameters:
    -----------
    config : SLFMConfig
    **kwargs : Passed to SparseLatentFactorSampler (e.g. progress_interval)

    Returns:
    --------
    SparseLatentFactorSampler instance
    """
    slab, spike = ComponentFactory.create_components(config)
    return SparseLatentFactorSampler(config, slab=slab, spike=spike, **kwargs)


__all__ = [
    "ChainStore",
    "ComponentFactory",
    "MixtureComponent",
    "NormalSlab",
    "NormalSpike",
    "SparseLatentFactorSampler",
    "ZeroSpike",
    "create_sampler",
]
