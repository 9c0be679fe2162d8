# models/factory.py
"""
Factory for creating the mixture components of the loading prior.

The sampler core is shared by both model variants; this factory turns a
configuration into the slab and spike objects that distinguish them.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from .base import MixtureComponent
from .components import NormalSlab, NormalSpike, ZeroSpike

logger = logging.getLogger(__name__)


class ComponentFactory:
    """
    Factory for spike components.

    Examples:
        >>> spike = ComponentFactory.create_spike(config)
        >>> slab, spike = ComponentFactory.create_components(config)
        >>> ComponentFactory.list_spikes()
        ['degenerate', 'normal']
    """

    _spikes: Dict[str, Dict[str, Any]] = {
        "degenerate": {
            "class": ZeroSpike,
            "description": "Point mass at zero (degenerate mixture)",
            "variance_param": None,
        },
        "normal": {
            "class": NormalSpike,
            "description": "Normal(0, omega_0) spike (normal-normal mixture)",
            "variance_param": "omega_0",
        },
    }

    @classmethod
    def spike_type(cls, config: Any) -> str:
        """Registry key of the spike selected by a configuration."""
        return "degenerate" if config.degenerate else "normal"

    @classmethod
    def create_spike(cls, config: Any) -> MixtureComponent:
        """
        Create the spike component selected by ``config.degenerate``.

        Args:
            config: SLFMConfig (or any object with degenerate/omega_0)

        Returns:
            MixtureComponent instance
        """
        spike_type = cls.spike_type(config)
        spike_info = cls._spikes[spike_type]
        spike_class = spike_info["class"]

        if spike_info["variance_param"] is None:
            spike = spike_class()
        else:
            spike = spike_class(getattr(config, spike_info["variance_param"]))

        logger.debug(f"Created spike component {spike.get_component_name()}")
        return spike

    @classmethod
    def create_slab(cls, config: Any) -> MixtureComponent:
        return NormalSlab(config.omega_1)

    @classmethod
    def create_components(cls, config: Any) -> Tuple[NormalSlab, MixtureComponent]:
        """Create the (slab, spike) pair for a configuration."""
        return cls.create_slab(config), cls.create_spike(config)

    @classmethod
    def list_spikes(cls) -> List[str]:
        """List available spike types."""
        return sorted(cls._spikes.keys())

    @classmethod
    def get_spike_info(cls, spike_type: str) -> Dict[str, Any]:
        """
        Get metadata for a spike type.

        Raises:
            ValueError: If spike type is unknown
        """
        if spike_type not in cls._spikes:
            raise ValueError(
                f"Unknown spike type: '{spike_type}'. "
                f"Available: {cls.list_spikes()}"
            )

        info = cls._spikes[spike_type].copy()
        info.pop("class", None)
        return info
