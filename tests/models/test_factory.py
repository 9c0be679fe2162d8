"""Tests for the mixture component factory."""

import pytest

from core.config_schema import SLFMConfig
from models.components import NormalSlab, NormalSpike, ZeroSpike
from models.factory import ComponentFactory


class TestComponentFactory:
    """Test mapping configurations to spike and slab components."""

    def test_list_spikes(self):
        assert ComponentFactory.list_spikes() == ["degenerate", "normal"]

    def test_degenerate_spike(self):
        spike = ComponentFactory.create_spike(SLFMConfig(factors=2, degenerate=True))
        assert isinstance(spike, ZeroSpike)

    def test_normal_spike_uses_omega_0(self):
        spike = ComponentFactory.create_spike(SLFMConfig(factors=2, omega_0=0.05))
        assert isinstance(spike, NormalSpike)
        assert spike.variance == 0.05

    def test_slab_uses_omega_1(self):
        slab = ComponentFactory.create_slab(SLFMConfig(factors=2, omega_1=7.0))
        assert isinstance(slab, NormalSlab)
        assert slab.variance == 7.0

    def test_create_components(self):
        slab, spike = ComponentFactory.create_components(SLFMConfig(factors=1, degenerate=True))
        assert isinstance(slab, NormalSlab)
        assert isinstance(spike, ZeroSpike)

    def test_spike_info(self):
        info = ComponentFactory.get_spike_info("normal")
        assert info["variance_param"] == "omega_0"
        assert "class" not in info

    def test_unknown_spike_info(self):
        with pytest.raises(ValueError, match="Unknown spike type"):
            ComponentFactory.get_spike_info("laplace")
