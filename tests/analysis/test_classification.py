"""Tests for analysis.classification module."""

import numpy as np
import pandas as pd
import pytest

from analysis.chain_summary import NumpyroChainSummarizer
from analysis.classification import (
    LoadingCall,
    classify_interval,
    classify_loadings,
    loading_index,
)


def _chain_around(center, spread, n_draws=200, seed=0):
    """p_star draws uniformly spread around a center, clipped to [0, 1]."""
    rng = np.random.default_rng(seed)
    return np.clip(center + spread * (rng.random(n_draws) - 0.5), 0.0, 1.0)


class TestClassifyInterval:
    """Test the decision rule."""

    @pytest.mark.parametrize(
        "lower, upper, expected",
        [
            (0.6, 0.9, "present"),
            (0.5000001, 0.7, "present"),
            (0.1, 0.4, "absent"),
            (0.2, 0.4999999, "absent"),
            (0.4, 0.6, "marginal"),
            (0.5, 0.8, "marginal"),
            (0.2, 0.5, "marginal"),
        ],
    )
    def test_rule(self, lower, upper, expected):
        assert classify_interval(lower, upper) == expected

    def test_vectorised(self):
        calls = classify_interval([0.7, 0.1, 0.3], [0.9, 0.2, 0.8])
        assert list(calls) == ["present", "absent", "marginal"]

    def test_loading_call_is_str(self):
        assert LoadingCall.PRESENT == "present"
        assert LoadingCall("absent") is LoadingCall.ABSENT


class TestClassifyLoadings:
    """Test classification of synthetic p_star chains."""

    def test_monotonicity(self):
        """Raising the interval above 0.5 gives present, lowering it gives absent."""
        chain = np.stack(
            [
                _chain_around(0.8, 0.2, seed=1),  # interval within (0.7, 0.9)
                _chain_around(0.2, 0.2, seed=2),  # interval within (0.1, 0.3)
                _chain_around(0.5, 0.4, seed=3),  # interval straddles 0.5
            ],
            axis=1,
        )[:, :, None]

        table = classify_loadings(chain)

        assert list(table["call"].astype(str)) == ["present", "absent", "marginal"]

    def test_shifting_one_chain_changes_only_its_call(self):
        base = _chain_around(0.5, 0.3, seed=4)
        for shift, expected in [(0.4, "present"), (-0.4, "absent"), (0.0, "marginal")]:
            chain = np.clip(base + shift, 0, 1)[:, None, None]
            assert str(classify_loadings(chain)["call"].iloc[0]) == expected

    def test_table_layout(self):
        chain = np.random.default_rng(0).random((30, 3, 2))
        table = classify_loadings(chain, variable_names=["a", "b", "c"])

        assert list(table.columns) == ["mean", "hpd_lower", "hpd_upper", "call"]
        assert table.index.names == ["variable", "factor"]
        assert list(table.index[:3]) == [("a", "F1"), ("a", "F2"), ("b", "F1")]
        assert table.loc[("b", "F2"), "mean"] == pytest.approx(chain[:, 1, 1].mean())

    def test_uses_injected_summarizer(self):
        class FixedSummarizer:
            prob = 0.95

            def hpd_interval(self, draws):
                shape = draws.shape[1:]
                return np.full(shape, 0.6), np.full(shape, 0.9)

            def summarize(self, draws, index=None):
                raise AssertionError("not used by the classifier")

        chain = np.zeros((5, 2, 1))
        table = classify_loadings(chain, summarizer=FixedSummarizer())
        assert (table["call"].astype(str) == "present").all()

    def test_credible_mass_matters(self):
        # 90% of the draws at 0.7, the rest at 0.2
        chain = np.r_[np.full(90, 0.7), np.full(10, 0.2)][:, None, None]

        narrow = classify_loadings(chain, summarizer=NumpyroChainSummarizer(0.8))
        wide = classify_loadings(chain, summarizer=NumpyroChainSummarizer(0.95))

        assert str(narrow["call"].iloc[0]) == "present"
        assert str(wide["call"].iloc[0]) == "marginal"

    def test_deterministic(self):
        chain = np.random.default_rng(5).random((40, 4, 2))
        pd.testing.assert_frame_equal(classify_loadings(chain), classify_loadings(chain))

    def test_rejects_bad_shape(self):
        with pytest.raises(ValueError, match="shape"):
            classify_loadings(np.zeros((10, 3)))

    def test_loading_index(self):
        index = loading_index(["x", "y"], 3)
        assert len(index) == 6
        assert index[-1] == ("y", "F3")
