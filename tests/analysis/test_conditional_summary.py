"""Tests for analysis.conditional_summary module."""

import logging

import numpy as np
import pandas as pd
import pytest

from analysis.classification import loading_index
from analysis.conditional_summary import (
    build_conditional_summary,
    membership_from_chain,
    selected_components,
)


def _classification(calls, means, variables=("v0",), K=None):
    K = K if K is not None else len(calls) // len(variables)
    return pd.DataFrame(
        {
            "mean": means,
            "hpd_lower": np.zeros(len(calls)),
            "hpd_upper": np.ones(len(calls)),
            "call": pd.Categorical(calls, categories=["present", "marginal", "absent"]),
        },
        index=loading_index(list(variables), K),
    )


class TestSelectedComponents:
    """Test the component chosen per call."""

    def test_present_absent_marginal(self):
        classification = _classification(
            ["present", "absent", "marginal", "marginal"], [0.9, 0.1, 0.6, 0.4]
        )
        assert list(selected_components(classification)) == ["slab", "spike", "slab", "spike"]

    def test_membership_sources(self):
        chain = np.array([0, 1, 1, 0])
        np.testing.assert_array_equal(membership_from_chain(chain, "z"), [False, True, True, False])
        np.testing.assert_array_equal(
            membership_from_chain(np.array([0.2, 0.5, 0.51]), "p_star"), [False, False, True]
        )
        with pytest.raises(ValueError, match="membership"):
            membership_from_chain(chain, "q")


class TestBuildConditionalSummary:
    """Test summaries over the selected sub-chains."""

    def test_counts_and_means_match_selected_draws(self):
        rng = np.random.default_rng(0)
        alpha = rng.normal(size=(50, 2, 2))
        z = (rng.random((50, 2, 2)) < 0.6).astype(np.int8)
        classification = _classification(
            ["present", "absent", "marginal", "present"], [0.8, 0.2, 0.3, 0.7], variables=("a", "b")
        )

        table = build_conditional_summary(alpha, z, classification)

        expected_components = ["slab", "spike", "spike", "slab"]
        assert list(table["component"]) == expected_components
        for entry, (i, k) in enumerate([(0, 0), (0, 1), (1, 0), (1, 1)]):
            mask = z[:, i, k] == 1 if expected_components[entry] == "slab" else z[:, i, k] == 0
            selected = alpha[mask, i, k]
            assert table["n_draws"].iloc[entry] == mask.sum()
            assert table["mean"].iloc[entry] == pytest.approx(selected.mean())
            assert table["sd"].iloc[entry] == pytest.approx(selected.std(ddof=1))

    def test_columns_and_dtypes(self):
        alpha = np.ones((4, 1, 1))
        z = np.ones((4, 1, 1), dtype=np.int8)
        table = build_conditional_summary(alpha, z, _classification(["present"], [0.9]))

        assert list(table.columns) == [
            "component",
            "n_draws",
            "mean",
            "sd",
            "naive_se",
            "hpd_lower",
            "hpd_upper",
            "insufficient_data",
        ]
        for column in ("mean", "sd", "naive_se", "hpd_lower", "hpd_upper"):
            assert str(table[column].dtype) == "Float64"

    def test_empty_sub_chain_reports_missing(self, caplog):
        alpha = np.random.default_rng(1).normal(size=(10, 1, 2))
        z = np.zeros((10, 1, 2), dtype=np.int8)
        z[:, 0, 1] = 1
        classification = _classification(["present", "present"], [0.9, 0.9])

        with caplog.at_level(logging.WARNING):
            table = build_conditional_summary(alpha, z, classification)

        first = table.iloc[0]
        assert first["n_draws"] == 0
        assert bool(first["insufficient_data"]) is True
        assert all(pd.isna(first[c]) for c in ("mean", "sd", "naive_se", "hpd_lower", "hpd_upper"))
        assert not bool(table["insufficient_data"].iloc[1])
        assert not np.isnan(table[["mean", "hpd_lower", "hpd_upper"]].to_numpy(dtype=float, na_value=0.0)).any()
        assert "no draws in their selected component" in caplog.text

    def test_single_draw_sub_chain(self):
        alpha = np.arange(5.0).reshape(5, 1, 1)
        z = np.array([0, 0, 1, 0, 0], dtype=np.int8).reshape(5, 1, 1)
        table = build_conditional_summary(alpha, z, _classification(["present"], [0.9]))

        row = table.iloc[0]
        assert row["n_draws"] == 1
        assert row["mean"] == 2.0
        assert pd.isna(row["sd"])
        assert not bool(row["insufficient_data"])

    def test_p_star_membership(self):
        alpha = np.arange(4.0).reshape(4, 1, 1)
        p_star = np.array([0.2, 0.6, 0.7, 0.4]).reshape(4, 1, 1)
        table = build_conditional_summary(
            alpha, p_star, _classification(["present"], [0.6]), membership="p_star"
        )
        assert table["n_draws"].iloc[0] == 2
        assert table["mean"].iloc[0] == pytest.approx(1.5)

    def test_shape_mismatch(self):
        with pytest.raises(ValueError, match="does not match"):
            build_conditional_summary(
                np.zeros((4, 1, 1)), np.zeros((3, 1, 1)), _classification(["present"], [0.9])
            )

    def test_classification_length_mismatch(self):
        with pytest.raises(ValueError, match="rows"):
            build_conditional_summary(
                np.zeros((4, 2, 1)), np.zeros((4, 2, 1)), _classification(["present"], [0.9])
            )
