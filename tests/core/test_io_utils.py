"""Tests for core.io_utils module."""

import numpy as np
import pandas as pd
import pytest

from core.io_utils import (
    ensure_directory,
    load_chain_archive,
    load_json,
    load_result,
    save_chain_archive,
    save_csv,
    save_json,
    save_result,
)


class TestFileHelpers:
    """Test the JSON, CSV and archive helpers."""

    def test_json_creates_parent_and_stringifies(self, temp_dir):
        path = temp_dir / "nested" / "data.json"
        save_json({"a": 1, "where": temp_dir}, path)
        assert load_json(path) == {"a": 1, "where": str(temp_dir)}

    def test_load_missing_json_raises(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_json(temp_dir / "missing.json")

    def test_csv_writes_missing_as_na(self, temp_dir):
        df = pd.DataFrame({"x": pd.array([1.5, None], dtype="Float64")}, index=["a", "b"])
        save_csv(df, temp_dir / "t.csv", index=True)

        assert (temp_dir / "t.csv").read_text().splitlines()[2] == "b,NA"

    def test_chain_archive(self, temp_dir):
        chains = {"alpha": np.arange(12.0).reshape(3, 2, 2), "z": np.ones((3, 2), dtype=np.int8)}
        written = save_chain_archive(chains, temp_dir / "chains")

        assert written.suffix == ".npz"
        loaded = load_chain_archive(written)
        assert sorted(loaded) == ["alpha", "z"]
        np.testing.assert_array_equal(loaded["alpha"], chains["alpha"])
        assert loaded["z"].dtype == np.int8

    def test_ensure_directory(self, temp_dir):
        path = ensure_directory(temp_dir / "a" / "b")
        assert path.is_dir()


class TestSaveResult:
    """Test persisting and reloading a fitted model."""

    def test_writes_tables_metadata_and_chains(self, fitted_result, temp_dir):
        out = save_result(fitted_result, temp_dir / "run")

        for name in ("classification", "alpha_summary", "lambda_summary", "sigma_summary"):
            assert (out / f"{name}.csv").exists()

        info = load_json(out / "run_info.json")
        assert info["config"]["factors"] == 2
        assert info["shape"] == {"variables": 10, "samples": 25}
        assert sum(info["classification_counts"].values()) == 20

        chains = load_chain_archive(out / "chains.npz")
        assert sorted(chains) == ["alpha", "lambda", "p_star", "q", "sigma2", "z"]
        np.testing.assert_array_equal(chains["z"], fitted_result.z_chain)

    def test_without_chains(self, fitted_result, temp_dir):
        out = save_result(fitted_result, temp_dir / "run", save_chains=False)
        assert not (out / "chains.npz").exists()
        assert "chains" not in load_result(out)

    def test_classification_csv_layout(self, fitted_result, temp_dir):
        out = save_result(fitted_result, temp_dir / "run", save_chains=False)
        table = pd.read_csv(out / "classification.csv")

        assert list(table.columns) == ["variable", "factor", "mean", "hpd_lower", "hpd_upper", "call"]
        assert set(table["call"]) <= {"present", "marginal", "absent"}

    def test_load_result_restores_tables(self, fitted_result, temp_dir):
        out = save_result(fitted_result, temp_dir / "run")
        loaded = load_result(out)

        assert loaded["run_info"]["config"]["sample"] == 60
        assert loaded["classification"].index.names == ["variable", "factor"]
        assert list(loaded["classification"]["call"].astype(str)) == list(
            fitted_result.classification["call"].astype(str)
        )
        np.testing.assert_allclose(
            loaded["classification"]["mean"].to_numpy(),
            fitted_result.classification["mean"].to_numpy(),
        )
        assert loaded["lambda_"].index.names == ["factor", "sample"]
        assert len(loaded["sigma"]) == 10
        np.testing.assert_array_equal(loaded["chains"]["p_star"], fitted_result.p_star)

    def test_load_result_missing_directory(self, temp_dir):
        with pytest.raises(FileNotFoundError, match="No saved result"):
            load_result(temp_dir / "nothing")
