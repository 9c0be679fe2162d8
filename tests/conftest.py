"""Test configuration and fixtures."""

import shutil
import tempfile
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from analysis.model_runner import ModelRunner
from core.config_schema import SLFMConfig


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def small_config():
    """Short chain on a small problem."""
    return SLFMConfig(factors=2, sample=40, burnin=10, seed=123)


@pytest.fixture
def noise_matrix():
    """12 x 30 matrix of standard-normal noise."""
    rng = np.random.default_rng(7)
    return rng.standard_normal((12, 30))


@pytest.fixture
def block_matrix():
    """Two-factor block structure with labels, variables in rows."""
    rng = np.random.default_rng(11)
    alpha = np.zeros((12, 2))
    alpha[:6, 0] = 3.0
    alpha[6:, 1] = 2.0
    alpha[1, 1] = 2.0
    lam = rng.standard_normal((2, 30))
    X = alpha @ lam + 0.3 * rng.standard_normal((12, 30))
    return pd.DataFrame(
        X,
        index=[f"gene_{i}" for i in range(12)],
        columns=[f"s{j}" for j in range(30)],
    )


@pytest.fixture(scope="session")
def fitted_result():
    """One small fit shared by the read-only result tests."""
    rng = np.random.default_rng(3)
    alpha = np.zeros((10, 2))
    alpha[:5, 0] = 2.5
    alpha[5:, 1] = 2.5
    alpha[1, 1] = 1.0
    X = alpha @ rng.standard_normal((2, 25)) + 0.5 * rng.standard_normal((10, 25))
    config = SLFMConfig(factors=2, sample=60, burnin=20, seed=5)
    return ModelRunner(config, progress_interval=1000).run(X)
