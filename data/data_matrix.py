"""Coercion of tabular input into the numeric matrix the sampler consumes."""

import logging
from pathlib import Path
from typing import List, NamedTuple, Union

import numpy as np
import pandas as pd

from core.error_handling import DataValidationError

logger = logging.getLogger(__name__)


class DataMatrix(NamedTuple):
    """Numeric matrix (variables in rows) with its labels."""

    values: np.ndarray
    variable_names: List[str]
    sample_names: List[str]


def _coerce_column(column: pd.Series) -> np.ndarray:
    """Numeric columns as float, booleans as 0/1, anything else as 1-based codes."""
    if pd.api.types.is_bool_dtype(column):
        return column.astype(float).to_numpy()
    if pd.api.types.is_numeric_dtype(column):
        return column.to_numpy(dtype=float, na_value=np.nan)

    categorical = pd.Categorical(column)
    codes = categorical.codes.astype(float)
    codes[codes < 0] = np.nan
    logger.info(
        f"Column '{column.name}' is not numeric; replaced by codes of its "
        f"{len(categorical.categories)} categories"
    )
    return codes + 1.0


def as_data_matrix(x) -> DataMatrix:
    """
    Convert input data to a float64 matrix, variables in rows.

    Accepts a numpy array, a DataFrame, a Series or nested lists. DataFrame
    columns are converted one at a time: numeric columns are kept, booleans
    become 0/1 and categorical or text columns become 1-based category codes.

    Parameters
    ----------
    x : array-like or pd.DataFrame
        Input data

    Returns
    -------
    DataMatrix
        Values plus row and column labels (the frame's labels, or generated
        ones for unlabeled input)

    Raises
    ------
    DataValidationError
        If the input is not one- or two-dimensional, cannot be made numeric,
        or contains missing values
    """
    if isinstance(x, DataMatrix):
        return x
    if isinstance(x, pd.Series):
        x = x.to_frame()

    if isinstance(x, pd.DataFrame):
        if x.shape[1] == 0:
            raise DataValidationError("Data frame has no columns")
        values = np.column_stack([_coerce_column(x[col]) for col in x.columns])
        variable_names = [str(label) for label in x.index]
        sample_names = [str(label) for label in x.columns]
    else:
        array = np.asarray(x)
        if array.dtype == bool:
            array = array.astype(float)
        try:
            values = array.astype(float)
        except (TypeError, ValueError) as e:
            raise DataValidationError(f"Data cannot be converted to a numeric matrix: {e}") from e

        if values.ndim == 1:
            values = values[:, None]
        if values.ndim != 2:
            raise DataValidationError(f"Data must be a 2D matrix, got {values.ndim}D")
        variable_names = [f"V{i + 1}" for i in range(values.shape[0])]
        sample_names = [f"S{j + 1}" for j in range(values.shape[1])]

    if np.any(np.isnan(values)):
        n_missing = int(np.isnan(values).sum())
        raise DataValidationError(f"Data matrix contains {n_missing} missing value(s)")

    logger.debug(f"Coerced input to a {values.shape[0]} x {values.shape[1]} matrix")
    return DataMatrix(np.ascontiguousarray(values, dtype=np.float64), variable_names, sample_names)


def load_matrix_csv(filepath: Union[str, Path], index_col: Union[int, None] = 0) -> DataMatrix:
    """Read a CSV file (variables in rows) and coerce it with ``as_data_matrix``."""
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Data file not found: {filepath}")

    frame = pd.read_csv(filepath, index_col=index_col)
    logger.info(f"Loaded {frame.shape[0]} x {frame.shape[1]} table from {filepath}")
    return as_data_matrix(frame)
