"""Data loading and generation modules."""

from .data_matrix import DataMatrix, as_data_matrix, load_matrix_csv
from .synthetic import generate_synthetic_data

__all__ = ["DataMatrix", "as_data_matrix", "generate_synthetic_data", "load_matrix_csv"]
