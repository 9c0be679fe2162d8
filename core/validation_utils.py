"""Validation utilities for consistent parameter and data validation."""

import inspect
import logging
from functools import wraps
from typing import Callable

import numpy as np

from .error_handling import DataValidationError

logger = logging.getLogger(__name__)


def validate_parameters(**validation_rules):
    """
    Check keyword or positional arguments of a function before it runs.

    Each rule is either a predicate or a ``(predicate, message)`` pair. A
    failing predicate, or one that raises, becomes a ValueError naming the
    parameter. Defaults are checked too.

    Examples
    --------
    >>> @validate_parameters(
    ...     n_variables=lambda x: x > 0,
    ...     factors=(lambda x: x >= 1, "factors must be >= 1")
    ... )
    ... def my_function(n_variables, factors):
    ...     pass
    """
    rules = {}
    for param_name, rule in validation_rules.items():
        if callable(rule):
            rules[param_name] = (rule, f"Validation failed for parameter '{param_name}'")
        elif isinstance(rule, tuple) and len(rule) == 2:
            rules[param_name] = rule
        else:
            raise ValueError(f"Invalid validation rule for {param_name}")

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @wraps(func)
        def wrapper(*args, **kwargs):
            bound = signature.bind(*args, **kwargs)
            bound.apply_defaults()

            for param_name, (predicate, message) in rules.items():
                if param_name not in bound.arguments:
                    continue
                try:
                    valid = predicate(bound.arguments[param_name])
                except Exception as e:
                    raise ValueError(f"Parameter validation error for '{param_name}': {e}") from e
                if not valid:
                    raise ValueError(f"Parameter validation error for '{param_name}': {message}")

            return func(*args, **kwargs)

        return wrapper

    return decorator


def validate_data_matrix(X: np.ndarray, factors: int) -> None:
    """
    Validate a data matrix against the requested number of factors.

    Parameters
    ----------
    X : np.ndarray
        Data matrix, variables in rows and samples in columns
    factors : int
        Number of latent factors

    Raises
    ------
    DataValidationError
        If the matrix is not 2D, holds non-finite values, or is too small
        for the lower-triangular reference block of the loadings
    """
    if not isinstance(X, np.ndarray):
        raise DataValidationError(f"Data must be a numpy array, got {type(X).__name__}")

    if X.ndim != 2:
        raise DataValidationError(f"Data must be a 2D matrix, got {X.ndim}D")

    n_variables, n_samples = X.shape
    if n_variables == 0 or n_samples == 0:
        raise DataValidationError(f"Data matrix is empty, shape {X.shape}")

    if not np.issubdtype(X.dtype, np.number):
        raise DataValidationError(f"Data matrix must be numeric, got dtype {X.dtype}")

    if np.any(np.isnan(X)):
        raise DataValidationError("Data matrix contains NaN values")

    if np.any(np.isinf(X)):
        raise DataValidationError("Data matrix contains infinite values")

    if factors > n_variables:
        raise DataValidationError(
            f"Requested {factors} factors but the data has only {n_variables} variables; "
            f"the {factors}x{factors} reference block of the loadings does not fit"
        )

    if factors > n_samples:
        raise DataValidationError(
            f"Requested {factors} factors but the data has only {n_samples} samples"
        )
