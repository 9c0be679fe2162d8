"""
Core functionality for the sparse latent factor model.

This package contains the pieces shared by the sampler, the analysis layer
and the command line entry point:

- config_schema.py: Model, monitoring and output configuration dataclasses
- config_utils.py: YAML loading and configuration assembly
- error_handling.py: Exception hierarchy and standard result dictionaries
- validation_utils.py: Parameter and data-matrix validation
- pca_initialization.py: Starting values for the Gibbs sampler
- io_utils.py: Saving tables, chains and run metadata
"""

from .config_schema import SLFMConfig
from .error_handling import (
    ConfigurationError,
    ConvergenceError,
    DataValidationError,
    NumericalInstabilityError,
    SamplingCancelledError,
    SLFMError,
)

__all__ = [
    "SLFMConfig",
    "SLFMError",
    "ConfigurationError",
    "DataValidationError",
    "NumericalInstabilityError",
    "SamplingCancelledError",
    "ConvergenceError",
]
