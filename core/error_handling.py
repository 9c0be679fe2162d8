"""
Standard error handling patterns for the sparse latent factor model.

Provides the exception hierarchy and the standard result dictionaries used
when a fit is reported rather than raised (batch runs).
"""

from __future__ import annotations

# Standard library imports
import logging
import traceback
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class SLFMError(Exception):
    """Base exception for sparse latent factor model errors."""
    pass


class ConfigurationError(SLFMError):
    """Raised when configuration is invalid."""
    pass


class DataValidationError(SLFMError):
    """Raised when the data matrix is incompatible with the requested model."""
    pass


class NumericalInstabilityError(SLFMError):
    """Raised when a conditional draw cannot be computed.

    Carries the iteration (1-based) and the name of the offending quantity so
    the caller can tell which update failed.
    """

    def __init__(self, message: str, iteration: Optional[int] = None, quantity: str = ""):
        self.iteration = iteration
        self.quantity = quantity
        if iteration is not None:
            message = f"iteration {iteration}, {quantity}: {message}"
        super().__init__(message)


class SamplingCancelledError(SLFMError):
    """Raised when sampling is cancelled between iterations."""

    def __init__(self, iteration: int):
        self.iteration = iteration
        super().__init__(f"Sampling cancelled after {iteration} completed iterations")


class ConvergenceError(SLFMError):
    """Raised when MCMC fails to converge."""
    pass


def create_error_result(
    error: Exception,
    context: str = "",
    additional_fields: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Describe a failed fit as a plain dictionary.

    The dictionary always holds ``status='failed'``, the message and the
    exception class name. A NumericalInstabilityError also contributes the
    iteration and quantity it failed on.
    """
    result = {
        "status": "failed",
        "error": str(error),
        "error_type": type(error).__name__,
    }
    if context:
        result["error_context"] = context
    if isinstance(error, NumericalInstabilityError):
        result.update(iteration=error.iteration, quantity=error.quantity)
    result.update(additional_fields or {})
    return result


def log_and_return_error(
    error: Exception,
    logger_instance: logging.Logger,
    context: str = "",
    log_level: str = "error",
    include_traceback: bool = False,
    additional_fields: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Log ``error`` at ``log_level`` and return ``create_error_result(...)``.

    Args:
        error: The exception that occurred
        logger_instance: Logger to write to
        context: Prefix of the log message, also stored in the result
        log_level: Name of the logger method ('error', 'warning', 'info')
        include_traceback: Append the current traceback to the log message
        additional_fields: Extra keys for the result dictionary
    """
    message = f"❌ {context}: {error}" if context else f"❌ {error}"
    if include_traceback:
        message += "\n" + traceback.format_exc()
    getattr(logger_instance, log_level.lower())(message)
    return create_error_result(error, context, additional_fields)


def validate_convergence(
    convergence_info: Dict[str, Any],
    min_ess: float = 100.0,
    max_rhat: float = 1.1,
) -> None:
    """
    Validate MCMC convergence diagnostics.

    Args:
        convergence_info: Dictionary with 'ess' and 'rhat' values
        min_ess: Minimum effective sample size
        max_rhat: Maximum R-hat value

    Raises:
        ConvergenceError: If convergence criteria not met
    """
    ess = convergence_info.get("ess", float('inf'))
    rhat = convergence_info.get("rhat", 0.0)

    if ess < min_ess:
        raise ConvergenceError(
            f"Low effective sample size: {ess:.1f} < {min_ess}"
        )

    if rhat > max_rhat:
        raise ConvergenceError(
            f"High R-hat indicating poor convergence: {rhat:.3f} > {max_rhat}"
        )
