"""Configuration utilities for safe and consistent config access."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .config_schema import ConfigurationValidator, ConfigValidationError, SLFMConfig

logger = logging.getLogger(__name__)


def safe_get(config: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """
    Walk nested sections of a config dictionary, falling back to ``default``.

    >>> safe_get({'model': {'factors': 2}}, 'model', 'factors', default=1)
    2
    >>> safe_get({}, 'monitoring', 'log_level', default='INFO')
    'INFO'
    """
    current = config
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    An empty file yields an empty dictionary.

    Raises
    ------
    ConfigValidationError
        If the file does not hold a mapping at top level
    """
    config_path = Path(config_path)
    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ConfigValidationError(
            f"Configuration file {config_path} must contain a mapping, got {type(config).__name__}"
        )
    logger.info(f"Loaded configuration from {config_path}")
    return config


def validate_configuration(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build and validate every configuration section.

    Parameters
    ----------
    config : Dict[str, Any]
        Configuration dictionary to validate

    Returns
    -------
    Dict[str, Any]
        Configuration objects keyed by section ('model', 'monitoring', 'output')

    Raises
    ------
    ConfigValidationError
        If configuration is invalid
    """
    return ConfigurationValidator.validate_and_raise(config)


def build_model_config(
    config: Optional[Dict[str, Any]] = None, overrides: Optional[Dict[str, Any]] = None
) -> SLFMConfig:
    """
    Build the model configuration from a config dictionary and overrides.

    Overrides whose value is None are ignored, so argparse namespaces can be
    passed through unchanged.
    """
    model_section = dict(safe_get(config or {}, "model", default={}) or {})
    for key, value in (overrides or {}).items():
        if value is not None:
            model_section[key] = value

    if "factors" not in model_section:
        raise ConfigValidationError(
            "model.factors is required: the number of latent factors is never inferred"
        )

    merged = ConfigurationValidator.merge_with_defaults({"model": model_section})
    return SLFMConfig.from_dict(merged["model"]).validate_or_raise()


def check_configuration_warnings(model_config: SLFMConfig) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Parameters
    ----------
    model_config : SLFMConfig
        Validated model configuration

    Returns
    -------
    List[str]
        List of warning messages
    """
    warnings = []

    if model_config.ite > 100000:
        warnings.append(
            f"Large number of iterations ({model_config.ite}) may take a long time to complete"
        )

    if model_config.n_retained < 100:
        warnings.append(
            f"Only {model_config.n_retained} retained draws; HPD intervals will be coarse"
        )

    if model_config.factors > 20:
        warnings.append(
            f"Large number of factors (K={model_config.factors}) may lead to overfitting"
        )

    return warnings
