"""Configuration schema validation for sparse latent factor model runs."""

import dataclasses
import logging
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .error_handling import ConfigurationError

logger = logging.getLogger(__name__)

INTEGER_FIELDS = ("factors", "sample", "burnin", "lag", "seed")
REAL_FIELDS = ("a", "b", "gamma_a", "gamma_b", "omega_0", "omega_1", "credible_mass")


def _is_integer(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _is_real(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


class ConfigValidationError(ConfigurationError):
    """Exception raised for configuration validation errors."""


class LogLevel(Enum):
    """Valid logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class InitStrategy(Enum):
    """Valid starting-value strategies for the sampler."""

    PCA = "pca"
    PRIOR = "prior"


@dataclass(frozen=True)
class SLFMConfig:
    """Hyperparameters and sampler controls for one model fit.

    Attributes:
        factors: Number of latent factors K. Required, never inferred.
        a: Shape of the InverseGamma prior on the residual variances.
        b: Scale of the InverseGamma prior on the residual variances.
        gamma_a: First Beta parameter of the inclusion-probability prior.
        gamma_b: Second Beta parameter of the inclusion-probability prior.
        omega_0: Spike variance (normal-normal mixture only).
        omega_1: Slab variance.
        sample: Number of retained MCMC iterations.
        burnin: Number of discarded iterations, round(0.25 * sample) if None.
        lag: Thinning stride applied to the post burn-in range.
        degenerate: Use a point mass at zero as spike component.
        credible_mass: Coverage of the HPD intervals.
        init: Starting-value strategy ('pca' or 'prior').
        seed: Seed of the random generator; None draws fresh entropy.
    """

    factors: int
    a: float = 2.1
    b: float = 1.1
    gamma_a: float = 1.0
    gamma_b: float = 1.0
    omega_0: float = 0.01
    omega_1: float = 10.0
    sample: int = 1000
    burnin: Optional[int] = None
    lag: int = 1
    degenerate: bool = False
    credible_mass: float = 0.95
    init: str = "pca"
    seed: Optional[int] = None

    def __post_init__(self):
        # numpy integers become plain ints; anything else is left for validate()
        for name in INTEGER_FIELDS:
            value = getattr(self, name)
            if _is_integer(value):
                object.__setattr__(self, name, int(value))
        if self.burnin is None and _is_integer(self.sample):
            object.__setattr__(self, "burnin", int(round(0.25 * self.sample)))

    @property
    def ite(self) -> int:
        """Total number of MCMC iterations (sample + burnin)."""
        return self.sample + self.burnin

    @property
    def thin_slice(self) -> slice:
        """Rows of a chain array that form the usable posterior sample."""
        return slice(self.burnin, self.ite, self.lag)

    @property
    def n_retained(self) -> int:
        """Number of draws left after burn-in and thinning."""
        return len(range(self.burnin, self.ite, self.lag))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SLFMConfig":
        """Create config from dictionary, extracting only valid fields."""
        valid_fields = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in d.items() if k in valid_fields})

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    def replace(self, **changes) -> "SLFMConfig":
        """Return a copy with some fields changed."""
        return dataclasses.replace(self, **changes)

    def validate(self) -> List[str]:
        """Validate model configuration."""
        errors = []

        # Types first; range checks below only run on well-typed fields
        bad_types = set()
        for name in INTEGER_FIELDS:
            value = getattr(self, name)
            if value is None and name in ("burnin", "seed"):
                continue
            if not _is_integer(value):
                bad_types.add(name)
                errors.append(f"{name} must be an integer, got {value!r}")
        for name in REAL_FIELDS:
            value = getattr(self, name)
            if not _is_real(value):
                bad_types.add(name)
                errors.append(f"{name} must be a number, got {value!r}")

        # Check K (number of factors)
        if "factors" not in bad_types and self.factors < 1:
            errors.append("factors (number of latent factors) must be >= 1")

        # Check prior parameters
        for name in ("a", "b", "gamma_a", "gamma_b", "omega_1"):
            if name not in bad_types and not getattr(self, name) > 0:
                errors.append(f"{name} must be > 0, got {getattr(self, name)}")

        if not self.degenerate and not {"omega_0", "omega_1"} & bad_types:
            if not self.omega_0 > 0:
                errors.append(f"omega_0 must be > 0, got {self.omega_0}")
            elif self.omega_0 >= self.omega_1:
                errors.append(
                    f"omega_0 ({self.omega_0}) must be smaller than omega_1 ({self.omega_1})"
                )

        # Check MCMC parameters
        if "sample" not in bad_types and self.sample < 1:
            errors.append("sample must be >= 1")
        if self.burnin is not None and "burnin" not in bad_types and self.burnin < 0:
            errors.append("burnin must be >= 0")
        if "lag" not in bad_types:
            if self.lag < 1:
                errors.append("lag must be >= 1")
            elif "sample" not in bad_types and self.sample >= 1 and self.lag > self.sample:
                errors.append(f"lag ({self.lag}) must not exceed sample ({self.sample})")

        if "credible_mass" not in bad_types and not 0 < self.credible_mass < 1:
            errors.append("credible_mass must be between 0 and 1 (exclusive)")

        valid_inits = [s.value for s in InitStrategy]
        if self.init not in valid_inits:
            errors.append(f"init must be one of {valid_inits}, got {self.init}")

        # Check random seed
        if self.seed is not None and "seed" not in bad_types and self.seed < 0:
            errors.append("seed must be >= 0")

        return errors

    def validate_or_raise(self) -> "SLFMConfig":
        """Raise ConfigValidationError listing every problem, else return self."""
        errors = self.validate()
        if errors:
            raise ConfigValidationError(
                "Model configuration validation failed:\n"
                + "\n".join(f"  - {error}" for error in errors)
            )
        return self


@dataclass
class MonitoringConfig:
    """Monitoring configuration schema."""

    log_level: str = "INFO"
    progress_interval: int = 250

    def validate(self) -> List[str]:
        """Validate monitoring configuration."""
        errors = []

        valid_levels = [level.value for level in LogLevel]
        if self.log_level not in valid_levels:
            errors.append(f"log_level must be one of {valid_levels}")

        if self.progress_interval < 1:
            errors.append("progress_interval must be >= 1")

        return errors


@dataclass
class OutputConfig:
    """Output configuration schema."""

    output_dir: str = "./results"
    save_chains: bool = True

    def validate(self) -> List[str]:
        errors = []
        if not self.output_dir:
            errors.append("output_dir is required")
        return errors


class ConfigurationValidator:
    """Main configuration validator."""

    @staticmethod
    def create_from_dict(config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Create configuration objects from dictionary."""
        config_objects = {}

        model_section = config_dict.get("model") or {}
        if "factors" not in model_section:
            raise ConfigValidationError(
                "model.factors is required: the number of latent factors is never inferred"
            )
        config_objects["model"] = SLFMConfig.from_dict(model_section)

        config_objects["monitoring"] = MonitoringConfig(
            **(config_dict.get("monitoring") or {})
        )
        config_objects["output"] = OutputConfig(**(config_dict.get("output") or {}))

        return config_objects

    @staticmethod
    def validate_configuration(config_dict: Dict[str, Any]) -> List[str]:
        """Validate complete configuration."""
        all_errors = []

        try:
            config_objects = ConfigurationValidator.create_from_dict(config_dict)

            for section_name, config_obj in config_objects.items():
                section_errors = config_obj.validate()
                for error in section_errors:
                    all_errors.append(f"{section_name}: {error}")

        except ConfigValidationError as e:
            all_errors.append(str(e))
        except (TypeError, ValueError) as e:
            all_errors.append(f"Configuration structure error: {str(e)}")

        unknown = set(config_dict) - {"model", "monitoring", "output"}
        if unknown:
            logger.warning(f"Ignoring unknown configuration sections: {sorted(unknown)}")

        return all_errors

    @staticmethod
    def get_default_configuration() -> Dict[str, Any]:
        """Get default configuration (the model section still needs 'factors')."""
        return {
            "model": {
                "a": 2.1,
                "b": 1.1,
                "gamma_a": 1.0,
                "gamma_b": 1.0,
                "omega_0": 0.01,
                "omega_1": 10.0,
                "sample": 1000,
                "lag": 1,
                "degenerate": False,
                "credible_mass": 0.95,
                "init": "pca",
            },
            "monitoring": {"log_level": "INFO", "progress_interval": 250},
            "output": {"output_dir": "./results", "save_chains": True},
        }

    @staticmethod
    def merge_with_defaults(config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Merge user configuration with defaults."""
        default_config = ConfigurationValidator.get_default_configuration()

        def deep_merge(base: Dict, update: Dict) -> Dict:
            """Deep merge two dictionaries."""
            merged = base.copy()
            for key, value in update.items():
                if (
                    key in merged
                    and isinstance(merged[key], dict)
                    and isinstance(value, dict)
                ):
                    merged[key] = deep_merge(merged[key], value)
                else:
                    merged[key] = value
            return merged

        return deep_merge(default_config, config_dict)

    @staticmethod
    def validate_and_raise(config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Merge with defaults, validate and return configuration objects."""
        merged = ConfigurationValidator.merge_with_defaults(config_dict)
        errors = ConfigurationValidator.validate_configuration(merged)

        if errors:
            error_message = "Configuration validation failed:\n" + "\n".join(
                f"  - {error}" for error in errors
            )
            raise ConfigValidationError(error_message)

        logger.info("Configuration validation passed")
        return ConfigurationValidator.create_from_dict(merged)
