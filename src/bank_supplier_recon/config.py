"""Configuration loader and validation for reconciliation settings."""

from pathlib import Path
from typing import Any, Optional
import logging

import yaml
from pydantic import BaseModel, Field, ValidationError

from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_DENY_TOKENS = [
    "fecha",
    "concepto",
    "importe",
    "saldo",
    "debe",
    "haber",
    "operación",
    "valor",
    "descripción",
    "movimiento",
    "página",
    "extracto",
    "cuenta",
    "titular",
    "iban",
    "bic",
    "swift",
    "divisa",
]


class ExtractionConfig(BaseModel):
    """Configuration for statement and ledger extraction."""

    # Description prefix length used in the duplicate-detection key
    dedup_description_length: int = Field(default=30, ge=1)
    min_description_length: int = Field(default=3, ge=0)
    # Descriptions shorter than this are checked against the deny tokens
    short_description_length: int = Field(default=30, ge=0)
    deny_tokens: list[str] = Field(default_factory=lambda: list(DEFAULT_DENY_TOKENS))
    # Period workbooks write slash dates as MM/DD/YYYY
    ledger_month_first: bool = True


class MatchingOptions(BaseModel):
    """Options for the matching engine."""

    amount_tolerance: float = Field(default=0.01, gt=0)
    use_accounting_date: bool = True
    # None keeps the closest-date fallback unbounded
    max_date_distance_days: Optional[int] = Field(default=None, ge=0)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None


class ReconConfig(BaseModel):
    """Main configuration model for reconciliation."""

    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    matching: MatchingOptions = Field(default_factory=MatchingOptions)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_file_path: Optional[str] = None


def get_default_config() -> dict[str, Any]:
    """Return the default configuration as a dictionary."""
    return {
        "extraction": {
            "dedup_description_length": 30,
            "min_description_length": 3,
            "short_description_length": 30,
            "deny_tokens": list(DEFAULT_DENY_TOKENS),
            "ledger_month_first": True,
        },
        "matching": {
            "amount_tolerance": 0.01,
            "use_accounting_date": True,
            "max_date_distance_days": None,
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file": None,
        },
    }


def load_config(config_path: Optional[Path] = None) -> ReconConfig:
    """
    Load configuration from a YAML file or use defaults.

    Args:
        config_path: Path to YAML configuration file (optional)

    Returns:
        ReconConfig object with loaded or default settings

    Raises:
        ConfigurationError: If the file is not valid YAML or has invalid values
    """
    config_dict = get_default_config()

    if config_path and config_path.exists():
        logger.info(f"Loading configuration from: {config_path}")
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

        # Deep merge user config into defaults
        config_dict = _deep_merge(config_dict, user_config)
        config_dict["config_file_path"] = str(config_path)
    else:
        logger.info("Using default configuration")

    try:
        return ReconConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def override_matching(options: MatchingOptions, overrides: dict[str, Any]) -> MatchingOptions:
    """
    Apply overrides to matching options, validating the result.

    Raises:
        ConfigurationError: If an overridden value is invalid
    """
    try:
        return MatchingOptions.model_validate({**options.model_dump(), **overrides})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid matching options: {e}") from e


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def generate_default_config(output_path: Path) -> None:
    """
    Generate a default configuration file.

    Args:
        output_path: Path to write the configuration file
    """
    config_dict = get_default_config()

    yaml_content = """# Bank statement / supplier ledger reconciliation configuration
# Generated configuration file - customize as needed

"""
    yaml_content += yaml.dump(
        config_dict, default_flow_style=False, sort_keys=False, allow_unicode=True
    )

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(yaml_content)

    logger.info(f"Generated configuration file: {output_path}")
