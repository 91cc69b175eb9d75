"""Configuration loader and validator."""

from pathlib import Path
from typing import Any, Optional

import yaml

from ttdraw.paths import get_default_db_path

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ConfigError(Exception):
    """Configuration validation error."""

    pass


def load_config(path: str) -> dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        path: Path to YAML config file

    Returns:
        Dictionary with configuration values

    Raises:
        ConfigError: If file not found or invalid YAML
    """
    config_file = Path(path)

    if not config_file.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}")

    if config is None:
        raise ConfigError("Config file is empty")

    if not isinstance(config, dict):
        raise ConfigError("Config file must contain a mapping")

    return config


def validate_config(config: dict[str, Any]) -> dict[str, Any]:
    """Validate configuration values.

    Args:
        config: Configuration dictionary

    Returns:
        Validated and normalized configuration

    Raises:
        ConfigError: If validation fails
    """
    validated = {}

    # Database path (optional, default in data dir)
    database = config.get("database") or str(get_default_db_path())
    if not isinstance(database, str) or not database.strip():
        raise ConfigError("database must be a non-empty path")
    validated["database"] = database

    # Qualifiers per group when no rules are stored (optional, default 2)
    validated["default_qualifiers_per_group"] = config.get("default_qualifiers_per_group", 2)
    qualifiers = validated["default_qualifiers_per_group"]
    if isinstance(qualifiers, bool) or not isinstance(qualifiers, int) or qualifiers < 1:
        raise ConfigError("default_qualifiers_per_group must be a positive integer")

    # Log level (optional, default INFO)
    log_level = str(config.get("log_level", "INFO")).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got '{log_level}'")
    validated["log_level"] = log_level

    return validated


def load_and_validate_config(path: Optional[str] = None) -> dict[str, Any]:
    """Load and validate configuration in one step.

    Args:
        path: Path to YAML config file; None gives the defaults

    Returns:
        Validated configuration dictionary

    Raises:
        ConfigError: If loading or validation fails
    """
    config = load_config(path) if path else {}
    return validate_config(config)
