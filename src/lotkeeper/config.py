"""
Configuration loading and management for lotkeeper.

Settings come from a YAML file, then a .env file, then environment
variables, with later sources overriding earlier ones.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values

from lotkeeper.models import DEFAULT_PORTFOLIO


DEFAULT_CONFIG_FILE = Path("lotkeeper.yaml")
DEFAULT_ENV_FILE = Path(".env")

ENV_DATA_DIR = "LOTKEEPER_DATA_DIR"
ENV_LOG_LEVEL = "LOTKEEPER_LOG_LEVEL"
ENV_AUDIT_LOG = "LOTKEEPER_AUDIT_LOG"

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


@dataclass
class Settings:
    """
    Runtime settings.

    Attributes:
        data_dir: Directory holding the JSON collection files
        default_portfolio: Name of the fallback portfolio
        audit_log: Path of the JSONL audit log (None disables it)
        log_level: stdlib logging level name
    """
    data_dir: Path = Path("data")
    default_portfolio: str = DEFAULT_PORTFOLIO
    audit_log: Path | None = Path("data/audit_log.jsonl")
    log_level: str = "WARNING"


def load_settings(
    config_path: str | Path | None = None,
    env_file: str | Path | None = None,
) -> Settings:
    """
    Load settings from available configuration sources.

    Sources are checked in this order (later sources override earlier):
    1. YAML config file (lotkeeper.yaml by default, optional)
    2. .env file
    3. Environment variables

    Args:
        config_path: Path to a YAML file. If given explicitly it must exist.
        env_file: Path to a .env file (defaults to ./.env)

    Returns:
        Validated Settings

    Raises:
        ConfigurationError: If a source cannot be read or a value is invalid
    """
    raw: dict[str, Any] = {}

    # 1. YAML file
    if config_path is not None:
        yaml_path = Path(config_path)
        if not yaml_path.exists():
            raise ConfigurationError(f"Configuration file not found: {yaml_path}")
    else:
        yaml_path = DEFAULT_CONFIG_FILE
    if yaml_path.exists():
        raw.update(_load_yaml(yaml_path))

    # 2. .env file
    env_path = Path(env_file) if env_file else DEFAULT_ENV_FILE
    if env_path.exists():
        raw.update(_env_overrides(dotenv_values(env_path)))

    # 3. Environment variables (highest priority)
    raw.update(_env_overrides(os.environ))

    return _parse_settings(raw)


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "r") as f:
            loaded = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}")

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    return loaded


def _env_overrides(values: Any) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if values.get(ENV_DATA_DIR):
        overrides["data_dir"] = values[ENV_DATA_DIR]
    if values.get(ENV_LOG_LEVEL):
        overrides["log_level"] = values[ENV_LOG_LEVEL]
    if values.get(ENV_AUDIT_LOG):
        overrides["audit_log"] = values[ENV_AUDIT_LOG]
    return overrides


def _parse_settings(raw: dict[str, Any]) -> Settings:
    """
    Parse and validate a raw settings dictionary.

    Raises:
        ConfigurationError: If a field is invalid
    """
    settings = Settings()

    if "data_dir" in raw:
        data_dir = str(raw["data_dir"] or "").strip()
        if not data_dir:
            raise ConfigurationError("data_dir cannot be empty")
        settings.data_dir = Path(data_dir)
        # Audit log follows the data directory unless set explicitly
        settings.audit_log = settings.data_dir / "audit_log.jsonl"

    if "default_portfolio" in raw:
        name = str(raw["default_portfolio"] or "").strip()
        if not name:
            raise ConfigurationError("default_portfolio cannot be empty")
        settings.default_portfolio = name

    if "audit_log" in raw:
        value = raw["audit_log"]
        if value in (None, False, "", "none", "off"):
            settings.audit_log = None
        else:
            settings.audit_log = Path(str(value))

    if "log_level" in raw:
        level = str(raw["log_level"]).strip().upper()
        if level not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"log_level must be one of {sorted(VALID_LOG_LEVELS)}, got {raw['log_level']}"
            )
        settings.log_level = level

    return settings


def write_settings(settings: Settings, output_path: str | Path) -> None:
    """
    Write Settings to a YAML file.

    Args:
        settings: The settings to write
        output_path: Path to write the YAML file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = {
        "data_dir": str(settings.data_dir),
        "default_portfolio": settings.default_portfolio,
        "audit_log": str(settings.audit_log) if settings.audit_log else None,
        "log_level": settings.log_level,
    }

    with open(output_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
