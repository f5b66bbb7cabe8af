"""
Configuration loader — reads bbmigrate.yml into a Settings model.

This is the primary entry point for loading configuration.
It reads YAML, validates against the Pydantic schema, and returns
typed settings. Relative paths in the file are resolved against
the file's own directory, so the tool can be run from anywhere.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from bbmigrate.core.models.settings import Settings

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "bbmigrate.yml"

# Secrets are better kept out of the YAML file
API_KEY_ENV = "BBM_API_KEY"


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for bbmigrate.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to bbmigrate.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(path: Path | None = None) -> Settings:
    """Load and validate configuration.

    Args:
        path: Explicit path to bbmigrate.yml. If None, searches upward.

    Returns:
        Validated Settings model.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        raise ConfigError(f"No {CONFIG_FILE} found. Create one, or specify --config.")

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = Settings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    env_key = os.environ.get(API_KEY_ENV)
    if env_key:
        settings.forum.api_key = env_key

    root = config_root(path)
    if settings.quote_map:
        settings.quote_map = str(_resolve(root, settings.quote_map))
    if settings.audit_log:
        settings.audit_log = str(_resolve(root, settings.audit_log))

    logger.debug("Loaded config for %s", settings.forum.base_url)
    return settings


def config_root(config_path: Path) -> Path:
    """Get the directory relative paths in the config are resolved against."""
    return config_path.parent.resolve()


def _resolve(root: Path, value: str) -> Path:
    p = Path(value).expanduser()
    return p if p.is_absolute() else root / p
