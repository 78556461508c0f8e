"""Compound Eye Configuration

Configuration loading with environment variable support and sensible defaults.

Environment Variables:
    COMPOUND_EYE_CONFIG_PATH: Path to config file (default: ./compound-eye.yaml)
    COMPOUND_EYE_DB_PATH: Override database path from config
    COMPOUND_EYE_PORT: Override server port from config

Configuration Schema:
    server:
        host: str - Interface to bind (default: "127.0.0.1")
        port: int - Port to serve on (default: 4141)
        log_level: str - Logging level (default: "INFO")
    database:
        path: str - SQLite database file (default: "compound-eye.db")
    scanner:
        git_timeout: float - Seconds allowed per `git remote` lookup (default: 10)
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "compound-eye.yaml"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""


DEFAULT_CONFIG: dict[str, Any] = {
    "server": {
        "host": "127.0.0.1",
        "port": 4141,
        "log_level": "INFO",
    },
    "database": {
        "path": "compound-eye.db",
    },
    "scanner": {
        "git_timeout": 10.0,
    },
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge override dict into base dict.

    Args:
        base: Base dictionary (defaults)
        override: Override dictionary (user config)

    Returns:
        Merged dictionary with override values taking precedence
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_config(
    config_path: str | Path | None = None, base_dir: Path | None = None
) -> dict[str, Any]:
    """
    Load configuration from YAML file with environment variable overrides.

    Configuration Loading Order (later overrides earlier):
    1. Default values (DEFAULT_CONFIG)
    2. Config file (config_path parameter or COMPOUND_EYE_CONFIG_PATH)
    3. Environment variable overrides (COMPOUND_EYE_DB_PATH, COMPOUND_EYE_PORT)

    Args:
        config_path: Explicit config file path (overrides COMPOUND_EYE_CONFIG_PATH)
        base_dir: Directory searched for the optional default config file.
            Defaults to the current working directory.

    Returns:
        Merged configuration dictionary

    Raises:
        ConfigurationError: If an explicit config file is invalid YAML,
            unreadable, or an environment override is malformed
    """
    if base_dir is None:
        base_dir = Path.cwd()

    config = copy.deepcopy(DEFAULT_CONFIG)

    file_path = config_path or os.environ.get("COMPOUND_EYE_CONFIG_PATH")

    if file_path:
        # Explicit config path - must be valid if it exists
        resolved_path = Path(file_path).expanduser()
        if resolved_path.exists():
            try:
                config = _deep_merge(config, _read_yaml(resolved_path))
                logger.info(f"Loaded configuration from: {resolved_path}")
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in config file: {e}") from e
            except OSError as e:
                raise ConfigurationError(f"Cannot read config file: {e}") from e
        else:
            logger.warning(f"Config file not found (using defaults): {file_path}")
    else:
        default_config_path = base_dir / DEFAULT_CONFIG_FILENAME
        if default_config_path.exists():
            try:
                config = _deep_merge(config, _read_yaml(default_config_path))
                logger.info(f"Loaded configuration from: {default_config_path}")
            except yaml.YAMLError as e:
                logger.warning(f"Invalid YAML in default config (ignoring): {e}")
            except OSError as e:
                logger.warning(f"Cannot read default config (ignoring): {e}")
        else:
            logger.debug("No config file found, using defaults")

    db_path_override = os.environ.get("COMPOUND_EYE_DB_PATH")
    if db_path_override:
        config.setdefault("database", {})["path"] = db_path_override
        logger.info(f"Database path override from env: {db_path_override}")

    port_override = os.environ.get("COMPOUND_EYE_PORT")
    if port_override:
        try:
            config.setdefault("server", {})["port"] = int(port_override)
        except ValueError as e:
            raise ConfigurationError(
                f"COMPOUND_EYE_PORT must be an integer, got {port_override!r}"
            ) from e

    return config


def get_db_path(config: dict[str, Any]) -> str:
    """
    Get the database path from config.

    ":memory:" is passed through untouched; anything else is expanded
    against the user's home directory.
    """
    path = config.get("database", {}).get("path") or DEFAULT_CONFIG["database"]["path"]
    if path == ":memory:":
        return path
    return str(Path(path).expanduser())


def get_server_config(config: dict[str, Any]) -> dict[str, Any]:
    """Extract server settings, filling gaps from DEFAULT_CONFIG."""
    return {**DEFAULT_CONFIG["server"], **config.get("server", {})}


def get_scanner_config(config: dict[str, Any]) -> dict[str, Any]:
    """Extract scanner settings, filling gaps from DEFAULT_CONFIG."""
    return {**DEFAULT_CONFIG["scanner"], **config.get("scanner", {})}
