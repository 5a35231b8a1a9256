"""
================================================================================
Global Configuration for Test Automation Essentials
================================================================================

This module provides centralized configuration management for the library,
including logging setup and configuration file loading.

Features:
    - YAML-based configuration loading
    - Environment-specific overlays (config/{ENVIRONMENT}.yaml)
    - Environment variable overrides (WAIT__TIMEOUT=10 overrides wait.timeout)
    - Centralized Loguru logging configuration

Author: Automation Team
License: MIT
================================================================================
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger

# Global configuration storage
_config: Dict[str, Any] = {}
_config_loaded: bool = False
_logger_initialized: bool = False

DEFAULT_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
)


def init_logger(level: Optional[str] = None, format_str: Optional[str] = None) -> None:
    """
    Initializes the global Loguru logger with consistent configuration.

    This function should be called once at the start of a test session
    (the pytest plugin does it for you).

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        format_str: Custom log format string. Defaults to config value.
    """
    global _logger_initialized

    if _logger_initialized:
        return

    _ensure_config_loaded()

    log_level = level or get_config("logging.level", "INFO")
    log_format = format_str or get_config("logging.format", DEFAULT_LOG_FORMAT)

    # Remove default logger and add configured one
    logger.remove()
    logger.add(
        sys.stderr,
        level=str(log_level).upper(),
        format=log_format,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    log_file = get_config("logging.file", None)
    if log_file:
        log_dir = Path(log_file).parent
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=str(log_level).upper(),
            format=log_format.replace("{level: <8}", "{level}"),  # Remove padding for file
            rotation=get_config("logging.rotation", "10 MB"),
            retention=get_config("logging.retention", "7 days"),
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {log_level}")


def get_logger():
    """
    Returns the configured Loguru logger instance.

    Ensures the logger is initialized before returning.
    """
    if not _logger_initialized:
        init_logger()
    return logger


def _ensure_config_loaded() -> None:
    if not _config_loaded:
        _load_config()


def _candidate_config_dirs() -> List[Path]:
    dirs = []
    env_dir = os.getenv("AUTOTEST_CONFIG_DIR")
    if env_dir:
        dirs.append(Path(env_dir))
    dirs.append(Path("config"))
    dirs.append(Path(__file__).parent.parent.parent / "config")
    return dirs


def _load_config() -> None:
    """
    Loads configuration from YAML files and environment variables.

    Configuration loading order:
        1. Built-in defaults
        2. Default configuration file (config/config.yaml)
        3. Environment-specific configuration (config/{ENVIRONMENT}.yaml)
        4. Environment variables (override YAML settings)
    """
    global _config, _config_loaded

    _config = _get_defaults()

    config_dir = None
    for dir_path in _candidate_config_dirs():
        if dir_path.is_dir():
            config_dir = dir_path
            break

    if config_dir:
        default_config_path = config_dir / "config.yaml"
        if default_config_path.exists():
            with open(default_config_path, "r", encoding="utf-8") as f:
                _config = _deep_merge(_config, yaml.safe_load(f) or {})
            logger.debug(f"Loaded configuration from {default_config_path}")

        env = os.getenv("ENVIRONMENT", os.getenv("ENV", "dev"))
        env_config_path = config_dir / f"{env}.yaml"
        if env_config_path.exists():
            with open(env_config_path, "r", encoding="utf-8") as f:
                env_config = yaml.safe_load(f) or {}
            _config = _deep_merge(_config, env_config)
            logger.debug(f"Merged environment config: {env_config_path}")
    else:
        logger.debug("No configuration directory found. Using defaults.")

    _apply_env_overrides()
    _config_loaded = True


def _get_defaults() -> Dict[str, Any]:
    return {
        "logging": {
            "level": "INFO",
            "format": DEFAULT_LOG_FORMAT,
        },
        "wait": {
            "timeout": 30.0,
            "initial_interval": 0.1,
            "multiplier": 1.5,
            "max_interval": 2.0,
            "jitter": False,
        },
        "isolation": {
            "log_sections": True,
        },
    }


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Deep merges two dictionaries, with override taking precedence.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides() -> None:
    """
    Applies environment variable overrides to the configuration.

    Environment variable naming convention:
        - Use double underscore to separate nested keys
        - Example: LOGGING__LEVEL=DEBUG overrides logging.level
        - Only sections that already exist in the configuration are touched
    """
    for key, value in os.environ.items():
        if "__" not in key:
            continue
        parts = [p.lower() for p in key.split("__")]
        if parts[0] in _config:
            _set_nested(_config, parts, _convert_type(value))


def _convert_type(value: str) -> Any:
    """Convert an environment string into bool/int/float where it looks like one."""
    lowered = value.lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            pass
    return value


def _set_nested(d: Dict, keys: list, value: Any) -> None:
    for key in keys[:-1]:
        d = d.setdefault(key, {})
    d[keys[-1]] = value


def get_config(key: str, default: Any = None) -> Any:
    """
    Retrieves a configuration value using a dot-separated key path.

    Args:
        key: Dot-separated key path (e.g., "logging.level", "wait.timeout").
        default: Default value to return if key is not found.

    Returns:
        The configuration value, or the default if not found.

    Examples:
        >>> get_config("logging.level", "INFO")
        'INFO'
        >>> get_config("wait.timeout", 30)
        30.0
    """
    _ensure_config_loaded()

    value = _config
    for k in key.split("."):
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return default

    return value


def set_config(key: str, value: Any) -> None:
    """
    Sets a configuration value at runtime.

    Args:
        key: Dot-separated key path.
        value: Value to set.
    """
    _ensure_config_loaded()
    _set_nested(_config, key.split("."), value)


def reload_config() -> None:
    """
    Reloads the configuration from files and re-initializes the logger.
    """
    global _logger_initialized
    _logger_initialized = False
    _load_config()
    init_logger()
    logger.info("Configuration reloaded.")


def reset_config() -> None:
    """
    Drops the loaded configuration so the next access reloads it.

    Useful for testing when configuration needs to be reloaded
    with different settings.
    """
    global _config, _config_loaded
    _config = {}
    _config_loaded = False
