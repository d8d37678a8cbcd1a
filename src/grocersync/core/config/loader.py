"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import GrocerSyncConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per session
_config_cache: GrocerSyncConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """
    Get path to user configuration file.

    Returns:
        Path to ~/.config/grocersync/config.json (or XDG equivalent)
    """
    return get_xdg_config_home() / "grocersync" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Working directory to search from (defaults to current directory)

    Returns:
        Path to .grocersync.json in the project root
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".grocersync.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`.
    Nested dicts are merged, not replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 20}})
        {"a": 1, "b": {"x": 10, "y": 20}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        # Config system should be resilient
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def _set_nested(config: dict[str, Any], section: str, key: str, value: Any) -> None:
    config.setdefault(section, {})
    config[section] = {**config[section], key: value}


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Env vars have the highest precedence and override all config files.

    Supported env vars:
        GROCERSYNC_API_URL - overrides api.base_url
        GROCERSYNC_ACCESS_TOKEN - overrides api.access_token
        GROCERSYNC_MAX_RETRIES - overrides retry.max_attempts
        GROCERSYNC_RETRY_BASE_DELAY - overrides retry.base_delay
        GROCERSYNC_STATE_DIR - overrides state.state_dir

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()

    if api_url := os.environ.get("GROCERSYNC_API_URL"):
        _set_nested(result, "api", "base_url", api_url)

    if token := os.environ.get("GROCERSYNC_ACCESS_TOKEN"):
        _set_nested(result, "api", "access_token", token)

    if retries_str := os.environ.get("GROCERSYNC_MAX_RETRIES"):
        try:
            retries = int(retries_str)
            if retries < 1:
                logger.warning(
                    "GROCERSYNC_MAX_RETRIES must be >= 1, got %d, ignoring", retries
                )
            else:
                _set_nested(result, "retry", "max_attempts", retries)
        except ValueError:
            logger.warning("Invalid GROCERSYNC_MAX_RETRIES value '%s', ignoring", retries_str)

    if delay_str := os.environ.get("GROCERSYNC_RETRY_BASE_DELAY"):
        try:
            delay = float(delay_str)
            if delay < 0:
                logger.warning(
                    "GROCERSYNC_RETRY_BASE_DELAY must be >= 0, got %s, ignoring", delay_str
                )
            else:
                _set_nested(result, "retry", "base_delay", delay)
        except ValueError:
            logger.warning(
                "Invalid GROCERSYNC_RETRY_BASE_DELAY value '%s', ignoring", delay_str
            )

    if state_dir := os.environ.get("GROCERSYNC_STATE_DIR"):
        _set_nested(result, "state", "state_dir", state_dir)

    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "retry": {"max_attempts": 3, "base_delay": 1.0, "multiplier": 2.0},
        "sync": {
            "foreground_interval_seconds": 15.0,
            "background_interval_seconds": 30.0,
        },
        "state": {"state_dir": ".grocersync/state"},
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> GrocerSyncConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (GROCERSYNC_*)
        2. Project config (.grocersync.json)
        3. User config (~/.config/grocersync/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Project directory to load .grocersync.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated GrocerSyncConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation

    Example:
        >>> config = load_config()
        >>> config.retry.max_attempts
        3
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = GrocerSyncConfig(**merged)

    _config_cache = config

    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
