"""Configuration management for workhealth."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_TRUTHY = ("1", "true", "yes", "on")

# Defaults for the insight generator
DEFAULT_INSIGHTS_MODEL = "claude-sonnet-4-20250514"
DEFAULT_INSIGHTS_TIMEOUT_SECONDS = 30.0
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_CACHE_MAX_ENTRIES_PER_USER = 8


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file and return key-value pairs.

    Args:
        path: Path to .env file

    Returns:
        Dictionary of key-value pairs from the .env file.
        Empty dict if file doesn't exist or cannot be read.

    Note:
        - Skips empty lines and comments (lines starting with #)
        - Strips quotes (both single and double) from values
        - Handles KEY=VALUE format with optional whitespace
    """
    if not path.exists():
        return {}

    result: dict[str, str] = {}

    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Failed to read .env file (continuing): %s", str(path), exc_info=True)
        return {}

    for raw_line in content.splitlines():
        line = raw_line.strip()

        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, val = line.split("=", 1)
        key = key.strip()
        val = val.strip().strip('"').strip("'")

        if key:
            result[key] = val

    return result


def _read_float(name: str) -> float | None:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; ignoring", name, raw)
        return None


def _read_int(name: str) -> int | None:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; ignoring", name, raw)
        return None


class ConfigManager:
    """Manages application configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment to avoid
        surprising overrides of user's environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        parsed = parse_env_file(self.env_file_path)

        set_keys = []
        for key, val in parsed.items():
            if key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration dictionary from environment variables.

        Recognizes:
        - WORKHEALTH_DEFAULT_TIMEZONE -> 'default_timezone'
        - WORKHEALTH_GOOGLE_ACCESS_TOKEN -> 'google_access_token'
        - WORKHEALTH_USE_MOCK_DATA -> 'use_mock_data' (bool)
        - WORKHEALTH_ANTHROPIC_API_KEY or ANTHROPIC_API_KEY -> 'anthropic_api_key'
        - WORKHEALTH_INSIGHTS_MODEL -> 'insights_model'
        - WORKHEALTH_INSIGHTS_TIMEOUT -> 'insights_timeout_seconds' (float)
        - WORKHEALTH_INSIGHTS_CACHE_PATH -> 'insights_cache_path'
        - WORKHEALTH_INSIGHTS_CACHE_MAX_ENTRIES -> 'insights_cache_max_entries' (int)
        - WORKHEALTH_REQUEST_TIMEOUT -> 'request_timeout' (float)

        Returns:
            Configuration dictionary with defaults applied
        """
        cfg: dict[str, Any] = {
            "use_mock_data": False,
            "insights_model": DEFAULT_INSIGHTS_MODEL,
            "insights_timeout_seconds": DEFAULT_INSIGHTS_TIMEOUT_SECONDS,
            "insights_cache_max_entries": DEFAULT_CACHE_MAX_ENTRIES_PER_USER,
            "request_timeout": DEFAULT_REQUEST_TIMEOUT_SECONDS,
        }

        default_tz = os.environ.get("WORKHEALTH_DEFAULT_TIMEZONE")
        if default_tz:
            cfg["default_timezone"] = default_tz

        token = os.environ.get("WORKHEALTH_GOOGLE_ACCESS_TOKEN")
        if token:
            cfg["google_access_token"] = token

        use_mock = os.environ.get("WORKHEALTH_USE_MOCK_DATA", "")
        cfg["use_mock_data"] = use_mock.strip().lower() in _TRUTHY

        api_key = os.environ.get("WORKHEALTH_ANTHROPIC_API_KEY") or os.environ.get(
            "ANTHROPIC_API_KEY"
        )
        if api_key:
            cfg["anthropic_api_key"] = api_key

        model = os.environ.get("WORKHEALTH_INSIGHTS_MODEL")
        if model:
            cfg["insights_model"] = model

        insights_timeout = _read_float("WORKHEALTH_INSIGHTS_TIMEOUT")
        if insights_timeout is not None and insights_timeout > 0:
            cfg["insights_timeout_seconds"] = insights_timeout

        cache_path = os.environ.get("WORKHEALTH_INSIGHTS_CACHE_PATH")
        if cache_path:
            cfg["insights_cache_path"] = cache_path

        max_entries = _read_int("WORKHEALTH_INSIGHTS_CACHE_MAX_ENTRIES")
        if max_entries is not None and max_entries > 0:
            cfg["insights_cache_max_entries"] = max_entries

        request_timeout = _read_float("WORKHEALTH_REQUEST_TIMEOUT")
        if request_timeout is not None and request_timeout > 0:
            cfg["request_timeout"] = request_timeout

        return cfg

    def load_full_config(self) -> dict[str, Any]:
        """Load .env file and build configuration from environment.

        This is the main entry point for loading configuration.

        Returns:
            Configuration dictionary
        """
        self.load_env_file()
        return self.build_config_from_env()


def get_config_value(config: Any, key: str, default: Any = None) -> Any:
    """Get configuration value supporting both dict and dataclass-like objects.

    Args:
        config: Configuration object (dict or object with attributes)
        key: Configuration key to retrieve
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    if isinstance(config, dict):
        return config.get(key, default)
    return getattr(config, key, default)
