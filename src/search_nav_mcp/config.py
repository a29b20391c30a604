"""
Configuration Management for the Search Navigator

Sensible defaults with optional environment variable overrides.
"""

import json
import logging
import os
from typing import Dict, List, Optional


class NavigatorConfig:
    """Search navigator configuration"""

    DEFAULT_EXECUTABLE = "ag"
    DEFAULT_HEADING = False
    DEFAULT_CHUNK_SIZE = 4096
    DEFAULT_TIMEOUT_SECONDS = 60.0
    DEFAULT_LOG_LEVEL = "ERROR"

    def __init__(self):
        self.executable = os.environ.get("SEARCH_NAV_EXECUTABLE") or self.DEFAULT_EXECUTABLE
        self.heading = self._get_bool_env("SEARCH_NAV_HEADING", self.DEFAULT_HEADING)
        self.chunk_size = self._get_int_env("SEARCH_NAV_CHUNK_SIZE", self.DEFAULT_CHUNK_SIZE)
        self.timeout_seconds = self._get_float_env(
            "SEARCH_NAV_TIMEOUT_SECONDS", self.DEFAULT_TIMEOUT_SECONDS
        )
        self.log_level = (
            os.environ.get("SEARCH_NAV_LOG_LEVEL") or self.DEFAULT_LOG_LEVEL
        ).upper()
        self.type_overrides = self._get_type_overrides("SEARCH_NAV_TYPE_OVERRIDES")

        self._validate_config()

    def _get_bool_env(self, key: str, default: bool) -> bool:
        """Get boolean from environment variable with fallback"""
        value = os.environ.get(key)
        if value is None:
            return default
        return value.strip().lower() in ("1", "true", "yes", "on")

    def _get_int_env(self, key: str, default: int) -> int:
        """Get integer from environment variable with fallback"""
        try:
            value = os.environ.get(key)
            if value is not None:
                return int(value)
        except (ValueError, TypeError):
            pass
        return default

    def _get_float_env(self, key: str, default: float) -> float:
        """Get float from environment variable with fallback"""
        try:
            value = os.environ.get(key)
            if value is not None:
                return float(value)
        except (ValueError, TypeError):
            pass
        return default

    def _get_type_overrides(self, key: str) -> Dict[str, List[str]]:
        """Parse a JSON object of mode -> option list"""
        value = os.environ.get(key)
        if not value:
            return {}
        try:
            data = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"{key} is not valid JSON: {e}")
        if not isinstance(data, dict):
            raise ValueError(f"{key} must be a JSON object")

        overrides: Dict[str, List[str]] = {}
        for mode, options in data.items():
            if isinstance(options, str):
                options = options.split()
            if not isinstance(options, list) or not all(isinstance(o, str) for o in options):
                raise ValueError(f"{key}: options for {mode!r} must be a list of strings")
            overrides[mode] = options
        return overrides

    def _validate_config(self):
        """Validate configuration values"""
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Unknown log level: {self.log_level}")

    def get_log_level(self) -> int:
        return logging.getLevelName(self.log_level)

    def to_dict(self) -> Dict[str, object]:
        return {
            "executable": self.executable,
            "heading": self.heading,
            "chunk_size": self.chunk_size,
            "timeout_seconds": self.timeout_seconds,
            "log_level": self.log_level,
            "type_overrides": self.type_overrides,
        }

    def __repr__(self) -> str:
        return (
            f"NavigatorConfig("
            f"executable={self.executable!r}, "
            f"heading={self.heading}, "
            f"chunk_size={self.chunk_size}, "
            f"timeout_seconds={self.timeout_seconds}, "
            f"log_level={self.log_level!r})"
        )


# Global configuration instance
_config: Optional[NavigatorConfig] = None


def get_navigator_config() -> NavigatorConfig:
    """Get global navigator configuration instance"""
    global _config
    if _config is None:
        _config = NavigatorConfig()
    return _config


def reset_config():
    """Reset configuration (mainly for testing)"""
    global _config
    _config = None


# Environment documentation
CONFIG_DOCS = """
Search Navigator Environment Variables:

- SEARCH_NAV_EXECUTABLE: Search tool to run (default: ag)
- SEARCH_NAV_HEADING: Group matches under file headings (default: false)
- SEARCH_NAV_CHUNK_SIZE: Bytes read from the search process per chunk (default: 4096)
- SEARCH_NAV_TIMEOUT_SECONDS: Abort searches running longer than this (default: 60)
- SEARCH_NAV_LOG_LEVEL: Logging level written to stderr (default: ERROR)
- SEARCH_NAV_TYPE_OVERRIDES: JSON object mapping editor modes to ag options

Example usage:
    export SEARCH_NAV_EXECUTABLE=/usr/local/bin/ag
    export SEARCH_NAV_HEADING=true
    export SEARCH_NAV_TYPE_OVERRIDES='{"python-mode": ["--python", "--ignore", "build"]}'
"""
