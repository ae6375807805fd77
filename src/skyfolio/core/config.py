"""Configuration resolver with 4-level priority.

Priority (highest to lowest):
1. CLI arguments
2. Environment variables (SKYFOLIO_*)
3. Config files (user > system)
4. Defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from skyfolio.core.errors import ConfigError

ALLOWED_LOGGING_LEVELS = frozenset({"quiet", "normal", "verbose", "debug"})
DEFAULT_LOGGING_LEVEL = "normal"


@dataclass
class ConfigSource:
    """Represents where a config value came from."""

    value: Any
    source: str  # 'cli' | 'env' | 'user_config' | 'system_config' | 'default'


class ConfigResolver:
    """Resolve configuration with strict priority.

    Example:
        resolver = ConfigResolver(
            cli_args={'api': {'base_url': 'https://skyfolio.example/api'}},
            user_config_path=Path('~/.config/skyfolio/config.yaml')
        )

        base_url, source = resolver.resolve('api.base_url')
        # source = 'cli'
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        """Initialize config resolver.

        Args:
            cli_args: Arguments from CLI (highest priority, nested dicts)
            user_config_path: Path to user config file
            system_config_path: Path to system config file
            defaults: Default values (lowest priority)
        """
        self.cli_args = cli_args or {}
        self.user_config_path = user_config_path or Path.home() / ".config/skyfolio/config.yaml"
        self.system_config_path = system_config_path or Path("/etc/skyfolio/config.yaml")
        self.defaults = defaults if defaults is not None else self._default_config()

        self._user_config: dict[str, Any] | None = None
        self._system_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (supports dot notation: 'api.base_url')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        value = self._get_nested(self.cli_args, key)
        if value is not None:
            return value, "cli"

        value = self._from_env(key)
        if value is not None:
            return value, "env"

        value = self._get_nested(self._get_user_config(), key)
        if value is not None:
            return value, "user_config"

        value = self._get_nested(self._get_system_config(), key)
        if value is not None:
            return value, "system_config"

        value = self._get_nested(self.defaults, key)
        if value is not None:
            return value, "default"

        raise ConfigError(f"Config key '{key}' not found in any source")

    def get(self, key: str, default: Any = None) -> Any:
        """Resolve a key, returning ``default`` when no source provides it."""
        try:
            value, _source = self.resolve(key)
        except ConfigError:
            return default
        return value

    def resolve_logging_level(self) -> str:
        """Resolve and validate logging.level.

        Allowed values (after normalization): quiet | normal | verbose | debug

        Raises:
            ConfigError: If the resolved value is invalid.
        """
        key = "logging.level"
        value = self.get(key, DEFAULT_LOGGING_LEVEL)
        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")

        norm = value.strip().lower()
        if norm not in ALLOWED_LOGGING_LEVELS:
            allowed = ", ".join(sorted(ALLOWED_LOGGING_LEVELS))
            raise ConfigError(f"Invalid '{key}': {value!r}. Allowed values: {allowed}")
        return norm

    def resolve_base_url(self) -> str:
        key = "api.base_url"
        value, _src = self.resolve(key)
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"Config key '{key}' must be a non-empty string")
        return value.rstrip("/")

    def resolve_bool(self, key: str) -> bool:
        value, _src = self.resolve(key)
        if isinstance(value, bool):
            return value
        # Environment values arrive as strings.
        if isinstance(value, str) and value.lower() in {"true", "false", "1", "0"}:
            return value.lower() in {"true", "1"}
        raise ConfigError(f"Config key '{key}' must be a bool")

    def _from_env(self, key: str) -> Any | None:
        """Get value from environment variables.

        Environment variable format: SKYFOLIO_KEY_NAME
        Example: SKYFOLIO_API_BASE_URL, SKYFOLIO_LOGGING_LEVEL
        """
        env_key = f"SKYFOLIO_{key.upper().replace('.', '_')}"
        return os.environ.get(env_key)

    def _get_user_config(self) -> dict[str, Any]:
        if self._user_config is None:
            self._user_config = self._load_yaml(self.user_config_path)
        return self._user_config

    def _get_system_config(self) -> dict[str, Any]:
        if self._system_config is None:
            self._system_config = self._load_yaml(self.system_config_path)
        return self._system_config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

    def _get_nested(self, data: dict[str, Any], key: str) -> Any | None:
        """Get nested value using dot notation.

        Example:
            data = {'logging': {'level': 'debug'}}
            _get_nested(data, 'logging.level') -> 'debug'
        """
        current: Any = data

        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None

        return current

    @staticmethod
    def _default_config() -> dict[str, Any]:
        """Default configuration."""
        return {
            "api": {
                "base_url": "http://localhost:5000/api",
                "token_file": str(Path.home() / ".config" / "skyfolio" / "token"),
                "upload_path": "/upload-image",
            },
            "logging": {
                "level": DEFAULT_LOGGING_LEVEL,
                "color": True,
                # Optional path; every log line is appended there.
                "file": None,
            },
            "wizard": {
                # Optional path to a YAML wizard definition.
                "definition": None,
            },
        }
