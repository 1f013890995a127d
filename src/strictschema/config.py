"""Configuration loading and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from strictschema.errors import ConfigError, ConfigNotFoundError

__all__ = ["Config"]


class Config:
    """Configuration accessor with dot-path key support.

    Recognized keys:
        conversion.max_depth: Depth ceiling of the reachability pre-pass.
        conversion.definition_prefix: Prefix of auto-generated definition names.
        schema.root: Directory searched by SchemaLoader.
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}

    @classmethod
    def load(cls, path: str | Path) -> Config:
        """Load configuration from a YAML file."""
        file_path = Path(path)
        if not file_path.exists():
            raise ConfigNotFoundError(config_path=str(file_path))

        try:
            data = yaml.safe_load(file_path.read_text())
        except yaml.YAMLError as e:
            raise ConfigError(message=f"Invalid YAML in config file {file_path}: {e}", cause=e) from e

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(
                message=f"Config file {file_path} must be a YAML mapping, got {type(data).__name__}"
            )
        return cls(data)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-path key."""
        parts = key.split(".")
        current: Any = self._data
        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current
