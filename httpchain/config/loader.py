"""
Configuration loader for httpchain.

This module loads configuration from a YAML or JSON file and from
``HTTPCHAIN_*`` environment variables, the latter taking precedence.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from ..exceptions import InvalidArgumentError
from .models import HttpChainConfig


class ConfigLoader:
    """Configuration loader with support for multiple sources."""

    def __init__(self, env_prefix: str = "HTTPCHAIN_") -> None:
        self.config_paths = [
            Path("httpchain.yaml"),
            Path("httpchain.yml"),
            Path("httpchain.json"),
            Path.home() / ".httpchain" / "config.yaml",
            Path.home() / ".httpchain" / "config.json",
        ]
        self.env_prefix = env_prefix

    def _env_mappings(self) -> Dict[str, Tuple[str, ...]]:
        p = self.env_prefix
        return {
            # Logging
            f"{p}LOG_LEVEL": ("logging", "level"),
            f"{p}LOG_FILE": ("logging", "file_path"),
            f"{p}LOG_FORMAT": ("logging", "format"),
            f"{p}LOG_STRUCTURED": ("logging", "enable_structured"),
            # Pool
            f"{p}MAX_CONNECTIONS": ("pool", "max_connections"),
            f"{p}MAX_CONNECTIONS_PER_HOST": ("pool", "max_connections_per_host"),
            f"{p}POOL_TIMEOUT": ("pool", "pool_timeout"),
            f"{p}VERIFY_SSL": ("pool", "verify_ssl"),
            # Request defaults
            f"{p}FOLLOW_REDIRECTS": ("client", "follow_redirects"),
            f"{p}MAX_REDIRECTS": ("client", "max_redirects"),
            f"{p}THROW_EXCEPTIONS": ("client", "throw_exceptions"),
            f"{p}DECOMPRESS_BODY": ("client", "decompress_body"),
            f"{p}CONN_TIMEOUT": ("client", "conn_timeout"),
            f"{p}SOCKET_TIMEOUT": ("client", "socket_timeout"),
            f"{p}USER_AGENT": ("client", "user_agent"),
        }

    def load_config(self, config_file: Optional[Union[str, Path]] = None) -> HttpChainConfig:
        """
        Load configuration from all available sources.

        Args:
            config_file: Specific config file to load

        Returns:
            HttpChainConfig with file values overridden by the environment
        """
        config_data: Dict[str, Any] = {}

        file_config = self._load_from_file(config_file)
        if file_config:
            config_data.update(file_config)

        env_config = self._load_from_environment()
        if env_config:
            config_data = self._deep_merge(config_data, env_config)

        return HttpChainConfig(**config_data)

    def _load_from_file(
        self, config_file: Optional[Union[str, Path]] = None
    ) -> Optional[Dict[str, Any]]:
        if config_file:
            config_path = Path(config_file)
            if not config_path.exists():
                raise InvalidArgumentError(f"Config file not found: {config_path}")
            return self._parse_config_file(config_path)

        for config_path in self.config_paths:
            if config_path.exists():
                return self._parse_config_file(config_path)
        return None

    def _parse_config_file(self, config_path: Path) -> Dict[str, Any]:
        """Parse configuration file based on extension."""
        suffix = config_path.suffix.lower()
        if suffix not in (".yaml", ".yml", ".json"):
            raise InvalidArgumentError(f"Unsupported config file format: {config_path.suffix}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                if suffix == ".json":
                    return json.load(f) or {}
                return yaml.safe_load(f) or {}
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise InvalidArgumentError(f"Failed to parse config file {config_path}: {e}") from e

    def _load_from_environment(self) -> Dict[str, Any]:
        config: Dict[str, Any] = {}

        for env_var, config_path in self._env_mappings().items():
            value = os.getenv(env_var)
            if value is None:
                continue

            current = config
            for key in config_path[:-1]:
                current = current.setdefault(key, {})
            current[config_path[-1]] = self._convert_env_value(value)

        return config

    def _convert_env_value(self, value: str) -> Any:
        """Convert environment variable string to appropriate type."""
        lower = value.lower()
        if lower in ("true", "yes", "on"):
            return True
        if lower in ("false", "no", "off"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        return value

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def save_config(self, config: HttpChainConfig, config_file: Union[str, Path]) -> None:
        """Write ``config`` as YAML or JSON depending on the file extension."""
        config_path = Path(config_file)
        suffix = config_path.suffix.lower()
        if suffix not in (".yaml", ".yml", ".json"):
            raise InvalidArgumentError(f"Unsupported config file format: {config_path.suffix}")

        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_data = config.model_dump(mode="json")
        with open(config_path, "w", encoding="utf-8") as f:
            if suffix == ".json":
                json.dump(config_data, f, indent=2)
            else:
                yaml.safe_dump(config_data, f, default_flow_style=False, indent=2)


def load_config(config_file: Optional[Union[str, Path]] = None) -> HttpChainConfig:
    """Load configuration with the default loader."""
    return ConfigLoader().load_config(config_file)
