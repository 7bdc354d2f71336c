"""
Configuration for httpchain: pydantic models plus a loader reading YAML/JSON
files and environment variables.
"""

from .loader import ConfigLoader, load_config
from .models import ClientConfig, HttpChainConfig, LoggingConfig, LogLevel, PoolConfig

__all__ = [
    "ClientConfig",
    "ConfigLoader",
    "HttpChainConfig",
    "LogLevel",
    "LoggingConfig",
    "PoolConfig",
    "load_config",
]
