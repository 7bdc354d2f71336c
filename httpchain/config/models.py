"""
Configuration models for httpchain.

This module defines the configuration data models with validation and
defaults: logging, the default transport's connection pool and the request
defaults a client merges into every request.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default=LogLevel.INFO, description="Default logging level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    file_path: Optional[Path] = Field(default=None, description="Log file path")
    max_file_size: int = Field(
        default=10 * 1024 * 1024, description="Max log file size in bytes"
    )
    backup_count: int = Field(default=5, description="Number of backup log files")
    enable_console: bool = Field(default=True, description="Enable console logging")
    enable_file: bool = Field(default=False, description="Enable file logging")
    enable_structured: bool = Field(
        default=False, description="Enable structured JSON logging"
    )
    mask_sensitive: bool = Field(
        default=True, description="Mask credentials and cookies in log records"
    )

    # Component-specific log levels
    component_levels: Dict[str, LogLevel] = Field(
        default_factory=dict, description="Per-component log levels"
    )


class PoolConfig(BaseModel):
    """Connection pool settings for the default aiohttp transport."""

    max_connections: int = Field(
        default=100, ge=1, le=1000, description="Total connection pool size"
    )
    max_connections_per_host: int = Field(
        default=30, ge=1, le=1000, description="Maximum connections per host"
    )
    pool_timeout: float = Field(
        default=30.0, gt=0, description="Seconds to wait for a free connection slot"
    )
    keepalive_timeout: float = Field(
        default=30.0, gt=0, description="Keep-alive timeout in seconds"
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class ClientConfig(BaseModel):
    """
    Request defaults applied by a client.

    Any option given on an individual request wins over these.
    """

    model_config = ConfigDict(use_enum_values=True)

    follow_redirects: bool = Field(default=True, description="Follow redirects")
    max_redirects: int = Field(default=20, ge=0, description="Maximum redirects")
    throw_exceptions: Optional[bool] = Field(
        default=None, description="Raise for exceptional statuses (None means yes)"
    )
    decompress_body: bool = Field(default=True, description="Decompress gzip/deflate")
    conn_timeout: Optional[float] = Field(
        default=None, gt=0, description="Connect timeout in seconds"
    )
    socket_timeout: Optional[float] = Field(
        default=None, gt=0, description="Read timeout in seconds"
    )
    user_agent: Optional[str] = Field(default=None, description="User-Agent header")
    default_headers: Dict[str, str] = Field(
        default_factory=dict, description="Headers added to every request"
    )

    @field_validator("default_headers")
    @classmethod
    def _no_empty_names(cls, v: Dict[str, str]) -> Dict[str, str]:
        for name in v:
            if not name or not name.strip():
                raise ValueError("Header names must not be empty")
        return v

    def request_defaults(self) -> Dict[str, Any]:
        """Options to merge under every request."""
        defaults: Dict[str, Any] = self.model_dump(
            exclude={"user_agent", "default_headers"}, exclude_none=True
        )
        headers = dict(self.default_headers)
        if self.user_agent:
            headers.setdefault("User-Agent", self.user_agent)
        if headers:
            defaults["headers"] = headers
        return defaults


class HttpChainConfig(BaseModel):
    """Top-level configuration combining every section."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    pool: PoolConfig = Field(default_factory=PoolConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
