"""
Logging manager for httpchain.

This module provides centralized logging configuration and management.
Library modules only ever call ``logging.getLogger(__name__)``; installing
handlers is left to applications through :func:`setup_logging`.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Dict, Optional

from ..config.models import LoggingConfig, LogLevel
from .filters import ComponentFilter, SensitiveDataFilter
from .formatters import ColoredFormatter, StructuredFormatter


def _level(level: LogLevel) -> int:
    return getattr(logging, LogLevel(level).value)


class LoggingManager:
    """Centralized logging manager."""

    def __init__(self) -> None:
        self._configured = False
        self._handlers: Dict[str, logging.Handler] = {}
        self._loggers: Dict[str, logging.Logger] = {}

    def setup_logging(self, config: LoggingConfig) -> None:
        """
        Setup logging based on configuration.

        Args:
            config: Logging configuration
        """
        if self._configured:
            self.cleanup()

        root_logger = logging.getLogger()
        root_logger.setLevel(_level(config.level))

        if config.enable_console:
            self._setup_console_handler(config)

        if config.enable_file and config.file_path:
            self._setup_file_handler(config)

        self._setup_component_loggers(config)

        self._configured = True
        logging.getLogger(__name__).debug("Logging system configured")

    def _formatter(self, config: LoggingConfig, colored: bool) -> logging.Formatter:
        if config.enable_structured:
            return StructuredFormatter()
        if colored:
            return ColoredFormatter(config.format)
        return logging.Formatter(config.format)

    def _install(self, name: str, handler: logging.Handler, config: LoggingConfig) -> None:
        handler.setLevel(_level(config.level))
        if config.mask_sensitive:
            handler.addFilter(SensitiveDataFilter())
        logging.getLogger().addHandler(handler)
        self._handlers[name] = handler

    def _setup_console_handler(self, config: LoggingConfig) -> None:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(self._formatter(config, colored=True))
        self._install("console", handler, config)

    def _setup_file_handler(self, config: LoggingConfig) -> None:
        log_path = Path(str(config.file_path))
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            filename=str(log_path),
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(self._formatter(config, colored=False))
        self._install("file", handler, config)

    def _setup_component_loggers(self, config: LoggingConfig) -> None:
        for component, level in config.component_levels.items():
            logger = logging.getLogger(component)
            logger.setLevel(_level(level))

            component_filter = ComponentFilter(component)
            for handler in logger.handlers:
                handler.addFilter(component_filter)

            self._loggers[component] = logger

    def get_logger(self, name: str) -> logging.Logger:
        return logging.getLogger(name)

    def set_level(self, level: LogLevel, component: Optional[str] = None) -> None:
        """
        Set logging level.

        Args:
            level: New logging level
            component: Specific component (None for root logger)
        """
        log_level = _level(level)

        if component:
            logging.getLogger(component).setLevel(log_level)
            return

        logging.getLogger().setLevel(log_level)
        for handler in self._handlers.values():
            handler.setLevel(log_level)

    def cleanup(self) -> None:
        """Remove and close every handler this manager installed."""
        root_logger = logging.getLogger()
        for handler in list(self._handlers.values()):
            root_logger.removeHandler(handler)
            handler.close()

        self._handlers.clear()
        self._loggers.clear()
        self._configured = False

    @property
    def handlers(self) -> Dict[str, logging.Handler]:
        return dict(self._handlers)

    def is_configured(self) -> bool:
        return self._configured


# Global logging manager instance
_logging_manager = LoggingManager()


def setup_logging(config: Optional[LoggingConfig] = None) -> LoggingManager:
    """
    Setup logging with configuration.

    Args:
        config: Logging configuration, defaults when omitted

    Returns:
        The global LoggingManager
    """
    _logging_manager.setup_logging(config or LoggingConfig())
    return _logging_manager


def get_logger(name: str) -> logging.Logger:
    return _logging_manager.get_logger(name)


def cleanup_logging() -> None:
    """Cleanup logging system."""
    _logging_manager.cleanup()
