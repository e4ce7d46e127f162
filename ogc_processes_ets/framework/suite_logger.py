"""
================================================================================
Suite Logger
================================================================================

Centralized Loguru configuration for the test suite.

Adds a CONFIG severity (between DEBUG and INFO) used for configuration
diagnostics, and tracks the active threshold so callers can ask whether a
given level is currently enabled. Temporary files are kept for inspection
when the suite runs at CONFIG verbosity or lower.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

from .config_loader import ConfigLoader


CONFIG_LEVEL = "CONFIG"
CONFIG_LEVEL_NO = 15

DEFAULT_LEVEL = "INFO"
DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "{name}:{function}:{line} | {message}"
)

# Handlers installed by init_logger
_handler_ids: List[int] = []
_threshold_no: int = 20


def _register_config_level() -> None:
    try:
        logger.level(CONFIG_LEVEL)
    except ValueError:
        logger.level(CONFIG_LEVEL, no=CONFIG_LEVEL_NO, color="<cyan>")


def _level_no(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    _register_config_level()
    return logger.level(level.upper()).no


def init_logger(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    config: Optional[ConfigLoader] = None,
) -> None:
    """
    Initializes the global Loguru logger for a suite run.

    Calling it again replaces the previous configuration, so the threshold
    reported by is_loggable() always matches the installed sinks.

    Args:
        level: Log level name (DEBUG, CONFIG, INFO, ...). Defaults to config value.
        log_file: Optional log file path. Defaults to config value.
        config: Configuration loader. Creates one if None.
    """
    global _threshold_no

    if config is None:
        config = ConfigLoader()

    _register_config_level()

    log_level = str(level or config.get("logging.level", DEFAULT_LEVEL)).upper()
    log_format = config.get("logging.format", DEFAULT_FORMAT)
    log_file = log_file or config.get("logging.file", None)

    logger.remove()
    _handler_ids.clear()
    _handler_ids.append(
        logger.add(
            sys.stderr,
            level=log_level,
            format=log_format,
            colorize=True,
            backtrace=True,
            diagnose=False,
        )
    )

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        _handler_ids.append(
            logger.add(
                log_file,
                level=log_level,
                format=log_format.replace("{level: <8}", "{level}"),
                rotation=config.get("logging.rotation", "10 MB"),
                retention=config.get("logging.retention", "7 days"),
            )
        )

    _threshold_no = _level_no(log_level)
    logger.debug(f"Logger initialized with level: {log_level}")


def is_loggable(level: Union[str, int]) -> bool:
    """Return True if messages at ``level`` pass the configured threshold."""
    return _level_no(level) >= _threshold_no


def shutdown_logger() -> None:
    """Remove the sinks installed by init_logger and restore the default threshold."""
    global _threshold_no

    _threshold_no = _level_no(DEFAULT_LEVEL)
    for handler_id in _handler_ids:
        try:
            logger.remove(handler_id)
        except ValueError:
            pass
    _handler_ids.clear()


_register_config_level()


__all__ = [
    "CONFIG_LEVEL",
    "init_logger",
    "is_loggable",
    "shutdown_logger",
]
