"""
Logging utilities.

Provides a named-logger registry with console output and optional
file output, shared by the library modules and the report sink.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

# Global logger registry
_loggers: dict = {}

ROOT_LOGGER = "login_anomaly"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _add_file_handler(logger: logging.Logger, log_file: Path, formatter: logging.Formatter) -> None:
    log_file = Path(log_file).resolve()
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_file:
            return
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logger.level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)


def setup_logger(
    name: str = ROOT_LOGGER,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """
    Set up a logger with console and optional file output.

    A logger that is already registered is returned as is, except that a
    new ``log_file`` is attached to it.

    Args:
        name: Logger name (used to retrieve logger later).
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to log file.
        console: Whether to log to console.
        fmt: Record format for all handlers.

    Returns:
        Configured logger instance.

    Example:
        >>> logger = setup_logger("login_anomaly.report", fmt="%(message)s")
        >>> logger.info("Starting report")
    """
    formatter = logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S")

    # Return existing logger if already set up
    if name in _loggers:
        logger = _loggers[name]
        if log_file is not None:
            _add_file_handler(logger, log_file, formatter)
        return logger

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers = []  # Clear existing handlers
    logger.propagate = False

    # Console handler
    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    # File handler
    if log_file is not None:
        _add_file_handler(logger, log_file, formatter)

    _loggers[name] = logger
    return logger
