"""
Logging Configuration
Sets up the 'pathwarp' logger for the application.

The level can be overridden without code changes through the
PATHWARP_LOG_LEVEL environment variable (e.g. PATHWARP_LOG_LEVEL=DEBUG to see
every gesture and export step).
"""
import logging
import os
import sys
from typing import Optional, Union

LOG_LEVEL_ENV = "PATHWARP_LOG_LEVEL"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ("pyvista", "vtkmodules")


def resolve_level(level: Union[int, str]) -> int:
    """Accept logging.DEBUG or 'debug'; unknown names raise ValueError."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the logger for the 'pathwarp' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG or "debug"). The
            PATHWARP_LOG_LEVEL environment variable wins if set.
        log_file: Optional path to save logs to a file.

    Returns:
        The configured package logger.
    """
    env_level = os.environ.get(LOG_LEVEL_ENV)
    resolved = resolve_level(env_level if env_level else level)

    logger = logging.getLogger("pathwarp")
    logger.setLevel(resolved)

    # main() may run more than once in a process (tests)
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))

    logger.debug(f"Logging initialized at {logging.getLevelName(resolved)}.")
    return logger
