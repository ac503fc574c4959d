"""
Logging utilities for analysis runs.

Every module logs through get_logger(__name__), which keeps its logger under
the 'webacf' namespace; setup_logging() configures that namespace once, so a
single call routes engine, factory and scalogram messages to the same
handlers.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER = 'webacf'
LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def parse_level(level: Union[str, int]) -> int:
    """'DEBUG' / 'info' / 10 -> logging level number."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Logger inside the webacf namespace.

    Args:
        name: Module name; names outside the namespace are nested under it

    Returns:
        'webacf' for None, otherwise 'webacf.<name>' (unchanged if already nested)
    """
    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    if name.startswith(ROOT_LOGGER + '.'):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    log_file: Optional[str] = None,
    level: Union[str, int] = logging.INFO,
    name: Optional[str] = None,
    console_level: Union[str, int] = logging.WARNING,
) -> logging.Logger:
    """
    Configure a webacf logger: stderr for warnings, optionally a detailed log file.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_file: Append logs to this file (created with its parent directories)
        level: Logger level, as a name or number
        name: Logger name inside the namespace (default: the package logger)
        console_level: Minimum level echoed to stderr; rich owns stdout

    Returns:
        Configured logger
    """
    level = parse_level(level)
    logger = get_logger(name)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(max(level, parse_level(console_level)))
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def log_dict(logger: logging.Logger, d: dict, title: str = None, indent: int = 0):
    """Log a (nested) dictionary, one key per line."""
    if title:
        logger.info("=" * 60)
        logger.info(title)
        logger.info("=" * 60)

    prefix = " " * indent
    for key, value in d.items():
        if isinstance(value, dict):
            logger.info(f"{prefix}{key}:")
            log_dict(logger, value, indent=indent + 2)
        elif isinstance(value, float):
            logger.info(f"{prefix}{key}: {value:.4g}")
        else:
            logger.info(f"{prefix}{key}: {value}")
