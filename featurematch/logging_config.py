"""
Logging Configuration

The matching modules log one summary line per run at INFO and every claim,
conflict and reassignment at DEBUG. setup_logging() routes both levels
separately: the console shows `level`, an optional log file keeps
`file_level` (DEBUG by default, so per-element decisions end up on disk only).
"""
import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "featurematch"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    file_level: int = logging.DEBUG
) -> logging.Logger:
    """
    Configure the 'featurematch' logger.

    Args:
        level: Console level (INFO shows one summary per matching run)
        log_file: Optional path, overwritten on every setup
        file_level: Level of the log file handler

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)

    # Repeated setup replaces handlers instead of stacking them
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    effective = level
    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(file_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        effective = min(level, file_level)

    logger.setLevel(effective)
    logger.debug("Logging to console at %s, file %s", logging.getLevelName(level), log_file or "-")
    return logger
