# MIT License (see LICENSE)
"""
Logging setup for scripts, examples and benchmarks.

Library modules only call logging.getLogger(__name__); the package logger
carries a NullHandler so nothing is printed unless an application opts in
with configure_logging().
"""
from __future__ import annotations
import logging
import os
from typing import Final

_LOG_FORMAT: Final[str] = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_PACKAGE: Final[str] = "diffeq_sim"


def _parse_level(level_str: str | None, default: int) -> int:
    if not level_str:
        return default
    mapping = {
        "CRITICAL": logging.CRITICAL,
        "ERROR": logging.ERROR,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "INFO": logging.INFO,
        "DEBUG": logging.DEBUG,
    }
    return mapping.get(level_str.strip().upper(), default)


def configure_logging(level: int | str | None = None) -> logging.Logger:
    """
    Send the package's log records to stderr.

    Behavior:
    - If `level` is provided it takes precedence; names such as "DEBUG"
      are accepted as well as logging constants.
    - Otherwise the DIFFEQ_SIM_LOG_LEVEL environment variable is consulted
      (e.g. DEBUG to see every rejected adaptive sub-step).
    - Falls back to INFO.

    Calling it again replaces the handler instead of adding a second one.
    """
    if isinstance(level, str):
        chosen = _parse_level(level, logging.INFO)
    elif level is not None:
        chosen = level
    else:
        chosen = _parse_level(os.environ.get("DIFFEQ_SIM_LOG_LEVEL"), logging.INFO)
    logger = logging.getLogger(_PACKAGE)
    for handler in list(logger.handlers):
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(chosen)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(chosen)
    logger.propagate = False
    return logger
