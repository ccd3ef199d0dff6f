"""Logging configuration for the sye_aws package."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(name: str = "sye_aws", level: int | str = logging.INFO) -> logging.Logger:
    """Attach a stdout handler to ``name`` once and set its level.

    Args:
        name: Logger name, usually the package root so every module logger inherits it.
        level: A logging level number or name such as ``"DEBUG"``.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    return logger
