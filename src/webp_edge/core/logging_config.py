"""Logging setup for the WebP edge service.

Every service logger lives under the ``webp-edge`` root. Only the root owns a
stdout handler; component loggers such as ``webp-edge.api`` or
``webp-edge.codec`` propagate to it and inherit its level.
"""

import os
import sys
import logging
from typing import Optional

ROOT_LOGGER_NAME = "webp-edge"

LOG_FORMATS = {
    "structured": (
        "%(asctime)s | %(name)s | %(levelname)-8s | "
        "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
    ),
    "simple": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

# SDK and codec loggers that flood request logs at DEBUG
_NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "PIL")


def resolve_level(level: Optional[str] = None) -> int:
    """Map a level name (argument, then ``LOG_LEVEL``) to a logging level, INFO if unknown."""
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def build_formatter(format_type: str = "structured") -> logging.Formatter:
    """Formatter for ``LOG_FORMAT`` or ``format_type``; unknown names fall back to simple."""
    chosen = os.getenv("LOG_FORMAT", format_type).lower()
    return logging.Formatter(
        LOG_FORMATS.get(chosen, LOG_FORMATS["simple"]), datefmt="%Y-%m-%d %H:%M:%S"
    )


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: Optional[str] = None,
    format_type: str = "structured",
) -> logging.Logger:
    """
    Configure a standalone logger that writes to stdout.

    Args:
        name: Logger name (defaults to the service root)
        level: Level name overriding ``LOG_LEVEL``
        format_type: "structured" or "simple", overridden by ``LOG_FORMAT``

    Returns:
        The configured logger, with exactly one handler and no propagation
    """
    logger = logging.getLogger(name)
    logger.setLevel(resolve_level(level))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(build_formatter(format_type))
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Return a service logger.

    Component loggers under ``webp-edge.`` reuse the root's handler; the root
    is configured on first use. Any other name gets its own handler.
    """
    if not name.startswith(ROOT_LOGGER_NAME + "."):
        return setup_logger(name)

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        setup_logger(ROOT_LOGGER_NAME)
    return logging.getLogger(name)


def quiet_third_party_loggers(level: int = logging.WARNING) -> None:
    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(level)


logger = setup_logger()
