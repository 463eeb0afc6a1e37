"""Configuration centralisée des logs (loguru)."""

from __future__ import annotations

import sys

from loguru import logger


CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)


def configure_logging(verbose: bool = False) -> None:
    """Remplace le handler par défaut par une sortie stderr (DEBUG si verbose)."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "INFO",
        format=CONSOLE_FORMAT,
        colorize=True,
    )


__all__ = ["logger", "configure_logging"]
