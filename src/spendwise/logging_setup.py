"""Logging for the ``spendwise`` package.

The CLI calls ``configure_logging`` once. Library modules only call
``get_logger``, which stays silent until then. The calculation modules never
log; the store, ledger and banking client do.
"""

import logging
import os

LOGGER_NAME = "spendwise"
LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_configured = False


def _resolve_level(level: int | None) -> int:
    if level is not None:
        return level
    name = os.getenv("SPENDWISE_LOG_LEVEL", "").strip().upper()
    env_level = getattr(logging, name, None) if name else None
    return env_level if isinstance(env_level, int) else logging.WARNING


def configure_logging(level: int | None = None) -> None:
    """Send package logs to stderr.

    Without an explicit level, SPENDWISE_LOG_LEVEL is used, then WARNING.
    Later calls do nothing.
    """
    global _configured
    if _configured:
        return

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(_resolve_level(level))
    logger.propagate = False

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; silent until ``configure_logging`` runs."""
    pkg_logger = logging.getLogger(LOGGER_NAME)
    if not _configured and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
