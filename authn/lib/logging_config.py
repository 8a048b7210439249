"""JSON logging for CA bootstrap and certificate issuance."""

import logging
import os

from pythonjsonlogger.json import JsonFormatter

LOGGER_NAME = "authn"
LOG_LEVEL_ENV = "AUTHN_LOG_LEVEL"
LOG_FORMAT = "%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s"


def _setup_logger(level: str) -> logging.Logger:
    """Attach a single JSON stream handler to the package logger.

    Records carry timestamp, level, funcName, lineno and message, plus any
    `extra=` fields. Key material must never be passed in.
    """
    logger = logging.getLogger(LOGGER_NAME)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            JsonFormatter(
                fmt=LOG_FORMAT,
                rename_fields={"levelname": "level"},
                timestamp=True,
            )
        )
        logger.addHandler(handler)
        logger.propagate = False

    set_log_level(level, logger)
    return logger


def set_log_level(level: str, logger: logging.Logger | None = None) -> None:
    """Set the package log level by name (e.g. "DEBUG", "warning")."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"unknown log level: {level}")
    (logger or logging.getLogger(LOGGER_NAME)).setLevel(numeric)


LOGGER = _setup_logger(os.environ.get(LOG_LEVEL_ENV, "INFO"))
