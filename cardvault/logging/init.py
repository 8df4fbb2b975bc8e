from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Application logging: one labeled handler on the "cardvault" logger.

Lines read "<LABEL> <message>" with the labels INFO, WARN, ERROR and
SUMMARY (custom level 25, used for the end-of-import line). Package modules
log through logging.getLogger(__name__) and reach the handler by
propagation. In debug mode the label is followed by the emitting module.
"""

__all__ = [
    "APP_LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "set_debug",
    "log_summary",
    "reset_logging",
]

APP_LOGGER_NAME = "cardvault"
SUMMARY_LEVEL = 25

_LABELS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
    SUMMARY_LEVEL: "SUMMARY",
}

_app_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    def __init__(self, show_origin: bool = False) -> None:
        super().__init__()
        self.show_origin = show_origin

    def format(self, record: logging.LogRecord) -> str:
        label = _LABELS.get(record.levelno, record.levelname)
        message = record.getMessage()
        if self.show_origin and record.name != APP_LOGGER_NAME:
            message = f"[{record.name.removeprefix(APP_LOGGER_NAME + '.')}] {message}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"{label} {message}"


def _detach_handlers(logger: logging.Logger) -> None:
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)


def setup_logging(stream: TextIO | None = None) -> logging.Logger:
    """Attach the labeled handler once; later calls return the same logger.

    stream defaults to stdout, where the CLI also prints its JSON results.
    """
    global _app_logger
    if _app_logger is not None:
        return _app_logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(APP_LOGGER_NAME)
    _detach_handlers(logger)
    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    # records stop here; a root handler would print them twice
    logger.propagate = False

    _app_logger = logger
    return logger


def get_logger() -> logging.Logger:
    return _app_logger if _app_logger is not None else setup_logging()


def set_debug(logger: logging.Logger) -> None:
    """Lower the threshold to DEBUG and tag lines with their module."""
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers:
        handler.setFormatter(LabeledFormatter(show_origin=True))


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Drop the configured handler so the next setup_logging() starts fresh."""
    global _app_logger
    _detach_handlers(logging.getLogger(APP_LOGGER_NAME))
    _app_logger = None
