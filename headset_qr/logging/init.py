from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Console logging for the CLI.

Output contract (stdout, one line per record): ``LABEL message`` with LABEL in
DEBUG|INFO|WARN|ERROR|SUMMARY. The bulk SUMMARY line is logged at the custom
SUMMARY level so it survives a WARN-only filter but never looks like a
warning.

Modules keep using ``logging.getLogger(__name__)``; everything under the
``headset_qr`` namespace reaches the single handler installed here.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "log_summary",
    "set_debug",
    "reset_logging",
]

LOGGER_NAME = "headset_qr"
SUMMARY_LEVEL = 25  # INFO(20) < SUMMARY < WARNING(30)

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        SUMMARY_LEVEL: "SUMMARY",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{label} {record.getMessage()}"


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Install the labeled stdout handler on the ``headset_qr`` logger.

    Idempotent: after the first call the configured logger is returned as is
    (use ``set_debug`` to change the level later, ``reset_logging`` in tests).
    """
    global _logger
    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(LabeledFormatter())
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.setLevel(level)
    # root に流すと pytest / 呼び出し側の設定で二重出力になる
    logger.propagate = False

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    return _logger if _logger is not None else setup_logging()


def log_summary(message: str) -> None:
    """Emit ``SUMMARY {message}``."""
    get_logger().log(SUMMARY_LEVEL, message)


def set_debug(enabled: bool = True) -> None:
    level = logging.DEBUG if enabled else logging.INFO
    logger = get_logger()
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def reset_logging() -> None:
    """Forget the configured logger so the next setup_logging() reinstalls it (tests)."""
    global _logger
    _logger = None
