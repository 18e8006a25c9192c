"""Console logging for ldde.

All modules log through ``logging.getLogger(__name__)`` under the ``ldde``
logger. :func:`configure_logging` attaches one handler that writes through
``click.echo`` so output plays well with ``CliRunner`` and colors are
stripped automatically when not writing to a terminal.
"""

from __future__ import annotations

import logging
from typing import Any

import click

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

ROOT_LOGGER = "ldde"

_LEVEL_STYLES = {
    "DEBUG": {"fg": "bright_black"},
    "INFO": {"fg": "white"},
    "SUCCESS": {"fg": "green"},
    "WARNING": {"fg": "magenta"},
    "ERROR": {"fg": "red"},
    "CRITICAL": {"fg": "red", "bold": True},
}


def success(logger: logging.Logger, message: str, *args: Any) -> None:
    """Log ``message`` at the SUCCESS level."""
    logger.log(SUCCESS, message, *args)


class ClickFormatter(logging.Formatter):
    """``[HH:MM:SS] LEVEL message`` with click styling."""

    def __init__(self) -> None:
        super().__init__(datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        timestamp = click.style(f"[{self.formatTime(record, self.datefmt)}]", dim=True)
        level = click.style(
            record.levelname.ljust(7), **_LEVEL_STYLES.get(record.levelname, {})
        )
        message = record.getMessage()
        if record.levelno <= logging.DEBUG:
            message = click.style(message, dim=True)
        line = f"{timestamp} {level} {message}"
        if record.exc_info:
            line += "\n" + click.style(self.formatException(record.exc_info), dim=True)
        return line


class ClickHandler(logging.Handler):
    """Emit records with ``click.echo``; WARNING and above go to stderr."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            click.echo(message, err=record.levelno >= logging.WARNING)
        except Exception:
            self.handleError(record)


def configure_logging(debug: bool = False) -> logging.Logger:
    """Install the console handler on the ``ldde`` logger.

    Safe to call more than once: any handler installed by a previous call is
    replaced.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, ClickHandler):
            logger.removeHandler(handler)

    handler = ClickHandler()
    handler.setFormatter(ClickFormatter())
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    return logger


__all__ = [
    "ClickFormatter",
    "ClickHandler",
    "SUCCESS",
    "configure_logging",
    "success",
]
