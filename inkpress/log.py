"""Console logging for inkpress.

Modules log through ``logging.getLogger(__name__)``; the CLI calls
:func:`configure_logging` once to attach a handler that prints each record as
a single colored line using Click.
"""

from __future__ import annotations

import logging

import click

_LEVEL_STYLES: dict[int, dict] = {
    logging.DEBUG: {"dim": True},
    logging.INFO: {"fg": "blue"},
    logging.WARNING: {"fg": "yellow"},
    logging.ERROR: {"fg": "red", "bold": True},
    logging.CRITICAL: {"fg": "red", "bold": True},
}


class ClickHandler(logging.Handler):
    """Logging handler that echoes colored lines through Click.

    Warnings and errors are written to stderr, everything else to stdout.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            style = _LEVEL_STYLES.get(record.levelno, {})
            click.echo(
                click.style(message, **style),
                err=record.levelno >= logging.WARNING,
            )
        except Exception:
            self.handleError(record)


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Attach the Click handler to the package logger.

    Calling this more than once replaces the previously installed handler.

    Args:
        verbose: Emit debug records when True.

    Returns:
        The configured ``inkpress`` logger.
    """
    logger = logging.getLogger("inkpress")
    for handler in list(logger.handlers):
        if isinstance(handler, ClickHandler):
            logger.removeHandler(handler)
    handler = ClickHandler()
    handler.setFormatter(logging.Formatter("- %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logger
