"""Console logging for the tlds command-line tool."""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "tlds"


def setup_logging(level: int = logging.WARNING, console: Console | None = None) -> logging.Logger:
    """Attach a rich handler to the ``tlds`` logger, replacing any earlier one."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    handler = RichHandler(console=console or Console(stderr=True), show_path=False)
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.propagate = False
    return logger
