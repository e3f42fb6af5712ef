"""Tests for console logging setup."""

import logging

import pytest
from rich.logging import RichHandler

from tlds.log import LOGGER_NAME, setup_logging

from .conftest import _capture_console


@pytest.fixture
def restore_logger():
    logger = logging.getLogger(LOGGER_NAME)
    saved = (logger.level, list(logger.handlers), logger.propagate)
    yield logger
    logger.setLevel(saved[0])
    logger.handlers[:] = saved[1]
    logger.propagate = saved[2]


def test_setup_logging_attaches_rich_handler(restore_logger):
    test_console, buf = _capture_console()
    logger = setup_logging(logging.INFO, console=test_console)

    assert logger is restore_logger
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], RichHandler)

    logging.getLogger("tlds.cache").info("Loaded 3 top level domains")
    assert "top level domains" in buf.getvalue()


def test_setup_logging_replaces_previous_handlers(restore_logger):
    setup_logging(logging.DEBUG)
    setup_logging(logging.WARNING)
    assert len(restore_logger.handlers) == 1
    assert restore_logger.level == logging.WARNING
