"""
Tests for the shared logging setup.
"""

import logging

import pytest
from rich.logging import RichHandler

from eduai.utils.log_config import resolve_level, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.parametrize("given, expected", [
    ("debug", logging.DEBUG),
    ("INFO", logging.INFO),
    ("Warning", logging.WARNING),
    (logging.ERROR, logging.ERROR),
])
def test_levels_by_name_or_number(given, expected):
    assert resolve_level(given) == expected


def test_unknown_level_is_rejected():
    with pytest.raises(ValueError):
        resolve_level("chatty")


def test_console_and_file_handlers(restore_root_logger, tmp_path):
    log_file = tmp_path / "logs" / "eduai.log"

    setup_logging("debug", log_file, quiet_loggers=["eduai.test.noisy"])
    logging.getLogger("eduai.test").debug("graph rendered")
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert restore_root_logger.level == logging.DEBUG
    assert any(isinstance(h, RichHandler) for h in restore_root_logger.handlers)
    assert "eduai.test - DEBUG - graph rendered" in log_file.read_text()
    assert logging.getLogger("eduai.test.noisy").level == logging.WARNING


def test_quiet_loggers_never_drop_below_the_chosen_level(restore_root_logger):
    setup_logging("ERROR", quiet_loggers=["eduai.test.quiet"])

    assert logging.getLogger("eduai.test.quiet").level == logging.ERROR
    assert not any(isinstance(h, logging.FileHandler) for h in restore_root_logger.handlers)
