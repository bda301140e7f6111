"""Tests for logger construction and console logging setup."""

import logging

import pytest

from pair_arbitrage import logging_config
from pair_arbitrage.utils import get_logger, short_address


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_get_logger_basic():
    logger = get_logger(__name__)
    assert isinstance(logger, logging.Logger)
    assert logger.name == __name__


def test_get_logger_with_level():
    logger = get_logger(__name__ + ".debug", level=logging.DEBUG)
    assert logger.level == logging.DEBUG


def test_get_logger_before_setup_uses_console_format(restore_root):
    restore_root.handlers.clear()

    logger = get_logger(__name__ + ".early")

    assert len(logger.handlers) == 1
    formatter = logger.handlers[0].formatter
    assert formatter._fmt == logging_config.CONSOLE_FORMAT
    assert formatter.datefmt == logging_config.TIME_FORMAT


def test_get_logger_no_duplicate_handlers():
    name = __name__ + ".dup"
    first = get_logger(name)
    second = get_logger(name)

    assert first is second
    assert len(second.handlers) <= 1


def test_setup_installs_single_stdout_handler(restore_root):
    logging_config.setup(logging.DEBUG)

    assert len(restore_root.handlers) == 1
    assert restore_root.level == logging.DEBUG
    assert logging.getLogger("web3").level == logging.WARNING
    assert logging.getLogger("pair_arbitrage").level == logging.DEBUG


def test_setup_resets_module_loggers(restore_root):
    module_logger = logging.getLogger("pair_arbitrage.test_module")
    module_logger.addHandler(logging.StreamHandler())
    module_logger.setLevel(logging.ERROR)

    logging_config.setup()

    assert module_logger.handlers == []
    assert module_logger.level == logging.NOTSET


def test_short_address():
    address = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
    assert short_address(address) == "0xC02a...6Cc2"
    assert short_address("0xabc") == "0xabc"
