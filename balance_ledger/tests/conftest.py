"""Pytest configuration and shared fixtures."""

import logging

import pytest

from balance_ledger.entry import LedgerEntry
from balance_ledger.ledger import Ledger

TIMESTAMP_1 = "2018-01-01T00:00:00.000Z"
TIMESTAMP_2 = "2018-01-01T00:00:00.001Z"
TIMESTAMP_3 = "2018-01-01T00:00:00.002Z"


@pytest.fixture
def two_entry_ledger():
    """Ledger going 0 -> 5 -> 2.5."""
    return Ledger(
        [
            LedgerEntry(0, 5.0, 5.0, TIMESTAMP_1),
            LedgerEntry(5, -2.5, 2.5, TIMESTAMP_2),
        ]
    )


@pytest.fixture
def package_logger():
    """Yield the package logger and restore it afterwards."""
    logger = logging.getLogger("balance_ledger")
    level = logger.level
    handlers = list(logger.handlers)
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
