"""Balance Ledger"""

from ._version import __version__
from .config import Config, LedgerConfig, LoggingConfig
from .entry import LedgerEntry
from .exceptions import (
    AmountFormatError,
    AmountPrecisionError,
    BalanceRangeError,
    LedgerError,
    LedgerIntegrityError,
    LedgerTypeError,
    TimestampFormatError,
)
from .ledger import Ledger
from .sequence import EntrySequence
from .timestamps import normalize_timestamp
from .validation import VALID, Cursor, InvalidAt, Valid, assert_not_negative, validate_entry

__all__ = [
    "__version__",
    "AmountFormatError",
    "AmountPrecisionError",
    "BalanceRangeError",
    "Config",
    "Cursor",
    "EntrySequence",
    "InvalidAt",
    "Ledger",
    "LedgerConfig",
    "LedgerEntry",
    "LedgerError",
    "LedgerIntegrityError",
    "LedgerTypeError",
    "LoggingConfig",
    "TimestampFormatError",
    "VALID",
    "Valid",
    "assert_not_negative",
    "normalize_timestamp",
    "validate_entry",
]
