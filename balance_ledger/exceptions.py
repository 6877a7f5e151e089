"""Exceptions raised by the balance ledger.

All errors derive from :class:`LedgerError`, and each also subclasses the
closest built-in exception so callers can catch either form.

Examples:
    Localizing a corrupt history::

        try:
            ledger = Ledger.from_records(rows)
        except LedgerIntegrityError as e:
            print(f"History breaks at entry {e.index}")
"""

from decimal import Decimal


class LedgerError(Exception):
    """Base class for all balance ledger errors."""


class TimestampFormatError(LedgerError, ValueError):
    """Raised when a timestamp string or number is not a valid point in time."""


class AmountFormatError(LedgerError, ValueError):
    """Raised when an amount string cannot be read as a number."""


class AmountPrecisionError(LedgerError, ArithmeticError):
    """Raised when two amounts are too far apart in scale to combine exactly."""


class LedgerTypeError(LedgerError, TypeError):
    """Raised when a caller supplies a value of the wrong kind.

    Covers timestamp inputs that are neither numbers, strings nor dates, and
    omitted previous state that the requested validation needs.
    """


class BalanceRangeError(LedgerError, ValueError):
    """Raised when a proposed balance is NaN, infinite, or disallowed negative.

    Attributes:
        balance: The rejected balance.
    """

    def __init__(self, message: str, balance: Decimal) -> None:
        self.balance = balance
        super().__init__(message)


class LedgerIntegrityError(LedgerError):
    """Raised when a ledger's entry history is not internally consistent.

    Attributes:
        index: Position of the first entry that fails validation.
    """

    def __init__(self, index: int) -> None:
        self.index = index
        super().__init__(f"Entry validation failed at cursor index ({index}).")
