"""Decimal utilities for exact balance arithmetic.

This module provides the exact decimal value type used for every balance in
the ledger. Using :class:`decimal.Decimal` instead of ``float`` prevents
accumulation errors, so chained changes such as twenty thousand additions of
``0.00005`` sum to exactly ``1``.

Additions and subtractions run in :data:`LEDGER_CONTEXT`, a context with the
maximum supported precision, so the result of adding two finite decimals is
never rounded. Operands whose scales are so far apart that the exact result
would need more than :data:`MAX_EXACT_DIGITS` digits are refused with
:class:`~balance_ledger.exceptions.AmountPrecisionError`.

Example:
    Convert a float to decimal for balance math::

        from balance_ledger.decimal_utils import add, to_decimal

        amount = to_decimal(0.00005)
        total = add(amount, amount)  # Decimal('0.00010')
"""

from decimal import MAX_EMAX, MAX_PREC, MIN_EMIN, Context, Decimal, InvalidOperation
from typing import Union

from .exceptions import AmountFormatError, AmountPrecisionError, LedgerTypeError

# Exact context: with MAX_PREC, adding or subtracting finite values never rounds.
# No traps, so inf - inf quietly yields NaN instead of raising.
LEDGER_CONTEXT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN, traps=[])

# Widest exact result, in digits, that add and subtract will build.
MAX_EXACT_DIGITS = 10_000

ZERO = Decimal("0")

# Accepted amount inputs.
AmountInput = Union[Decimal, float, int, str]


def to_decimal(value: AmountInput) -> Decimal:
    """Convert an amount to Decimal.

    Floats are converted through their shortest round-trip representation
    (``repr``), so ``0.00005`` becomes ``Decimal('0.00005')`` rather than the
    binary expansion of the nearest double. ``nan`` and ``inf`` pass through
    as the matching special Decimal values; rejecting them is the job of the
    non-negativity guard.

    Args:
        value: Numeric value to convert.

    Returns:
        Decimal representation of the value.

    Raises:
        AmountFormatError: If a string cannot be parsed as a number.
        LedgerTypeError: If the value is not an int, float, str or Decimal.

    Example:
        >>> to_decimal(0.1)
        Decimal('0.1')
        >>> to_decimal("2.50")
        Decimal('2.50')
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise LedgerTypeError(f"Amount must be numeric, got {type(value).__name__}")
    if isinstance(value, float):
        return Decimal(repr(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation as e:
            raise AmountFormatError(f"Amount string is not a readable number: {value!r}") from e
    raise LedgerTypeError(f"Amount must be numeric, got {type(value).__name__}")


def _check_span(a: Decimal, b: Decimal) -> None:
    if not (a.is_finite() and b.is_finite()):
        return
    top = max(a.adjusted(), b.adjusted())
    bottom = min(a.as_tuple().exponent, b.as_tuple().exponent)
    # One extra digit for a carry out of the top position.
    if top - bottom + 2 > MAX_EXACT_DIGITS:
        raise AmountPrecisionError(
            f"Amounts {a} and {b} are too far apart in scale to combine exactly."
        )


def add(a: AmountInput, b: AmountInput) -> Decimal:
    """Return ``a + b`` computed exactly.

    Raises:
        AmountPrecisionError: If the exact sum would exceed
            :data:`MAX_EXACT_DIGITS` digits.
    """
    a, b = to_decimal(a), to_decimal(b)
    _check_span(a, b)
    return LEDGER_CONTEXT.add(a, b)


def subtract(a: AmountInput, b: AmountInput) -> Decimal:
    """Return ``a - b`` computed exactly.

    Raises:
        AmountPrecisionError: If the exact difference would exceed
            :data:`MAX_EXACT_DIGITS` digits.
    """
    a, b = to_decimal(a), to_decimal(b)
    _check_span(a, b)
    return LEDGER_CONTEXT.subtract(a, b)


def is_finite(value: Decimal) -> bool:
    """Return ``True`` if the value is neither NaN nor infinite."""
    return value.is_finite()


def is_negative(value: Decimal) -> bool:
    """Return ``True`` for strictly negative finite values.

    Negative zero is not negative.

    Example:
        >>> is_negative(Decimal("-0"))
        False
        >>> is_negative(Decimal("-0.01"))
        True
    """
    return value.is_finite() and value < ZERO


def decimals_equal(a: Decimal, b: Decimal) -> bool:
    """Exact equality that treats NaN as unequal to everything.

    Signalling NaNs are screened first so the comparison never raises.
    """
    if a.is_nan() or b.is_nan():
        return False
    return a == b
