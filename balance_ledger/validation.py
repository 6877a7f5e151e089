"""Entry validation predicate, balance guard, and validation results.

:func:`validate_entry` checks one entry against the state that precedes it.
:meth:`balance_ledger.ledger.Ledger.validate` folds it left to right over a
whole history and reports the outcome as a :data:`ValidationResult`: either
:data:`VALID` or :class:`InvalidAt` carrying the first failing index.

Results are tagged rather than overloaded on ``bool``/``int`` because index 0
is a legitimate failure position. Their truthiness follows ``ok``, so
``InvalidAt(0)`` is falsy.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping, NamedTuple, Optional, Union

from .decimal_utils import (
    AmountInput,
    add,
    decimals_equal,
    is_finite,
    is_negative,
    to_decimal,
)
from .entry import LedgerEntry
from .exceptions import AmountPrecisionError, BalanceRangeError, LedgerError, LedgerTypeError
from .timestamps import TimestampInput, parse_timestamp

DEFAULT_VERIFY_TIMESTAMP = True
DEFAULT_ALLOW_NEGATIVE_BALANCE = False

EntryLike = Union[LedgerEntry, Mapping[str, Any]]


@dataclass(frozen=True)
class Valid:
    """Validation passed for every inspected entry."""

    @property
    def ok(self) -> bool:
        return True

    @property
    def index(self) -> None:
        return None

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class InvalidAt:
    """Validation failed; ``index`` is the first inconsistent entry."""

    index: int

    @property
    def ok(self) -> bool:
        return False

    def __bool__(self) -> bool:
        return False


ValidationResult = Union[Valid, InvalidAt]

VALID = Valid()


class Cursor(NamedTuple):
    """Running ``(balance, timestamp)`` state threaded through validation."""

    balance: Decimal
    timestamp: Optional[TimestampInput]


def _field(entry: EntryLike, name: str) -> Any:
    if isinstance(entry, Mapping):
        return entry.get(name)
    return getattr(entry, name, None)


def _read_amount(value: Any) -> Optional[Decimal]:
    try:
        return to_decimal(value)
    except LedgerError:
        return None


def validate_entry(
    entry: EntryLike,
    previous_balance: AmountInput = 0,
    previous_timestamp: Optional[TimestampInput] = None,
    verify_timestamp: bool = DEFAULT_VERIFY_TIMESTAMP,
) -> bool:
    """Check that an entry follows consistently from the previous ledger state.

    The arithmetic check requires ``entry.previous == previous_balance`` and
    ``entry.current == entry.previous + entry.change`` exactly, in the decimal
    domain. When ``verify_timestamp`` is set, both timestamps must be readable
    and the previous one must not be later than the entry's; equal timestamps
    pass.

    Malformed entry data never raises here; it just fails the check.

    Args:
        entry: A :class:`LedgerEntry` or a mapping of the serialized shape.
        previous_balance: Balance the entry must start from.
        previous_timestamp: Time of the preceding state.
        verify_timestamp: Whether to enforce temporal ordering.

    Returns:
        True if the entry is consistent with the previous state.

    Raises:
        LedgerTypeError: If ``previous_timestamp`` is omitted while
            ``verify_timestamp`` is set.

    Example:
        >>> entry = LedgerEntry(5, -2.5, 2.5, "2018-01-01T00:00:00.001Z")
        >>> validate_entry(entry, 5, "2018-01-01T00:00:00.000Z")
        True
        >>> validate_entry(entry, 0, "2018-01-01T00:00:00.000Z")
        False
    """
    if previous_timestamp is None and verify_timestamp:
        raise LedgerTypeError("Previous timestamp was not provided, and is required.")

    if verify_timestamp:
        entry_time = parse_timestamp(_field(entry, "timestamp"))
        previous_time = parse_timestamp(previous_timestamp)
        if entry_time is None or previous_time is None or previous_time > entry_time:
            return False

    previous = _read_amount(_field(entry, "previous"))
    change = _read_amount(_field(entry, "change"))
    current = _read_amount(_field(entry, "current"))
    if previous is None or change is None or current is None:
        return False

    if not decimals_equal(previous, to_decimal(previous_balance)):
        return False
    try:
        expected = add(previous, change)
    except AmountPrecisionError:
        return False
    return decimals_equal(current, expected)


def assert_not_negative(
    candidate: AmountInput, allow_negative: bool = DEFAULT_ALLOW_NEGATIVE_BALANCE
) -> None:
    """Reject a proposed balance that is not finite, or negative unless allowed.

    Args:
        candidate: Proposed new balance.
        allow_negative: Permit balances below zero.

    Raises:
        BalanceRangeError: If the balance is NaN or infinite (always), or
            strictly negative while ``allow_negative`` is false.
    """
    balance = to_decimal(candidate)

    if not is_finite(balance):
        raise BalanceRangeError("Change produces an invalid balance number.", balance)

    if not allow_negative and is_negative(balance):
        raise BalanceRangeError(
            f"Change produces a negative balance ({balance}), and this is not allowed.",
            balance,
        )
