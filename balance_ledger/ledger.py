"""Immutable, self-validating balance ledger.

A :class:`Ledger` is an ordered history of :class:`LedgerEntry` balance
transitions plus its baseline configuration (initial balance, initial
timestamp, and whether temporal ordering is enforced). A ledger only comes
into existence if its whole history is consistent: every entry starts from
its predecessor's balance, its arithmetic is exact, and, when verification is
on, timestamps never go backwards.

Mutations never modify a ledger. :meth:`Ledger.change` and :meth:`Ledger.set`
return a new ledger sharing the existing entries and holding one more.

Example:
    Build a balance history incrementally::

        ledger = Ledger()
        ledger = ledger.change(5, timestamp="2018-01-01T00:00:00Z")
        ledger = ledger.set(2.5, timestamp="2018-01-01T00:00:00.001Z")
        ledger.last_balance  # Decimal('2.5')
        ledger.last_change   # Decimal('-2.5')

    Reload a persisted history::

        ledger = Ledger.from_records(rows, initial_balance=0)
"""

from decimal import Decimal
import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union
import warnings

import pandas as pd

from ._warnings import ClampedStartWarning
from .config import LedgerConfig
from .decimal_utils import ZERO, AmountInput, add, subtract, to_decimal
from .entry import LedgerEntry
from .exceptions import BalanceRangeError, LedgerError, LedgerIntegrityError, LedgerTypeError
from .sequence import EntrySequence
from .timestamps import TimestampInput, normalize_timestamp
from .validation import (
    DEFAULT_ALLOW_NEGATIVE_BALANCE,
    DEFAULT_VERIFY_TIMESTAMP,
    VALID,
    Cursor,
    InvalidAt,
    ValidationResult,
    assert_not_negative,
    validate_entry,
)

logger = logging.getLogger(__name__)

_RECORD_COLUMNS = ["timestamp", "previous", "change", "current"]


def _load_entries(
    entries: Iterable[Union[LedgerEntry, Mapping[str, Any]]], verify_timestamp: bool
) -> Tuple[List[LedgerEntry], Optional[int]]:
    """Convert entries up to the first one that cannot be read.

    Returns the converted prefix and the index of the unreadable entry, or
    None if every entry converted.
    """
    loaded: List[LedgerEntry] = []
    for index, entry in enumerate(entries):
        if isinstance(entry, LedgerEntry):
            loaded.append(entry)
            continue
        if not isinstance(entry, Mapping):
            raise LedgerTypeError(
                f"Ledger entries must be LedgerEntry or mapping, got {type(entry).__name__}"
            )
        try:
            loaded.append(LedgerEntry.from_dict(entry, verify_timestamp))
        except (KeyError, LedgerError) as e:
            logger.debug("(%d) : unreadable entry %r: %s", index, entry, e)
            return loaded, index
    return loaded, None


def _is_index(value: object, length: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < length


class Ledger:
    """Immutable ledger of balance transitions.

    Attributes:
        entries: Ordered entries, oldest first
        initial_balance: Balance assumed before the first entry
        initial_timestamp: Time assumed before the first entry, or None
        verify_timestamp: Whether validation enforces non-decreasing timestamps

    Thread Safety:
        Ledgers are never modified after construction, so concurrent reads are
        safe. Deriving two ledgers from the same parent is allowed; each sees
        only its own appended entry. Reconciling such divergent histories is up
        to the caller.
    """

    def __init__(
        self,
        entries: Iterable[Union[LedgerEntry, Mapping[str, Any]]] = (),
        initial_balance: AmountInput = 0,
        initial_timestamp: Optional[TimestampInput] = None,
        verify_timestamp: bool = DEFAULT_VERIFY_TIMESTAMP,
    ) -> None:
        """Construct a ledger and validate its full history.

        Args:
            entries: Entries as LedgerEntry objects or serialized-shape mappings.
            initial_balance: Balance before the first entry.
            initial_timestamp: Time before the first entry. When None, the
                first entry establishes its own baseline time.
            verify_timestamp: Enforce non-decreasing timestamps.

        Raises:
            LedgerIntegrityError: If validation fails; ``index`` is the first
                inconsistent entry. A mapping entry with a missing field or
                an unreadable amount counts as inconsistent, as does an
                unreadable timestamp while timestamps are verified.
            BalanceRangeError: If ``initial_balance`` is NaN or infinite.
            TimestampFormatError: If ``initial_timestamp`` is unreadable.
        """
        self._verify_timestamp = bool(verify_timestamp)
        unreadable: Optional[int] = None
        if isinstance(entries, EntrySequence):
            self._entries = entries
        else:
            loaded, unreadable = _load_entries(entries, self._verify_timestamp)
            self._entries = EntrySequence(loaded)
        self._initial_balance = to_decimal(initial_balance)
        if not self._initial_balance.is_finite():
            raise BalanceRangeError(
                "Initial balance must be a finite number.", self._initial_balance
            )
        self._initial_timestamp = (
            None if initial_timestamp is None else normalize_timestamp(initial_timestamp)
        )

        # Entries before an unreadable one may still fail first.
        result = self.validate()
        if isinstance(result, InvalidAt):
            raise LedgerIntegrityError(result.index)
        if unreadable is not None:
            raise LedgerIntegrityError(unreadable)

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        initial_balance: AmountInput = 0,
        initial_timestamp: Optional[TimestampInput] = None,
        verify_timestamp: bool = DEFAULT_VERIFY_TIMESTAMP,
    ) -> "Ledger":
        """Build a ledger from serialized entries, e.g. rows loaded from storage."""
        return cls(
            list(records),
            initial_balance,
            initial_timestamp,
            verify_timestamp,
        )

    @classmethod
    def from_config(
        cls,
        config: LedgerConfig,
        entries: Iterable[Union[LedgerEntry, Mapping[str, Any]]] = (),
    ) -> "Ledger":
        """Build a ledger whose baseline comes from a :class:`LedgerConfig`."""
        return cls(
            entries,
            config.initial_balance,
            config.initial_timestamp,
            config.verify_timestamp,
        )

    # ------------------------------------------------------------------ #
    #  Read-only accessors
    # ------------------------------------------------------------------ #

    @property
    def entries(self) -> EntrySequence:
        return self._entries

    @property
    def initial_balance(self) -> Decimal:
        return self._initial_balance

    @property
    def initial_timestamp(self) -> Optional[str]:
        return self._initial_timestamp

    @property
    def verify_timestamp(self) -> bool:
        return self._verify_timestamp

    @property
    def length(self) -> int:
        """The number of entries in this ledger."""
        return len(self._entries)

    @property
    def first_entry(self) -> Optional[LedgerEntry]:
        """The first entry, or None if no change has been made."""
        return self._entries[0] if self._entries else None

    @property
    def last_entry(self) -> Optional[LedgerEntry]:
        """The last entry, or None if no change has been made."""
        return self._entries[-1] if self._entries else None

    @property
    def last_balance(self) -> Decimal:
        """The current balance, or the initial balance if empty."""
        last = self.last_entry
        if last is None:
            return self._initial_balance
        return last.current

    @property
    def last_change(self) -> Decimal:
        """The last change amount, or zero if no change has been made."""
        last = self.last_entry
        if last is None:
            return ZERO
        return last.change

    @property
    def last_timestamp(self) -> Optional[str]:
        """The last entry's timestamp, or the initial timestamp if empty."""
        last = self.last_entry
        if last is None:
            return self._initial_timestamp
        return last.timestamp

    def cursor_at(self, index: int) -> Cursor:
        """Return the ``(balance, timestamp)`` state in effect before ``index``.

        ``cursor_at(len(ledger))`` is the state after the last entry. Use it
        to supply the explicit previous state that :meth:`validate` needs when
        starting past the first entry::

            ledger.validate(k, *ledger.cursor_at(k))

        Raises:
            IndexError: If ``index`` is outside ``0..len(ledger)``.
        """
        if not 0 <= index <= len(self._entries):
            raise IndexError(f"cursor index {index} out of range")
        if index == 0:
            return Cursor(self._initial_balance, self._initial_timestamp)
        entry = self._entries[index - 1]
        return Cursor(entry.current, entry.timestamp)

    # ------------------------------------------------------------------ #
    #  Mutations (return new ledgers)
    # ------------------------------------------------------------------ #

    def change(
        self,
        delta: AmountInput,
        allow_negative_balance: bool = DEFAULT_ALLOW_NEGATIVE_BALANCE,
        timestamp: Optional[TimestampInput] = None,
    ) -> "Ledger":
        """Apply a change to the current balance.

        The change is added to the last balance and recorded as a new entry.

        Args:
            delta: Signed amount to apply.
            allow_negative_balance: Permit the resulting balance to go below zero.
            timestamp: When the change happened; defaults to now.

        Returns:
            A new ledger containing the new entry. This ledger is unchanged.

        Raises:
            BalanceRangeError: If the new balance is not finite, or negative
                while not allowed.
            AmountPrecisionError: If ``delta`` and the last balance are too far
                apart in scale to add exactly.
            LedgerIntegrityError: If ``timestamp`` is earlier than
                :attr:`last_timestamp` while timestamps are verified.
        """
        amount = to_decimal(delta)
        previous = self.last_balance
        current = add(previous, amount)

        assert_not_negative(current, allow_negative_balance)

        return self._append(LedgerEntry(previous, amount, current, timestamp))

    def set(
        self,
        balance: AmountInput,
        allow_negative_balance: bool = DEFAULT_ALLOW_NEGATIVE_BALANCE,
        timestamp: Optional[TimestampInput] = None,
    ) -> "Ledger":
        """Set the current balance to the amount provided.

        The difference from the last balance is recorded as the entry's change.

        Returns:
            A new ledger containing the new entry. This ledger is unchanged.

        Raises:
            BalanceRangeError: If ``balance`` is not finite, or negative while
                not allowed.
            LedgerIntegrityError: If ``timestamp`` is earlier than
                :attr:`last_timestamp` while timestamps are verified.
        """
        current = to_decimal(balance)
        previous = self.last_balance
        amount = subtract(current, previous)

        assert_not_negative(current, allow_negative_balance)

        return self._append(LedgerEntry(previous, amount, current, timestamp))

    def _append(self, entry: LedgerEntry) -> "Ledger":
        """Return a new ledger with ``entry`` appended.

        The shared prefix was validated when this ledger was built and cannot
        have changed since, so only the new entry is checked against the state
        this ledger ends in. The outcome is the same as a full re-validation.
        The entry is checked before it reaches the shared storage, so a
        rejected mutation leaves nothing behind.
        """
        tail = len(self._entries)
        balance, timestamp = self.cursor_at(tail)
        if timestamp is None:
            # First entry without an initial timestamp is its own baseline.
            timestamp = entry.timestamp
        if not validate_entry(entry, balance, timestamp, self._verify_timestamp):
            logger.debug("(%d) : %s => FAIL", tail, entry)
            raise LedgerIntegrityError(tail)

        child = Ledger.__new__(Ledger)
        child._entries = self._entries.append(entry)
        child._initial_balance = self._initial_balance
        child._initial_timestamp = self._initial_timestamp
        child._verify_timestamp = self._verify_timestamp

        logger.debug(
            "Appended entry %d: %s + (%s) -> %s at %s",
            tail,
            entry.previous,
            entry.change,
            entry.current,
            entry.timestamp,
        )
        return child

    # ------------------------------------------------------------------ #
    #  Validation
    # ------------------------------------------------------------------ #

    def validate(
        self,
        start_at: int = 0,
        previous_balance: Optional[AmountInput] = None,
        previous_timestamp: Optional[TimestampInput] = None,
        verify_timestamp: Optional[bool] = None,
    ) -> ValidationResult:
        """Validate the entry history from ``start_at`` onward.

        Walks the entries left to right with a running ``(balance, timestamp)``
        cursor, checking each one with :func:`validate_entry` and then
        advancing the cursor to that entry's own ``current`` and ``timestamp``.

        An empty ledger is always valid. A ``start_at`` that is not a valid
        index is reset to 0 (with a :class:`ClampedStartWarning` if a
        non-zero value was given).

        From index 0, the previous state defaults to the ledger's initial
        balance and timestamp; without an initial timestamp, the first entry
        serves as its own baseline time. From any later index, the caller must
        supply the previous state explicitly, see :meth:`cursor_at`.

        Args:
            start_at: Index of the first entry to check.
            previous_balance: Balance before ``start_at``.
            previous_timestamp: Time before ``start_at``.
            verify_timestamp: Override the ledger's timestamp verification.

        Returns:
            :data:`VALID`, or :class:`InvalidAt` with the first failing index.

        Raises:
            LedgerTypeError: If ``start_at`` is past the first entry and the
                previous state is not supplied.
        """
        entries = self._entries
        length = len(entries)
        if length == 0:
            return VALID

        if verify_timestamp is None:
            verify_timestamp = self._verify_timestamp

        if not _is_index(start_at, length):
            if start_at != 0:
                warnings.warn(
                    f"start_at {start_at!r} is not a valid index for {length} entries; "
                    f"validating from 0",
                    ClampedStartWarning,
                    stacklevel=2,
                )
            start_at = 0

        cursor: Cursor
        if start_at == 0:
            balance = self._initial_balance if previous_balance is None else previous_balance
            timestamp = (
                self._initial_timestamp if previous_timestamp is None else previous_timestamp
            )
            if timestamp is None:
                timestamp = entries[0].timestamp
            cursor = Cursor(to_decimal(balance), timestamp)
        else:
            if previous_balance is None:
                raise LedgerTypeError(
                    f"Previous balance is required when validating from index {start_at}."
                )
            if previous_timestamp is None and verify_timestamp:
                raise LedgerTypeError(
                    f"Previous timestamp is required when validating from index {start_at}."
                )
            cursor = Cursor(to_decimal(previous_balance), previous_timestamp)

        for index in range(start_at, length):
            entry = entries[index]
            if not validate_entry(entry, cursor.balance, cursor.timestamp, verify_timestamp):
                logger.debug("(%d) : %s => FAIL", index, entry)
                return InvalidAt(index)
            logger.debug("(%d) : %s => OK", index, entry)
            cursor = Cursor(entry.current, entry.timestamp)

        return VALID

    # ------------------------------------------------------------------ #
    #  Export
    # ------------------------------------------------------------------ #

    def to_records(self) -> List[Dict[str, Any]]:
        """Serialize all entries to the persisted entry shape."""
        return [entry.to_dict() for entry in self._entries]

    def to_dataframe(self) -> pd.DataFrame:
        """Export the entry history to a DataFrame.

        Returns:
            pd.DataFrame: One row per entry with a UTC ``timestamp`` column
            and float ``previous``, ``change`` and ``current`` columns.
            Timestamps kept verbatim from an unverified load become ``NaT``.
        """
        df = pd.DataFrame(self.to_records(), columns=_RECORD_COLUMNS)
        df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True, errors="coerce")
        amounts = _RECORD_COLUMNS[1:]
        df[amounts] = df[amounts].astype(float)
        return df

    def __len__(self) -> int:
        """Return the number of entries in the ledger."""
        return len(self._entries)

    def __iter__(self) -> Iterator[LedgerEntry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        """Return string representation of the ledger."""
        return f"Ledger(entries={len(self._entries)}, last_balance={self.last_balance})"
