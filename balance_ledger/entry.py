"""Ledger entry value object.

A :class:`LedgerEntry` records one balance transition: the balance before,
the signed change applied, the balance after, and when it happened.

Construction only normalizes inputs. It does not check that
``current == previous + change``; that is the ledger's job, see
:func:`balance_ledger.validation.validate_entry`.

Example:
    Build an entry and serialize it for storage::

        entry = LedgerEntry(0, 5, 5, "2018-01-01T00:00:00Z")
        entry.to_dict()
        # {'timestamp': '2018-01-01T00:00:00.000Z',
        #  'previous': '0', 'change': '5', 'current': '5'}
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Mapping

from .decimal_utils import to_decimal
from .timestamps import normalize_timestamp, parse_timestamp


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """A single balance transition (read-only).

    Attributes:
        previous: Balance before this entry
        change: Signed amount applied
        current: Balance after this entry
        timestamp: Canonical ISO-8601 UTC string with millisecond precision.
            Accepts a datetime, date, ISO string or epoch milliseconds on
            construction; defaults to the current time.
    """

    previous: Decimal
    change: Decimal
    current: Decimal
    timestamp: str = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        """Normalize amounts to Decimal and the timestamp to canonical form."""
        object.__setattr__(self, "previous", to_decimal(self.previous))
        object.__setattr__(self, "change", to_decimal(self.change))
        object.__setattr__(self, "current", to_decimal(self.current))
        object.__setattr__(self, "timestamp", normalize_timestamp(self.timestamp))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the serialized entry shape.

        Amounts are written as decimal strings so they reload exactly.
        """
        return {
            "timestamp": self.timestamp,
            "previous": str(self.previous),
            "change": str(self.change),
            "current": str(self.current),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], verify_timestamp: bool = True) -> "LedgerEntry":
        """Create an entry from the serialized shape.

        Args:
            data: Mapping with ``timestamp``, ``previous``, ``change`` and
                ``current`` keys.
            verify_timestamp: When False, a stored timestamp that cannot be
                read is kept verbatim instead of raising, so histories loaded
                without temporal checks still open.

        Raises:
            KeyError: If a field is missing.
            AmountFormatError: If a stored amount is unreadable.
            TimestampFormatError: If the stored timestamp is unreadable and
                ``verify_timestamp`` is set.
        """
        stamp = data["timestamp"]
        if verify_timestamp or stamp is None or parse_timestamp(stamp) is not None:
            return cls(
                previous=data["previous"],
                change=data["change"],
                current=data["current"],
                timestamp=stamp,
            )

        entry = cls(data["previous"], data["change"], data["current"])
        object.__setattr__(entry, "timestamp", stamp)
        return entry
