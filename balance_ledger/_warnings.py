"""Custom warning classes for the balance ledger package.

These warning classes allow users to programmatically filter, suppress,
or capture warnings using Python's standard ``warnings`` module.

Example:
    Silence start-index clamping in a bulk re-validation job::

        import warnings
        from balance_ledger._warnings import ClampedStartWarning

        warnings.filterwarnings("ignore", category=ClampedStartWarning)
"""


class BalanceLedgerWarning(UserWarning):
    """Base class for all balance-ledger warnings."""


class ClampedStartWarning(BalanceLedgerWarning):
    """A validation start index was out of range and was reset to 0.

    Validation still runs, but from the first entry against the ledger's
    initial state rather than from the requested position.
    """
