"""Append-only entry sequence with structural sharing.

An :class:`EntrySequence` is an immutable view of the first ``length`` items
of a backing list. Appending to the newest view extends the backing list in
place and returns a longer view over the same list, so a chain of ledger
mutations allocates only the new tail element each time. Appending to an
older view, whose backing list has already grown past it, copies that view's
prefix first, so sibling views never see each other's entries.

Views never change once created: the backing list is only ever extended
beyond the lengths of existing views.
"""

from typing import Iterable, Iterator, List, Sequence, Tuple, Union, overload

from .entry import LedgerEntry


class EntrySequence(Sequence[LedgerEntry]):
    """Immutable, shareable sequence of ledger entries."""

    __slots__ = ("_store", "_length")

    def __init__(self, entries: Iterable[LedgerEntry] = ()) -> None:
        self._store: List[LedgerEntry] = list(entries)
        self._length = len(self._store)

    @classmethod
    def _view(cls, store: List[LedgerEntry], length: int) -> "EntrySequence":
        view = cls.__new__(cls)
        view._store = store
        view._length = length
        return view

    def append(self, entry: LedgerEntry) -> "EntrySequence":
        """Return a new sequence with ``entry`` appended.

        This sequence is not modified.
        """
        store = self._store
        if len(store) != self._length:
            # Another view already extended this prefix.
            store = store[: self._length]
        store.append(entry)
        return EntrySequence._view(store, self._length + 1)

    def shares_storage_with(self, other: "EntrySequence") -> bool:
        """Return ``True`` if both views read from the same backing list."""
        return self._store is other._store

    @overload
    def __getitem__(self, index: int) -> LedgerEntry: ...

    @overload
    def __getitem__(self, index: slice) -> Tuple[LedgerEntry, ...]: ...

    def __getitem__(
        self, index: Union[int, slice]
    ) -> Union[LedgerEntry, Tuple[LedgerEntry, ...]]:
        if isinstance(index, slice):
            return tuple(self._store[: self._length][index])
        if index < 0:
            index += self._length
        if not 0 <= index < self._length:
            raise IndexError("entry index out of range")
        return self._store[index]

    def __len__(self) -> int:
        return self._length

    def __iter__(self) -> Iterator[LedgerEntry]:
        store = self._store
        for i in range(self._length):
            yield store[i]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, EntrySequence):
            return len(self) == len(other) and all(a == b for a, b in zip(self, other))
        if isinstance(other, (list, tuple)):
            return len(self) == len(other) and all(a == b for a, b in zip(self, other))
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"EntrySequence(length={self._length})"
