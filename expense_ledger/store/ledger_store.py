"""
In-Memory Ledger Store

DESIGN DECISION: The ledger for a session is an explicitly owned object,
not module-level state. Whoever creates the store (the session) owns it
and passes it by reference to whatever needs to read it.

GUARANTEES:
- Insertion order is preserved; an edit keeps the entry's position
- Ids are unique, strictly increasing and never reused
- Readers only ever get immutable snapshots (tuples of frozen entries)

Nothing is persisted. The store starts empty and dies with the session.
"""

import time
from typing import Callable, Iterable, Optional

from expense_ledger.errors import NotFoundError
from expense_ledger.models.entry import LedgerEntry


class LedgerStore:
    """
    Owns the ordered collection of ledger entries for one session.

    Only this class mutates the collection. Filters and aggregations
    work on the snapshot returned by list().
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        """
        Args:
            clock: Source of the current time in seconds; ids are
                   derived from it in milliseconds.
        """
        self._entries: list[LedgerEntry] = []
        self._clock = clock
        self._last_id = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        return self._index_of(entry_id) is not None

    def _mint_id(self) -> int:
        """Time-derived id, bumped past every id issued or seen so far."""
        candidate = int(self._clock() * 1000)
        self._last_id = max(candidate, self._last_id + 1)
        return self._last_id

    def _index_of(self, entry_id: object) -> Optional[int]:
        for index, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return index
        return None

    def add(self, entry: LedgerEntry) -> LedgerEntry:
        """
        Append an entry, assigning an id if it has none.

        Always succeeds. An entry arriving with an unused id keeps it,
        and the id floor moves past it so minted ids never collide with
        it. An id already in the ledger is replaced by a fresh one.

        Returns:
            The entry as stored (with its id)
        """
        if entry.id is None or entry.id in self:
            entry = entry.with_id(self._mint_id())
        else:
            self._last_id = max(self._last_id, entry.id)
        self._entries.append(entry)
        return entry

    def update(self, entry_id: int, new_entry: LedgerEntry) -> LedgerEntry:
        """
        Replace the entry with the given id, keeping its position.

        The stored replacement always carries entry_id, whatever id
        new_entry had.

        Raises:
            NotFoundError: If no entry has that id
        """
        index = self._index_of(entry_id)
        if index is None:
            raise NotFoundError(entry_id)
        if new_entry.id != entry_id:
            new_entry = new_entry.with_id(entry_id)
        self._entries[index] = new_entry
        return new_entry

    def remove(self, entry_id: int) -> bool:
        """
        Delete the entry with the given id.

        Returns:
            True if an entry was removed, False if the id was unknown
        """
        index = self._index_of(entry_id)
        if index is None:
            return False
        del self._entries[index]
        return True

    def get(self, entry_id: int) -> Optional[LedgerEntry]:
        index = self._index_of(entry_id)
        return None if index is None else self._entries[index]

    def list(self) -> tuple[LedgerEntry, ...]:
        """Read-only snapshot of the ledger in insertion order."""
        return tuple(self._entries)

    def replace_all(self, entries: Iterable[LedgerEntry]) -> None:
        """
        Replace the whole collection.

        Only used by the opt-in destructive date filter. Entries without
        an id, or repeating one, are given a fresh id.
        """
        self._entries = []
        for entry in entries:
            self.add(entry)

    def clear(self) -> None:
        self._entries.clear()
