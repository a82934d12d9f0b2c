"""
Entry stager for arcstage.
Reconciles the entries an archive was loaded with, the entries added since and the
entries marked for removal into one ordered view.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""

from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, NamedTuple, Tuple, Union

from .entry import Entry, EntryOrigin
from .logging import debug_print


class UnmodifiedView(NamedTuple):
    """View of a stager that has never been mutated: the original entries as loaded."""
    original: List[Entry]


class MaterializedView(NamedTuple):
    """View rebuilt from original entries, additions and removals."""
    entries: List[Entry]


View = Union[UnmodifiedView, MaterializedView]


class EntryStager:
    """
    Tracks which entries an archive will contain before it is serialized.

    The view is ``(original - removed) + (added - removed)``, each half in its own
    insertion order. Until the first mutation the original list is served as-is;
    afterwards the stager always serves a materialized view. Removal is keyed by
    entry handle, so two entries with equal paths stay distinct.

    Mutations rebuild the view immediately, except inside ``deferred()`` where the
    rebuild waits until the block exits or the view is next read.

    Not thread-safe: one logical thread of control per instance.
    """

    def __init__(self, original: Iterable[Entry] = ()):
        """
        Initialize the stager.

        Args:
            original: Entries already stored in the archive, in archive order
        """
        self._original: List[Entry] = list(original)
        self._additions: List[Entry] = []
        self._removals: Dict[int, Entry] = {}
        self._known = {entry.handle for entry in self._original}
        self._view: View = UnmodifiedView(self._original)
        self._dirty = False
        self._defer_depth = 0
        self._torn_down = False

    # --- Read accessors ---
    @property
    def is_modified(self) -> bool:
        """True once any addition or removal has been recorded."""
        return self._dirty or isinstance(self._view, MaterializedView)

    @property
    def original(self) -> List[Entry]:
        return list(self._original)

    @property
    def pending_additions(self) -> List[Entry]:
        return list(self._additions)

    @property
    def pending_removals(self) -> List[Entry]:
        return list(self._removals.values())

    def entries(self) -> List[Entry]:
        """
        Return the current ordered entry list.

        Returns:
            The original entries if nothing was ever mutated, else the materialized view
        """
        if self._dirty:
            self._recompute()
        if isinstance(self._view, MaterializedView):
            return list(self._view.entries)
        return list(self._view.original)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries())

    def __len__(self) -> int:
        return len(self.entries())

    def __contains__(self, entry) -> bool:
        handle = getattr(entry, 'handle', None)
        return any(e.handle == handle for e in self.entries())

    # --- Mutations ---
    def add_entry(self, entry: Entry) -> Entry:
        """
        Stage an entry for addition.

        Entries sharing a path with an existing entry are accepted; path collisions
        are left to the serializer.

        Args:
            entry: An ADDED entry, typically from EntryFactory

        Returns:
            The same entry
        """
        if self._torn_down:
            raise ValueError("Cannot add entries after teardown")
        if entry.origin is not EntryOrigin.ADDED:
            raise ValueError(f"Only added entries can be staged, got {entry!r}")
        if entry.handle in self._known:
            raise ValueError(f"Entry is already staged: {entry!r}")
        self._additions.append(entry)
        self._known.add(entry.handle)
        debug_print(f"EntryStager: added {entry!r}", level=3)
        self._mark_dirty()
        return entry

    def remove_entry(self, entry: Entry) -> None:
        """
        Mark an entry, original or added, for exclusion from the view.

        Unknown entries and repeated removals are ignored. The entry's source stays
        open until teardown.
        """
        handle = getattr(entry, 'handle', None)
        if handle not in self._known or handle in self._removals:
            return
        self._removals[handle] = entry
        debug_print(f"EntryStager: removed {entry!r}", level=3)
        self._mark_dirty()

    @contextmanager
    def deferred(self):
        """
        Batch view rebuilds for a block of mutations.

        Usage:
            with stager.deferred():
                for entry in many_entries:
                    stager.add_entry(entry)
        """
        self._defer_depth += 1
        try:
            yield self
        finally:
            self._defer_depth -= 1
            if self._defer_depth == 0 and self._dirty:
                self._recompute()

    def _mark_dirty(self) -> None:
        self._dirty = True
        if self._defer_depth == 0:
            self._recompute()

    def _recompute(self) -> None:
        removed = self._removals
        view = [e for e in self._original if e.handle not in removed]
        view.extend(e for e in self._additions if e.handle not in removed)
        self._view = MaterializedView(view)
        self._dirty = False

    # --- Save and teardown ---
    def prepare_for_save(self) -> Tuple[List[Entry], List[Entry]]:
        """
        Split the view into previously stored entries and freshly added ones.

        Every returned added entry is rewound to offset 0 first, whatever reads
        happened on its stream after staging.

        Returns:
            (old_entries, new_entries)
        """
        if self._dirty:
            self._recompute()
        removed = self._removals
        old_entries = [e for e in self._original if e.handle not in removed]
        new_entries = [e for e in self._additions if e.handle not in removed]
        for entry in new_entries:
            entry.rewind()
        return old_entries, new_entries

    def teardown(self) -> None:
        """
        Release every entry the stager can reach.

        Covers additions, removals, the last materialized view and the original
        entries. A failing close is logged and does not stop the rest. Safe to call
        more than once.
        """
        self._torn_down = True
        reachable: List[Entry] = list(self._additions)
        reachable.extend(self._removals.values())
        if isinstance(self._view, MaterializedView):
            reachable.extend(self._view.entries)
        reachable.extend(self._original)
        released = set()
        for entry in reachable:
            if entry.handle in released:
                continue
            released.add(entry.handle)
            try:
                entry.close()
            except Exception as e:
                debug_print(f"EntryStager: failed to close {entry!r}: {e}", level=1, exc=e)
