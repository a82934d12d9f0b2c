"""
Entries staged for inclusion in a writable archive.

An Entry pairs an archive-relative path with the byte source that supplies its
data. Entries read from an existing archive carry format-specific metadata and an
opener that yields their stored bytes; entries added by callers carry the caller's
stream directly.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""

import itertools
import sys
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Any, BinaryIO, Callable, Iterator, Optional

if sys.version_info >= (3, 8):
    from typing import Protocol
else:
    from typing_extensions import Protocol


class ByteSource(Protocol):
    """Structural type of the streams an entry can wrap."""

    def read(self, size: int = -1) -> bytes: ...

    def seek(self, offset: int, whence: int = 0) -> int: ...

    def readable(self) -> bool: ...

    def seekable(self) -> bool: ...

    def close(self) -> None: ...


class EntryOrigin(Enum):
    """Where an entry came from."""
    ORIGINAL = "original"
    ADDED = "added"


# Process-wide source of entry handles; never reused.
_handles = itertools.count(1)


class Entry:
    """
    One logical item destined for an archive.

    Entries compare by identity. The stager keys removals by ``handle``, a small
    integer assigned once at construction.
    """

    def __init__(self,
                 path: str,
                 source: Optional[ByteSource] = None,
                 size: int = 0,
                 last_modified: Optional[datetime] = None,
                 owns_source: bool = False,
                 origin: EntryOrigin = EntryOrigin.ADDED,
                 info: Any = None,
                 opener: Optional[Callable[[], BinaryIO]] = None):
        """
        Initialize an entry.

        Args:
            path: Archive-relative path of the entry
            source: Readable, seekable stream with the entry's data (None for stored entries)
            size: Advisory size in bytes
            last_modified: Optional modification timestamp
            owns_source: Whether close() must close the source
            origin: EntryOrigin.ORIGINAL for stored entries, EntryOrigin.ADDED otherwise
            info: Format-specific metadata (ZipInfo, TarInfo) for stored entries
            opener: Callable returning a fresh stream over the stored bytes
        """
        self.handle = next(_handles)
        self.path = path
        self.source = source
        self.size = size
        self.last_modified = last_modified
        self.owns_source = owns_source
        self.origin = origin
        self.info = info
        self._opener = opener
        self._closed = False

    @property
    def is_dir(self) -> bool:
        return self.path.endswith('/')

    @property
    def is_added(self) -> bool:
        return self.origin is EntryOrigin.ADDED

    @property
    def closed(self) -> bool:
        return self._closed

    def rewind(self) -> None:
        """Reposition the entry's own source at offset 0, if it has one."""
        if self.source is not None and not self._closed:
            self.source.seek(0)

    @contextmanager
    def open_stream(self) -> Iterator[BinaryIO]:
        """
        Yield a readable stream positioned at the start of the entry's data.

        The entry's own source is yielded as-is and stays open afterwards. A stream
        produced by the opener belongs to this call and is closed on exit.
        """
        if self._closed:
            raise ValueError(f"Entry '{self.path}' has been closed.")
        if self.source is not None:
            self.source.seek(0)
            yield self.source
            return
        if self._opener is None:
            raise ValueError(f"Entry '{self.path}' has no data source.")
        stream = self._opener()
        try:
            yield stream
        finally:
            stream.close()

    def close(self) -> None:
        """
        Release the entry's source.

        Only an owned source is closed; a borrowed one is detached and left to its
        owner. Calls after the first are no-ops.
        """
        if self._closed:
            return
        self._closed = True
        source, self.source = self.source, None
        self._opener = None
        if self.owns_source and source is not None:
            source.close()

    def __repr__(self):
        return f"Entry(path={self.path!r}, origin={self.origin.value}, handle={self.handle})"
