"""
Entry factory for arcstage.
Validates caller-supplied byte sources and wraps them into staged entries.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""

import os
from datetime import datetime
from typing import Optional, Type

from .entry import ByteSource, Entry, EntryOrigin
from .errors import InvalidSourceError, SourceNotFoundError
from .logging import debug_print
from .utils import normalize_entry_path


def _is_usable(source) -> bool:
    if source is None or getattr(source, 'closed', False):
        return False
    try:
        return bool(source.readable()) and bool(source.seekable())
    except (AttributeError, ValueError, OSError):
        return False


class EntryFactory:
    """
    Creates ADDED entries from streams or files.

    Every source must be readable and seekable: the factory rewinds it now and a
    later save may need to read it again.
    """

    def __init__(self, entry_cls: Type[Entry] = Entry):
        self.entry_cls = entry_cls

    def create_entry(self,
                     path: str,
                     source: ByteSource,
                     size: int = 0,
                     modified: Optional[datetime] = None,
                     owns_source: bool = False) -> Entry:
        """
        Wrap a stream into a new entry.

        Args:
            path: Archive-relative path for the entry
            source: Readable and seekable stream
            size: Advisory size in bytes
            modified: Optional modification timestamp
            owns_source: If True, the entry closes the stream on teardown

        Returns:
            The new entry, with its source positioned at offset 0

        Raises:
            InvalidSourceError: If the source is not readable and seekable
            ValueError: If the path is empty
        """
        if not _is_usable(source):
            debug_print(f"EntryFactory: rejected source for '{path}'", level=2)
            raise InvalidSourceError(
                "Streams must be readable and seekable to be staged as archive entries")
        entry_path = normalize_entry_path(path or '')
        if not entry_path:
            raise ValueError("Entry path cannot be empty")
        source.seek(0)
        entry = self.entry_cls(entry_path, source, size=size, last_modified=modified,
                               owns_source=owns_source, origin=EntryOrigin.ADDED)
        debug_print(f"EntryFactory: created {entry!r}", level=3)
        return entry

    def create_entry_from_file(self, path: str, file_path: str) -> Entry:
        """
        Open a regular file and wrap it into a new entry that owns the handle.

        Args:
            path: Archive-relative path for the entry
            file_path: File system path of the file to add

        Returns:
            The new entry

        Raises:
            SourceNotFoundError: If file_path is not an existing regular file
        """
        if not os.path.isfile(file_path):
            raise SourceNotFoundError(f"File does not exist: {file_path}")
        stat = os.stat(file_path)
        source = open(file_path, 'rb')
        try:
            return self.create_entry(path, source, size=stat.st_size,
                                     modified=datetime.fromtimestamp(stat.st_mtime),
                                     owns_source=True)
        except Exception:
            source.close()
            raise
