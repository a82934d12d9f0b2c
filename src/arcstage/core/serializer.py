"""
Serializer interface for arcstage.
A serializer encodes the final entry set of a writable archive into a concrete format.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""

import io
import shutil
from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Dict, List

from .entry import Entry


class Serializer(ABC):
    """
    Base class for format-specific archive writers.

    ``write`` receives stored and freshly added entries separately so a format can
    treat reusable stored data differently from new data. Format errors propagate
    to the caller unchanged.
    """

    @abstractmethod
    def write(self, output: BinaryIO, old_entries: List[Entry], new_entries: List[Entry],
              config: Dict[str, Any]) -> None:
        """
        Write an archive containing old_entries followed by new_entries.

        Args:
            output: Writable binary stream receiving the archive
            old_entries: Entries carried over from the archive that was read
            new_entries: Entries added since, each source positioned at offset 0
            config: Format options (compression etc.)
        """
        pass

    @staticmethod
    def _data_size(entry: Entry) -> int:
        """Actual byte length of an entry: measured for streams, from stored metadata otherwise."""
        if entry.source is not None:
            size = entry.source.seek(0, io.SEEK_END)
            entry.source.seek(0)
            return size
        for attr in ("file_size", "size"):
            value = getattr(entry.info, attr, None)
            if isinstance(value, int):
                return value
        return entry.size or 0

    @staticmethod
    def _copy(entry: Entry, dest: BinaryIO, config: Dict[str, Any]) -> None:
        with entry.open_stream() as src:
            shutil.copyfileobj(src, dest, config.get('copy_buffer_size') or 64 * 1024)
