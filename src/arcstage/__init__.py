"""
arcstage: Staging layer for writable archives

Tracks which entries an archive will contain before it is written out: stored entries
read from an existing archive, entries added from streams or files, and entries marked
for removal are reconciled into one ordered view and handed to a format serializer.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT

Public API:
    - open_archive / create_archive: Pick the archive type for a path.
    - ZipArchive, TarArchive: Writable archive types.
    - EntryFactory, EntryStager, Entry: The staging core, usable on its own.

Example usage:
    import io
    from arcstage import open_archive
    with open_archive('bundle.zip') as archive:
        archive.add_entry('notes.txt', io.BytesIO(b'hello'))
        archive.remove_entry(archive.find_entry('stale.txt'))
        archive.save()
"""

import arcstage.handlers
from .archives import open_archive, create_archive
from .core.base_archive import HandlerConfig, WritableArchive
from .core.entry import Entry, EntryOrigin
from .core.entry_factory import EntryFactory
from .core.entry_stager import EntryStager, MaterializedView, UnmodifiedView
from .core.errors import InvalidSourceError, SourceNotFoundError, UnsupportedArchiveError
from .core.serializer import Serializer
from .api.config_api import ConfigAPI
from .handlers import TarArchive, ZipArchive

__version__ = '0.1.0'
__all__ = [
    "open_archive", "create_archive",
    "WritableArchive", "HandlerConfig", "Serializer",
    "ZipArchive", "TarArchive",
    "Entry", "EntryOrigin", "EntryFactory", "EntryStager",
    "UnmodifiedView", "MaterializedView",
    "InvalidSourceError", "SourceNotFoundError", "UnsupportedArchiveError",
    "ConfigAPI",
]
