"""
Opening and creating writable archives by path.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""

import os

from .core.base_archive import WritableArchive
from .core.errors import UnsupportedArchiveError
from .core.handler_manager import HandlerManager


def _handler_for(path) -> type:
    handler_cls = HandlerManager.get_handler_for_path(path)
    if handler_cls is None:
        raise UnsupportedArchiveError(f"No handler available for archive: {path}")
    return handler_cls


def open_archive(path) -> WritableArchive:
    """
    Open an existing archive for staging changes.

    Args:
        path: Path to the archive; the handler is chosen from its extension

    Returns:
        A WritableArchive holding the archive's stored entries

    Raises:
        UnsupportedArchiveError: If no handler supports the extension
        FileNotFoundError: If the archive does not exist
    """
    handler_cls = _handler_for(path)
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Archive does not exist: {path}")
    return handler_cls(path)


def create_archive(path) -> WritableArchive:
    """
    Start a new, empty archive that will be written to path on save().

    An existing file at path is not read; it is replaced on save.
    """
    return _handler_for(path)(path, load=False)
