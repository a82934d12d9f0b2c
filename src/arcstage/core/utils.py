"""
Utility functions for arcstage.

Path normalization for archive-relative entry names and archive format detection
from file extensions.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""

import os
from typing import Dict, Set

# Archive format extensions
_ARCHIVE_FORMATS: Set[str] = {
    # Zip formats
    '.zip', '.jar', '.war', '.ear', '.apk',

    # Tar formats (with various compressions)
    '.tar', '.tar.gz', '.tgz', '.tar.bz2', '.tbz2', '.tar.xz', '.txz',
}

# Tar extension -> tarfile compression suffix
_TAR_COMPRESSION: Dict[str, str] = {
    '.tar': '',
    '.tar.gz': 'gz',
    '.tgz': 'gz',
    '.tar.bz2': 'bz2',
    '.tbz2': 'bz2',
    '.tar.xz': 'xz',
    '.txz': 'xz',
}


def normalize_entry_path(path: str) -> str:
    """
    Normalize an archive-relative entry path.

    Backslashes become forward slashes, repeated slashes collapse and any leading
    slash is dropped. A trailing slash (directory marker) is kept.

    Args:
        path: Entry path as supplied by the caller

    Returns:
        Normalized entry path
    """
    path = path.strip().replace('\\', '/')
    while '//' in path:
        path = path.replace('//', '/')
    return path.lstrip('/')


def get_archive_format(path: str) -> str:
    """
    Get the archive format extension from a path.

    Args:
        path: Path or filename to check

    Returns:
        Archive extension (including leading dot) or empty string if not an archive
    """
    if not path:
        return ""

    lower_path = os.fspath(path).lower()

    # Check for compound extensions first (like .tar.gz)
    for ext in sorted(_ARCHIVE_FORMATS, key=len, reverse=True):
        if lower_path.endswith(ext):
            return ext

    return ""


def get_tar_compression(path: str) -> str:
    """Return the tarfile compression suffix ('', 'gz', 'bz2', 'xz') implied by a path."""
    return _TAR_COMPRESSION.get(get_archive_format(path), '')
