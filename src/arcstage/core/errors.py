"""
Exceptions raised by arcstage.
Each error derives from the closest built-in so callers can catch either.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""


class InvalidSourceError(ValueError):
    """Raised when a byte source is not both readable and seekable."""


class SourceNotFoundError(FileNotFoundError):
    """Raised when a file given for an entry does not exist or is not a regular file."""


class UnsupportedArchiveError(ValueError):
    """Raised when no archive handler is registered for a path."""
