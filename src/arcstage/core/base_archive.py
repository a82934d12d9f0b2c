"""
Base class for writable archive types.
Wires a format reader, the entry factory, the entry stager and a format serializer
into one archive object.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""

import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, BinaryIO, Dict, List, Optional, Set, Type

from .entry import ByteSource, Entry
from .entry_factory import EntryFactory
from .entry_stager import EntryStager
from .global_config import GlobalConfig
from .logging import debug_print
from .serializer import Serializer
from .utils import normalize_entry_path


class HandlerConfig:
    """
    Class-level options for one archive format.
    Lookups check the format's overrides, then its defaults, then GlobalConfig.
    Subclasses define their own ``_defaults`` and ``_overrides``.
    """
    _defaults: Dict[str, Any] = {}
    _overrides: Dict[str, Any] = {}
    _global_keys = ("copy_buffer_size",)

    @classmethod
    def set(cls, key, value):
        if key not in cls.keys():
            raise KeyError(f"Unknown option for {cls.__name__}: {key}")
        cls._overrides[key] = value

    @classmethod
    def get(cls, key):
        if key in cls._overrides:
            return cls._overrides[key]
        if key in cls._defaults:
            return cls._defaults[key]
        return GlobalConfig.get(key)

    @classmethod
    def reset(cls, key=None):
        if key is None:
            cls._overrides.clear()
        else:
            cls._overrides.pop(key, None)

    @classmethod
    def keys(cls) -> List[str]:
        return list(cls._defaults) + [k for k in cls._global_keys if k not in cls._defaults]

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        return {key: cls.get(key) for key in cls.keys()}


class WritableArchive(ABC):
    """
    Base class for archives whose entries can be added and removed before saving.

    Concrete formats supply ``serializer_cls``, ``config`` and ``_read_entries``.
    Subclasses that implement ``get_supported_extensions`` register themselves
    with HandlerManager on definition.
    """
    serializer_cls: Type[Serializer] = None
    config: Type[HandlerConfig] = HandlerConfig

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if 'get_supported_extensions' not in cls.__dict__:
            return
        from arcstage.core.handler_manager import HandlerManager
        for ext in cls.get_supported_extensions():
            HandlerManager.register_handler(ext, cls, cls.config)

    def __init__(self, path: Optional[str] = None, load: bool = True):
        """
        Initialize the archive.

        Args:
            path: Archive file path; its entries are loaded when it exists and load is True
            load: Set to False to start empty even if path exists
        """
        self.path = os.fspath(path) if path is not None else None
        self._factory = EntryFactory()
        self._closed = False
        original: List[Entry] = []
        if load and self.path and os.path.exists(self.path):
            original = self._read_entries()
            self._log(f"loaded {len(original)} entries from {self.path}", level=2)
        self._stager = EntryStager(original)

    # --- Context management ---
    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # --- Logging and error handling ---
    def _log(self, msg, level=1, exc=None):
        debug_print(f"{type(self).__name__}: {msg}", level=level, exc=exc)

    def _check_open(self):
        if self._closed:
            raise ValueError(f"{type(self).__name__} is closed.")

    # --- Entry access ---
    @property
    def entries(self) -> List[Entry]:
        """Ordered entries the archive will contain if saved now."""
        return self._stager.entries()

    @property
    def is_modified(self) -> bool:
        return self._stager.is_modified

    def find_entry(self, path: str) -> Optional[Entry]:
        """Return the first entry in the current view with the given path, or None."""
        path = normalize_entry_path(path)
        for entry in self._stager.entries():
            if entry.path == path:
                return entry
        return None

    def add_entry(self, path: str, source: ByteSource, size: int = 0,
                  modified: Optional[datetime] = None, owns_source: bool = False) -> Entry:
        """
        Stage a stream as a new entry.

        Args:
            path: Archive-relative path
            source: Readable, seekable stream
            size: Advisory size in bytes
            modified: Optional modification timestamp
            owns_source: If True, the stream is closed when the archive is closed

        Returns:
            The staged entry

        Raises:
            InvalidSourceError: If the stream is not readable and seekable
        """
        self._check_open()
        entry = self._factory.create_entry(path, source, size=size, modified=modified,
                                           owns_source=owns_source)
        return self._stager.add_entry(entry)

    def add_file(self, path: str, file_path: str) -> Entry:
        """
        Stage a file from disk as a new entry; the archive owns the opened handle.

        Raises:
            SourceNotFoundError: If file_path is not an existing regular file
        """
        self._check_open()
        entry = self._factory.create_entry_from_file(path, file_path)
        return self._stager.add_entry(entry)

    def remove_entry(self, entry: Entry) -> None:
        """Exclude an entry from the archive. Unknown entries are ignored."""
        self._check_open()
        self._stager.remove_entry(entry)

    def deferred(self):
        """Context manager batching view rebuilds across many add/remove calls."""
        return self._stager.deferred()

    # --- Saving ---
    def _config_defaults(self, target: Optional[str]) -> Dict[str, Any]:
        """Format options derived from the file being written (e.g., its extension)."""
        return {}

    def _build_config(self, options: Dict[str, Any], target: Optional[str]) -> Dict[str, Any]:
        config = self.config.as_dict()
        for key, value in self._config_defaults(target).items():
            if config.get(key) is None:
                config[key] = value
        unknown = set(options) - set(config)
        if unknown:
            raise ValueError(f"Unknown options for {type(self).__name__}: {sorted(unknown)}")
        config.update(options)
        return config

    def save_to(self, output: BinaryIO, **options) -> None:
        """
        Serialize the current entry set to a writable binary stream.

        Args:
            output: Destination stream
            **options: Format options overriding the format config
        """
        self._check_open()
        self._write(output, options, self.path)

    def _write(self, output: BinaryIO, options: Dict[str, Any], target: Optional[str]) -> None:
        config = self._build_config(options, target)
        old_entries, new_entries = self._stager.prepare_for_save()
        self._log(f"saving {len(old_entries)} stored and {len(new_entries)} new entries", level=2)
        self.serializer_cls().write(output, old_entries, new_entries, config)

    def save(self, path: Optional[str] = None, **options) -> None:
        """
        Serialize the current entry set to a file.

        The archive is written to a temporary file beside the target and moved into
        place, so saving over the archive being read is safe.

        Args:
            path: Destination path (defaults to the archive's own path)
            **options: Format options overriding the format config
        """
        self._check_open()
        target = os.fspath(path) if path is not None else self.path
        if not target:
            raise ValueError("No path given to save the archive to.")
        target_dir = os.path.dirname(os.path.abspath(target))
        os.makedirs(target_dir, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=target_dir, suffix='.tmp')
        try:
            with os.fdopen(fd, 'wb') as output:
                self._write(output, options, target)
            os.replace(temp_path, target)
        except Exception as e:
            self._log(f"save to {target} failed: {e}", level=1, exc=e)
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

    # --- Teardown ---
    def close(self) -> None:
        """Release every staged entry and the underlying reader. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self._stager.teardown()
        try:
            self._close_reader()
        except Exception as e:
            self._log(f"failed to close reader: {e}", level=1, exc=e)

    @property
    def closed(self) -> bool:
        return self._closed

    # --- Format hooks ---
    @abstractmethod
    def _read_entries(self) -> List[Entry]:
        """
        Read the entries stored in the archive at self.path.

        Returns:
            ORIGINAL entries in archive order
        """
        pass

    def _close_reader(self) -> None:
        """Release whatever _read_entries kept open."""
        pass

    @classmethod
    @abstractmethod
    def get_supported_extensions(cls) -> Set[str]:
        """
        Get the file extensions supported by this archive type.

        Returns:
            Set of supported extensions (with leading dot)
        """
        pass
