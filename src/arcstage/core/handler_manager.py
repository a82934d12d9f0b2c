"""
HandlerManager for arcstage.
Maps archive extensions to writable archive classes and their config classes.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""

import os
from typing import Dict, List, Optional, Tuple


class HandlerManager:
    """
    Central registry of writable archive classes and their config interfaces.

    Usage example:
        HandlerManager.register_handler('.tar', TarArchive, TarConfig)
        archive_cls = HandlerManager.get_handler('.tar')
        config = HandlerManager.get_handler_config('.tar')
        archive_cls2 = HandlerManager.get_handler_for_path('foo.tar.gz')
        HandlerManager.deregister_handler('.tar')
    """
    _registry: Dict[str, Tuple[type, Optional[object]]] = {}

    @classmethod
    def register_handler(cls, ext: str, handler_cls: type, config_iface: Optional[object] = None):
        """
        Register an archive class and its config interface for an extension.

        Args:
            ext: Archive extension (e.g., '.tar')
            handler_cls: WritableArchive subclass for the format
            config_iface: Config class for the format (optional)
        """
        cls._registry[ext.lower()] = (handler_cls, config_iface)

    @classmethod
    def deregister_handler(cls, ext: str):
        """Remove a handler and its config from the registry."""
        cls._registry.pop(ext.lower(), None)

    @classmethod
    def get_handler(cls, ext: str):
        entry = cls._registry.get(ext.lower())
        return entry[0] if entry else None

    @classmethod
    def get_handler_config(cls, ext: str):
        entry = cls._registry.get(ext.lower())
        return entry[1] if entry else None

    @classmethod
    def get_handler_for_path(cls, path: str):
        """
        Resolve the archive class for a path, preferring the longest extension (e.g., .tar.gz).
        Returns the class or None.
        """
        basename = os.path.basename(os.fspath(path)).lower()
        for ext in sorted(cls._registry.keys(), key=len, reverse=True):
            if basename.endswith(ext):
                return cls._registry[ext][0]
        return None

    @classmethod
    def get_supported_formats(cls) -> List[str]:
        """Return all registered archive extensions."""
        return sorted(cls._registry.keys())

    @classmethod
    def get_handler_names(cls) -> List[str]:
        """Return registered extensions without their leading dot."""
        return [ext.lstrip('.') for ext in cls.get_supported_formats()]
