"""
Configuration operations for arcstage.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""

from arcstage.core.global_config import GlobalConfig
from arcstage.core.handler_manager import HandlerManager


class ConfigAPI:
    """
    arcstage Public API: Configuration Operations

    Provides unified access to global configuration (debug level, copy buffer size)
    and to handler-specific configuration via HandlerManager.

    Examples:
        config = ConfigAPI()
        config.debug_level = 2
        config['copy_buffer_size'] = 1024 * 1024
        config.zip.set('compresslevel', 9)
        config['tar'].set('compression', 'xz')
    """

    def get(self, key):
        """Get a global config value by key."""
        if not GlobalConfig.has(key):
            raise KeyError(f"No global config for key '{key}'")
        return GlobalConfig.get(key)

    def set(self, key, value):
        """Set a global config value by key."""
        if not GlobalConfig.has(key):
            raise KeyError(f"No global config for key '{key}'")
        GlobalConfig.set(key, value)

    def reset(self, key=None):
        """
        Reset all global config and all handler configs, or just a single key if provided.
        """
        GlobalConfig.reset(key)
        for ext in HandlerManager.get_supported_formats():
            cfg = HandlerManager.get_handler_config(ext)
            if cfg is not None and hasattr(cfg, 'reset'):
                cfg.reset(key)

    def _handler_config(self, key):
        return HandlerManager.get_handler_config(f'.{key}')

    def __getattr__(self, key):
        if key.startswith('_'):
            raise AttributeError(key)
        if GlobalConfig.has(key):
            return GlobalConfig.get(key)
        cfg = self._handler_config(key)
        if cfg is not None:
            return cfg
        raise AttributeError(f"No global or handler config for key '{key}'")

    def __setattr__(self, key, value):
        if not GlobalConfig.has(key):
            raise AttributeError(f"No global config for key '{key}'")
        GlobalConfig.set(key, value)

    def __getitem__(self, key):
        if GlobalConfig.has(key):
            return GlobalConfig.get(key)
        cfg = self._handler_config(key)
        if cfg is not None:
            return cfg
        raise KeyError(f"No global or handler config for key '{key}'")

    def __setitem__(self, key, value):
        if not GlobalConfig.has(key):
            raise KeyError(f"No global config for key '{key}'")
        GlobalConfig.set(key, value)

    def __iter__(self):
        yield from GlobalConfig._defaults.keys()
        yield from HandlerManager.get_handler_names()

    def __len__(self):
        return len(GlobalConfig._defaults) + len(HandlerManager.get_handler_names())
