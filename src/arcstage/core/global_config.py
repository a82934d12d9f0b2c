"""
global_config.py
Central configuration for arcstage, including the debug level and the copy buffer size
used by serializers when streaming entry data.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""

class GlobalConfig:
    _defaults = {
        "debug_level": 0,
        "copy_buffer_size": 64 * 1024,
    }
    _settings = _defaults.copy()

    @classmethod
    def set(cls, key, value):
        cls._settings[key] = value

    @classmethod
    def get(cls, key):
        return cls._settings.get(key, cls._defaults.get(key))

    @classmethod
    def has(cls, key) -> bool:
        return key in cls._settings or key in cls._defaults

    @classmethod
    def reset(cls, key=None):
        if key is None:
            cls._settings = cls._defaults.copy()
        else:
            if key in cls._defaults:
                cls._settings[key] = cls._defaults[key]
            else:
                cls._settings.pop(key, None)

    @classmethod
    def set_debug_level(cls, value: int):
        cls.set("debug_level", int(value))

    @classmethod
    def get_debug_level(cls) -> int:
        return cls.get("debug_level")

    @classmethod
    def get_copy_buffer_size(cls) -> int:
        return cls.get("copy_buffer_size")

    @classmethod
    def set_copy_buffer_size(cls, value: int):
        if int(value) <= 0:
            raise ValueError(f"copy_buffer_size must be positive, got {value}")
        cls.set("copy_buffer_size", int(value))
