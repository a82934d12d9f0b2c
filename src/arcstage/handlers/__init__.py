"""
Archive handlers package for arcstage.
Importing this package registers every handler with HandlerManager.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""

from .zip_handler import ZipArchive, ZipConfig, ZipSerializer
from .tar_handler import TarArchive, TarConfig, TarSerializer

__all__ = ['ZipArchive', 'ZipConfig', 'ZipSerializer', 'TarArchive', 'TarConfig', 'TarSerializer']
