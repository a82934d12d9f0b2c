"""
ZIP archive handler for arcstage.
Reads stored entries from ZIP archives and writes staged entry sets back as ZIP.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""

import zipfile
from datetime import datetime
from functools import partial
from typing import Any, BinaryIO, Dict, List, Optional, Set

from arcstage.core.base_archive import HandlerConfig, WritableArchive
from arcstage.core.entry import Entry, EntryOrigin
from arcstage.core.serializer import Serializer

# Earliest timestamp a ZIP header can hold
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


def _stored_timestamp(date_time) -> Optional[datetime]:
    """
    Convert a ZipInfo date_time to a datetime.

    A zeroed DOS date decodes as month 0 and day 0, which are clamped to 1.
    Dates that are still out of range give None.
    """
    year, month, day, hour, minute, second = date_time
    try:
        return datetime(year, max(month, 1), max(day, 1), hour, minute, second)
    except ValueError:
        return None


class ZipConfig(HandlerConfig):
    _defaults = {
        "compression": zipfile.ZIP_DEFLATED,
        "compresslevel": None,
    }
    _overrides = {}


class ZipSerializer(Serializer):
    """
    Writes stored entries, then new entries, into a fresh ZIP archive.
    Stored entries keep their name, timestamp, attributes and comment.
    """

    def write(self, output: BinaryIO, old_entries: List[Entry], new_entries: List[Entry],
              config: Dict[str, Any]) -> None:
        compression = config.get("compression", zipfile.ZIP_DEFLATED)
        with zipfile.ZipFile(output, 'w', compression=compression,
                             compresslevel=config.get("compresslevel")) as zip_file:
            for entry in old_entries:
                if entry.info is not None:
                    info = self._stored_info(entry.info, compression)
                else:
                    info = self._new_info(entry, compression)
                self._write_entry(zip_file, entry, info, config)
            for entry in new_entries:
                self._write_entry(zip_file, entry, self._new_info(entry, compression), config)

    def _write_entry(self, zip_file: zipfile.ZipFile, entry: Entry, info: zipfile.ZipInfo,
                     config: Dict[str, Any]) -> None:
        if entry.is_dir:
            zip_file.writestr(info, b'')
            return
        # ZipFile only applies its compresslevel to members it names itself.
        # Python 3.13 renamed the ZipInfo attribute to compress_level.
        level_attr = 'compress_level' if hasattr(info, 'compress_level') else '_compresslevel'
        setattr(info, level_attr, config.get("compresslevel"))
        size = self._data_size(entry)
        with zip_file.open(info, 'w', force_zip64=size * 1.05 > zipfile.ZIP64_LIMIT) as dest:
            self._copy(entry, dest, config)

    @staticmethod
    def _stored_info(stored: zipfile.ZipInfo, compression: int) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(stored.filename, stored.date_time)
        info.create_system = stored.create_system
        info.external_attr = stored.external_attr
        info.comment = stored.comment
        info.compress_type = zipfile.ZIP_STORED if stored.is_dir() else compression
        return info

    @staticmethod
    def _new_info(entry: Entry, compression: int) -> zipfile.ZipInfo:
        modified = entry.last_modified or datetime.now()
        date_time = tuple(modified.timetuple()[:6])
        if date_time < _ZIP_EPOCH:
            date_time = _ZIP_EPOCH
        info = zipfile.ZipInfo(entry.path, date_time)
        if entry.is_dir:
            info.external_attr = (0o40755 << 16) | 0x10
            info.compress_type = zipfile.ZIP_STORED
        else:
            info.external_attr = 0o644 << 16
            info.compress_type = compression
        return info


class ZipArchive(WritableArchive):
    """
    Writable ZIP archive.

    Usage:
        with ZipArchive('bundle.zip') as archive:
            archive.add_file('docs/readme.txt', '/tmp/readme.txt')
            archive.remove_entry(archive.find_entry('old.txt'))
            archive.save()
    """
    serializer_cls = ZipSerializer
    config = ZipConfig

    def _read_entries(self) -> List[Entry]:
        self._zip_file = zipfile.ZipFile(self.path, 'r')
        try:
            entries = []
            for info in self._zip_file.infolist():
                entries.append(Entry(
                    info.filename,
                    size=info.file_size,
                    last_modified=_stored_timestamp(info.date_time),
                    origin=EntryOrigin.ORIGINAL,
                    info=info,
                    opener=None if info.is_dir() else partial(self._zip_file.open, info),
                ))
        except Exception:
            self._close_reader()
            raise
        return entries

    def _close_reader(self) -> None:
        zip_file = getattr(self, '_zip_file', None)
        if zip_file is not None:
            self._zip_file = None
            zip_file.close()

    @classmethod
    def get_supported_extensions(cls) -> Set[str]:
        return {'.zip', '.jar', '.war', '.ear', '.apk'}
