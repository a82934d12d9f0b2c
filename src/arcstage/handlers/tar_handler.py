"""
TAR archive handler for arcstage.
Reads stored entries from TAR archives (plain, gzip, bzip2 or xz compressed) and writes
staged entry sets back as TAR.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""

import copy
import tarfile
import time
from datetime import datetime
from functools import partial
from typing import Any, BinaryIO, Dict, List, Optional, Set

from arcstage.core.base_archive import HandlerConfig, WritableArchive
from arcstage.core.entry import Entry, EntryOrigin
from arcstage.core.serializer import Serializer
from arcstage.core.utils import get_tar_compression

_COMPRESSIONS = ('', 'gz', 'bz2', 'xz')


def _member_timestamp(member: tarfile.TarInfo) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(member.mtime)
    except (OverflowError, OSError, ValueError):
        # mtime outside the platform's range
        return None


class TarConfig(HandlerConfig):
    # None means: derive from the extension of the file being written
    _defaults = {
        "compression": None,
    }
    _overrides = {}


class TarSerializer(Serializer):
    """
    Writes stored entries, then new entries, into a fresh TAR archive.

    Stored members are copied with their original headers. A new entry's size is
    measured from its stream, the advisory size is not trusted.
    """

    def write(self, output: BinaryIO, old_entries: List[Entry], new_entries: List[Entry],
              config: Dict[str, Any]) -> None:
        compression = config.get("compression") or ''
        if compression not in _COMPRESSIONS:
            raise ValueError(f"Unsupported TAR compression: {compression}")
        mode = f"w:{compression}" if compression else "w"
        with tarfile.open(fileobj=output, mode=mode) as tar_file:
            tar_file.copybufsize = config.get("copy_buffer_size")
            for entry in old_entries:
                info = copy.copy(entry.info) if entry.info is not None else self._new_info(entry)
                self._write_entry(tar_file, entry, info)
            for entry in new_entries:
                self._write_entry(tar_file, entry, self._new_info(entry))

    def _new_info(self, entry: Entry) -> tarfile.TarInfo:
        info = tarfile.TarInfo(entry.path.rstrip('/'))
        if entry.last_modified is not None:
            info.mtime = int(entry.last_modified.timestamp())
        else:
            info.mtime = int(time.time())
        if entry.is_dir:
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
        else:
            info.mode = 0o644
            info.size = self._data_size(entry)
        return info

    @staticmethod
    def _write_entry(tar_file: tarfile.TarFile, entry: Entry, info: tarfile.TarInfo) -> None:
        if not info.isreg():
            tar_file.addfile(info)
            return
        with entry.open_stream() as src:
            tar_file.addfile(info, src)


class TarArchive(WritableArchive):
    """
    Writable TAR archive. Compression follows the file extension unless
    overridden through TarConfig or a save option.
    """
    serializer_cls = TarSerializer
    config = TarConfig

    def _read_entries(self) -> List[Entry]:
        self._tar_file = tarfile.open(self.path, 'r:*')
        try:
            entries = []
            for member in self._tar_file.getmembers():
                path = member.name + '/' if member.isdir() else member.name
                entries.append(Entry(
                    path,
                    size=member.size,
                    last_modified=_member_timestamp(member),
                    origin=EntryOrigin.ORIGINAL,
                    info=member,
                    opener=partial(self._tar_file.extractfile, member) if member.isreg() else None,
                ))
        except Exception:
            self._close_reader()
            raise
        return entries

    def _close_reader(self) -> None:
        tar_file = getattr(self, '_tar_file', None)
        if tar_file is not None:
            self._tar_file = None
            tar_file.close()

    def _config_defaults(self, target: Optional[str]) -> Dict[str, Any]:
        return {"compression": get_tar_compression(target) if target else ''}

    @classmethod
    def get_supported_extensions(cls) -> Set[str]:
        return {'.tar', '.tar.gz', '.tgz', '.tar.bz2', '.tbz2', '.tar.xz', '.txz'}
