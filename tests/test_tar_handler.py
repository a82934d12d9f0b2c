"""
Unit tests for the arcstage TAR handler.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""

import io
import os
import shutil
import sys
import tarfile
import tempfile
from datetime import datetime

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

import pytest
from arcstage import create_archive, open_archive
from arcstage.handlers.tar_handler import TarArchive, TarConfig, _member_timestamp


def make_tar(path, files, mode='w'):
    """Create a TAR archive; names ending in '/' become directories."""
    with tarfile.open(path, mode) as tar:
        for name, content in files.items():
            if name.endswith('/'):
                info = tarfile.TarInfo(name.rstrip('/'))
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            else:
                info = tarfile.TarInfo(name)
                info.size = len(content)
                info.mtime = 1600000000
                tar.addfile(info, io.BytesIO(content))


def read_tar(path):
    with tarfile.open(path, 'r:*') as tar:
        return [(m.name, m.isdir(), tar.extractfile(m).read() if m.isreg() else None)
                for m in tar.getmembers()]


@pytest.fixture(scope="function")
def temp_dir():
    d = tempfile.mkdtemp()
    yield d
    shutil.rmtree(d)


@pytest.mark.parametrize("ext, mode", [
    (".tar", "w"),
    (".tar.gz", "w:gz"),
    (".tbz2", "w:bz2"),
    (".txz", "w:xz"),
])
def test_open_modify_save_keeps_format(temp_dir, ext, mode):
    path = os.path.join(temp_dir, "sample" + ext)
    make_tar(path, {"r.txt": b"read me", "dir/": b"", "dir/a.txt": b"A" * 2048}, mode)
    with open_archive(path) as archive:
        assert isinstance(archive, TarArchive)
        assert [e.path for e in archive.entries] == ["r.txt", "dir/", "dir/a.txt"]
        archive.remove_entry(archive.find_entry("r.txt"))
        archive.add_entry("n.txt", io.BytesIO(b"new"))
        archive.save()
    # Reopening with the explicit mode proves the compression was kept
    with tarfile.open(path, "r" + mode[1:]) as tar:
        assert tar.getnames() == ["dir", "dir/a.txt", "n.txt"]
    assert read_tar(path) == [("dir", True, None), ("dir/a.txt", False, b"A" * 2048),
                              ("n.txt", False, b"new")]


def test_stored_headers_preserved(temp_dir):
    path = os.path.join(temp_dir, "keep.tar")
    make_tar(path, {"old.txt": b"old"})
    with open_archive(path) as archive:
        stored = archive.find_entry("old.txt")
        assert stored.last_modified == datetime.fromtimestamp(1600000000)
        archive.add_entry("new.txt", io.BytesIO(b"x"))
        archive.save()
    with tarfile.open(path) as tar:
        assert tar.getmember("old.txt").mtime == 1600000000


def test_size_measured_from_stream(temp_dir):
    path = os.path.join(temp_dir, "size.tar")
    with create_archive(path) as archive:
        archive.add_entry("a.bin", io.BytesIO(b"12345"), size=999)
        archive.save()
    with tarfile.open(path) as tar:
        member = tar.getmember("a.bin")
        assert member.size == 5
        assert tar.extractfile(member).read() == b"12345"


def test_new_entry_timestamp_and_directory(temp_dir):
    path = os.path.join(temp_dir, "meta.tar")
    stamp = datetime(2022, 1, 2, 3, 4, 5)
    with create_archive(path) as archive:
        archive.add_entry("folder/", io.BytesIO())
        archive.add_entry("folder/f.txt", io.BytesIO(b"f"), modified=stamp)
        archive.save()
    with tarfile.open(path) as tar:
        assert tar.getmember("folder").isdir()
        assert tar.getmember("folder/f.txt").mtime == int(stamp.timestamp())


def test_compression_option_overrides_extension(temp_dir):
    path = os.path.join(temp_dir, "plain.tar")
    with create_archive(path) as archive:
        archive.add_entry("a.txt", io.BytesIO(b"a"))
        archive.save(compression="xz")
    with tarfile.open(path, "r:xz") as tar:
        assert tar.getnames() == ["a.txt"]


def test_compression_from_config(temp_dir):
    path = os.path.join(temp_dir, "configured.tar")
    TarConfig.set("compression", "bz2")
    try:
        with create_archive(path) as archive:
            archive.add_entry("a.txt", io.BytesIO(b"a"))
            archive.save()
    finally:
        TarConfig.reset()
    with tarfile.open(path, "r:bz2") as tar:
        assert tar.getnames() == ["a.txt"]


def test_invalid_compression(temp_dir):
    with create_archive(os.path.join(temp_dir, "x.tar")) as archive:
        archive.add_entry("a.txt", io.BytesIO(b"a"))
        with pytest.raises(ValueError):
            archive.save_to(io.BytesIO(), compression="zstd-ultra")


def test_save_to_stream_uses_extension_default(temp_dir):
    output = io.BytesIO()
    with create_archive(os.path.join(temp_dir, "x.tgz")) as archive:
        archive.add_entry("a.txt", io.BytesIO(b"a"))
        archive.save_to(output)
    output.seek(0)
    with tarfile.open(fileobj=output, mode="r:gz") as tar:
        assert tar.getnames() == ["a.txt"]


def test_close_releases_owned_sources(temp_dir):
    owned = io.BytesIO(b"owned")
    archive = create_archive(os.path.join(temp_dir, "x.tar"))
    entry = archive.add_entry("o.txt", owned, owns_source=True)
    archive.remove_entry(entry)
    archive.close()
    archive.close()
    assert owned.closed


def test_save_compression_follows_target_path(temp_dir):
    source = os.path.join(temp_dir, "in.tar")
    target = os.path.join(temp_dir, "out.tar.gz")
    make_tar(source, {"x.txt": b"x"})
    with open_archive(source) as archive:
        archive.add_entry("y.txt", io.BytesIO(b"y"))
        archive.save(target)
    with open(target, "rb") as f:
        assert f.read(2) == b"\x1f\x8b"
    with tarfile.open(target, "r:gz") as tar:
        assert tar.getnames() == ["x.txt", "y.txt"]
    with tarfile.open(source, "r:") as tar:
        assert tar.getnames() == ["x.txt"]


def test_pathless_archive_saved_with_extension_compression(temp_dir):
    target = os.path.join(temp_dir, "x.tgz")
    with TarArchive() as archive:
        archive.add_entry("a.txt", io.BytesIO(b"a"))
        archive.save(target)
    with tarfile.open(target, "r:gz") as tar:
        assert tar.getnames() == ["a.txt"]


def test_reader_closed_when_listing_fails(temp_dir, monkeypatch):
    path = os.path.join(temp_dir, "broken.tar")
    make_tar(path, {"a.txt": b"a"})
    opened = []
    real_open = tarfile.open

    def tracking_open(*args, **kwargs):
        tar = real_open(*args, **kwargs)
        opened.append(tar)
        return tar

    def broken_getmembers(self):
        raise tarfile.ReadError("truncated header")

    monkeypatch.setattr(tarfile, "open", tracking_open)
    monkeypatch.setattr(tarfile.TarFile, "getmembers", broken_getmembers)
    with pytest.raises(tarfile.ReadError):
        open_archive(path)
    assert len(opened) == 1
    assert opened[0].closed


def test_out_of_range_mtime_gives_no_timestamp():
    member = tarfile.TarInfo("far.txt")
    member.mtime = 10 ** 20
    assert _member_timestamp(member) is None
