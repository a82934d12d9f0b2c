"""
Unit tests for arcstage entries and the entry factory.

Author: Tim Hosking
Contact: https://github.com/Munger
License: MIT
"""

import io
import os
import shutil
import sys
import tempfile
from datetime import datetime

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

import pytest
from arcstage.core.entry import Entry, EntryOrigin
from arcstage.core.entry_factory import EntryFactory
from arcstage.core.errors import InvalidSourceError, SourceNotFoundError


class NonSeekableSource(io.RawIOBase):
    def readable(self):
        return True

    def seekable(self):
        return False

    def readinto(self, b):
        return 0


@pytest.fixture(scope="function")
def temp_dir():
    d = tempfile.mkdtemp()
    yield d
    shutil.rmtree(d)


@pytest.fixture
def factory():
    return EntryFactory()


def test_create_entry_rewinds_source(factory):
    source = io.BytesIO(b"hello world")
    source.seek(6)
    entry = factory.create_entry("greeting.txt", source, size=11)
    assert source.tell() == 0
    assert entry.source is source
    assert entry.path == "greeting.txt"
    assert entry.size == 11
    assert entry.origin is EntryOrigin.ADDED
    assert entry.is_added
    assert not entry.owns_source
    assert entry.last_modified is None


def test_create_entry_keeps_timestamp(factory):
    stamp = datetime(2021, 5, 4, 12, 30)
    entry = factory.create_entry("a", io.BytesIO(), modified=stamp, owns_source=True)
    assert entry.last_modified == stamp
    assert entry.owns_source


@pytest.mark.parametrize("raw, expected", [
    ("a.txt", "a.txt"),
    ("/docs//a.txt", "docs/a.txt"),
    ("docs\\sub\\a.txt", "docs/sub/a.txt"),
    ("  dir/  ", "dir/"),
])
def test_create_entry_normalizes_path(factory, raw, expected):
    assert factory.create_entry(raw, io.BytesIO()).path == expected


@pytest.mark.parametrize("path", ["", "/", None])
def test_create_entry_rejects_empty_path(factory, path):
    with pytest.raises(ValueError):
        factory.create_entry(path, io.BytesIO())


def test_non_seekable_source_rejected(factory):
    with pytest.raises(InvalidSourceError):
        factory.create_entry("a", NonSeekableSource())


def test_write_only_source_rejected(factory, temp_dir):
    with open(os.path.join(temp_dir, "out.bin"), "wb") as f:
        with pytest.raises(InvalidSourceError):
            factory.create_entry("a", f)


def test_closed_source_rejected(factory):
    source = io.BytesIO(b"x")
    source.close()
    with pytest.raises(InvalidSourceError):
        factory.create_entry("a", source)


def test_object_without_stream_methods_rejected(factory):
    with pytest.raises(InvalidSourceError):
        factory.create_entry("a", b"raw bytes")
    with pytest.raises(InvalidSourceError):
        factory.create_entry("a", None)


def test_invalid_source_is_a_value_error(factory):
    with pytest.raises(ValueError):
        factory.create_entry("a", NonSeekableSource())


def test_create_entry_from_file(factory, temp_dir):
    file_path = os.path.join(temp_dir, "data.bin")
    with open(file_path, "wb") as f:
        f.write(b"0123456789")
    entry = factory.create_entry_from_file("data/data.bin", file_path)
    try:
        assert entry.path == "data/data.bin"
        assert entry.size == 10
        assert entry.owns_source
        assert isinstance(entry.last_modified, datetime)
        assert entry.source.read() == b"0123456789"
    finally:
        source = entry.source
        entry.close()
    assert source.closed


def test_create_entry_from_missing_file(factory, temp_dir):
    with pytest.raises(SourceNotFoundError):
        factory.create_entry_from_file("x", os.path.join(temp_dir, "missing.bin"))


def test_create_entry_from_directory(factory, temp_dir):
    with pytest.raises(FileNotFoundError):
        factory.create_entry_from_file("x", temp_dir)


def test_handles_are_unique(factory):
    entries = [factory.create_entry("same", io.BytesIO()) for _ in range(5)]
    handles = [e.handle for e in entries]
    assert len(set(handles)) == 5
    assert handles == sorted(handles)


def test_entries_compare_by_identity(factory):
    first = factory.create_entry("same", io.BytesIO(b"1"))
    second = factory.create_entry("same", io.BytesIO(b"1"))
    assert first != second
    assert first == first


def test_entry_close_is_idempotent():
    source = io.BytesIO(b"x")
    entry = Entry("a", source, owns_source=True)
    entry.close()
    entry.close()
    assert source.closed
    assert entry.closed
    assert entry.source is None


def test_entry_close_leaves_borrowed_source_open():
    source = io.BytesIO(b"x")
    entry = Entry("a", source)
    entry.close()
    assert not source.closed
    assert entry.source is None


def test_open_stream_yields_own_source_without_closing():
    source = io.BytesIO(b"payload")
    source.seek(3)
    entry = Entry("a", source)
    with entry.open_stream() as stream:
        assert stream is source
        assert stream.read() == b"payload"
    assert not source.closed


def test_open_stream_uses_opener_for_stored_entry():
    opened = []

    def opener():
        stream = io.BytesIO(b"stored")
        opened.append(stream)
        return stream

    entry = Entry("s", origin=EntryOrigin.ORIGINAL, opener=opener)
    with entry.open_stream() as stream:
        assert stream.read() == b"stored"
    assert opened[0].closed
    assert not entry.is_added


def test_open_stream_on_closed_entry():
    entry = Entry("a", io.BytesIO())
    entry.close()
    with pytest.raises(ValueError):
        with entry.open_stream():
            pass


def test_open_stream_without_data():
    entry = Entry("dir/", origin=EntryOrigin.ORIGINAL)
    assert entry.is_dir
    with pytest.raises(ValueError):
        with entry.open_stream():
            pass
