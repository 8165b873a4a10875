"""Tests for the blocking FileIter adapter."""

import io
import os
import tempfile
from pathlib import Path

import pytest

from getchunk import iter_chunks
from getchunk.core.model import Auto, Bytes, CursorStateError, Percent, StartPositionError
from getchunk.iterator import FileIter
from getchunk.memory import FixedMemoryProbe

AMPLE = FixedMemoryProbe(ram=1e15)


@pytest.fixture
def data_file():
    """A 960 KiB file of random bytes."""
    data = os.urandom(960 * 1024)
    with tempfile.NamedTemporaryFile(delete=False) as f:
        f.write(data)
        path = Path(f.name)
    try:
        yield path, data
    finally:
        path.unlink()


class TestFileIter:
    """Test iteration over files."""

    def test_auto_reassembles_file(self, data_file):
        path, data = data_file
        with FileIter(path) as chunks:
            assert b"".join(chunks) == data
            assert chunks.is_read_complete

    def test_bytes_mode(self, data_file):
        """150 KiB chunks: all full except the last."""
        path, data = data_file
        with FileIter(str(path)).set_mode(Bytes(150 * 1024)) as it:
            elements = list(it)
        assert b"".join(elements) == data
        last = elements.pop()
        assert all(len(c) == 150 * 1024 for c in elements)
        assert len(last) == 960 * 1024 - 6 * 150 * 1024

    def test_percent_mode(self, data_file):
        """15% of 960 KiB is 144 KiB."""
        path, data = data_file
        with FileIter(path, mode=Percent(15.0), memory_probe=AMPLE) as it:
            elements = list(it)
        assert b"".join(elements) == data
        elements.pop()
        assert all(len(c) == 144 * 1024 for c in elements)

    def test_start_position(self, data_file):
        path, data = data_file
        with FileIter(path).set_start_position(1000).set_mode(Bytes(4096)) as it:
            assert it.position == 1000
            assert b"".join(it) == data[1000:]

    def test_start_position_percent(self, data_file):
        path, data = data_file
        with FileIter(path).set_start_position_percent(50.0) as it:
            assert b"".join(it) == data[len(data) // 2:]

    def test_start_position_out_of_range(self, data_file):
        path, data = data_file
        with FileIter(path) as it:
            with pytest.raises(StartPositionError):
                it.set_start_position(len(data) + 1)

    def test_file_size(self, data_file):
        path, data = data_file
        with FileIter(path) as it:
            assert it.get_file_size() == len(data)
            assert it.total_length == len(data)

    def test_stops_after_end(self):
        it = FileIter(b"abc", mode=Bytes(3))
        assert next(it) == b"abc"
        with pytest.raises(StopIteration):
            next(it)
        with pytest.raises(StopIteration):
            next(it)

    def test_configure_after_start(self):
        it = FileIter(b"abcdef", mode=Bytes(2))
        next(it)
        with pytest.raises(CursorStateError):
            it.set_mode(Auto())


class TestSources:
    """FileIter accepts the supported source shapes."""

    def test_binary_handle(self, data_file):
        path, data = data_file
        with open(path, "rb") as handle:
            assert b"".join(FileIter(handle, mode=Bytes(50_000))) == data

    def test_buffered_reader(self, data_file):
        path, data = data_file
        with open(path, "rb", buffering=0) as raw:
            buffered = io.BufferedReader(raw)
            assert b"".join(FileIter(buffered, mode=Bytes(50_000))) == data

    def test_bytesio(self):
        assert list(FileIter(io.BytesIO(b"0123456789"), mode=Bytes(4))) == [b"0123", b"4567", b"89"]

    def test_bytes_and_bytearray(self):
        assert list(iter_chunks(b"abcdef", mode=Bytes(3))) == [b"abc", b"def"]
        assert list(iter_chunks(bytearray(b"abcdef"), mode=Bytes(4))) == [b"abcd", b"ef"]

    def test_text(self):
        chunks = list(FileIter("héllo", text=True, mode=Bytes(2)))
        assert b"".join(chunks) == "héllo".encode("utf-8")

    def test_text_handle_rejected(self, data_file):
        path, _ = data_file
        with open(path, "r", encoding="latin-1") as handle:
            with pytest.raises(TypeError):
                FileIter(handle)


class TestFailure:
    """A failed read raises once and ends iteration."""

    def test_truncated_file_raises(self):
        with tempfile.NamedTemporaryFile() as f:
            f.write(bytes(1000))
            f.flush()
            with open(f.name, "rb", buffering=0) as handle:
                it = FileIter(handle, mode=Bytes(400))
                assert len(next(it)) == 400
                os.truncate(f.name, 500)
                with pytest.raises(OSError):
                    next(it)
                with pytest.raises(StopIteration):
                    next(it)

    def test_handle_closed_by_caller(self):
        """Closing a borrowed handle mid-iteration fails once, then stops."""
        handle = io.BytesIO(bytes(1000))
        it = FileIter(handle, mode=Bytes(100), memory_probe=AMPLE)
        assert len(next(it)) == 100
        handle.close()
        with pytest.raises(OSError, match="closed"):
            next(it)
        with pytest.raises(StopIteration):
            next(it)
