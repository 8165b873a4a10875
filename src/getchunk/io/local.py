"""Local byte sources: files, file handles and in-memory buffers."""

import asyncio
import io
import os
from pathlib import Path
from typing import BinaryIO, Union

from ..core.model import UnsupportedSourceError
from .base import ByteSource

BytesLike = Union[bytes, bytearray, memoryview]


class FileByteSource:
    """Sequential reader over a file path or an open binary file handle."""

    def __init__(self, source: Union[Path, str, BinaryIO]):
        self.bytes_read = 0
        self.requests_made = 0
        self._should_close_file = False

        if hasattr(source, 'read'):
            if isinstance(source, io.TextIOBase):
                raise UnsupportedSourceError("Text-mode file handles are not supported, open the file in binary mode")
            seekable = getattr(source, 'seekable', None)
            if seekable is None or not seekable():
                raise UnsupportedSourceError("File handle is not seekable, cannot determine its length")
            self._file = source
        elif isinstance(source, (str, os.PathLike)):
            self._file = open(source, 'rb')
            self._should_close_file = True
        else:
            raise UnsupportedSourceError(f"Cannot read chunks from {type(source).__name__}")

        # Length is captured once; later changes to the file surface as read errors
        self._file.seek(0, io.SEEK_END)
        self.size = self._file.tell()
        self._file.seek(0)

    @property
    def name(self) -> str | None:
        return getattr(self._file, 'name', None)

    def seek(self, offset: int) -> None:
        self._file.seek(offset)

    def read(self, length: int) -> bytes:
        """Return up to `length` bytes, looping over short reads from raw files."""
        self.requests_made += 1
        if self._file is None or self._file.closed:
            raise IOError("Source is closed")
        parts = []
        wanted = length
        while wanted > 0:
            data = self._file.read(wanted)
            if not data:
                break
            parts.append(data)
            wanted -= len(data)
        data = b''.join(parts)
        self.bytes_read += len(data)
        return data

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close the file if we opened it."""
        if self._should_close_file and self._file is not None:
            self._file.close()
        self._file = None


class MemoryByteSource:
    """Sequential reader over bytes already held in memory."""

    def __init__(self, data: BytesLike):
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise UnsupportedSourceError(f"Cannot read chunks from {type(data).__name__}")
        self._view = memoryview(data).cast('B')
        self.size = len(self._view)
        self.bytes_read = 0
        self.requests_made = 0
        self._offset = 0

    @classmethod
    def from_text(cls, text: str, encoding: str = 'utf-8') -> 'MemoryByteSource':
        """Treat a text string as the raw bytes of its encoding."""
        return cls(text.encode(encoding))

    def seek(self, offset: int) -> None:
        self._offset = offset

    def read(self, length: int) -> bytes:
        self.requests_made += 1
        if self._view is None:
            raise IOError("Source is closed")
        data = self._view[self._offset:self._offset + length].tobytes()
        self._offset += len(data)
        self.bytes_read += len(data)
        return data

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        if self._view is not None:
            self._view.release()
            self._view = None


class LocalAsyncByteSource:
    """Asynchronous local source - thin wrapper running a sync source in a worker thread."""

    def __init__(self, source):
        self._sync_source = source if isinstance(source, ByteSource) else open_local_source(source)

    @property
    def size(self) -> int:
        return self._sync_source.size

    @property
    def bytes_read(self) -> int:
        return self._sync_source.bytes_read

    @property
    def requests_made(self) -> int:
        return self._sync_source.requests_made

    def seek(self, offset: int) -> None:
        self._sync_source.seek(offset)

    async def read(self, length: int) -> bytes:
        return await asyncio.to_thread(self._sync_source.read, length)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the underlying sync source."""
        await asyncio.to_thread(self._sync_source.close)


def open_local_source(source, *, text: bool = False) -> Union[FileByteSource, MemoryByteSource]:
    """Create a synchronous local byte source."""
    if text:
        if not isinstance(source, str):
            raise UnsupportedSourceError("text=True requires a str source")
        return MemoryByteSource.from_text(source)
    if isinstance(source, (bytes, bytearray, memoryview)):
        return MemoryByteSource(source)
    return FileByteSource(source)


async def open_local_source_async(source, *, text: bool = False) -> LocalAsyncByteSource:
    """Create an asynchronous local byte source."""
    return LocalAsyncByteSource(open_local_source(source, text=text))
