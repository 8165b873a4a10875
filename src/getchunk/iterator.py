"""Blocking iterator over the chunks of a byte source."""

from __future__ import annotations

from typing import Iterator

from .core.cursor import ChunkCursor
from .core.model import CursorState, SizingMode
from .io import open_source
from .memory import MemoryProbe


class FileIter:
    """Iterate a source chunk by chunk on the calling thread.

    Usage::

        with FileIter("big.bin").set_mode(Percent(10)) as chunks:
            for chunk in chunks:
                ...

    A failed read raises its ``OSError`` from ``next()`` and ends the
    iteration; the caller decides whether to open a new iterator.
    """

    def __init__(self, source, *, mode: SizingMode | None = None, memory_probe: MemoryProbe | None = None,
                 text: bool = False, **cursor_options):
        byte_source = open_source(source, text=text)
        try:
            self._cursor = ChunkCursor(byte_source, mode=mode, memory_probe=memory_probe, **cursor_options)
        except BaseException:
            byte_source.close()
            raise

    @classmethod
    def from_cursor(cls, cursor: ChunkCursor) -> 'FileIter':
        it = cls.__new__(cls)
        it._cursor = cursor
        return it

    @property
    def cursor(self) -> ChunkCursor:
        return self._cursor

    @property
    def total_length(self) -> int:
        return self._cursor.total_length

    def get_file_size(self) -> int:
        return self._cursor.total_length

    @property
    def position(self) -> int:
        return self._cursor.position

    @property
    def is_read_complete(self) -> bool:
        return self._cursor.is_read_complete

    # fluent configuration, allowed before the first chunk
    def set_mode(self, mode: SizingMode) -> 'FileIter':
        self._cursor.set_mode(mode)
        return self

    def set_start_position(self, offset: int) -> 'FileIter':
        self._cursor.set_start_position(offset)
        return self

    def set_start_position_percent(self, percent: float) -> 'FileIter':
        self._cursor.set_start_position_percent(percent)
        return self

    def include_available_swap(self, enabled: bool = True) -> 'FileIter':
        self._cursor.include_available_swap(enabled)
        return self

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        if self._cursor.state is not CursorState.ACTIVE:
            raise StopIteration
        result = self._cursor.step()
        if result.is_chunk:
            return result.data
        if result.is_failure:
            raise result.error
        raise StopIteration

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Release the underlying source."""
        self._cursor.close()
