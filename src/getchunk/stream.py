"""Asynchronous stream over the chunks of a byte source."""

from __future__ import annotations

import inspect
from typing import AsyncIterator

from .core.cursor import ChunkCursor
from .core.model import CursorState, SizingMode
from .io import open_source_async
from .memory import MemoryProbe


class FileStream:
    """Async iterator yielding chunks; each read is a suspension point.

    Only one chunk is read at a time per stream. Cancelling the consuming
    task abandons the in-flight read and the stream cannot continue.
    """

    def __init__(self, cursor: ChunkCursor):
        self._cursor = cursor

    @classmethod
    async def open(cls, source, *, mode: SizingMode | None = None, memory_probe: MemoryProbe | None = None,
                   text: bool = False, **cursor_options) -> 'FileStream':
        """Open ``source`` (path, handle, buffer or URL) and wrap it in a stream."""
        byte_source = await open_source_async(source, text=text)
        try:
            cursor = ChunkCursor(byte_source, mode=mode, memory_probe=memory_probe, **cursor_options)
        except BaseException:
            result = byte_source.close()
            if inspect.isawaitable(result):
                await result
            raise
        return cls(cursor)

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

    def set_mode(self, mode: SizingMode) -> 'FileStream':
        self._cursor.set_mode(mode)
        return self

    def set_start_position(self, offset: int) -> 'FileStream':
        self._cursor.set_start_position(offset)
        return self

    def set_start_position_percent(self, percent: float) -> 'FileStream':
        self._cursor.set_start_position_percent(percent)
        return self

    def include_available_swap(self, enabled: bool = True) -> 'FileStream':
        self._cursor.include_available_swap(enabled)
        return self

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self

    async def __anext__(self) -> bytes:
        if self._cursor.state is not CursorState.ACTIVE:
            raise StopAsyncIteration
        result = await self._cursor.astep()
        if result.is_chunk:
            return result.data
        if result.is_failure:
            raise result.error
        raise StopAsyncIteration

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        """Release the underlying source."""
        await self._cursor.aclose()
