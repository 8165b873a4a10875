"""getchunk - read files and byte sources in adaptively sized chunks."""

from .core.model import (Auto, Percent, Bytes, SizingMode, Observation, MemoryBudget,   # re-export
                         CursorState, StepStatus, ChunkResult,
                         ConfigurationError, StartPositionError, UnsupportedSourceError,
                         ChunkReadError, CursorStateError)
from .core.cursor import ChunkCursor
from .core.sizing import next_size
from .core.util import parse_mode
from .iterator import FileIter
from .stream import FileStream
from .memory import MemoryProbe, SystemMemoryProbe, FixedMemoryProbe


def iter_chunks(source, *, mode: SizingMode | None = None, **options) -> FileIter:
    """Return a blocking chunk iterator over a source (path, URL, handle or buffer)."""
    return FileIter(source, mode=mode, **options)


async def open_stream(source, *, mode: SizingMode | None = None, **options) -> FileStream:
    """Return an asynchronous chunk stream over a source (path, URL, handle or buffer)."""
    return await FileStream.open(source, mode=mode, **options)


__all__ = [
    "iter_chunks", "open_stream",
    "FileIter", "FileStream", "ChunkCursor", "next_size", "parse_mode",
    "Auto", "Percent", "Bytes", "SizingMode", "Observation", "MemoryBudget",
    "CursorState", "StepStatus", "ChunkResult",
    "MemoryProbe", "SystemMemoryProbe", "FixedMemoryProbe",
    "ConfigurationError", "StartPositionError", "UnsupportedSourceError",
    "ChunkReadError", "CursorStateError",
]
