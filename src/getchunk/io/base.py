"""Base protocols and shared types for the byte source layer."""

from typing import Protocol, runtime_checkable


class RangeNotSupportedError(IOError):
    """Raised when a server rejects Range and the resource size > RANGE_FALLBACK_MAX."""


RANGE_FALLBACK_MAX = 10 * 1024 * 1024  # 10 MB


@runtime_checkable
class ByteSource(Protocol):
    """Protocol for synchronous sequential byte sources."""

    size: int           # fixed when the source is opened
    bytes_read: int     # running total

    def read(self, length: int) -> bytes:
        """Return up to `length` bytes from the current offset.
        Fewer bytes only at end of source; failures raise IOError.
        """
        ...

    def seek(self, offset: int) -> None:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class AsyncByteSource(Protocol):
    """Protocol for asynchronous sequential byte sources."""

    size: int
    bytes_read: int

    async def read(self, length: int) -> bytes:
        """Return up to `length` bytes from the current offset.
        Fewer bytes only at end of source; failures raise IOError.
        """
        ...

    def seek(self, offset: int) -> None:
        ...

    async def close(self) -> None:
        ...
