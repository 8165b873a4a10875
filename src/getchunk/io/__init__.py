"""Byte source layer for getchunk - turns paths, handles, buffers and URLs into sequential sources."""

# Re-export these for import convenience
from .base import ByteSource, AsyncByteSource, RangeNotSupportedError
from .local import (FileByteSource, MemoryByteSource, LocalAsyncByteSource,
                    open_local_source, open_local_source_async)
from .http_sync import HTTPByteSource, open_http_source
from .http_async import HTTPAsyncByteSource, open_http_source_async


def _is_url(source) -> bool:
    return isinstance(source, str) and source.startswith(('http://', 'https://'))


def open_source(source, *, text: bool = False):
    """Factory function to create the appropriate ByteSource for a source.

    Already-open ByteSource objects are returned unchanged. A ``str`` is a
    path or URL unless ``text=True``, in which case its UTF-8 bytes are read.
    """
    if isinstance(source, ByteSource):
        return source
    if not text and _is_url(source):
        return open_http_source(source)
    return open_local_source(source, text=text)


async def open_source_async(source, *, text: bool = False):
    """Factory function to create the appropriate AsyncByteSource for a source."""
    if isinstance(source, (AsyncByteSource, ByteSource)):
        return source
    if not text and _is_url(source):
        return await open_http_source_async(source)
    return await open_local_source_async(source, text=text)


__all__ = [
    "ByteSource", "AsyncByteSource", "RangeNotSupportedError",
    "FileByteSource", "MemoryByteSource", "LocalAsyncByteSource",
    "HTTPByteSource", "HTTPAsyncByteSource",
    "open_source", "open_source_async",
]
