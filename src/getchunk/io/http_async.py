"""Asynchronous HTTP byte source using httpx."""

import httpx
from typing import Optional

from ..core.model import UnsupportedSourceError
from .base import RangeNotSupportedError, RANGE_FALLBACK_MAX

CLIENT_TIMEOUT = 60.0


def _decide_full_get(content_length: Optional[int], accept_ranges: bool) -> bool:
    """Return True only when ranges are unsupported and the body is small enough to hold."""
    return (not accept_ranges and
            content_length is not None and
            content_length < RANGE_FALLBACK_MAX)


class HTTPAsyncByteSource:
    """Asynchronous sequential HTTP byte source reading successive Range windows."""

    def __init__(self, url: str, client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self.size: Optional[int] = None
        self.bytes_read = 0
        self.requests_made = 0
        self._offset = 0
        self._accept_ranges = False
        self._full_content: Optional[bytes] = None
        self._initialized = False
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=CLIENT_TIMEOUT, follow_redirects=True)

    async def _ensure_initialized(self):
        """Perform HEAD request to learn length and range support if not already done."""
        if self._initialized:
            return

        try:
            self.requests_made += 1
            response = await self._client.head(self.url)
        except httpx.RequestError as e:
            raise IOError(f"HEAD request failed: {e}")
        if response.status_code >= 400:
            raise IOError(f"HEAD request failed with status {response.status_code}")

        content_length_header = response.headers.get('content-length')
        if content_length_header is None:
            raise UnsupportedSourceError("Server did not report Content-Length, cannot determine source length")
        self.size = int(content_length_header)

        accept_ranges = response.headers.get('accept-ranges', '').lower()
        self._accept_ranges = accept_ranges == 'bytes'
        self._initialized = True

    async def _fetch_full_content(self):
        """Download the whole body once for small resources without range support."""
        try:
            self.requests_made += 1
            response = await self._client.get(self.url)
        except httpx.RequestError as e:
            raise IOError(f"GET request failed: {e}")
        if response.status_code >= 400:
            raise IOError(f"GET request failed with status {response.status_code}")
        self._full_content = response.content

    async def _fetch_range(self, start: int, length: int, continued: bool = False) -> bytes:
        """Fetch a specific byte range."""
        end = start + length - 1
        headers = {'Range': f'bytes={start}-{end}'}

        try:
            self.requests_made += 1
            response = await self._client.get(self.url, headers=headers)
        except httpx.RequestError as e:
            raise IOError(f"Range request failed: {e}")

        if response.status_code == 206:
            data = response.content
            # Server might return less than requested - ask once for the rest
            if 0 < len(data) < length and not continued:
                data += await self._fetch_range(start + len(data), length - len(data), continued=True)
            return data
        if response.status_code == 416:
            return b''
        raise IOError(f"Range request failed with status {response.status_code}")

    def seek(self, offset: int) -> None:
        self._offset = offset

    async def read(self, length: int) -> bytes:
        """Return up to `length` bytes from the current offset."""
        await self._ensure_initialized()
        if self._client.is_closed:
            raise IOError("Source is closed")
        if length <= 0:
            return b''

        if self._full_content is None and _decide_full_get(self.size, self._accept_ranges):
            await self._fetch_full_content()

        if self._full_content is not None:
            data = self._full_content[self._offset:self._offset + length]
        elif self._accept_ranges:
            data = await self._fetch_range(self._offset, length)
        else:
            raise RangeNotSupportedError("Server doesn't support ranges and the resource is too large")

        self._offset += len(data)
        self.bytes_read += len(data)
        return data

    async def __aenter__(self):
        await self._ensure_initialized()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the client if this source created it."""
        self._full_content = None
        if self._owns_client:
            await self._client.aclose()


async def open_http_source_async(url: str, client: Optional[httpx.AsyncClient] = None) -> HTTPAsyncByteSource:
    """Create an asynchronous HTTP byte source with its length already known."""
    source = HTTPAsyncByteSource(url, client)
    try:
        await source._ensure_initialized()
    except BaseException:
        await source.close()
        raise
    return source
