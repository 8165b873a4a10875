"""Synchronous HTTP byte source using requests."""

import requests
from typing import Optional

from ..core.model import UnsupportedSourceError
from .base import RangeNotSupportedError, RANGE_FALLBACK_MAX

HEAD_TIMEOUT = 30
GET_TIMEOUT = 60

# Module-level session for connection pooling
_session = None


def _get_session():
    """Get or create the global requests session."""
    global _session
    if _session is None:
        _session = requests.Session()
    return _session


def _decide_full_get(content_length: Optional[int], accept_ranges: bool) -> bool:
    """Return True only when ranges are unsupported and the body is small enough to hold."""
    return (not accept_ranges and
            content_length is not None and
            content_length < RANGE_FALLBACK_MAX)


def _content_length(headers) -> int:
    value = headers.get('content-length')
    if value is None:
        raise UnsupportedSourceError("Server did not report Content-Length, cannot determine source length")
    return int(value)


class HTTPByteSource:
    """Sequential HTTP byte source reading successive Range windows."""

    def __init__(self, url: str):
        self.url = url
        self.bytes_read = 0
        self.requests_made = 0
        self._offset = 0
        self._accept_ranges = False
        self._full_content: Optional[bytes] = None
        self._session = _get_session()
        self._closed = False

        # Length is fixed by the HEAD response
        self._perform_head()

    def _perform_head(self):
        """Perform HEAD request to learn length and range support."""
        try:
            self.requests_made += 1
            response = self._session.head(self.url, timeout=HEAD_TIMEOUT, allow_redirects=True)
        except requests.RequestException as e:
            raise IOError(f"HEAD request failed: {e}")
        if response.status_code >= 400:
            raise IOError(f"HEAD request failed with status {response.status_code}")

        self.size = _content_length(response.headers)
        accept_ranges = response.headers.get('accept-ranges', '').lower()
        self._accept_ranges = accept_ranges == 'bytes'

    def _fetch_full_content(self):
        """Download the whole body once for small resources without range support."""
        try:
            self.requests_made += 1
            response = self._session.get(self.url, timeout=GET_TIMEOUT)
        except requests.RequestException as e:
            raise IOError(f"GET request failed: {e}")
        if response.status_code >= 400:
            raise IOError(f"GET request failed with status {response.status_code}")
        self._full_content = response.content

    def _fetch_range(self, start: int, length: int, continued: bool = False) -> bytes:
        """Fetch a specific byte range."""
        end = start + length - 1
        headers = {'Range': f'bytes={start}-{end}'}

        try:
            self.requests_made += 1
            response = self._session.get(self.url, headers=headers, timeout=GET_TIMEOUT)
        except requests.RequestException as e:
            raise IOError(f"Range request failed: {e}")

        if response.status_code == 206:
            data = response.content
            # Server might return less than requested - ask once for the rest
            if 0 < len(data) < length and not continued:
                data += self._fetch_range(start + len(data), length - len(data), continued=True)
            return data
        if response.status_code == 416:
            return b''
        raise IOError(f"Range request failed with status {response.status_code}")

    def seek(self, offset: int) -> None:
        self._offset = offset

    def read(self, length: int) -> bytes:
        """Return up to `length` bytes from the current offset."""
        if self._closed:
            raise IOError("Source is closed")
        if length <= 0:
            return b''

        if self._full_content is None and _decide_full_get(self.size, self._accept_ranges):
            self._fetch_full_content()

        if self._full_content is not None:
            data = self._full_content[self._offset:self._offset + length]
        elif self._accept_ranges:
            data = self._fetch_range(self._offset, length)
        else:
            raise RangeNotSupportedError("Server doesn't support ranges and the resource is too large")

        self._offset += len(data)
        self.bytes_read += len(data)
        return data

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        # Session is shared, don't close it here
        self._closed = True
        self._full_content = None


def open_http_source(url: str) -> HTTPByteSource:
    """Create a synchronous HTTP byte source."""
    return HTTPByteSource(url)
