"""Manual benchmark: how auto mode sizes chunks over a large temporary file.

Prints the first chunk sizes and overall throughput for the sync iterator
and the async stream. Not part of the test suite.
"""

import asyncio
import os
import sys
import tempfile
import time

from getchunk import FileIter, FileStream
from getchunk.units import format_size

SIZE = 256 * 1024 * 1024  # 256 MiB


def make_file() -> str:
    with tempfile.NamedTemporaryFile(delete=False) as f:
        block = os.urandom(1024 * 1024)
        for _ in range(SIZE // len(block)):
            f.write(block)
        return f.name


def bench_sync(path: str):
    print("Sync FileIter")
    started = time.perf_counter()
    sizes = []
    with FileIter(path) as chunks:
        for chunk in chunks:
            sizes.append(len(chunk))
    elapsed = time.perf_counter() - started
    print(f"  first sizes: {[format_size(s) for s in sizes[:8]]}")
    print(f"  {len(sizes)} chunks, largest {format_size(max(sizes))}, "
          f"{format_size(os.path.getsize(path) / elapsed)}/s")


async def bench_async(path: str):
    print("Async FileStream")
    started = time.perf_counter()
    sizes = []
    async with await FileStream.open(path) as stream:
        async for chunk in stream:
            sizes.append(len(chunk))
    elapsed = time.perf_counter() - started
    print(f"  {len(sizes)} chunks, largest {format_size(max(sizes))}, "
          f"{format_size(os.path.getsize(path) / elapsed)}/s")


if __name__ == "__main__":
    path = sys.argv[1] if len(sys.argv) > 1 else make_file()
    try:
        bench_sync(path)
        asyncio.run(bench_async(path))
    finally:
        if len(sys.argv) == 1:
            os.unlink(path)
