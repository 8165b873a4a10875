"""CLI implementation for getchunk."""

import asyncio
import hashlib
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from .core.cursor import ChunkCursor
from .core.model import ChunkResult, ConfigurationError, SizingMode
from .core.util import parse_mode, result_asdict
from .io import MemoryByteSource
from .iterator import FileIter
from .memory import FixedMemoryProbe, MemoryProbe
from .stream import FileStream
from .units import parse_size

app = typer.Typer(add_completion=False, help="Read a file or URL in chunks and report each chunk.")


def _record(index: int, res: ChunkResult, cursor: ChunkCursor, with_hash: bool) -> dict:
    obj = {"index": index, **result_asdict(res)}
    if res.is_chunk:
        obj["offset"] = res.position - len(res.data)
        obj["duration"] = cursor.last_observation.duration
        if with_hash:
            obj["sha256"] = hashlib.sha256(res.data).hexdigest()
    return obj


def _summary(cursor: ChunkCursor, chunks: int, bytes_read: int, error: Optional[str]) -> dict:
    return {
        "success": error is None,
        "error": error,
        "chunks": chunks,
        "bytes_read": bytes_read,
        "total_length": cursor.total_length,
    }


def _configure(cursor: ChunkCursor, start: Optional[int], include_swap: bool) -> None:
    if start:
        cursor.set_start_position(start)
    if include_swap:
        cursor.include_available_swap()


def _run_sync(source, mode: SizingMode, probe: Optional[MemoryProbe], start: Optional[int],
              include_swap: bool, with_hash: bool, emit) -> dict:
    with FileIter(source, mode=mode, memory_probe=probe).cursor as cursor:
        _configure(cursor, start, include_swap)
        chunks = bytes_read = 0
        while True:
            res = cursor.step()
            if res.is_end:
                return _summary(cursor, chunks, bytes_read, None)
            emit(_record(chunks, res, cursor, with_hash))
            if res.is_failure:
                return _summary(cursor, chunks, bytes_read, str(res.error))
            chunks += 1
            bytes_read += len(res.data)


async def _run_async(source, mode: SizingMode, probe: Optional[MemoryProbe], start: Optional[int],
                     include_swap: bool, with_hash: bool, emit) -> dict:
    stream = await FileStream.open(source, mode=mode, memory_probe=probe)
    async with stream.cursor as cursor:
        _configure(cursor, start, include_swap)
        chunks = bytes_read = 0
        while True:
            res = await cursor.astep()
            if res.is_end:
                return _summary(cursor, chunks, bytes_read, None)
            emit(_record(chunks, res, cursor, with_hash))
            if res.is_failure:
                return _summary(cursor, chunks, bytes_read, str(res.error))
            chunks += 1
            bytes_read += len(res.data)


@app.command()
def main(
    source: str = typer.Argument(..., help="File path or URL to read, or '-' for stdin"),
    mode: str = typer.Option("auto", "--mode", "-m", help="Chunk sizing: 'auto', a percentage like '25%', or a size like '4MiB'"),
    start: Optional[int] = typer.Option(None, "--start", min=0, help="Start reading at this byte offset"),
    include_swap: bool = typer.Option(False, "--include-swap", help="Count free swap as available memory"),
    memory_limit: Optional[str] = typer.Option(None, "--memory-limit", help="Treat this much memory (e.g. '512MiB') as available"),
    use_async: bool = typer.Option(False, "--async", help="Read through the asynchronous stream"),
    summary_only: bool = typer.Option(False, "--summary-only", help="Only print the final summary"),
    with_hash: bool = typer.Option(False, "--hash", help="Add the SHA-256 of each chunk"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write to PATH instead of stdout"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log sizing decisions to stderr"),
):
    """Read SOURCE chunk by chunk and emit one JSON line per chunk plus a summary."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr,
                            format="%(levelname)s %(name)s: %(message)s")

    try:
        sizing = parse_mode(mode)
        probe = FixedMemoryProbe(parse_size(memory_limit)) if memory_limit else None
    except (ConfigurationError, ValueError) as e:
        typer.echo(f"Invalid option: {e}", err=True)
        raise typer.Exit(code=2)

    # stdin is not seekable, so its bytes are held in memory
    input_source = MemoryByteSource(sys.stdin.buffer.read()) if source == "-" else source

    # open output sink
    sink = open(output, "w", encoding="utf-8") if output else sys.stdout

    def emit(obj: dict) -> None:
        if not summary_only:
            sink.write(json.dumps(obj))
            sink.write("\n")

    try:
        try:
            if use_async:
                summary = asyncio.run(_run_async(input_source, sizing, probe, start, include_swap, with_hash, emit))
            else:
                summary = _run_sync(input_source, sizing, probe, start, include_swap, with_hash, emit)
        except (OSError, ConfigurationError) as e:
            summary = {"success": False, "error": str(e), "chunks": 0, "bytes_read": 0, "total_length": None}
        sink.write(json.dumps(summary))
        sink.write("\n")
    finally:
        if output:
            sink.close()

    # exit code
    if not summary["success"]:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
