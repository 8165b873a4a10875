"""The chunk cursor: position tracking, sizing and timed reads over one byte source.

A cursor is created once per iteration and is ``ACTIVE`` until it either
reaches the end of the source (``ENDED``) or a read fails (``FAILED``).
Both are terminal. Each :meth:`ChunkCursor.step` asks the sizing engine for
the next size using a fresh memory reading, reads that many bytes, and
records how long the read took.

The size is decided before the read starts. Memory that disappears while
a large read is in flight is not re-checked; that read may still fail or
exhaust memory.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
import time
from typing import Callable

from ..memory import MemoryProbe, SystemMemoryProbe, measure
from .model import (Auto, Bytes, ChunkReadError, ChunkResult, ConfigurationError, CursorState,
                    CursorStateError, MemoryBudget, Observation, Percent, SizingMode,
                    StartPositionError, StepStatus)
from .sizing import chunk_length, next_size

logger = logging.getLogger(__name__)


class ChunkCursor:
    """Drives successive non-overlapping reads over a byte source."""

    def __init__(
        self,
        source,
        *,
        mode: SizingMode | None = None,
        memory_probe: MemoryProbe | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        if source.size is None:
            raise ConfigurationError("Source length is unknown, open the source before creating a cursor")
        self._source = source
        self._total_length = int(source.size)
        self._position = 0
        self._mode: SizingMode = Auto()
        self._probe = memory_probe or SystemMemoryProbe()
        self._clock = clock
        self._include_swap = False
        self._state = CursorState.ACTIVE
        self._started = False
        self._in_flight = False
        self._last: Observation | None = None
        self._previous: Observation | None = None
        if mode is not None:
            self.set_mode(mode)

    # ------------------------------------------------------------------ #
    @property
    def source(self):
        return self._source

    @property
    def position(self) -> int:
        return self._position

    @property
    def total_length(self) -> int:
        return self._total_length

    @property
    def remaining(self) -> int:
        return self._total_length - self._position

    @property
    def mode(self) -> SizingMode:
        return self._mode

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def is_read_complete(self) -> bool:
        return self._state is CursorState.ENDED

    @property
    def includes_swap(self) -> bool:
        return self._include_swap

    @property
    def last_observation(self) -> Observation | None:
        return self._last

    @property
    def previous_observation(self) -> Observation | None:
        return self._previous

    def memory_budget(self) -> MemoryBudget:
        """Query the memory probe now."""
        return measure(self._probe, self._include_swap)

    # --------------------------- configuration ------------------------- #
    def _check_configurable(self) -> None:
        if self._started:
            raise CursorStateError("Cursor can only be configured before iteration starts")

    def set_mode(self, mode: SizingMode) -> None:
        self._check_configurable()
        if not isinstance(mode, (Auto, Percent, Bytes)):
            raise ConfigurationError(f"Unknown sizing mode: {mode!r}")
        if isinstance(mode, Bytes) and mode.value < 0:
            raise ConfigurationError("Bytes mode needs a non-negative byte count")
        if isinstance(mode, Percent) and not math.isfinite(mode.value):
            raise ConfigurationError("Percent mode needs a finite value")
        self._mode = mode

    def set_start_position(self, offset: int) -> None:
        self._check_configurable()
        if offset < 0 or offset > self._total_length:
            raise StartPositionError(
                f"Start position {offset} is outside the source (length {self._total_length})")
        self._source.seek(offset)
        self._position = offset

    def set_start_position_percent(self, percent: float) -> None:
        self._check_configurable()
        if not 0.0 <= percent <= 100.0:
            raise StartPositionError(f"Start position {percent}% is outside 0-100%")
        self.set_start_position(int(self._total_length * (percent / 100.0)))

    def include_available_swap(self, enabled: bool = True) -> None:
        self._check_configurable()
        self._include_swap = enabled

    # ------------------------------ steps ------------------------------ #
    def _begin(self) -> int | None:
        """Run the non-I/O half of a step; return the byte count to read, or None at end."""
        if self._state is not CursorState.ACTIVE:
            raise CursorStateError(f"Cursor is {self._state.value}, it cannot be stepped again")
        if self._in_flight:
            raise CursorStateError("A step is already in flight on this cursor")
        self._started = True
        remaining = self.remaining
        if remaining <= 0:
            self._state = CursorState.ENDED
            logger.debug("End of source at position %d", self._position)
            return None

        budget = self.memory_budget()
        size = next_size(self._mode, self._last, self._previous, self._total_length, remaining, budget)
        length = chunk_length(size, remaining)
        logger.debug("Next chunk: mode=%s size=%.2f length=%d ceiling=%.0f remaining=%d",
                     self._mode, size, length, budget.ceiling, remaining)
        return length

    def _end_result(self) -> ChunkResult:
        return ChunkResult(StepStatus.END, None, None, self._position)

    def _complete(self, data: bytes, length: int, elapsed: float) -> ChunkResult:
        if len(data) != length:
            return self._fail(ChunkReadError(
                f"Source yielded {len(data)} of {length} bytes at offset {self._position}, "
                f"it may have shrunk below {self._total_length} bytes"))
        self._previous = self._last
        self._last = Observation(size=float(len(data)), duration=elapsed)
        self._position += len(data)
        return ChunkResult(StepStatus.CHUNK, data, None, self._position)

    def _fail(self, error: OSError) -> ChunkResult:
        self._state = CursorState.FAILED
        logger.warning("Read failed at position %d: %s", self._position, error)
        return ChunkResult(StepStatus.FAILURE, None, error, self._position)

    def step(self) -> ChunkResult:
        """Read the next chunk, blocking the calling thread for the read."""
        if inspect.iscoroutinefunction(self._source.read):
            raise CursorStateError("Source is asynchronous, use astep()")
        length = self._begin()
        if length is None:
            return self._end_result()
        self._in_flight = True
        try:
            started = self._clock()
            data = self._source.read(length)
            elapsed = self._clock() - started
        except OSError as e:
            return self._fail(e)
        except Exception:
            self._state = CursorState.FAILED
            raise
        finally:
            self._in_flight = False
        return self._complete(data, length, elapsed)

    async def astep(self) -> ChunkResult:
        """Read the next chunk, suspending the calling task during the read."""
        length = self._begin()
        if length is None:
            return self._end_result()
        self._in_flight = True
        try:
            started = self._clock()
            if inspect.iscoroutinefunction(self._source.read):
                data = await self._source.read(length)
            else:
                data = await asyncio.to_thread(self._source.read, length)
            elapsed = self._clock() - started
        except OSError as e:
            return self._fail(e)
        except Exception:
            self._state = CursorState.FAILED
            raise
        except asyncio.CancelledError:
            # The abandoned read may already have moved the source offset
            self._state = CursorState.FAILED
            logger.debug("Read cancelled at position %d", self._position)
            raise
        finally:
            self._in_flight = False
        return self._complete(data, length, elapsed)

    # ----------------------------- cleanup ----------------------------- #
    def close(self) -> None:
        """Release the source. Asynchronous sources must use aclose()."""
        if inspect.iscoroutinefunction(self._source.close):
            raise CursorStateError("Source is asynchronous, use aclose()")
        self._source.close()

    async def aclose(self) -> None:
        result = self._source.close()
        if inspect.isawaitable(result):
            await result

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
