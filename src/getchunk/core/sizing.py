"""Chunk sizing: a pure function of the mode, read history and memory budget.

Auto mode is a directional feedback loop. After each read the duration of
the newest read (``now``) is compared with the one before it (``prev``):

* faster read   -> grow by ``(prev - now) / prev``, at most 15 % (but by
  at least one byte)
* slower read   -> shrink by ``(now - prev) / prev``, at most 45 %
* equal or unmeasurable duration -> keep the last size
* no usable history -> 0.1 % of the total length

Every mode is then capped at 85 % of available memory and at the bytes
left to read.
"""

from __future__ import annotations

import math
import warnings

from .model import Auto, Bytes, MemoryBudget, Observation, Percent, SizingMode

DEFAULT_CHUNK_FRACTION = 0.001
MAX_GROWTH = 0.15
MAX_SHRINK = 0.45
MIN_PERCENT = 0.1
MAX_PERCENT = 100.0
MIN_CHUNK_SIZE = 1


def default_size(total_length: float) -> float:
    return total_length * DEFAULT_CHUNK_FRACTION


def increase(size: float, prev: float, now: float) -> float:
    return size * (1.0 + min((prev - now) / prev, MAX_GROWTH))


def decrease(size: float, prev: float, now: float) -> float:
    return size * (1.0 - min((now - prev) / prev, MAX_SHRINK))


def _auto_size(last: Observation | None, previous: Observation | None, total_length: float) -> float:
    if last is None or previous is None or previous.duration <= 0:
        return default_size(total_length)
    prev, now = previous.duration, last.duration
    if now <= 0 or now == prev:
        return last.size
    if now < prev:
        # grow by at least one whole byte
        return max(increase(last.size, prev, now), math.floor(last.size) + MIN_CHUNK_SIZE)
    return decrease(last.size, prev, now)


def clamp_percent(value: float) -> float:
    clamped = min(max(value, MIN_PERCENT), MAX_PERCENT)
    if clamped != value:
        warnings.warn(f"Percent value {value} clamped to {clamped}")
    return clamped


def next_size(
    mode: SizingMode,
    last: Observation | None,
    previous: Observation | None,
    total_length: float,
    remaining: float,
    budget: MemoryBudget,
) -> float:
    """Return the size in bytes (unrounded) the next read should request."""
    if isinstance(mode, Auto):
        size = _auto_size(last, previous, total_length)
    elif isinstance(mode, Percent):
        size = total_length * (clamp_percent(mode.value) / 100.0)
    elif isinstance(mode, Bytes):
        size = float(min(mode.value, total_length))
    else:
        raise TypeError(f"Unknown sizing mode: {mode!r}")
    return min(size, budget.ceiling, remaining)


def chunk_length(size: float, remaining: int) -> int:
    """Turn a computed size into a byte count: at least one byte, at most ``remaining``."""
    if not math.isfinite(size):
        return remaining
    return min(max(int(size), MIN_CHUNK_SIZE), remaining)
