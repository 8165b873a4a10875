from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Union

MEMORY_CEILING_FRACTION = 0.85      # share of available memory a chunk may use


@dataclass(frozen=True, slots=True)
class Auto:
    """Size each chunk from read-latency feedback."""


@dataclass(frozen=True, slots=True)
class Percent:
    """Size each chunk as a share of the total length (clamped when used)."""
    value: float


@dataclass(frozen=True, slots=True)
class Bytes:
    """Request a fixed number of bytes per chunk."""
    value: int


SizingMode = Union[Auto, Percent, Bytes]


@dataclass(frozen=True, slots=True)
class Observation:
    size: float         # bytes actually returned by the read
    duration: float     # seconds

    @property
    def throughput(self) -> float:
        return self.size / self.duration if self.duration > 0 else 0.0


@dataclass(frozen=True, slots=True)
class MemoryBudget:
    available: float
    include_swap: bool = False

    @property
    def ceiling(self) -> float:
        return self.available * MEMORY_CEILING_FRACTION


class CursorState(Enum):
    ACTIVE = "active"
    ENDED = "ended"
    FAILED = "failed"


class StepStatus(Enum):
    CHUNK = "chunk"
    END = "end"
    FAILURE = "failure"


@dataclass(slots=True)
class ChunkResult:
    status: StepStatus
    data: bytes | None
    error: OSError | None
    position: int       # cursor position after the step

    @property
    def is_chunk(self) -> bool:
        return self.status is StepStatus.CHUNK

    @property
    def is_end(self) -> bool:
        return self.status is StepStatus.END

    @property
    def is_failure(self) -> bool:
        return self.status is StepStatus.FAILURE


class ConfigurationError(RuntimeError):
    """Raised when a cursor or source is configured with invalid values."""
    pass


class StartPositionError(ConfigurationError, IndexError):
    """Raised when a start position lies outside the source."""
    pass


class UnsupportedSourceError(ConfigurationError, TypeError):
    """Raised when an input cannot be turned into a byte source."""
    pass


class ChunkReadError(IOError):
    """Raised when the source yields fewer bytes than it reported having."""
    pass


class CursorStateError(RuntimeError):
    """Raised when a cursor is used in a state that does not allow it."""
    pass
