"""Memory probes reporting how much RAM (and optionally swap) is free right now."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

import psutil

from .core.model import MemoryBudget

logger = logging.getLogger(__name__)


@runtime_checkable
class MemoryProbe(Protocol):
    """Protocol for memory probes. Values are bytes and never cached."""

    def available_ram(self) -> float:
        ...

    def available_ram_and_swap(self) -> float:
        ...


class SystemMemoryProbe:
    """Reads the current system state through psutil on every call."""

    def available_ram(self) -> float:
        return float(psutil.virtual_memory().available)

    def available_ram_and_swap(self) -> float:
        return float(psutil.virtual_memory().available + psutil.swap_memory().free)


class FixedMemoryProbe:
    """Reports constant figures; used for tests and explicit memory limits."""

    def __init__(self, ram: float, swap: float = 0.0):
        if ram < 0 or swap < 0:
            raise ValueError("Memory figures cannot be negative")
        self.ram = float(ram)
        self.swap = float(swap)

    def available_ram(self) -> float:
        return self.ram

    def available_ram_and_swap(self) -> float:
        return self.ram + self.swap


def measure(probe: MemoryProbe, include_swap: bool) -> MemoryBudget:
    """Take a fresh reading from ``probe`` and wrap it in a MemoryBudget."""
    available = probe.available_ram_and_swap() if include_swap else probe.available_ram()
    logger.debug("Available memory: %.0f bytes (swap included: %s)", available, include_swap)
    return MemoryBudget(available=available, include_swap=include_swap)
