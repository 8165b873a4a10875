"""Human-readable data sizes: SI (1000-based) and IEC (1024-based) units."""

from __future__ import annotations

import re

SI_UNITS = ("B", "KB", "MB", "GB", "TB", "PB", "EB")
IEC_UNITS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB")

_MULTIPLIERS = {unit.lower(): 1000 ** i for i, unit in enumerate(SI_UNITS)}
_MULTIPLIERS.update({unit.lower(): 1024 ** i for i, unit in enumerate(IEC_UNITS) if i})
_MULTIPLIERS.update({"": 1, "byte": 1, "bytes": 1})

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d*)?|\.\d+)\s*([a-zA-Z]*)\s*$")


def parse_size(text: str) -> int:
    """Parse ``"150KiB"``, ``"1.5 MB"`` or ``"4096"`` into a byte count."""
    match = _SIZE_RE.match(text)
    if not match:
        raise ValueError(f"Invalid size: {text!r}")
    amount, unit = match.groups()
    multiplier = _MULTIPLIERS.get(unit.lower())
    if multiplier is None:
        raise ValueError(f"Unknown size unit {unit!r} in {text!r}")
    return int(float(amount) * multiplier)


def format_size(size: float, *, binary: bool = True) -> str:
    """Render a byte count with the largest unit that keeps the value >= 1."""
    if size < 0:
        raise ValueError("Size cannot be negative")
    base, units = (1024, IEC_UNITS) if binary else (1000, SI_UNITS)
    if size < base:
        return f"{size:.0f} B"
    value = float(size)
    unit = units[0]
    for unit in units[1:]:
        value /= base
        if value < base:
            break
    return f"{value:.2f} {unit}"
