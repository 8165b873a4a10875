from __future__ import annotations
from typing import Any, Dict

from ..units import parse_size
from .model import Auto, Bytes, ChunkResult, ConfigurationError, Percent, SizingMode


def parse_mode(text: str) -> SizingMode:
    """Parse ``auto``, ``25%`` or a size such as ``4096`` / ``4MiB``."""
    value = text.strip()
    if value.lower() == "auto":
        return Auto()
    try:
        if value.endswith("%"):
            return Percent(float(value[:-1]))
        return Bytes(parse_size(value))
    except ValueError as e:
        raise ConfigurationError(f"Invalid sizing mode {text!r}: {e}") from e


def result_asdict(res: ChunkResult) -> Dict[str, Any]:
    """Return a JSON-serialisable dict describing one step (chunk bytes omitted)."""
    payload: Dict[str, Any] = {"status": res.status.value, "position": res.position}
    if res.data is not None:
        payload["length"] = len(res.data)
    if res.error is not None:
        payload["error"] = str(res.error)
    return payload
