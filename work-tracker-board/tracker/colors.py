from __future__ import annotations

from typing import Optional, Union

from tracker.models import FeatureArea, Release

DEFAULT_COLOR = "#ccc"

PALETTE = [
    "#007bff", "#6610f2", "#6f42c1", "#e83e8c", "#dc3545",
    "#fd7e14", "#ffc107", "#28a745", "#20c997", "#17a2b8",
    "#343a40", "#6c757d", "#0056b3", "#4c0bce", "#a71d2a",
]


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _utf16_units(text: str):
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def get_color(name: Optional[str]) -> str:
    """Map a name onto the palette; same name, same color."""
    if not name:
        return DEFAULT_COLOR
    # The shift wraps to 32 bits, the running sum does not.
    h = 0
    for unit in _utf16_units(name):
        h = unit + (_to_int32(_to_int32(h) << 5) - h)
    return PALETTE[abs(h) % len(PALETTE)]


def entity_color(entity: Optional[Union[Release, FeatureArea]], fallback_name: str = "") -> str:
    """Stored color of a release/feature area, else the derived one."""
    if entity is None:
        return get_color(fallback_name)
    return entity.color or get_color(entity.name)
