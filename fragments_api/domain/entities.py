"""Internal domain entities as TypedDicts and tuples for type safety at boundaries."""
from __future__ import annotations

from typing import Any, Dict, NamedTuple, Optional, Tuple, TypedDict


class BoundingBox(NamedTuple):
    """Axis-aligned bounding volume of a converted model."""

    min: Tuple[float, float, float]
    max: Tuple[float, float, float]

    def to_dict(self) -> Dict[str, list[float]]:
        return {"min": list(self.min), "max": list(self.max)}


class ConversionResult(NamedTuple):
    """Transient output of one conversion, never persisted as is."""

    data: bytes
    fragments_count: Optional[int] = None
    bounding_box: Optional[BoundingBox] = None


class FragmentsMetadata(TypedDict):
    original_filename: str | None
    uploaded_at: str
    file_size: int
    data_size: int
    fragments_count: int | None
    bounding_box: Dict[str, list[float]] | None


class FragmentsRecord(TypedDict):
    id: str
    data: bytes
    metadata: Dict[str, Any] | None

