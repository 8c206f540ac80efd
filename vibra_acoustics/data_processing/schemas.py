from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

RawValue = Union[str, int, float, None]

# Column order of the serialized (exported) representation.
READING_COLUMNS: Tuple[str, ...] = (
    "angle",
    "level",
    "distance",
    "reverberation",
    "classification",
    "layer",
)


class ZoneKind(str, Enum):
    HOTSPOT = "hotspot"
    DEADSPOT = "deadspot"
    NEUTRAL = "neutral"


class ViewMode(str, Enum):
    BEFORE = "before"
    AFTER = "after"


@dataclass(frozen=True)
class RawReading:
    """One sensor row as delivered by an import collaborator (values untouched)."""

    angle: RawValue = ""
    level: RawValue = ""
    distance: RawValue = ""
    reverberation: RawValue = ""
    classification: Optional[str] = ""
    layer: Optional[str] = ""

    def as_row(self) -> Dict[str, Any]:
        return {c: getattr(self, c) for c in READING_COLUMNS}


@dataclass(frozen=True)
class NormalizedReading:
    angle_deg: float
    distance_m: float
    level_db: float
    rt60: float
    zone: "ZoneKind"
    layer_index: int
    # Position of the source row in the deployed batch (pre-filter).
    batch_index: int = 0
    raw: RawReading = field(default_factory=RawReading, compare=False)

    @property
    def distance_cm(self) -> float:
        return self.distance_m * 100.0


@dataclass(frozen=True)
class Position:
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class SpatialPoint:
    key: str
    position: Position
    zone: ZoneKind
    source: NormalizedReading


@dataclass(frozen=True)
class Bounds:
    """Running min/max of the horizontal (x, z) coordinates of a point batch."""

    min_x: float
    max_x: float
    min_z: float
    max_z: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def depth(self) -> float:
        return self.max_z - self.min_z


@dataclass(frozen=True)
class RoomSizeStatus:
    is_standard: bool
    estimated_size_m: Optional[float]
    reason: str
