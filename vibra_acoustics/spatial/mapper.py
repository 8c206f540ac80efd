from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from vibra_acoustics.data_processing.schemas import Bounds, NormalizedReading, Position, SpatialPoint

log = logging.getLogger(__name__)


KEY_SEPARATOR = "__"


@dataclass(frozen=True)
class MapperSettings:
    # Vertical distance between consecutive sensor layers, and height of layer 0.
    layer_height_step: float = 0.5
    base_height: float = 0.3


@dataclass
class PointBatch:
    points: List[SpatialPoint] = field(default_factory=list)
    bounds: Optional[Bounds] = None

    def __post_init__(self) -> None:
        self._index = {p.key: p for p in self.points}

    def __len__(self) -> int:
        return len(self.points)

    def by_key(self, key: str) -> Optional[SpatialPoint]:
        return self._index.get(key)


def _text(v: object) -> str:
    return "" if v is None else str(v)


def point_key(reading: NormalizedReading) -> str:
    """
    Identity of a point within one deployed batch:
      <layer label>__<raw angle>__<raw distance>__<batch index>
    The batch index keeps duplicate sensor rows apart.
    """
    layer = _text(reading.raw.layer).strip() or f"Layer {reading.layer_index + 1}"
    parts = [layer, _text(reading.raw.angle), _text(reading.raw.distance), str(reading.batch_index)]
    return KEY_SEPARATOR.join(parts)


def map_points(readings: Sequence[NormalizedReading], settings: Optional[MapperSettings] = None) -> PointBatch:
    """
    Project readings around a sensor at the origin:
      x = cos(angle) * d,  z = sin(angle) * d,  y = layer * step + base
    and collect the x/z extents of the batch.
    """
    settings = settings or MapperSettings()
    if not readings:
        return PointBatch()

    angle = np.deg2rad(np.array([r.angle_deg for r in readings], dtype=float))
    dist = np.array([r.distance_m for r in readings], dtype=float)
    layer = np.array([r.layer_index for r in readings], dtype=float)

    xs = np.cos(angle) * dist
    zs = np.sin(angle) * dist
    ys = layer * settings.layer_height_step + settings.base_height

    points: List[SpatialPoint] = []
    for r, x, y, z in zip(readings, xs, ys, zs):
        points.append(
            SpatialPoint(
                key=point_key(r),
                position=Position(x=float(x), y=float(y), z=float(z)),
                zone=r.zone,
                source=r,
            )
        )

    bounds = Bounds(
        min_x=float(xs.min()),
        max_x=float(xs.max()),
        min_z=float(zs.min()),
        max_z=float(zs.max()),
    )
    log.debug("Mapped %d points; bounds=%s", len(points), bounds)
    return PointBatch(points=points, bounds=bounds)


def points_to_frame(points: Sequence[SpatialPoint]) -> pd.DataFrame:
    rows = [
        {
            "key": p.key,
            "x": p.position.x,
            "y": p.position.y,
            "z": p.position.z,
            "zone": p.zone.value,
            "layer_index": p.source.layer_index,
            "angle_deg": p.source.angle_deg,
            "distance_m": p.source.distance_m,
            "level_db": p.source.level_db,
            "rt60": p.source.rt60,
        }
        for p in points
    ]
    columns = ["key", "x", "y", "z", "zone", "layer_index", "angle_deg", "distance_m", "level_db", "rt60"]
    return pd.DataFrame(rows, columns=columns)
