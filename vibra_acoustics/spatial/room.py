from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from vibra_acoustics.data_processing.schemas import NormalizedReading, RoomSizeStatus

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudioStandard:
    """Accepted room size (meters) for a correctly sized studio."""

    min_size_m: float = 3.0
    max_size_m: float = 5.0

    def __post_init__(self) -> None:
        if not (0 < self.min_size_m <= self.max_size_m):
            raise ValueError(
                f"Invalid studio standard range: {self.min_size_m}..{self.max_size_m} m"
            )

    def describe(self) -> str:
        return f"{self.min_size_m:g}-{self.max_size_m:g} m"


def estimate_room_size(readings: Sequence[NormalizedReading], standard: StudioStandard = StudioStandard()) -> RoomSizeStatus:
    """
    Estimate the room size as twice the farthest distance return, assuming the
    sensor sits in the middle of the room, and check it against the standard.
    A mismatch is a verdict, never an error.
    """
    dist = np.array([r.distance_m for r in readings], dtype=float)
    dist = dist[np.isfinite(dist) & (dist > 0)]

    if dist.size == 0:
        return RoomSizeStatus(
            is_standard=False,
            estimated_size_m=None,
            reason="No usable distance values found.",
        )

    estimate = float(2.0 * dist.max())
    ok = standard.min_size_m <= estimate <= standard.max_size_m

    if ok:
        reason = f"Studio standard detected: ~{estimate:g} m (expected {standard.describe()})."
    else:
        reason = f"Outside studio standard: ~{estimate:g} m (expected {standard.describe()})."
        log.warning("%s", reason)

    return RoomSizeStatus(is_standard=ok, estimated_size_m=estimate, reason=reason)
