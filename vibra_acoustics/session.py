from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from vibra_acoustics.data_processing.normalize import normalize_batch
from vibra_acoustics.data_processing.readings_io import export_readings_csv
from vibra_acoustics.data_processing.schemas import Bounds, RawReading, RoomSizeStatus, SpatialPoint, ViewMode, ZoneKind
from vibra_acoustics.settings import AppSettings
from vibra_acoustics.spatial.mapper import PointBatch, map_points
from vibra_acoustics.spatial.room import estimate_room_size
from vibra_acoustics.treatment.catalog import TreatmentDefinition
from vibra_acoustics.treatment.colors import RGB, ColorPair, resolve_colors
from vibra_acoustics.treatment.simulator import TreatmentEffectSimulator, TreatmentEffectState
from vibra_acoustics.treatment.summary import EffectSummary, summarize_effect

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeployResult:
    points: List[SpatialPoint]
    bounds: Optional[Bounds]
    room_status: RoomSizeStatus
    n_input: int
    n_dropped: int


@dataclass(frozen=True)
class Selection:
    point: SpatialPoint
    state: Optional[TreatmentEffectState]
    best_treatment: TreatmentDefinition
    colors: ColorPair
    summary: EffectSummary


class AcousticSession:
    """
    Event surface for one viewer: deploy/reset a reading batch, apply
    treatments to points, select a point and switch the before/after view.

    Deploy swaps the point set and clears all effect state in one step;
    effect state is written only by the owned TreatmentEffectSimulator.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self.settings = settings or AppSettings()
        self._simulator = TreatmentEffectSimulator(self.settings.catalog, self.settings.simulator)
        self._batch: List[RawReading] = []
        self._points = PointBatch()
        self._room_status: Optional[RoomSizeStatus] = None
        self._selected_key: Optional[str] = None
        self.view_mode = ViewMode.AFTER

    # -------------------------
    # Read-only views
    # -------------------------
    @property
    def points(self) -> List[SpatialPoint]:
        return list(self._points.points)

    @property
    def bounds(self) -> Optional[Bounds]:
        return self._points.bounds

    @property
    def room_status(self) -> Optional[RoomSizeStatus]:
        return self._room_status

    @property
    def batch(self) -> List[RawReading]:
        return list(self._batch)

    @property
    def effect_states(self) -> Mapping[str, TreatmentEffectState]:
        return self._simulator.states

    def effect_state(self, key: str) -> Optional[TreatmentEffectState]:
        return self._simulator.get(key)

    # -------------------------
    # Events
    # -------------------------
    def deploy(self, batch: Sequence[RawReading]) -> DeployResult:
        batch = list(batch)
        normalized = normalize_batch(batch)
        points = map_points(normalized.readings, self.settings.mapper)
        status = estimate_room_size(normalized.readings, self.settings.studio)

        # Commit everything together so old points never meet new effect state.
        self._batch = batch
        self._points = points
        self._room_status = status
        self._simulator.reset()
        self._selected_key = None
        self.view_mode = ViewMode.AFTER

        log.info(
            "Deployed %d points (%d rows, %d dropped); room: %s",
            len(points),
            len(batch),
            len(normalized.dropped),
            status.reason,
        )
        return DeployResult(
            points=list(points.points),
            bounds=points.bounds,
            room_status=status,
            n_input=len(batch),
            n_dropped=len(normalized.dropped),
        )

    def reset(self) -> None:
        self._batch = []
        self._points = PointBatch()
        self._room_status = None
        self._simulator.reset()
        self._selected_key = None
        self.view_mode = ViewMode.AFTER
        log.info("Session reset")

    def apply_treatment(self, point_key: str, treatment_id: str) -> Optional[TreatmentEffectState]:
        point = self._points.by_key(point_key)
        if point is None:
            log.debug("Treatment %s ignored: no point %r in the deployed batch", treatment_id, point_key)
            return None
        return self._simulator.apply(point_key, treatment_id, point.zone)

    def select_point(self, point_key: Optional[str]) -> Optional[Selection]:
        point = self._points.by_key(point_key) if point_key else None
        self._selected_key = point.key if point is not None else None
        return self.selection

    def set_view_mode(self, mode: Union[ViewMode, str]) -> None:
        self.view_mode = ViewMode(mode)

    # -------------------------
    # Derived outputs
    # -------------------------
    def best_treatment(self, zone: ZoneKind) -> TreatmentDefinition:
        return self.settings.catalog.best_for(zone)

    @property
    def selection(self) -> Optional[Selection]:
        if self._selected_key is None:
            return None
        point = self._points.by_key(self._selected_key)
        if point is None:
            return None
        state = self._simulator.get(point.key)
        best = self.best_treatment(point.zone)
        return Selection(
            point=point,
            state=state,
            best_treatment=best,
            colors=resolve_colors(point.zone, state),
            summary=summarize_effect(
                state,
                self.settings.catalog,
                recommended=best.display_name,
                initial_severity=self.settings.simulator.initial_severity,
            ),
        )

    def colors(self, point_key: str) -> Optional[ColorPair]:
        point = self._points.by_key(point_key)
        if point is None:
            return None
        return resolve_colors(point.zone, self._simulator.get(point_key))

    def point_colors(self) -> Dict[str, RGB]:
        """Displayed color of every point for the current view mode."""
        return {
            p.key: resolve_colors(p.zone, self._simulator.get(p.key)).for_view(self.view_mode)
            for p in self._points.points
        }

    def export_csv(self, path: Optional[Union[str, Path]] = None) -> str:
        return export_readings_csv(self._batch, path)
