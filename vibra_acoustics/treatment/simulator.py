from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from vibra_acoustics.data_processing.schemas import ZoneKind
from vibra_acoustics.treatment.catalog import TreatmentCatalog
from vibra_acoustics.utils.numeric import clamp, round_half_up

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulatorSettings:
    initial_severity: int = 70
    floor: int = 20
    max_severity: int = 100
    # Each repeat of the same treatment on the same point is this fraction as effective.
    repeat_decay: float = 0.7

    def __post_init__(self) -> None:
        if not (0 <= self.floor <= self.max_severity):
            raise ValueError(f"Severity floor {self.floor} outside 0..{self.max_severity}")
        if not (0 <= self.initial_severity <= self.max_severity):
            raise ValueError(f"Initial severity {self.initial_severity} outside 0..{self.max_severity}")
        if not (0.0 <= self.repeat_decay <= 1.0):
            raise ValueError(f"Repeat decay must be within [0, 1], got {self.repeat_decay}")


@dataclass(frozen=True)
class TreatmentEffectState:
    severity: int
    applied: Tuple[str, ...] = ()
    locked: bool = False

    def times_applied(self, treatment_id: str) -> int:
        return self.applied.count(treatment_id)


def seed_state(settings: SimulatorSettings) -> TreatmentEffectState:
    return TreatmentEffectState(severity=settings.initial_severity)


def apply_treatment(
    state: Optional[TreatmentEffectState],
    treatment_id: str,
    zone: ZoneKind,
    catalog: TreatmentCatalog,
    settings: SimulatorSettings = SimulatorSettings(),
) -> Optional[TreatmentEffectState]:
    """
    Pure transition for one treatment application on one point.

    Returns the new state, or `state` itself (possibly None) when the
    application changes nothing: unknown treatment, zero impact after
    diminishing returns, or no severity movement. A point at or below the
    floor is locked and absorbs every further application.
    """
    definition = catalog.get(treatment_id)
    if definition is None:
        log.debug("Unknown treatment %r ignored", treatment_id)
        return state

    current = state if state is not None else seed_state(settings)

    if current.locked or current.severity <= settings.floor:
        locked = replace(current, severity=settings.floor, locked=True)
        return current if locked == current else locked

    times = current.times_applied(treatment_id)
    impact = round_half_up(definition.impact(zone) * settings.repeat_decay ** times)
    if impact <= 0:
        log.debug("%s on %s has no remaining effect (applied %d times)", treatment_id, zone.value, times)
        return state

    severity = clamp(current.severity - impact, settings.floor, settings.max_severity)
    if severity == current.severity:
        return state

    return TreatmentEffectState(
        severity=severity,
        applied=current.applied + (treatment_id,),
        locked=severity <= settings.floor,
    )


class TreatmentEffectSimulator:
    """
    Owner of the per-point effect states. States are only ever replaced
    through apply()/reset(); readers get immutable snapshots.
    """

    def __init__(self, catalog: TreatmentCatalog, settings: Optional[SimulatorSettings] = None):
        self.catalog = catalog
        self.settings = settings or SimulatorSettings()
        self._states: Dict[str, TreatmentEffectState] = {}

    def __len__(self) -> int:
        return len(self._states)

    def get(self, key: str) -> Optional[TreatmentEffectState]:
        return self._states.get(key)

    @property
    def states(self) -> Mapping[str, TreatmentEffectState]:
        return MappingProxyType(dict(self._states))

    def apply(self, key: str, treatment_id: str, zone: ZoneKind) -> Optional[TreatmentEffectState]:
        before = self._states.get(key)
        after = apply_treatment(before, treatment_id, zone, self.catalog, self.settings)
        if after is not None and after is not before:
            self._states[key] = after
            log.info(
                "Applied %s to %s: severity %s -> %d%s",
                treatment_id,
                key,
                before.severity if before is not None else self.settings.initial_severity,
                after.severity,
                " (locked)" if after.locked else "",
            )
        return after

    def reset(self) -> None:
        self._states = {}
