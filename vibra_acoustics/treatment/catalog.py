from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from vibra_acoustics.data_processing.classify import parse_zone
from vibra_acoustics.data_processing.schemas import ZoneKind

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TreatmentDefinition:
    id: str
    display_name: str
    # Severity points removed by one (first) application, per zone.
    impact_by_zone: Mapping[ZoneKind, int] = field(default_factory=dict)
    icon: str = ""

    def impact(self, zone: ZoneKind) -> int:
        return int(self.impact_by_zone.get(zone, 0))


class TreatmentCatalog:
    """Read-only, ordered set of treatment definitions."""

    def __init__(self, definitions: Sequence[TreatmentDefinition]):
        if not definitions:
            raise ValueError("Treatment catalog must contain at least one treatment.")
        by_id: Dict[str, TreatmentDefinition] = {}
        for d in definitions:
            if d.id in by_id:
                raise ValueError(f"Duplicate treatment id in catalog: {d.id!r}")
            by_id[d.id] = d
        self._ordered = tuple(definitions)
        self._by_id = MappingProxyType(by_id)

    def __iter__(self):
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def __contains__(self, treatment_id: object) -> bool:
        return treatment_id in self._by_id

    def get(self, treatment_id: str) -> Optional[TreatmentDefinition]:
        return self._by_id.get(treatment_id)

    def ids(self) -> List[str]:
        return [d.id for d in self._ordered]

    def best_for(self, zone: ZoneKind) -> TreatmentDefinition:
        """Largest impact for the zone; the earliest entry wins a tie."""
        best = self._ordered[0]
        best_score = best.impact(zone)
        for d in self._ordered[1:]:
            score = d.impact(zone)
            if score > best_score:
                best, best_score = d, score
        return best


def _definition(entry: Mapping[str, Any]) -> TreatmentDefinition:
    if "id" not in entry:
        raise ValueError(f"Treatment entry without 'id': {dict(entry)}")
    impacts: Dict[ZoneKind, int] = {}
    for zone_name, value in (entry.get("impact") or {}).items():
        zone = parse_zone(zone_name)
        if zone is None:
            raise ValueError(f"Treatment {entry['id']!r}: unknown zone {zone_name!r} in impact table.")
        impacts[zone] = int(value)
    return TreatmentDefinition(
        id=str(entry["id"]),
        display_name=str(entry.get("name", entry["id"])),
        impact_by_zone=MappingProxyType(impacts),
        icon=str(entry.get("icon", "")),
    )


DEFAULT_TREATMENTS: List[Dict[str, Any]] = [
    {"id": "bass_trap", "name": "Bass Trap", "impact": {"hotspot": 35, "deadspot": 5, "neutral": 0}},
    {"id": "absorber", "name": "Absorber", "impact": {"hotspot": 25, "deadspot": 0, "neutral": 0}},
    {"id": "diffuser", "name": "Diffuser", "impact": {"hotspot": 10, "deadspot": 20, "neutral": 5}},
    {"id": "rug", "name": "Rug", "impact": {"hotspot": 15, "deadspot": 0, "neutral": 0}},
]


def build_catalog(entries: Optional[Sequence[Mapping[str, Any]]] = None) -> TreatmentCatalog:
    """
    Catalog from config entries shaped like:
      - id: bass_trap
        name: Bass Trap
        impact: {hotspot: 35, deadspot: 5, neutral: 0}
    None falls back to the built-in treatments.
    """
    if entries is None:
        entries = DEFAULT_TREATMENTS
    if not isinstance(entries, (list, tuple)):
        raise ValueError("Config key 'treatments' must be a list of treatment entries.")
    catalog = TreatmentCatalog([_definition(e) for e in entries])
    log.debug("Treatment catalog: %s", catalog.ids())
    return catalog
