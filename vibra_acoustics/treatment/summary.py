from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Sequence

from vibra_acoustics.treatment.catalog import TreatmentCatalog
from vibra_acoustics.treatment.simulator import TreatmentEffectState


def intensity_label(severity: int) -> str:
    if severity <= 20:
        return "LOW"
    if severity <= 50:
        return "MEDIUM"
    return "HIGH"


def _name(catalog: TreatmentCatalog, treatment_id: str) -> str:
    d = catalog.get(treatment_id)
    return d.display_name if d is not None else treatment_id


def applied_counts(applied: Sequence[str], catalog: TreatmentCatalog) -> List[str]:
    """["Bass Trap ×2", "Rug ×1"] in order of first application."""
    counts = Counter(applied)  # insertion ordered
    return [f"{_name(catalog, tid)} ×{n}" for tid, n in counts.items()]


def dominant_treatment(applied: Sequence[str], catalog: TreatmentCatalog, fallback: str = "") -> str:
    if not applied:
        return fallback or "-"
    top_id, top_n = None, -1
    for tid, n in Counter(applied).items():
        if n > top_n:
            top_id, top_n = tid, n
    return _name(catalog, top_id)


@dataclass(frozen=True)
class EffectSummary:
    severity: int
    intensity: str
    applied: List[str]
    dominant: str
    locked: bool


def summarize_effect(
    state: Optional[TreatmentEffectState],
    catalog: TreatmentCatalog,
    recommended: str = "",
    initial_severity: int = 70,
) -> EffectSummary:
    severity = state.severity if state is not None else initial_severity
    applied = list(state.applied) if state is not None else []
    return EffectSummary(
        severity=severity,
        intensity=intensity_label(severity),
        applied=applied_counts(applied, catalog),
        dominant=dominant_treatment(applied, catalog, recommended),
        locked=bool(state.locked) if state is not None else False,
    )
