from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from vibra_acoustics.spatial.mapper import MapperSettings
from vibra_acoustics.spatial.room import StudioStandard
from vibra_acoustics.treatment.catalog import TreatmentCatalog, build_catalog
from vibra_acoustics.treatment.simulator import SimulatorSettings


@dataclass(frozen=True)
class AppSettings:
    mapper: MapperSettings = field(default_factory=MapperSettings)
    studio: StudioStandard = field(default_factory=StudioStandard)
    simulator: SimulatorSettings = field(default_factory=SimulatorSettings)
    catalog: TreatmentCatalog = field(default_factory=build_catalog)


def settings_from_config(cfg: Dict[str, Any]) -> AppSettings:
    """
    Typed settings from a loaded config dict. Every section is optional:

      mapper:    {layer_height_step, base_height}
      studio:    {min_size_m, max_size_m}
      simulator: {initial_severity, floor, max_severity, repeat_decay}
      treatments: [{id, name, impact: {hotspot, deadspot, neutral}}, ...]
    """
    m = cfg.get("mapper", {}) or {}
    s = cfg.get("studio", {}) or {}
    sim = cfg.get("simulator", {}) or {}

    mapper = MapperSettings(
        layer_height_step=float(m.get("layer_height_step", 0.5)),
        base_height=float(m.get("base_height", 0.3)),
    )
    studio = StudioStandard(
        min_size_m=float(s.get("min_size_m", 3.0)),
        max_size_m=float(s.get("max_size_m", 5.0)),
    )
    simulator = SimulatorSettings(
        initial_severity=int(sim.get("initial_severity", 70)),
        floor=int(sim.get("floor", 20)),
        max_severity=int(sim.get("max_severity", 100)),
        repeat_decay=float(sim.get("repeat_decay", 0.7)),
    )
    return AppSettings(
        mapper=mapper,
        studio=studio,
        simulator=simulator,
        catalog=build_catalog(cfg.get("treatments")),
    )
