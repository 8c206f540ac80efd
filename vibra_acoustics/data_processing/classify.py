from __future__ import annotations

from typing import Optional

from vibra_acoustics.data_processing.schemas import ZoneKind

# Checked in order; the first substring found wins.
ZONE_MARKERS = (
    ("hot", ZoneKind.HOTSPOT),
    ("dead", ZoneKind.DEADSPOT),
)


def classify(label: Optional[object]) -> ZoneKind:
    """
    Map a free-text classification label to a zone.

    Matching is case-insensitive and substring based ("Hot Spot", "hotspot",
    "HOT" all map to HOTSPOT). Anything unrecognized, empty or None is NEUTRAL.
    """
    if label is None:
        return ZoneKind.NEUTRAL
    text = str(label).strip().lower()
    for marker, zone in ZONE_MARKERS:
        if marker in text:
            return zone
    return ZoneKind.NEUTRAL


def parse_zone(value: Optional[object]) -> Optional[ZoneKind]:
    """Strict variant for enum names/values ("hotspot", "HOTSPOT"); None when unknown."""
    if value is None:
        return None
    if isinstance(value, ZoneKind):
        return value
    text = str(value).strip().lower()
    for zone in ZoneKind:
        if text == zone.value:
            return zone
    return None
