from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from vibra_acoustics.data_processing.classify import classify
from vibra_acoustics.data_processing.schemas import NormalizedReading, RawReading, RawValue

log = logging.getLogger(__name__)


_NON_NUMERIC_RE = re.compile(r"[^\d.-]")
_NUMBER_PREFIX_RE = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")
_UNIT_SUFFIX_RE = re.compile(r"(mm|cm|m)\s*$", re.IGNORECASE)
_TRAILING_INT_RE = re.compile(r"(\d+)\s*$")

# Divisor that turns a value in the given unit into meters.
DISTANCE_UNITS: Dict[str, float] = {
    "mm": 1000.0,
    "cm": 100.0,
    "m": 1.0,
}
DEFAULT_DISTANCE_UNIT = "cm"


def parse_number(value: RawValue) -> Optional[float]:
    """
    Permissive numeric parse: drop every character that is not a digit, minus
    sign or decimal point, then read the leading number ("12-3" -> 12,
    "1.2.3" -> 1.2). Returns None when no number starts the cleaned text.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        x = float(value)
        return x if math.isfinite(x) else None

    cleaned = _NON_NUMERIC_RE.sub("", str(value))
    m = _NUMBER_PREFIX_RE.match(cleaned)
    if not m:
        return None
    x = float(m.group(0))
    return x if math.isfinite(x) else None


def distance_unit(value: RawValue) -> str:
    """
    Unit embedded as a suffix of the raw distance text ("12mm", "150 cm", "1.5m").
    Plain numbers and suffix-less text are centimeters.
    """
    if value is None or isinstance(value, (int, float)):
        return DEFAULT_DISTANCE_UNIT
    m = _UNIT_SUFFIX_RE.search(str(value))
    if not m:
        return DEFAULT_DISTANCE_UNIT
    return m.group(1).lower()


def distance_to_meters(value: RawValue) -> Optional[float]:
    """Parsed distance in meters, or None when it is missing, non-numeric or <= 0."""
    x = parse_number(value)
    if x is None or x <= 0:
        return None
    return x / DISTANCE_UNITS[distance_unit(value)]


def parse_layer_index(label: RawValue) -> int:
    """
    "Layer 1" -> 0, "Layer 3" -> 2. Labels without a trailing number (or with
    "0") fall back to layer 0.
    """
    if label is None or isinstance(label, bool):
        return 0
    if isinstance(label, (int, float)):
        if not math.isfinite(float(label)):
            return 0
        return max(int(label) - 1, 0)

    m = _TRAILING_INT_RE.search(str(label).strip())
    if not m:
        return 0
    return max(int(m.group(1)) - 1, 0)


def normalize_reading(raw: RawReading, batch_index: int = 0) -> Optional[NormalizedReading]:
    """
    Typed view of one raw row, or None when the row is unusable (non-numeric
    angle, non-numeric or non-positive distance). Level and RT60 never cause a
    drop; they become NaN when unparseable.
    """
    angle = parse_number(raw.angle)
    if angle is None:
        log.debug("Row %d dropped: non-numeric angle %r", batch_index, raw.angle)
        return None

    distance_m = distance_to_meters(raw.distance)
    if distance_m is None:
        log.debug("Row %d dropped: unusable distance %r", batch_index, raw.distance)
        return None

    level = parse_number(raw.level)
    rt60 = parse_number(raw.reverberation)

    return NormalizedReading(
        angle_deg=angle,
        distance_m=distance_m,
        level_db=level if level is not None else math.nan,
        rt60=rt60 if rt60 is not None else math.nan,
        zone=classify(raw.classification),
        layer_index=parse_layer_index(raw.layer),
        batch_index=batch_index,
        raw=raw,
    )


@dataclass
class NormalizedBatch:
    readings: List[NormalizedReading] = field(default_factory=list)
    dropped: List[int] = field(default_factory=list)

    @property
    def n_input(self) -> int:
        return len(self.readings) + len(self.dropped)


def normalize_batch(batch: Sequence[RawReading]) -> NormalizedBatch:
    out = NormalizedBatch()
    for i, raw in enumerate(batch):
        reading = normalize_reading(raw, batch_index=i)
        if reading is None:
            out.dropped.append(i)
        else:
            out.readings.append(reading)

    if out.dropped:
        log.info("Normalized %d/%d readings (%d dropped)", len(out.readings), out.n_input, len(out.dropped))
    return out
