from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import pandas as pd

from vibra_acoustics.data_processing.readings_io import readings_to_frame
from vibra_acoustics.data_processing.schemas import RawReading

log = logging.getLogger(__name__)


ZONE_FILTERS = {
    "HOTSPOT": "hotspot",
    "DEADSPOT": "deadspot",
}


def _select(readings: Sequence[RawReading], mask: pd.Series) -> List[RawReading]:
    # Keep the original objects (and their raw value types), not the string table.
    return [r for r, keep in zip(readings, mask.tolist()) if keep]


def search_readings(readings: Sequence[RawReading], query: Optional[str]) -> List[RawReading]:
    """Rows where any field contains the query (case-insensitive). Empty query keeps everything."""
    if not query:
        return list(readings)
    df = readings_to_frame(readings)
    if df.empty:
        return []

    q = query.lower()
    mask = df.apply(lambda col: col.str.lower().str.contains(q, regex=False)).any(axis=1)
    result = _select(readings, mask)
    if not result:
        log.info("No readings match %r", query)
    return result


def filter_readings(readings: Sequence[RawReading], value: str) -> List[RawReading]:
    """
    Zone or layer filter.

      "HOTSPOT" / "DEADSPOT": classification equals "hotspot"/"deadspot" once
                              lower-cased with all whitespace removed
      "Layer N":              exact layer label match
      anything else ("ALL"):  unchanged
    """
    if value in ZONE_FILTERS:
        df = readings_to_frame(readings)
        squashed = df["classification"].str.lower().str.replace(r"\s+", "", regex=True)
        return _select(readings, squashed == ZONE_FILTERS[value])

    if value.startswith("Layer"):
        df = readings_to_frame(readings)
        return _select(readings, df["layer"] == value)

    return list(readings)
