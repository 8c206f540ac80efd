from __future__ import annotations

import csv
import io
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd
from tqdm import tqdm

from vibra_acoustics.data_processing.schemas import READING_COLUMNS, RawReading

log = logging.getLogger(__name__)


EXPORT_HEADERS: Dict[str, str] = {
    "angle": "Angle",
    "level": "dB",
    "distance": "Ultrasonic",
    "reverberation": "RT60",
    "classification": "Classification",
    "layer": "Layer",
}

# Accepted header names per field when importing (compared case-insensitively).
COLUMN_CANDIDATES: Dict[str, List[str]] = {
    "angle": ["angle", "angle_deg", "deg"],
    "level": ["db", "level", "decibel", "sound_level", "spl"],
    "distance": ["ultrasonic", "distance", "ultrasonicvalue", "range"],
    "reverberation": ["rt60", "reverberation", "reverb"],
    "classification": ["classification", "class", "zone", "label"],
    "layer": ["layer", "layer_label"],
}

# Cell order inside one spreadsheet tab (differs from the export order).
GVIZ_CELL_ORDER = ("angle", "level", "reverberation", "distance", "classification")


def _find_files(root: Path, globs: List[str]) -> List[Path]:
    files: List[Path] = []
    for g in globs:
        files.extend(root.glob(g))
    return sorted(set([f for f in files if f.is_file()]))


def _pick_col(columns: List[str], candidates: List[str]) -> Optional[int]:
    lower = [c.strip().lower() for c in columns]
    for cand in candidates:
        if cand in lower:
            return lower.index(cand)
    return None


_KNOWN_HEADERS = {c for cands in COLUMN_CANDIDATES.values() for c in cands}


def _is_header_row(row: List[str]) -> bool:
    # Data rows carry things like "Layer 1" too, so require whole-cell header names.
    hits = sum(1 for c in row if c.strip().lower() in _KNOWN_HEADERS)
    return hits >= 2


def _header_mapping(header: List[str]) -> Dict[str, Optional[int]]:
    """Field -> column index from a header row; fields without a header stay empty."""
    return {name: _pick_col(header, COLUMN_CANDIDATES[name]) for name in READING_COLUMNS}


def parse_readings_csv(text: str) -> List[RawReading]:
    """
    Parse exported/handwritten CSV text into raw readings.

    A leading header row is detected and used to map columns by name; without
    one the columns are taken in export order. Rows may be ragged: missing
    trailing cells become empty strings.
    """
    out: List[RawReading] = []
    mapping: Dict[str, Optional[int]] = {name: pos for pos, name in enumerate(READING_COLUMNS)}

    # Spreadsheet exports often start with a byte order mark.
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    first = True
    for row in reader:
        if not row or not any(c.strip() for c in row):
            continue
        row = [c.strip() for c in row]
        if first and _is_header_row(row):
            mapping = _header_mapping(row)
            first = False
            continue
        first = False

        values = {
            name: (row[idx] if idx is not None and idx < len(row) else "")
            for name, idx in mapping.items()
        }
        out.append(RawReading(**values))

    return out


def load_readings_csv(path: Union[str, Path]) -> List[RawReading]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Readings file not found: {path}")
    text = path.read_text(encoding="utf-8-sig", errors="ignore")
    readings = parse_readings_csv(text)
    log.info("Loaded %d readings from %s", len(readings), path.as_posix())
    return readings


def load_readings(paths: Sequence[Union[str, Path]], file_globs: Optional[List[str]] = None) -> List[RawReading]:
    """Load and concatenate readings from files and/or directories (searched with file_globs)."""
    globs = file_globs or ["*.csv"]
    files: List[Path] = []
    for p in paths:
        p = Path(p)
        if p.is_dir():
            found = _find_files(p, globs)
            if not found:
                log.warning("No readings files matching %s under %s", globs, p.as_posix())
            files.extend(found)
        elif p.exists():
            files.append(p)
        else:
            raise FileNotFoundError(f"Input not found: {p}")

    if not files:
        raise FileNotFoundError(f"No readings files found in: {[str(p) for p in paths]}")

    readings: List[RawReading] = []
    for fp in tqdm(files, desc="Loading readings", disable=len(files) < 2):
        readings.extend(load_readings_csv(fp))
    return readings


def _has_content(r: RawReading) -> bool:
    return _cell(r.angle) != "" or _cell(r.level) != ""


def _cell(v: object) -> str:
    return "" if v is None else str(v).strip()


def readings_to_frame(readings: Sequence[RawReading]) -> pd.DataFrame:
    """Raw readings as a string table in export column order."""
    rows = [{c: _cell(v) for c, v in r.as_row().items()} for r in readings]
    return pd.DataFrame(rows, columns=list(READING_COLUMNS))


def export_readings_csv(readings: Sequence[RawReading], path: Optional[Union[str, Path]] = None) -> str:
    """
    Serialize readings as CSV (Angle,dB,Ultrasonic,RT60,Classification,Layer).
    Rows with neither angle nor level are left out. The classification is the
    original text, not the resolved zone. Writes to `path` when given and
    returns the CSV text either way.
    """
    kept = [r for r in readings if _has_content(r)]
    df = readings_to_frame(kept).rename(columns=EXPORT_HEADERS)
    text = df.to_csv(index=False, lineterminator="\n")

    if path is not None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        log.info("Exported %d readings to %s", len(kept), path.as_posix())
    return text


def parse_gviz_table(text: str, layer_label: str) -> List[RawReading]:
    """
    Readings of one spreadsheet tab from a Google visualization query response
    (`/gviz/tq?tqx=out:json`). The JSON body is wrapped in a JS callback, so
    only the outermost {...} is decoded. Every row is tagged with layer_label.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end < start:
        raise ValueError("Spreadsheet response does not contain a JSON object.")
    payload = json.loads(text[start : end + 1])

    rows = (payload.get("table") or {}).get("rows") or []
    out: List[RawReading] = []
    for row in rows:
        cells = row.get("c") if isinstance(row, dict) else None
        if not cells:
            continue
        values: Dict[str, object] = {}
        for i, name in enumerate(GVIZ_CELL_ORDER):
            cell = cells[i] if i < len(cells) else None
            v = cell.get("v") if isinstance(cell, dict) else None
            values[name] = "" if v is None else v
        out.append(RawReading(layer=layer_label, **values))

    log.info("Parsed %d readings for %s from spreadsheet payload", len(out), layer_label)
    return out
