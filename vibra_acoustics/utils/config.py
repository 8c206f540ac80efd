from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

# Top-level sections a deploy config may carry.
KNOWN_SECTIONS = ("logging", "input", "output", "mapper", "studio", "simulator", "treatments")

# output.<key> -> default file name inside output.dir
OUTPUT_FILES: Dict[str, str] = {
    "points_csv": "points.csv",
    "readings_csv": "readings.csv",
    "meta_json": "meta.json",
}
DEFAULT_OUTPUT_DIR = "outputs/deploy"


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML root must be a mapping/dict: {path}")
    return data


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Recursively merges override into base (override wins). Lists are replaced:
    a child config listing treatments swaps out the whole parent catalog.
    """
    out = dict(base)
    for k, v in override.items():
        if isinstance(out.get(k), dict) and isinstance(v, Mapping):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _parent_paths(extends: Any, path: Path) -> List[Path]:
    if isinstance(extends, str):
        extends = [extends]
    if not isinstance(extends, list) or not all(isinstance(p, str) for p in extends):
        raise ValueError(f"'extends' in {path} must be a path or a list of paths.")
    # Relative parents are looked up next to the child file.
    return [p if p.is_absolute() else (path.parent / p).resolve() for p in map(Path, extends)]


def _check_sections(cfg: Mapping[str, Any], path: Path) -> None:
    unknown = sorted(k for k in cfg if k not in KNOWN_SECTIONS and k != "extends")
    if unknown:
        raise ValueError(
            f"Unknown config section(s) {unknown} in {path}; expected some of {list(KNOWN_SECTIONS)}."
        )
    for name in KNOWN_SECTIONS:
        if name == "treatments":
            continue
        section = cfg.get(name)
        if section is not None and not isinstance(section, dict):
            raise ValueError(f"Config section '{name}' in {path} must be a mapping.")


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a deploy config, following `extends` (one path or a list, applied in
    order, then the file itself on top). Every file in the chain is checked
    for unknown top-level sections so a typo such as `simulater:` fails loudly
    instead of silently running with defaults.
    """
    path = Path(path)
    cfg = load_yaml(path)
    _check_sections(cfg, path)

    merged: Dict[str, Any] = {}
    if cfg.get("extends"):
        for parent in _parent_paths(cfg["extends"], path):
            parent_cfg = load_config(parent)
            parent_cfg.pop("_meta", None)
            merged = _deep_merge(merged, parent_cfg)

    merged = _deep_merge(merged, {k: v for k, v in cfg.items() if k != "extends"})
    merged["_meta"] = {"config_path": str(path.resolve())}
    return merged


@dataclass(frozen=True)
class OutputPaths:
    dir: Path
    points_csv: Path
    readings_csv: Path
    meta_json: Path


def resolve_outputs(cfg: Mapping[str, Any], outdir: Optional[Union[str, Path]] = None) -> OutputPaths:
    """
    Output locations of a deploy run, with their directories created.

    Relative file entries (output.points_csv, output.readings_csv,
    output.meta_json) live inside the output directory; `outdir` overrides
    output.dir and so moves them along with it.
    """
    out_cfg = cfg.get("output") or {}
    base = Path(outdir or out_cfg.get("dir") or DEFAULT_OUTPUT_DIR)

    files: Dict[str, Path] = {}
    for key, default in OUTPUT_FILES.items():
        p = Path(out_cfg.get(key) or default)
        files[key] = p if p.is_absolute() else base / p

    base.mkdir(parents=True, exist_ok=True)
    for p in files.values():
        p.parent.mkdir(parents=True, exist_ok=True)
    return OutputPaths(dir=base, **files)
