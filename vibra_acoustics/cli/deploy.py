from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from vibra_acoustics.data_processing.filters import filter_readings, search_readings
from vibra_acoustics.data_processing.readings_io import load_readings
from vibra_acoustics.session import AcousticSession
from vibra_acoustics.settings import settings_from_config
from vibra_acoustics.spatial.mapper import points_to_frame
from vibra_acoustics.treatment.colors import rgb_to_hex
from vibra_acoustics.utils.config import load_config, resolve_outputs
from vibra_acoustics.utils.files import save_json
from vibra_acoustics.utils.logging import setup_logging
from vibra_acoustics.utils.timer import StageTimer

log = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Deploy acoustic sensor readings as 3D points and simulate treatments.")
    p.add_argument("--config", required=True, help="Path to YAML config (supports extends).")
    p.add_argument("--input", nargs="+", default=None, help="CSV files or directories. Default: input.paths from config.")
    p.add_argument("--query", default=None, help="Keep only rows containing this text.")
    p.add_argument("--filter", default="ALL", help="HOTSPOT, DEADSPOT, 'Layer N' or ALL.")
    p.add_argument(
        "--apply",
        action="append",
        default=[],
        metavar="POINT_KEY=TREATMENT_ID",
        help="Apply a treatment to a point (repeatable, applied in order).",
    )
    p.add_argument("--view", default="after", choices=["before", "after"], help="Color view written to the points table.")
    p.add_argument("--outdir", default=None, help="Output directory. Default: output.dir from config.")
    return p.parse_args(argv)


def parse_application(text: str) -> Tuple[str, str]:
    key, sep, treatment_id = text.rpartition("=")
    if not sep or not key or not treatment_id:
        raise ValueError(f"--apply expects POINT_KEY=TREATMENT_ID, got {text!r}")
    return key, treatment_id


def run(cfg: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    settings = settings_from_config(cfg)
    session = AcousticSession(settings)

    in_cfg = cfg.get("input", {}) or {}
    paths = args.input or in_cfg.get("paths") or []
    if not paths:
        raise FileNotFoundError("No input given. Pass --input or set input.paths in the config.")

    outputs = resolve_outputs(cfg, args.outdir)

    applications = [parse_application(a) for a in args.apply]

    timer = StageTimer()
    with timer.stage("load"):
        readings = load_readings(paths, in_cfg.get("file_globs", ["*.csv"]))
        readings = search_readings(readings, args.query)
        readings = filter_readings(readings, args.filter)

    with timer.stage("deploy"):
        result = session.deploy(readings)

    with timer.stage("treat"):
        effects: List[Dict[str, Any]] = []
        for key, treatment_id in applications:
            state = session.apply_treatment(key, treatment_id)
            effects.append(
                {
                    "point_key": key,
                    "treatment": treatment_id,
                    "severity": state.severity if state is not None else None,
                    "locked": state.locked if state is not None else None,
                }
            )

    with timer.stage("persist"):
        session.set_view_mode(args.view)
        colors = session.point_colors()

        df = points_to_frame(session.points)
        df["color"] = [rgb_to_hex(colors[k]) for k in df["key"]]
        df["severity"] = [getattr(session.effect_state(k), "severity", None) for k in df["key"]]
        df["recommended"] = [session.best_treatment(p.zone).id for p in session.points]

        df.to_csv(outputs.points_csv, index=False)
        session.export_csv(outputs.readings_csv)

    meta = {
        "config": cfg.get("_meta", {}).get("config_path"),
        "n_rows": result.n_input,
        "n_dropped": result.n_dropped,
        "n_points": len(result.points),
        "bounds": result.bounds,
        "room": result.room_status,
        "view": session.view_mode,
        "treatments": effects,
        "outputs": outputs,
        "timings_sec": timer.as_dict(),
    }
    save_json(outputs.meta_json, meta)

    log.info("Deploy complete: %s", outputs.dir.as_posix())
    return {"outputs": outputs, "meta": meta}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    cfg = load_config(args.config)

    setup_logging(level=cfg.get("logging", {}).get("level", "INFO"))

    run(cfg, args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
