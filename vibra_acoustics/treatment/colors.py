from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from vibra_acoustics.data_processing.schemas import ViewMode, ZoneKind
from vibra_acoustics.treatment.simulator import TreatmentEffectState
from vibra_acoustics.utils.numeric import clamp, round_half_up

RGB = Tuple[int, int, int]


def hex_to_rgb(value: str) -> RGB:
    """'#b22222' -> (178, 34, 34). Extra alpha digits ('#ffffffff') are ignored."""
    h = value.strip().lstrip("#")
    if len(h) < 6:
        raise ValueError(f"Not a hex color: {value!r}")
    return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16))


def rgb_to_hex(rgb: RGB) -> str:
    return "#{:02x}{:02x}{:02x}".format(*rgb)


ZONE_COLORS: Dict[ZoneKind, RGB] = {
    ZoneKind.HOTSPOT: hex_to_rgb("#b22222"),
    ZoneKind.DEADSPOT: hex_to_rgb("#4292c6"),
    ZoneKind.NEUTRAL: hex_to_rgb("#ffffff"),
}
NEUTRAL_COLOR: RGB = ZONE_COLORS[ZoneKind.NEUTRAL]


@dataclass(frozen=True)
class ColorPair:
    before: RGB
    after: RGB

    def for_view(self, mode: ViewMode) -> RGB:
        return self.before if mode == ViewMode.BEFORE else self.after


def blend(start: RGB, end: RGB, t: float) -> RGB:
    """Per-channel linear interpolation from start (t=0) to end (t=1)."""
    return tuple(round_half_up(a + (b - a) * t) for a, b in zip(start, end))  # type: ignore[return-value]


def resolve_colors(zone: ZoneKind, state: Optional[TreatmentEffectState]) -> ColorPair:
    base = ZONE_COLORS.get(zone, NEUTRAL_COLOR)
    if state is None or not state.applied:
        return ColorPair(before=base, after=base)

    t = clamp(state.severity / 100.0, 0.0, 1.0)
    return ColorPair(before=base, after=blend(NEUTRAL_COLOR, base, t))
