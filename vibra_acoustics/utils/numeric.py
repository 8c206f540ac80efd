from __future__ import annotations

import math
from typing import TypeVar

N = TypeVar("N", int, float)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (24.5 -> 25), unlike round()."""
    return int(math.floor(value + 0.5))


def clamp(value: N, lo: N, hi: N) -> N:
    return max(lo, min(hi, value))
