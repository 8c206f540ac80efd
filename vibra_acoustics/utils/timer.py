from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Dict, Iterator

log = logging.getLogger(__name__)


class StageTimer:
    """
    Wall-clock seconds per pipeline stage. A stage entered more than once
    accumulates; stages keep the order they were first entered in.
    """

    def __init__(self) -> None:
        self._sec: Dict[str, float] = {}

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            dur = time.perf_counter() - start
            self._sec[name] = self._sec.get(name, 0.0) + dur
            log.debug("%s took %.4fs", name, dur)

    @property
    def total(self) -> float:
        return sum(self._sec.values())

    def as_dict(self) -> Dict[str, float]:
        return {**self._sec, "total": self.total}
