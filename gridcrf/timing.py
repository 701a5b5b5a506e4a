"""
Per-solve timing.

A ``SolveTimer`` is created for each solve and passed down to the adapters,
so timing state never outlives the call that produced it.

Example::

    timer = SolveTimer(enabled=True)
    timer.start()
    ...
    timer.end("Reading data.")
    with timer.section("Solving with TRWS."):
        ...
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator, List, Tuple


class SolveTimer:
    """Lap timer; prints laps only when enabled, always records them."""

    def __init__(self, enabled: bool = False):
        self.enabled = enabled
        self.laps: List[Tuple[str, float]] = []
        self._t0 = time.perf_counter()

    def start(self) -> None:
        self._t0 = time.perf_counter()

    def end(self, message: str) -> float:
        """Record time since the last mark and restart the clock."""
        elapsed = time.perf_counter() - self._t0
        self.laps.append((message, elapsed))
        if self.enabled:
            print(f"{message:<30s} {elapsed:8.3f} s")
        self._t0 = time.perf_counter()
        return elapsed

    @contextmanager
    def section(self, message: str) -> Iterator['SolveTimer']:
        self.start()
        yield self
        self.end(message)

    @property
    def total(self) -> float:
        return sum(t for _, t in self.laps)

    def as_dict(self) -> dict:
        return {message: elapsed for message, elapsed in self.laps}


__all__ = ["SolveTimer"]
