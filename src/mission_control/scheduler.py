# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""TickScheduler -- periodic callbacks driven by an external tick clock.

The game calls us once per tick; nothing here knows about wall time.
A callback registered with on_nth_tick(period, ...) fires on every tick
where ``tick % period == 0``.  Callbacks sharing a tick fire in
registration order, one after the other, never concurrently.

Every callback is guarded.  An exception is logged with its traceback and
the scheduler moves on to the next callback, so one faulty pass can never
halt the clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from loguru import logger


@dataclass
class _Periodic:
    name: str
    period: int
    callback: Callable[[], object]
    runs: int = 0
    failures: int = 0


class TickScheduler:
    """Runs registered callbacks every N ticks."""

    def __init__(self, start_tick: int = 0) -> None:
        self._tick = start_tick
        self._entries: list[_Periodic] = []

    @property
    def tick(self) -> int:
        return self._tick

    def set_tick(self, tick: int) -> None:
        """Jump the clock (used after loading a save).  Fires nothing."""
        self._tick = int(tick)

    def on_nth_tick(self, period: int, callback: Callable[[], object], name: str | None = None) -> None:
        if period < 1:
            raise ValueError(f"period must be >= 1, got {period}")
        label = name or getattr(callback, "__name__", "callback")
        self._entries.append(_Periodic(name=label, period=period, callback=callback))
        logger.debug(f"Scheduled {label} every {period} ticks")

    def remove(self, name: str) -> bool:
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.name != name]
        return len(self._entries) != before

    def periods(self) -> dict[str, int]:
        return {e.name: e.period for e in self._entries}

    def advance(self, ticks: int = 1) -> list[str]:
        """Move the clock forward.  Returns the names that fired, in order."""
        fired: list[str] = []
        for _ in range(ticks):
            self._tick += 1
            for entry in list(self._entries):
                if self._tick % entry.period != 0:
                    continue
                fired.append(entry.name)
                try:
                    entry.callback()
                    entry.runs += 1
                except Exception:
                    entry.failures += 1
                    logger.exception(f"Scheduled callback {entry.name} failed at tick {self._tick}")
        return fired

    def stats(self) -> dict[str, dict]:
        return {
            e.name: {"period": e.period, "runs": e.runs, "failures": e.failures}
            for e in self._entries
        }
