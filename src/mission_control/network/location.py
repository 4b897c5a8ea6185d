# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""LocationResolver — cached "which partition is this platform parked at".

Asking the host where a platform is costs a search over every force's
platforms, so the transmit path never asks.  It reads this cache instead.
The cache is written from two places:

  1. on_host_relocated -- the host's platform-state-changed event, applied
     immediately.
  2. the resync sweep -- every resync period the relay engine re-derives
     every known platform's residency from the host and overwrites the
     record.  This catches missed events (load time, mods moving
     platforms by script).

So a record can be stale by at most one resync period.  get() never
recomputes; an unknown host reads as None (in transit).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass
class LocationRecord:
    """Cached residency of one platform."""

    partition_id: int | None
    last_check: int = 0

    def to_dict(self) -> dict:
        return {"partition_id": self.partition_id, "last_check": self.last_check}


class LocationResolver:
    """Per-platform residency cache stamped with the tick of each update."""

    def __init__(self, clock: Callable[[], int] | None = None) -> None:
        self._clock = clock or (lambda: 0)
        self._records: dict[int, LocationRecord] = {}

    def update(self, host_id: int, partition_id: int | None) -> LocationRecord:
        record = LocationRecord(partition_id=partition_id, last_check=self._clock())
        self._records[host_id] = record
        return record

    def get(self, host_id: int) -> int | None:
        record = self._records.get(host_id)
        if record is None:
            return None
        return record.partition_id

    def record(self, host_id: int) -> LocationRecord | None:
        return self._records.get(host_id)

    def forget(self, host_id: int) -> bool:
        return self._records.pop(host_id, None) is not None

    def host_ids(self) -> list[int]:
        return sorted(self._records)

    def residents_of(self, partition_id: int) -> list[int]:
        """Platforms currently cached as parked at *partition_id*."""
        return sorted(
            hid for hid, rec in self._records.items() if rec.partition_id == partition_id
        )

    def __len__(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        self._records.clear()

    def to_dict(self) -> dict:
        return {str(hid): self._records[hid].to_dict() for hid in sorted(self._records)}

    def load(self, data: dict) -> None:
        self._records = {
            int(hid): LocationRecord(
                partition_id=None if rec.get("partition_id") is None else int(rec["partition_id"]),
                last_check=int(rec.get("last_check", 0)),
            )
            for hid, rec in data.items()
        }
