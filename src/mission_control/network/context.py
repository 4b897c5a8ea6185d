# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""NetworkContext — the relay's whole persistent state in one object.

The relay engine and the lifecycle manager receive the same context
instance instead of reaching for module-level globals.  It is built once
at service start and dropped at shutdown.  snapshot()/restore() are the
hooks at the host's save/load boundary; the result is a plain
JSON-compatible dict.
"""

from __future__ import annotations

from mission_control.network.directory import PartitionDirectory
from mission_control.network.location import LocationResolver
from mission_control.network.registry import SubscriberRegistry

SNAPSHOT_VERSION = 1


class NetworkContext:
    """Directory + registry + location cache + the current tick."""

    def __init__(self) -> None:
        self.tick = 0
        self.directory = PartitionDirectory()
        self.registry = SubscriberRegistry()
        self.locations = LocationResolver(clock=self.now)

    def now(self) -> int:
        return self.tick

    def reset(self) -> None:
        """Forget everything.  Entities are not touched."""
        self.directory.clear()
        self.registry.clear()
        self.locations.clear()

    def snapshot(self) -> dict:
        return {
            "version": SNAPSHOT_VERSION,
            "tick": self.tick,
            "directory": self.directory.to_dict(),
            "registry": self.registry.to_dict(),
            "locations": self.locations.to_dict(),
        }

    def restore(self, data: dict) -> None:
        version = int(data.get("version", SNAPSHOT_VERSION))
        if version > SNAPSHOT_VERSION:
            raise ValueError(f"snapshot version {version} is newer than {SNAPSHOT_VERSION}")
        self.tick = int(data.get("tick", 0))
        self.directory = PartitionDirectory.from_dict(data.get("directory", {}))
        self.registry = SubscriberRegistry.from_dict(data.get("registry", {}))
        self.locations = LocationResolver(clock=self.now)
        self.locations.load(data.get("locations", {}))

    @classmethod
    def from_snapshot(cls, data: dict) -> NetworkContext:
        ctx = cls()
        ctx.restore(data)
        return ctx
