# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""InMemoryHost — a self-contained CircuitHost for tests and headless runs.

Architecture
------------
The host models just enough of the game for the relay core to run
against it:

  - Planets: surfaces with a name.  Their indices are the partitions the
    relay knows about.
  - Platforms: mobile hosts.  Each owns a private surface and has a
    location, either a planet surface index or None while travelling.
  - Entities: stored in an EntityArena, so destroying one invalidates
    every handle to it.  Visible entities have per-channel input
    networks that tests drive with set_input().  Relay entities hold a
    SignalSet written by the core and can be wired to a visible entity's
    output connector on one channel.
  - Ghosts: placeholder entities carrying blueprint tags until revived.

What a visible entity outputs on a channel is the sum of the relay
entities wired to it on that channel (output_of).  That is the value a
player's circuit network would see.

Failure injection:
  relay_creation_budget -- after this many successful relay creations,
      create_relay_entity() returns None.  None means unlimited.
  fail_connections -- connect_channel() returns False while set.

Counters (residency_queries, writes) let tests assert which paths touch
the expensive or mutating parts of the host.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from mission_control.handles import EntityArena, EntityHandle
from mission_control.signals import (
    MAX_SIGNAL_SLOTS,
    Channel,
    SignalSet,
    to_int32,
    to_slots,
)

RELAY_ENTITY_NAME = "mission-control-relay"


@dataclass
class _Platform:
    index: int
    name: str
    surface: int
    location: int | None = None


@dataclass
class _Entity:
    name: str
    surface: int
    ghost: bool = False
    relay: bool = False
    tags: dict | None = None
    inputs: dict[Channel, SignalSet] = field(default_factory=dict)
    contents: SignalSet = field(default_factory=dict)
    # channel -> relay handles wired into this entity's output connector
    wired: dict[Channel, set[EntityHandle]] = field(default_factory=dict)


class InMemoryHost:
    """Simulated game world implementing the CircuitHost protocol."""

    def __init__(self, max_slots: int = MAX_SIGNAL_SLOTS) -> None:
        self._entities: EntityArena[_Entity] = EntityArena()
        self._planets: dict[int, str] = {}
        self._platforms: dict[int, _Platform] = {}
        self._surface_names: dict[int, str] = {}
        self._next_surface = 1
        self._next_platform = 1
        self._max_slots = max_slots

        self.relay_creation_budget: int | None = None
        self.fail_connections = False

        self.residency_queries = 0
        self.writes = 0

    # -- World building -----------------------------------------------------

    def add_planet(self, name: str) -> int:
        """Create a planet surface and return its index (a partition id)."""
        index = self._next_surface
        self._next_surface += 1
        self._planets[index] = name
        self._surface_names[index] = name
        return index

    def add_platform(self, name: str, location: int | None = None) -> int:
        """Create a platform (own surface) parked at *location*."""
        surface = self._next_surface
        self._next_surface += 1
        self._surface_names[surface] = f"platform-{name}"
        index = self._next_platform
        self._next_platform += 1
        self._platforms[index] = _Platform(index, name, surface, location)
        return index

    def move_platform(self, platform: int, location: int | None) -> None:
        """Park a platform at *location* (None = in transit).  Fires no events."""
        self._platforms[platform].location = location

    def remove_platform(self, platform: int) -> int:
        """Delete a platform together with everything on it."""
        plat = self._platforms.pop(platform)
        removed = self._destroy_surface_entities(plat.surface)
        self._surface_names.pop(plat.surface, None)
        return removed

    def remove_surface(self, surface: int) -> int:
        """Delete a planet surface and every entity standing on it."""
        removed = self._destroy_surface_entities(surface)
        self._planets.pop(surface, None)
        self._surface_names.pop(surface, None)
        return removed

    def platform_surface(self, platform: int) -> int:
        return self._platforms[platform].surface

    def build(self, name: str, surface: int) -> EntityHandle:
        """Place a real entity on *surface*."""
        return self._entities.insert(_Entity(name=name, surface=surface))

    def build_on_platform(self, name: str, platform: int) -> EntityHandle:
        return self.build(name, self._platforms[platform].surface)

    def place_ghost(self, name: str, surface: int, tags: dict | None = None) -> EntityHandle:
        """Place a ghost that will become *name* once revived."""
        return self._entities.insert(
            _Entity(name=name, surface=surface, ghost=True, tags=dict(tags or {}))
        )

    def revive(self, ghost: EntityHandle) -> tuple[EntityHandle, dict]:
        """Turn a ghost into a real entity.  Returns (new handle, ghost tags)."""
        entity = self._entities.get(ghost)
        if entity is None or not entity.ghost:
            raise KeyError(f"{ghost} is not a live ghost")
        tags = dict(entity.tags or {})
        self._entities.remove(ghost)
        return self.build(entity.name, entity.surface), tags

    def ghost_tags(self, handle: EntityHandle) -> dict | None:
        entity = self._entities.get(handle)
        if entity is None:
            return None
        return entity.tags

    def set_ghost_tags(self, handle: EntityHandle, tags: dict) -> bool:
        entity = self._entities.get(handle)
        if entity is None or not entity.ghost:
            return False
        entity.tags = dict(tags)
        return True

    # -- Circuit inputs / outputs ------------------------------------------

    def set_input(self, handle: EntityHandle, channel: Channel, signals: SignalSet | None) -> None:
        """Set what the circuit network on *channel* feeds into the entity.

        None disconnects the input (read returns None).
        """
        entity = self._entities.get(handle)
        if entity is None:
            raise KeyError(f"{handle} is not a live entity")
        if signals is None:
            entity.inputs.pop(channel, None)
        else:
            entity.inputs[channel] = dict(signals)

    def output_of(self, handle: EntityHandle, channel: Channel) -> SignalSet:
        """What a visible entity currently emits on *channel*."""
        entity = self._entities.get(handle)
        if entity is None:
            return {}
        total: SignalSet = {}
        for relay_handle in sorted(entity.wired.get(channel, ())):
            relay = self._entities.get(relay_handle)
            if relay is None:
                continue
            for sig, count in relay.contents.items():
                total[sig] = to_int32(total.get(sig, 0) + count)
        return total

    def contents_of(self, relay: EntityHandle) -> SignalSet:
        entity = self._entities.get(relay)
        if entity is None:
            return {}
        return dict(entity.contents)

    def relay_count(self) -> int:
        """Number of live relay entities."""
        return sum(1 for _, e in self._entities.items() if e.relay)

    def entity_count(self) -> int:
        return len(self._entities)

    # -- CircuitHost protocol ----------------------------------------------

    def is_valid(self, handle: EntityHandle | None) -> bool:
        return self._entities.is_valid(handle)

    def entity_name(self, handle: EntityHandle) -> str | None:
        entity = self._entities.get(handle)
        return entity.name if entity is not None else None

    def is_ghost(self, handle: EntityHandle) -> bool:
        entity = self._entities.get(handle)
        return entity is not None and entity.ghost

    def surface_of(self, handle: EntityHandle) -> int | None:
        entity = self._entities.get(handle)
        return entity.surface if entity is not None else None

    def host_of(self, handle: EntityHandle) -> int | None:
        entity = self._entities.get(handle)
        if entity is None:
            return None
        for plat in self._platforms.values():
            if plat.surface == entity.surface:
                return plat.index
        return None

    def host_exists(self, host_id: int) -> bool:
        return host_id in self._platforms

    def read_channel_signals(self, handle: EntityHandle, channel: Channel) -> SignalSet | None:
        entity = self._entities.get(handle)
        if entity is None or entity.ghost:
            return None
        signals = entity.inputs.get(channel)
        if signals is None:
            return None
        return dict(signals)

    def write_channel_signals(self, handle: EntityHandle, signals: SignalSet) -> None:
        entity = self._entities.get(handle)
        if entity is None:
            return
        self.writes += 1
        entity.contents = {
            sig: to_int32(count) for sig, count in to_slots(signals, self._max_slots)
        }

    def create_relay_entity(self, near: EntityHandle) -> EntityHandle | None:
        anchor = self._entities.get(near)
        if anchor is None:
            return None
        if self.relay_creation_budget is not None:
            if self.relay_creation_budget <= 0:
                return None
            self.relay_creation_budget -= 1
        return self._entities.insert(
            _Entity(name=RELAY_ENTITY_NAME, surface=anchor.surface, relay=True)
        )

    def destroy_entity(self, handle: EntityHandle) -> bool:
        entity = self._entities.get(handle)
        if entity is None:
            return False
        if entity.relay:
            for _, other in self._entities.items():
                for relays in other.wired.values():
                    relays.discard(handle)
        return self._entities.remove(handle)

    def connect_channel(self, relay: EntityHandle, target: EntityHandle, channel: Channel) -> bool:
        if self.fail_connections:
            return False
        source = self._entities.get(relay)
        dest = self._entities.get(target)
        if source is None or dest is None or not source.relay:
            return False
        dest.wired.setdefault(channel, set()).add(relay)
        return True

    def current_residency_of(self, host_id: int) -> int | None:
        self.residency_queries += 1
        plat = self._platforms.get(host_id)
        if plat is None:
            return None
        if plat.location is not None and plat.location not in self._planets:
            return None
        return plat.location

    def enumerate_known_partitions(self) -> list[int]:
        return sorted(self._planets)

    def partition_name(self, partition_id: int) -> str | None:
        return self._planets.get(partition_id)

    # -- Internals ----------------------------------------------------------

    def _destroy_surface_entities(self, surface: int) -> int:
        doomed = [h for h, e in self._entities.items() if e.surface == surface]
        for handle in doomed:
            self.destroy_entity(handle)
        return len(doomed)


__all__ = ["InMemoryHost", "RELAY_ENTITY_NAME"]
