# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""CircuitHost — the interface the relay core needs from the game.

This is the contract between the relay core and whatever owns the real
entities.  The game bridge implements it; InMemoryHost implements it for
tests and headless simulation.

Partitions are surface indices, mobile hosts are platform indices, and
entities are EntityHandles.  Every method must tolerate stale handles by
returning None/False rather than raising.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from mission_control.handles import EntityHandle
    from mission_control.signals import Channel, SignalSet


@runtime_checkable
class CircuitHost(Protocol):
    """Capabilities the relay core consumes from the host game."""

    def is_valid(self, handle: EntityHandle | None) -> bool:
        """True while *handle* still resolves to a live entity."""
        ...

    def entity_name(self, handle: EntityHandle) -> str | None:
        """Prototype name of the entity (ghosts report the name they will become)."""
        ...

    def is_ghost(self, handle: EntityHandle) -> bool:
        """True for not-yet-built placeholder entities."""
        ...

    def surface_of(self, handle: EntityHandle) -> int | None:
        """Surface (partition) the entity stands on."""
        ...

    def host_of(self, handle: EntityHandle) -> int | None:
        """Platform the entity is attached to, or None for ground entities."""
        ...

    def host_exists(self, host_id: int) -> bool:
        """True while the platform *host_id* exists."""
        ...

    def read_channel_signals(self, handle: EntityHandle, channel: Channel) -> SignalSet | None:
        """Signals on the entity's input connector for *channel*.

        None when the entity is invalid or nothing is wired to that input.
        """
        ...

    def write_channel_signals(self, handle: EntityHandle, signals: SignalSet) -> None:
        """Replace the full contents of a relay entity with *signals*."""
        ...

    def create_relay_entity(self, near: EntityHandle) -> EntityHandle | None:
        """Create a hidden relay entity beside *near*.  None on failure."""
        ...

    def destroy_entity(self, handle: EntityHandle) -> bool:
        """Destroy an entity.  False if it was already gone."""
        ...

    def connect_channel(self, relay: EntityHandle, target: EntityHandle, channel: Channel) -> bool:
        """Wire *relay*'s output to *target*'s output connector on *channel*."""
        ...

    def current_residency_of(self, host_id: int) -> int | None:
        """Partition the platform is parked at, or None while in transit.

        Expensive on a real host: only the resync sweep and post-build
        passes call it.
        """
        ...

    def enumerate_known_partitions(self) -> list[int]:
        """Every partition a subscriber could be configured for."""
        ...

    def partition_name(self, partition_id: int) -> str | None:
        """Display name of a partition (planet name)."""
        ...
