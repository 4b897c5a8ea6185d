# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""RelayEngine — periodic ground<->space signal transmission.

Architecture
------------
Two independently periodic callbacks drive the engine:

  1. transmit (fast, every 15 ticks by default) -- one full relay pass:

       ground -> space
         a. For every partition, read both input channels of every valid
            tower and sum them per channel.  Stale towers are retired as
            they are met.  The sum is cached on the partition with the
            current tick; an empty partition sums to an empty set.
         b. For every receiver, exactly once: if its platform's cached
            location is one of its configured partitions, write that
            partition's sums to its two relay outputs (full replace) and
            remember them as last_received.  Otherwise write last_received
            again when hold_last_value is set, or empty sets when it is not.

       space -> ground (strictly after ground -> space has finished)
         c. Read both input channels of every receiver whose platform is
            parked somewhere, grouped by where it is parked.  Configured
            partitions do not matter here, only physical co-location.
         d. For every partition, sum its group per channel and write the
            result to the partition's relay outputs.  A partition with no
            platform parked gets empty sets.

  2. resync (slow, every 60 ticks by default) -- ask the host where every
     known platform really is and overwrite the location cache.  This is
     the only periodic path that calls the host's expensive residency
     query.  The transmit path only reads the cache, so receivers may act
     on a location up to one resync period old.

Feedback isolation:
  Receivers read their own input connectors, never their outputs, and
  every write lands on a hidden relay entity rather than the visible
  entity.  Since phase (a-b) completes before (c-d) begins, nothing written
  this pass can be read back as input in the same pass.

Stale entities:
  A tower or receiver whose handle no longer resolves is handed to the
  on_stale callback (the lifecycle manager's retire path, which also
  releases its relay entities).  Without a callback the engine just drops
  the index entry.  Stale partition relay outputs are dropped in place.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Callable

from loguru import logger

from mission_control.kinds import EntityKind
from mission_control.network.aggregator import aggregate_channels
from mission_control.signals import CHANNELS, Channel, SignalSet, empty_channels

if TYPE_CHECKING:
    from mission_control.handles import EntityHandle
    from mission_control.host.base import CircuitHost
    from mission_control.network.context import NetworkContext
    from mission_control.network.registry import RealSubscriber


@dataclass
class PassStats:
    """Counters from one transmit pass."""

    tick: int = 0
    partitions_processed: int = 0
    producers_read: int = 0
    subscribers_updated: int = 0
    subscribers_held: int = 0
    subscribers_cleared: int = 0
    subscribers_read: int = 0
    relay_outputs_written: int = 0
    stale_pruned: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ResyncStats:
    """Counters from one resync sweep."""

    tick: int = 0
    hosts_checked: int = 0
    corrections: int = 0
    hosts_forgotten: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class RelayEngine:
    """Aggregates tower inputs and routes them to receivers, and back."""

    def __init__(
        self,
        context: NetworkContext,
        host: CircuitHost,
        on_stale: Callable[[EntityKind, EntityHandle], None] | None = None,
    ) -> None:
        self._ctx = context
        self._host = host
        self._on_stale = on_stale
        self.passes = 0
        self.resyncs = 0
        self.last_pass: PassStats | None = None
        self.last_resync: ResyncStats | None = None

    def set_stale_handler(self, on_stale: Callable[[EntityKind, EntityHandle], None] | None) -> None:
        self._on_stale = on_stale

    # -- Transmit -----------------------------------------------------------

    def transmit(self) -> PassStats:
        """Run one full relay pass: ground -> space, then space -> ground."""
        stats = PassStats(tick=self._ctx.tick)
        self.ground_to_space(stats)
        self.space_to_ground(stats)
        self.passes += 1
        self.last_pass = stats
        logger.trace(
            f"Relay pass @{stats.tick}: {stats.partitions_processed} partitions, "
            f"{stats.subscribers_updated} updated, {stats.subscribers_held} held, "
            f"{stats.subscribers_cleared} cleared"
        )
        return stats

    def ground_to_space(self, stats: PassStats | None = None) -> PassStats:
        stats = stats if stats is not None else PassStats(tick=self._ctx.tick)
        ctx = self._ctx
        now = ctx.tick

        aggregates: dict[int, dict[Channel, SignalSet]] = {}
        for part in ctx.directory.partitions():
            readings = []
            for producer in sorted(part.producers):
                if not self._host.is_valid(producer):
                    self._retire(EntityKind.PRODUCER, producer)
                    stats.stale_pruned += 1
                    continue
                readings.append(self._read(producer))
            totals = aggregate_channels(readings)
            part.cached_input = totals
            part.last_update = now
            aggregates[part.partition_id] = totals
            stats.partitions_processed += 1
            stats.producers_read += len(readings)

        for record in ctx.registry.records():
            if not self._host.is_valid(record.handle):
                self._retire(EntityKind.SUBSCRIBER, record.handle)
                stats.stale_pruned += 1
                continue
            location = ctx.locations.get(record.host_id)
            if record.is_configured_for(location):
                totals = aggregates.get(location)
                if totals is None:
                    totals = empty_channels()
                self._write_subscriber(record, totals)
                record.last_received = {ch: dict(totals[ch]) for ch in CHANNELS}
                record.last_update = now
                stats.subscribers_updated += 1
            elif record.hold_last_value:
                self._write_subscriber(record, record.last_received)
                stats.subscribers_held += 1
            else:
                self._write_subscriber(record, empty_channels())
                stats.subscribers_cleared += 1
        return stats

    def space_to_ground(self, stats: PassStats | None = None) -> PassStats:
        stats = stats if stats is not None else PassStats(tick=self._ctx.tick)
        ctx = self._ctx

        groups: dict[int, list[dict[Channel, SignalSet | None]]] = {}
        for record in ctx.registry.records():
            if not self._host.is_valid(record.handle):
                self._retire(EntityKind.SUBSCRIBER, record.handle)
                stats.stale_pruned += 1
                continue
            location = ctx.locations.get(record.host_id)
            if location is None:
                continue
            groups.setdefault(location, []).append(self._read(record.handle))
            stats.subscribers_read += 1

        for part in ctx.directory.partitions():
            totals = aggregate_channels(groups.get(part.partition_id, []))
            part.cached_output = totals
            for ch in CHANNELS:
                for relay in sorted(part.relay_outputs[ch]):
                    if not self._host.is_valid(relay):
                        ctx.directory.remove_relay_output(part.partition_id, ch, relay)
                        stats.stale_pruned += 1
                        continue
                    self._host.write_channel_signals(relay, totals[ch])
                    stats.relay_outputs_written += 1
        return stats

    # -- Resync -------------------------------------------------------------

    def resync(self) -> ResyncStats:
        """Re-derive every known platform's location from the host."""
        ctx = self._ctx
        stats = ResyncStats(tick=ctx.tick)
        referenced = set(ctx.registry.host_ids())
        for host_id in sorted(referenced | set(ctx.locations.host_ids())):
            if host_id not in referenced and not self._host.host_exists(host_id):
                ctx.locations.forget(host_id)
                stats.hosts_forgotten += 1
                continue
            if self.refresh_location(host_id):
                stats.corrections += 1
            stats.hosts_checked += 1
        self.resyncs += 1
        self.last_resync = stats
        if stats.corrections:
            logger.debug(f"Location resync corrected {stats.corrections} platform(s)")
        return stats

    def refresh_location(self, host_id: int) -> bool:
        """Ask the host where *host_id* is and cache it.  True if it changed."""
        ctx = self._ctx
        previous = ctx.locations.record(host_id)
        partition_id = self._host.current_residency_of(host_id)
        ctx.locations.update(host_id, partition_id)
        return previous is None or previous.partition_id != partition_id

    # -- Internals ----------------------------------------------------------

    def _read(self, handle: EntityHandle) -> dict[Channel, SignalSet | None]:
        return {ch: self._host.read_channel_signals(handle, ch) for ch in CHANNELS}

    def _write_subscriber(self, record: RealSubscriber, signals: dict[Channel, SignalSet]) -> None:
        for ch in CHANNELS:
            relay = record.outputs.get(ch)
            if relay is None or not self._host.is_valid(relay):
                continue
            self._host.write_channel_signals(relay, dict(signals.get(ch) or {}))

    def _retire(self, kind: EntityKind, handle: EntityHandle) -> None:
        if self._on_stale is not None:
            self._on_stale(kind, handle)
            return
        ctx = self._ctx
        if kind is EntityKind.PRODUCER:
            partition_id = ctx.directory.partition_of(handle)
            if partition_id is not None:
                ctx.directory.remove_producer(partition_id, handle)
        else:
            ctx.registry.unregister(handle)
