# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""PartitionDirectory — producers and relay outputs per surface.

Architecture
------------
A Partition is one broadcast domain (a planet surface).  It holds:

  - producers: visible tower entities whose inputs are summed together
  - relay_outputs: per-channel hidden relay entities wired to the towers'
    output connectors; the space->ground aggregate is written to these
  - cached_input / cached_output: last ground->space and space->ground
    aggregates, per channel, with the tick they were computed at

Partitions are created lazily by get_or_create() and never destroyed.  An
emptied partition stays addressable and aggregates to an empty set.

The directory also remembers which relay entities belong to which
producer (producer_outputs) so destroying a tower can release exactly its
own relay entities, and which partition a producer lives in.

No entity is touched here: the directory only edits its own maps.  The
validity check used by prune_invalid() is passed in by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterator

from mission_control.handles import EntityHandle
from mission_control.signals import (
    CHANNELS,
    Channel,
    SignalSet,
    empty_channels,
    signal_set_from_list,
    signal_set_to_list,
)


@dataclass
class Partition:
    """One surface's producers, relay outputs, and cached aggregates."""

    partition_id: int
    producers: set[EntityHandle] = field(default_factory=set)
    relay_outputs: dict[Channel, set[EntityHandle]] = field(
        default_factory=lambda: {ch: set() for ch in CHANNELS}
    )
    cached_input: dict[Channel, SignalSet] = field(default_factory=empty_channels)
    cached_output: dict[Channel, SignalSet] = field(default_factory=empty_channels)
    last_update: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.producers and not any(self.relay_outputs.values())

    def to_dict(self) -> dict:
        return {
            "partition_id": self.partition_id,
            "producers": sorted(h.key for h in self.producers),
            "relay_outputs": {
                ch.value: sorted(h.key for h in self.relay_outputs[ch]) for ch in CHANNELS
            },
            "cached_input": {
                ch.value: signal_set_to_list(self.cached_input[ch]) for ch in CHANNELS
            },
            "cached_output": {
                ch.value: signal_set_to_list(self.cached_output[ch]) for ch in CHANNELS
            },
            "last_update": self.last_update,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Partition:
        part = cls(partition_id=int(data["partition_id"]))
        part.producers = {EntityHandle.parse(k) for k in data.get("producers", [])}
        relay = data.get("relay_outputs", {})
        cached_in = data.get("cached_input", {})
        cached_out = data.get("cached_output", {})
        for ch in CHANNELS:
            part.relay_outputs[ch] = {EntityHandle.parse(k) for k in relay.get(ch.value, [])}
            part.cached_input[ch] = signal_set_from_list(cached_in.get(ch.value))
            part.cached_output[ch] = signal_set_from_list(cached_out.get(ch.value))
        part.last_update = int(data.get("last_update", 0))
        return part


class PartitionDirectory:
    """Maps partition id -> Partition and producer -> its relay outputs."""

    def __init__(self) -> None:
        self._partitions: dict[int, Partition] = {}
        self._producer_outputs: dict[EntityHandle, dict[Channel, EntityHandle]] = {}
        self._producer_partition: dict[EntityHandle, int] = {}

    # -- Partitions ---------------------------------------------------------

    def get_or_create(self, partition_id: int) -> Partition:
        part = self._partitions.get(partition_id)
        if part is None:
            part = Partition(partition_id=partition_id)
            self._partitions[partition_id] = part
        return part

    def get(self, partition_id: int) -> Partition | None:
        return self._partitions.get(partition_id)

    def partitions(self) -> list[Partition]:
        """All partitions, ordered by id."""
        return [self._partitions[pid] for pid in sorted(self._partitions)]

    def partition_ids(self) -> list[int]:
        return sorted(self._partitions)

    def __len__(self) -> int:
        return len(self._partitions)

    def __contains__(self, partition_id: object) -> bool:
        return partition_id in self._partitions

    # -- Producers ----------------------------------------------------------

    def add_producer(self, partition_id: int, producer: EntityHandle) -> None:
        current = self._producer_partition.get(producer)
        if current is not None and current != partition_id:
            # A producer belongs to exactly one partition.
            self.remove_producer(current, producer)
        self.get_or_create(partition_id).producers.add(producer)
        self._producer_partition[producer] = partition_id

    def remove_producer(self, partition_id: int, producer: EntityHandle) -> bool:
        """Drop *producer* from *partition_id*.  No-op (False) if absent."""
        part = self._partitions.get(partition_id)
        if part is None or producer not in part.producers:
            return False
        part.producers.discard(producer)
        if self._producer_partition.get(producer) == partition_id:
            del self._producer_partition[producer]
        return True

    def partition_of(self, producer: EntityHandle) -> int | None:
        return self._producer_partition.get(producer)

    def producers(self) -> Iterator[tuple[int, EntityHandle]]:
        """(partition_id, producer) for every registered producer."""
        for part in self.partitions():
            for producer in sorted(part.producers):
                yield part.partition_id, producer

    def producer_count(self) -> int:
        return sum(len(p.producers) for p in self._partitions.values())

    # -- Relay outputs ------------------------------------------------------

    def add_relay_output(self, partition_id: int, channel: Channel, relay: EntityHandle) -> None:
        self.get_or_create(partition_id).relay_outputs[channel].add(relay)

    def remove_relay_output(self, partition_id: int, channel: Channel, relay: EntityHandle) -> bool:
        part = self._partitions.get(partition_id)
        if part is None or relay not in part.relay_outputs[channel]:
            return False
        part.relay_outputs[channel].discard(relay)
        return True

    def link_outputs(self, producer: EntityHandle, outputs: dict[Channel, EntityHandle]) -> None:
        """Remember which relay entities belong to *producer*."""
        self._producer_outputs[producer] = dict(outputs)

    def outputs_of(self, producer: EntityHandle) -> dict[Channel, EntityHandle] | None:
        return self._producer_outputs.get(producer)

    def unlink_outputs(self, producer: EntityHandle) -> dict[Channel, EntityHandle] | None:
        return self._producer_outputs.pop(producer, None)

    def linked_producers(self) -> list[EntityHandle]:
        return sorted(self._producer_outputs)

    # -- Maintenance --------------------------------------------------------

    def prune_invalid(self, partition_id: int, is_valid: Callable[[EntityHandle], bool]) -> int:
        """Drop producers and relay outputs that no longer resolve.

        Returns the number of entries removed.  Relay-output links of a
        pruned producer are left for validate_all() to reclaim.
        """
        part = self._partitions.get(partition_id)
        if part is None:
            return 0
        removed = 0
        for producer in sorted(part.producers):
            if not is_valid(producer):
                self.remove_producer(partition_id, producer)
                removed += 1
        for ch in CHANNELS:
            for relay in sorted(part.relay_outputs[ch]):
                if not is_valid(relay):
                    part.relay_outputs[ch].discard(relay)
                    removed += 1
        return removed

    def clear(self) -> None:
        self._partitions.clear()
        self._producer_outputs.clear()
        self._producer_partition.clear()

    # -- Persistence --------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "partitions": [p.to_dict() for p in self.partitions()],
            "producer_outputs": {
                producer.key: {ch.value: relay.key for ch, relay in outputs.items()}
                for producer, outputs in sorted(self._producer_outputs.items())
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> PartitionDirectory:
        directory = cls()
        for entry in data.get("partitions", []):
            part = Partition.from_dict(entry)
            directory._partitions[part.partition_id] = part
            for producer in part.producers:
                directory._producer_partition[producer] = part.partition_id
        for key, outputs in data.get("producer_outputs", {}).items():
            directory._producer_outputs[EntityHandle.parse(key)] = {
                Channel(ch): EntityHandle.parse(relay) for ch, relay in outputs.items()
            }
        return directory
