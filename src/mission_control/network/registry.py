# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""SubscriberRegistry — receiver configuration and volatile handles.

Architecture
------------
Every receiver is either a RealSubscriber (a built entity with relay
outputs and a mobile host) or a PlaceholderSubscriber (a ghost waiting to
be built, carrying only configuration).  Both expose the same config
interface (get_config / apply_config), so the lifecycle manager and the
configuration editor never branch on which one they hold.

Configuration vs. volatile state:
  configuration -- partitions (set of partition ids) and hold_last_value.
      Owned by the player.  register() never overwrites it once a record
      exists; losing it on an incidental re-registration is a bug.
  volatile -- entity handle, host id, relay output handles, last_received
      cache.  Refreshed freely.

Unknown subscribers read as the empty configuration rather than raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Union

from pydantic import BaseModel, Field, field_validator

from mission_control.handles import EntityHandle
from mission_control.signals import (
    CHANNELS,
    Channel,
    SignalSet,
    empty_channels,
    signal_set_from_list,
    signal_set_to_list,
)


class SubscriberConfig(BaseModel):
    """Player-facing receiver configuration.  Also the blueprint/copy blob."""

    partitions: list[int] = Field(default_factory=list)
    hold_last_value: bool = False

    @field_validator("partitions")
    @classmethod
    def _dedupe_sorted(cls, value: list[int]) -> list[int]:
        return sorted(set(value))


@dataclass
class PlaceholderSubscriber:
    """A ghost receiver: configuration only, no entity behind it yet."""

    handle: EntityHandle
    partitions: set[int] = field(default_factory=set)
    hold_last_value: bool = False

    def get_config(self) -> SubscriberConfig:
        return SubscriberConfig(
            partitions=sorted(self.partitions), hold_last_value=self.hold_last_value
        )

    def apply_config(self, config: SubscriberConfig) -> None:
        self.partitions = set(config.partitions)
        self.hold_last_value = config.hold_last_value

    def to_dict(self) -> dict:
        return {"handle": self.handle.key, **self.get_config().model_dump()}

    @classmethod
    def from_dict(cls, data: dict) -> PlaceholderSubscriber:
        config = SubscriberConfig.model_validate(data)
        return cls(
            handle=EntityHandle.parse(data["handle"]),
            partitions=set(config.partitions),
            hold_last_value=config.hold_last_value,
        )


@dataclass
class RealSubscriber:
    """A built receiver on a platform."""

    handle: EntityHandle
    host_id: int
    outputs: dict[Channel, EntityHandle] = field(default_factory=dict)
    partitions: set[int] = field(default_factory=set)
    hold_last_value: bool = False
    last_received: dict[Channel, SignalSet] = field(default_factory=empty_channels)
    last_update: int = 0

    def get_config(self) -> SubscriberConfig:
        return SubscriberConfig(
            partitions=sorted(self.partitions), hold_last_value=self.hold_last_value
        )

    def apply_config(self, config: SubscriberConfig) -> None:
        self.partitions = set(config.partitions)
        self.hold_last_value = config.hold_last_value

    def is_configured_for(self, partition_id: int | None) -> bool:
        return partition_id is not None and partition_id in self.partitions

    def to_dict(self) -> dict:
        return {
            "handle": self.handle.key,
            "host_id": self.host_id,
            "outputs": {ch.value: h.key for ch, h in sorted(self.outputs.items())},
            "partitions": sorted(self.partitions),
            "hold_last_value": self.hold_last_value,
            "last_received": {
                ch.value: signal_set_to_list(self.last_received.get(ch)) for ch in CHANNELS
            },
            "last_update": self.last_update,
        }

    @classmethod
    def from_dict(cls, data: dict) -> RealSubscriber:
        received = data.get("last_received", {})
        return cls(
            handle=EntityHandle.parse(data["handle"]),
            host_id=int(data["host_id"]),
            outputs={
                Channel(ch): EntityHandle.parse(key)
                for ch, key in data.get("outputs", {}).items()
            },
            partitions={int(p) for p in data.get("partitions", [])},
            hold_last_value=bool(data.get("hold_last_value", False)),
            last_received={
                ch: signal_set_from_list(received.get(ch.value)) for ch in CHANNELS
            },
            last_update=int(data.get("last_update", 0)),
        )


AnySubscriber = Union[RealSubscriber, PlaceholderSubscriber]


class SubscriberRegistry:
    """Receiver records keyed by entity handle, plus ghost placeholders."""

    def __init__(self) -> None:
        self._records: dict[EntityHandle, RealSubscriber] = {}
        self._placeholders: dict[EntityHandle, PlaceholderSubscriber] = {}

    # -- Registration -------------------------------------------------------

    def register(
        self,
        subscriber: EntityHandle,
        host_id: int,
        default_partitions: Iterable[int] = (),
        outputs: dict[Channel, EntityHandle] | None = None,
        hold_last_value: bool = False,
    ) -> RealSubscriber:
        """Create a record, or refresh the volatile fields of an existing one.

        On re-registration *default_partitions* and *hold_last_value* are
        ignored: the existing configuration and held cache survive.
        """
        record = self._records.get(subscriber)
        if record is not None:
            record.host_id = host_id
            if outputs is not None:
                record.outputs = dict(outputs)
            return record
        record = RealSubscriber(
            handle=subscriber,
            host_id=host_id,
            outputs=dict(outputs or {}),
            partitions=set(default_partitions),
            hold_last_value=hold_last_value,
        )
        self._records[subscriber] = record
        return record

    def unregister(self, subscriber: EntityHandle) -> RealSubscriber | None:
        return self._records.pop(subscriber, None)

    def get(self, subscriber: EntityHandle) -> RealSubscriber | None:
        return self._records.get(subscriber)

    def records(self) -> list[RealSubscriber]:
        """Snapshot of all real subscribers, ordered by handle."""
        return [self._records[h] for h in sorted(self._records)]

    def __iter__(self) -> Iterator[RealSubscriber]:
        return iter(self.records())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, subscriber: object) -> bool:
        return subscriber in self._records

    def host_ids(self) -> list[int]:
        return sorted({r.host_id for r in self._records.values()})

    # -- Configuration ------------------------------------------------------

    def set_partitions(self, subscriber: EntityHandle, partition_ids: Iterable[int]) -> bool:
        target = self.lookup(subscriber)
        if target is None:
            return False
        target.partitions = set(partition_ids)
        return True

    def add_partition(self, subscriber: EntityHandle, partition_id: int) -> bool:
        target = self.lookup(subscriber)
        if target is None:
            return False
        target.partitions.add(partition_id)
        return True

    def remove_partition(self, subscriber: EntityHandle, partition_id: int) -> bool:
        target = self.lookup(subscriber)
        if target is None:
            return False
        target.partitions.discard(partition_id)
        return True

    def set_hold_last_value(self, subscriber: EntityHandle, hold: bool) -> bool:
        target = self.lookup(subscriber)
        if target is None:
            return False
        target.hold_last_value = bool(hold)
        return True

    def get_config(self, subscriber: EntityHandle) -> SubscriberConfig:
        """Configuration of a real or placeholder subscriber; empty if unknown."""
        target = self.lookup(subscriber)
        if target is None:
            return SubscriberConfig()
        return target.get_config()

    def set_config(self, subscriber: EntityHandle, config: SubscriberConfig) -> bool:
        target = self.lookup(subscriber)
        if target is None:
            return False
        target.apply_config(config)
        return True

    # -- Placeholders -------------------------------------------------------

    def lookup(self, handle: EntityHandle) -> AnySubscriber | None:
        """Real subscriber first, then placeholder."""
        record = self._records.get(handle)
        if record is not None:
            return record
        return self._placeholders.get(handle)

    def put_placeholder(self, ghost: EntityHandle, config: SubscriberConfig) -> PlaceholderSubscriber:
        holder = self._placeholders.get(ghost)
        if holder is None:
            holder = PlaceholderSubscriber(handle=ghost)
            self._placeholders[ghost] = holder
        holder.apply_config(config)
        return holder

    def pop_placeholder(self, ghost: EntityHandle) -> PlaceholderSubscriber | None:
        return self._placeholders.pop(ghost, None)

    def placeholders(self) -> list[PlaceholderSubscriber]:
        return [self._placeholders[h] for h in sorted(self._placeholders)]

    def clear(self) -> None:
        self._records.clear()
        self._placeholders.clear()

    # -- Persistence --------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "subscribers": [r.to_dict() for r in self.records()],
            "placeholders": [p.to_dict() for p in self.placeholders()],
        }

    @classmethod
    def from_dict(cls, data: dict) -> SubscriberRegistry:
        registry = cls()
        for entry in data.get("subscribers", []):
            record = RealSubscriber.from_dict(entry)
            registry._records[record.handle] = record
        for entry in data.get("placeholders", []):
            holder = PlaceholderSubscriber.from_dict(entry)
            registry._placeholders[holder.handle] = holder
        return registry
