# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""LifecycleManager — routes entity events to the per-kind handlers.

Architecture
------------
Every host event (built, destroyed, cloned, settings pasted, blueprint
setup, platform relocated) lands here.  The entity kind is resolved once
per event into an EntityKind and dispatched through a closed table:

    EntityKind.PRODUCER   -> ProducerLifecycle   (towers)
    EntityKind.SUBSCRIBER -> SubscriberLifecycle (receivers)

Build events:
  The handler creates the relay pair and registers the entity.  If relay
  creation fails the handler has already rolled back; the manager logs
  the PartialRegistrationError and returns None, so the event fails
  quietly and the scheduler carries on.  A successful build of a real
  entity triggers one immediate relay pass so the entity need not wait
  for the next transmit period.

Destroy events:
  Defensive.  The entity, its relays, or both may already be gone (a
  whole surface deleted, a platform destroyed).  Unknown handles are a
  no-op.

The relay engine's stale-entity callback is wired to retire(), so an
entity found invalid mid-pass goes through the same release path as an
explicit destroy event.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from loguru import logger

from mission_control.errors import PartialRegistrationError
from mission_control.kinds import EntityKind, kind_for_name
from mission_control.lifecycle.producers import ProducerLifecycle
from mission_control.lifecycle.relays import release_relays
from mission_control.lifecycle.subscribers import (
    CONFIG_TAG,
    SubscriberDefaults,
    SubscriberLifecycle,
)
from mission_control.network.registry import SubscriberConfig
from mission_control.signals import CHANNELS

if TYPE_CHECKING:
    from mission_control.handles import EntityHandle
    from mission_control.host.base import CircuitHost
    from mission_control.network.context import NetworkContext
    from mission_control.network.relay import RelayEngine


@dataclass
class ValidationReport:
    """What a validate_all() sweep found and fixed."""

    orphaned_producers: int = 0
    orphaned_relays: int = 0
    orphaned_subscribers: int = 0
    stale_placeholders: int = 0
    forgotten_hosts: int = 0
    pruned_entries: int = 0
    repaired: int = 0

    @property
    def total(self) -> int:
        """Every problem found; ``repaired`` is a subset, not added."""
        return (
            self.orphaned_producers
            + self.orphaned_relays
            + self.orphaned_subscribers
            + self.stale_placeholders
            + self.forgotten_hosts
            + self.pruned_entries
        )

    def to_dict(self) -> dict:
        return {**asdict(self), "total": self.total}


class LifecycleManager:
    """Entity event dispatcher and configuration entry point."""

    def __init__(
        self,
        context: NetworkContext,
        host: CircuitHost,
        relay: RelayEngine,
        defaults: SubscriberDefaults | None = None,
    ) -> None:
        self._ctx = context
        self._host = host
        self._relay = relay
        self.producers = ProducerLifecycle(context, host)
        self.subscribers = SubscriberLifecycle(context, host, relay, defaults)
        self._handlers: dict[EntityKind, ProducerLifecycle | SubscriberLifecycle] = {
            EntityKind.PRODUCER: self.producers,
            EntityKind.SUBSCRIBER: self.subscribers,
        }
        relay.set_stale_handler(self.retire)

    def kind_of(self, handle: EntityHandle) -> EntityKind | None:
        """Resolve *handle* to a kind: index membership first, then entity name."""
        if self._ctx.registry.lookup(handle) is not None:
            return EntityKind.SUBSCRIBER
        directory = self._ctx.directory
        if directory.partition_of(handle) is not None or directory.outputs_of(handle) is not None:
            return EntityKind.PRODUCER
        return kind_for_name(self._host.entity_name(handle))

    # -- Build / destroy ----------------------------------------------------

    def on_entity_built(
        self,
        handle: EntityHandle,
        tags: dict | None = None,
        revived_from: EntityHandle | None = None,
    ) -> EntityHandle | None:
        kind = kind_for_name(self._host.entity_name(handle))
        if kind is None:
            return None
        return self._build(kind, handle, tags=tags, revived_from=revived_from)

    def on_producer_built(self, handle: EntityHandle) -> EntityHandle | None:
        return self._build(EntityKind.PRODUCER, handle)

    def on_subscriber_built(
        self,
        handle: EntityHandle,
        host_id: int | None = None,
        tags: dict | None = None,
        revived_from: EntityHandle | None = None,
    ) -> EntityHandle | None:
        return self._build(
            EntityKind.SUBSCRIBER, handle, tags=tags, revived_from=revived_from, host_id=host_id
        )

    def on_entity_destroyed(self, handle: EntityHandle) -> bool:
        kind = self.kind_of(handle)
        if kind is None:
            return False
        return self._handlers[kind].on_destroyed(handle)

    def on_producer_destroyed(self, handle: EntityHandle) -> bool:
        return self.producers.on_destroyed(handle)

    def on_subscriber_destroyed(self, handle: EntityHandle, host_id: int | None = None) -> bool:
        return self.subscribers.on_destroyed(handle)

    def retire(self, kind: EntityKind, handle: EntityHandle) -> None:
        """Release an entity found stale during a relay pass."""
        logger.debug(f"Retiring stale {kind.value} {handle}")
        self._handlers[kind].on_destroyed(handle)

    def _build(self, kind: EntityKind, handle: EntityHandle, **kwargs) -> EntityHandle | None:
        handler = self._handlers[kind]
        try:
            result = handler.on_built(handle, **kwargs)
        except PartialRegistrationError as exc:
            logger.warning(f"Registration aborted: {exc}")
            return None
        if result is not None:
            self._relay.transmit()
        return result

    # -- Relocation ---------------------------------------------------------

    def on_host_relocated(self, host_id: int, partition_id: int | None) -> None:
        """A platform arrived somewhere (or left for transit)."""
        self._ctx.locations.update(host_id, partition_id)
        if partition_id is not None:
            self._ctx.directory.get_or_create(partition_id)
        logger.debug(f"Platform {host_id} now at {partition_id if partition_id is not None else 'transit'}")

    # -- Copy / clone / blueprint ------------------------------------------

    def on_settings_pasted(self, source: EntityHandle, dest: EntityHandle) -> bool:
        """Copy configuration (never entity handles) from *source* to *dest*."""
        kind = self.kind_of(source)
        if kind is None or self.kind_of(dest) is not kind:
            return False
        handler = self._handlers[kind]
        blob = handler.copy_settings(source)
        if blob is None:
            return False
        return handler.paste_settings(dest, blob)

    def on_entity_cloned(self, source: EntityHandle, dest: EntityHandle) -> EntityHandle | None:
        """Register *dest* through the normal build path, then copy config."""
        kind = self.kind_of(source)
        result = self.on_entity_built(dest)
        if result is None or kind is not EntityKind.SUBSCRIBER:
            return result
        blob = self.subscribers.copy_settings(source)
        if blob is not None:
            self.subscribers.paste_settings(dest, blob)
        return result

    on_subscriber_cloned = on_entity_cloned

    def on_blueprint_setup(self, mapping: dict[int, EntityHandle]) -> dict[int, dict]:
        """Tags to attach to blueprint entries, keyed by blueprint index."""
        tags: dict[int, dict] = {}
        for index, handle in mapping.items():
            if self.kind_of(handle) is not EntityKind.SUBSCRIBER:
                continue
            blob = self.subscribers.serialize_config(handle)
            if blob is not None:
                tags[index] = {CONFIG_TAG: blob}
        return tags

    # -- Configuration ------------------------------------------------------

    def get_subscriber_config(self, handle: EntityHandle) -> SubscriberConfig:
        return self._ctx.registry.get_config(handle)

    def set_subscriber_config(self, handle: EntityHandle, config: SubscriberConfig | dict) -> bool:
        if isinstance(config, dict):
            config = SubscriberConfig.model_validate(config)
        return self._ctx.registry.set_config(handle, config)

    def serialize_config(self, handle: EntityHandle) -> dict | None:
        return self.subscribers.serialize_config(handle)

    def restore_config(self, handle: EntityHandle, blob: dict) -> bool:
        return self.subscribers.restore_config(handle, blob)

    def add_partition(self, handle: EntityHandle, partition_id: int) -> bool:
        return self._ctx.registry.add_partition(handle, partition_id)

    def remove_partition(self, handle: EntityHandle, partition_id: int) -> bool:
        return self._ctx.registry.remove_partition(handle, partition_id)

    def set_hold_last_value(self, handle: EntityHandle, hold: bool) -> bool:
        return self._ctx.registry.set_hold_last_value(handle, hold)

    # -- Maintenance --------------------------------------------------------

    def validate_all(self) -> ValidationReport:
        """Sweep every index for stale entries and repair broken relays."""
        report = ValidationReport()
        self.producers.validate_all(report)
        self.subscribers.validate_all(report)

        referenced = set(self._ctx.registry.host_ids())
        for host_id in self._ctx.locations.host_ids():
            if host_id not in referenced and not self._host.host_exists(host_id):
                self._ctx.locations.forget(host_id)
                report.forgotten_hosts += 1

        logger.info(
            f"Validation complete: {report.orphaned_producers} towers, "
            f"{report.orphaned_subscribers} receivers, {report.orphaned_relays} relay sets, "
            f"{report.stale_placeholders} placeholders cleaned"
        )
        return report

    def clear_all(self) -> int:
        """Destroy every known relay entity and forget all state.

        Visible towers and receivers are left standing.  Returns the number
        of relay entities destroyed.
        """
        ctx = self._ctx
        destroyed = 0
        for producer in ctx.directory.linked_producers():
            destroyed += release_relays(self._host, ctx.directory.outputs_of(producer))
        for part in ctx.directory.partitions():
            for ch in CHANNELS:
                for relay in sorted(part.relay_outputs[ch]):
                    if self._host.is_valid(relay) and self._host.destroy_entity(relay):
                        destroyed += 1
        for record in ctx.registry.records():
            destroyed += release_relays(self._host, record.outputs)
        ctx.reset()
        logger.info(f"Cleared all relay state ({destroyed} relay entities destroyed)")
        return destroyed
