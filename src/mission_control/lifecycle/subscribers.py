# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Receiver (subscriber) lifecycle: build, destroy, configure, validate.

Receivers live on platforms.  Building one creates its relay pair,
registers it with a default configuration, and refreshes its platform's
cached location so the immediate relay pass that follows sees the right
partition.

Ghosts (blueprint placeholders) are never registered as receivers.  If
their tags carry a ``receiver_config`` blob it is kept on a
PlaceholderSubscriber until the ghost is built for real.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger
from pydantic import ValidationError

from mission_control.errors import PartialRegistrationError
from mission_control.lifecycle.relays import create_relay_pair, release_relays, relays_intact
from mission_control.network.registry import SubscriberConfig

if TYPE_CHECKING:
    from mission_control.handles import EntityHandle
    from mission_control.host.base import CircuitHost
    from mission_control.lifecycle.manager import ValidationReport
    from mission_control.network.context import NetworkContext
    from mission_control.network.relay import RelayEngine

CONFIG_TAG = "receiver_config"


@dataclass
class SubscriberDefaults:
    """Configuration handed to freshly built receivers."""

    subscribe_all: bool = True
    hold_last_value: bool = True


class SubscriberLifecycle:
    """Keeps the subscriber registry in step with receiver entities."""

    kind = "receiver"

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
        self.defaults = defaults or SubscriberDefaults()

    # -- Build / destroy ----------------------------------------------------

    def on_built(
        self,
        handle: EntityHandle,
        tags: dict | None = None,
        revived_from: EntityHandle | None = None,
        host_id: int | None = None,
    ) -> EntityHandle | None:
        """Register a receiver.  Returns its handle, or None if not registered.

        Raises PartialRegistrationError after rollback.
        """
        if not self._host.is_valid(handle):
            return None

        if self._host.is_ghost(handle):
            blob = (tags or {}).get(CONFIG_TAG)
            if blob is not None:
                self.restore_config(handle, blob)
            return None

        if host_id is None:
            host_id = self._host.host_of(handle)
        if host_id is None:
            logger.warning(f"Receiver {handle} must be placed on a space platform; removing it")
            self._host.destroy_entity(handle)
            return None

        registry = self._ctx.registry
        record = registry.get(handle)
        if record is not None and relays_intact(self._host, record.outputs):
            registry.register(handle, host_id)
            logger.debug(f"Receiver {handle} re-registered on platform {host_id}")
        else:
            outputs = create_relay_pair(self._host, handle, self.kind)
            if record is not None:
                release_relays(self._host, record.outputs)
            defaults = self._host.enumerate_known_partitions() if self.defaults.subscribe_all else []
            record = registry.register(
                handle,
                host_id,
                default_partitions=defaults,
                outputs=outputs,
                hold_last_value=self.defaults.hold_last_value,
            )
            logger.info(
                f"Built receiver {handle} on platform {host_id} "
                f"with {len(record.partitions)} configured surfaces"
            )

        if revived_from is not None:
            holder = registry.pop_placeholder(revived_from)
            if holder is not None:
                record.apply_config(holder.get_config())
        blob = (tags or {}).get(CONFIG_TAG)
        if blob is not None:
            self.restore_config(handle, blob)

        self._relay.refresh_location(host_id)
        location = self._ctx.locations.get(host_id)
        if location is not None:
            self._ctx.directory.get_or_create(location)
        return handle

    def on_destroyed(self, handle: EntityHandle) -> bool:
        """Release the receiver's relays and drop its record (or placeholder)."""
        registry = self._ctx.registry
        holder = registry.pop_placeholder(handle)
        record = registry.unregister(handle)
        if record is None:
            return holder is not None
        release_relays(self._host, record.outputs)
        logger.info(f"Destroyed receiver {handle} (platform {record.host_id})")
        return True

    # -- Configuration ------------------------------------------------------

    def serialize_config(self, handle: EntityHandle) -> dict | None:
        target = self._ctx.registry.lookup(handle)
        if target is None:
            return None
        return target.get_config().model_dump()

    def restore_config(self, handle: EntityHandle, blob: dict | SubscriberConfig) -> bool:
        """Apply a config blob to a real receiver or a ghost placeholder."""
        try:
            config = (
                blob if isinstance(blob, SubscriberConfig) else SubscriberConfig.model_validate(blob)
            )
        except ValidationError as exc:
            logger.warning(f"Ignoring malformed receiver config for {handle}: {exc.error_count()} error(s)")
            return False
        registry = self._ctx.registry
        target = registry.lookup(handle)
        if target is not None:
            target.apply_config(config)
            return True
        if self._host.is_valid(handle) and self._host.is_ghost(handle):
            registry.put_placeholder(handle, config)
            return True
        return False

    def copy_settings(self, source: EntityHandle) -> dict | None:
        return self.serialize_config(source)

    def paste_settings(self, dest: EntityHandle, blob: dict) -> bool:
        return self.restore_config(dest, blob)

    # -- Diagnostics --------------------------------------------------------

    def status(self, handle: EntityHandle) -> dict:
        if not self._host.is_valid(handle):
            return {"error": "Invalid entity"}
        record = self._ctx.registry.get(handle)
        if record is None:
            return {"error": "Not registered"}
        if not self._host.host_exists(record.host_id):
            return {"error": "Platform not found"}
        location = self._ctx.locations.get(record.host_id)
        status = {
            "handle": handle.key,
            "platform_index": record.host_id,
            "location": "In transit",
            "surface_index": location,
            "receiving": record.is_configured_for(location),
            "configured_surfaces": sorted(record.partitions),
            "hold_last_value": record.hold_last_value,
            "last_update": record.last_update,
        }
        if location is not None:
            status["location"] = self._host.partition_name(location) or "Unknown"
        return status

    def validate_all(self, report: ValidationReport) -> None:
        registry = self._ctx.registry
        for record in registry.records():
            if not self._host.is_valid(record.handle):
                self.on_destroyed(record.handle)
                report.orphaned_subscribers += 1
                continue
            if not self._host.host_exists(record.host_id):
                logger.warning(f"Receiver {record.handle} has invalid platform reference {record.host_id}")
            if not relays_intact(self._host, record.outputs):
                report.orphaned_relays += 1
                try:
                    if self.on_built(record.handle, host_id=record.host_id) is not None:
                        report.repaired += 1
                except PartialRegistrationError as exc:
                    logger.warning(f"Could not repair receiver relays: {exc}")
        for holder in registry.placeholders():
            if not self._host.is_valid(holder.handle):
                registry.pop_placeholder(holder.handle)
                report.stale_placeholders += 1
