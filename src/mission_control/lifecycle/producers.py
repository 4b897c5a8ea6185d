# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Tower (producer) lifecycle: build, destroy, validate."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from mission_control.errors import PartialRegistrationError
from mission_control.lifecycle.relays import create_relay_pair, release_relays, relays_intact
from mission_control.signals import CHANNELS

if TYPE_CHECKING:
    from mission_control.handles import EntityHandle
    from mission_control.host.base import CircuitHost
    from mission_control.lifecycle.manager import ValidationReport
    from mission_control.network.context import NetworkContext


class ProducerLifecycle:
    """Keeps the partition directory in step with tower entities."""

    kind = "tower"

    def __init__(self, context: NetworkContext, host: CircuitHost) -> None:
        self._ctx = context
        self._host = host

    def on_built(self, handle: EntityHandle, tags: dict | None = None, **_: object) -> EntityHandle | None:
        """Create the tower's relay pair and register it in its partition.

        Idempotent: a tower that is already registered with intact relays
        is left as it is.  Raises PartialRegistrationError after rollback.
        """
        if not self._host.is_valid(handle) or self._host.is_ghost(handle):
            return None
        partition_id = self._host.surface_of(handle)
        if partition_id is None:
            logger.warning(f"Tower {handle} has no surface; not registered")
            return None

        directory = self._ctx.directory
        existing = directory.outputs_of(handle)
        if directory.partition_of(handle) == partition_id and relays_intact(self._host, existing):
            logger.debug(f"Tower {handle} already registered on surface {partition_id}")
            return handle

        # Old relays stay linked until the new pair exists, so a failed
        # attempt leaves the tower visible to the next validate_all().
        outputs = create_relay_pair(self._host, handle, self.kind)
        if existing is not None:
            self._release(handle)
        directory.add_producer(partition_id, handle)
        for ch, relay in outputs.items():
            directory.add_relay_output(partition_id, ch, relay)
        directory.link_outputs(handle, outputs)
        logger.info(
            f"Built tower {handle} on surface {partition_id} "
            f"({len(directory.get_or_create(partition_id).producers)} on surface)"
        )
        return handle

    def on_destroyed(self, handle: EntityHandle) -> bool:
        """Release the tower's relays and strike it from its partition.

        Works whether or not the tower entity itself is still valid.
        """
        known = self._release(handle)
        partition_id = self._ctx.directory.partition_of(handle)
        if partition_id is not None:
            self._ctx.directory.remove_producer(partition_id, handle)
            known = True
        if known:
            logger.info(f"Destroyed tower {handle}")
        return known

    def copy_settings(self, source: EntityHandle) -> dict | None:
        """Towers carry no settings."""
        return None

    def paste_settings(self, dest: EntityHandle, blob: dict) -> bool:
        return False

    def validate_all(self, report: ValidationReport) -> None:
        directory = self._ctx.directory
        for producer in directory.linked_producers():
            if not self._host.is_valid(producer):
                self.on_destroyed(producer)
                report.orphaned_producers += 1
            elif not relays_intact(self._host, directory.outputs_of(producer)):
                report.orphaned_relays += 1
                self._repair(producer, report)
        for _, producer in list(directory.producers()):
            if not self._host.is_valid(producer):
                self.on_destroyed(producer)
                report.orphaned_producers += 1
            elif directory.outputs_of(producer) is None:
                report.orphaned_relays += 1
                self._repair(producer, report)
        for partition_id in directory.partition_ids():
            report.pruned_entries += directory.prune_invalid(partition_id, self._host.is_valid)

    def _repair(self, producer: EntityHandle, report: ValidationReport) -> None:
        try:
            if self.on_built(producer) is not None:
                report.repaired += 1
        except PartialRegistrationError as exc:
            logger.warning(f"Could not repair tower relays: {exc}")

    def _release(self, handle: EntityHandle) -> bool:
        directory = self._ctx.directory
        outputs = directory.unlink_outputs(handle)
        if outputs is None:
            return False
        for partition_id in directory.partition_ids():
            for ch in CHANNELS:
                relay = outputs.get(ch)
                if relay is not None:
                    directory.remove_relay_output(partition_id, ch, relay)
        release_relays(self._host, outputs)
        return True
