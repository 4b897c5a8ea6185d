# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""MissionControl — the relay service facade.

Architecture
------------
One MissionControl owns one NetworkContext and wires the rest around it:

  TickScheduler
    every tick                -> clock      (context.tick follows the clock)
    every transmit_interval   -> transmit   (RelayEngine.transmit)
    every resync_interval     -> resync     (RelayEngine.resync)

  LifecycleManager  <- host events (built, destroyed, relocated, ...)
  RelayEngine       -> stale entities go back to LifecycleManager.retire

The host's execution model serializes every callback.  Here the same
guarantee comes from a single re-entrant lock: ticks, lifecycle events,
configuration edits and diagnostics all take it, so no two of them ever
interleave, whether they arrive from the game loop, the optional
background tick thread, or the HTTP surface.

Background loop:
  start() spawns a daemon thread that advances the clock one tick every
  1/ticks_per_second seconds.  Tests and embedders that own the clock
  call tick(n) instead and never start the thread.
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

from loguru import logger

from mission_control import diagnostics
from mission_control.lifecycle.manager import LifecycleManager, ValidationReport
from mission_control.lifecycle.subscribers import SubscriberDefaults
from mission_control.network.context import NetworkContext
from mission_control.network.registry import SubscriberConfig
from mission_control.network.relay import PassStats, RelayEngine, ResyncStats
from mission_control.scheduler import TickScheduler

if TYPE_CHECKING:
    from mission_control.handles import EntityHandle
    from mission_control.host.base import CircuitHost

DEFAULT_TRANSMIT_INTERVAL = 15
DEFAULT_RESYNC_INTERVAL = 60
DEFAULT_TICKS_PER_SECOND = 60


class MissionControl:
    """Cross-surface circuit relay service."""

    def __init__(
        self,
        host: CircuitHost,
        transmit_interval: int = DEFAULT_TRANSMIT_INTERVAL,
        resync_interval: int = DEFAULT_RESYNC_INTERVAL,
        ticks_per_second: int = DEFAULT_TICKS_PER_SECOND,
        defaults: SubscriberDefaults | None = None,
    ) -> None:
        self.host = host
        self.transmit_interval = transmit_interval
        self.resync_interval = resync_interval
        self.ticks_per_second = ticks_per_second

        self.context = NetworkContext()
        self.relay = RelayEngine(self.context, host)
        self.lifecycle = LifecycleManager(self.context, host, self.relay, defaults)
        self.scheduler = TickScheduler()
        self.scheduler.on_nth_tick(1, self._sync_clock, name="clock")
        self.scheduler.on_nth_tick(transmit_interval, self.relay.transmit, name="transmit")
        self.scheduler.on_nth_tick(resync_interval, self.relay.resync, name="resync")

        self._lock = threading.RLock()
        self._running = False
        self._thread: threading.Thread | None = None

    @classmethod
    def from_settings(cls, host: CircuitHost, settings) -> MissionControl:
        """Build a service from an app Settings object."""
        return cls(
            host,
            transmit_interval=settings.transmit_interval_ticks,
            resync_interval=settings.resync_interval_ticks,
            ticks_per_second=settings.ticks_per_second,
            defaults=SubscriberDefaults(
                subscribe_all=settings.default_subscribe_all,
                hold_last_value=settings.default_hold_last_value,
            ),
        )

    # -- Clock --------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    def tick(self, ticks: int = 1) -> list[str]:
        """Advance the game clock by *ticks*.  Returns the callbacks fired."""
        with self._lock:
            return self.scheduler.advance(ticks)

    def _sync_clock(self) -> None:
        self.context.tick = self.scheduler.tick

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(
            target=self._tick_loop, name="mission-control-tick", daemon=True
        )
        self._thread.start()
        logger.info(
            f"Mission Control started: transmit every {self.transmit_interval} ticks, "
            f"resync every {self.resync_interval} ticks at {self.ticks_per_second} UPS"
        )

    def stop(self) -> None:
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        logger.info("Mission Control stopped")

    def _tick_loop(self) -> None:
        interval = 1.0 / max(self.ticks_per_second, 1)
        while self._running:
            time.sleep(interval)
            self.tick(1)

    def update_now(self) -> PassStats:
        """Run one relay pass immediately, outside the transmit period."""
        with self._lock:
            return self.relay.transmit()

    def resync_now(self) -> ResyncStats:
        with self._lock:
            return self.relay.resync()

    # -- Save / load --------------------------------------------------------

    def save(self) -> dict:
        with self._lock:
            return self.context.snapshot()

    def load(self, data: dict) -> None:
        with self._lock:
            self.context.restore(data)
            self.scheduler.set_tick(self.context.tick)
            logger.info(
                f"Loaded relay state at tick {self.context.tick}: "
                f"{len(self.context.directory)} surfaces, {len(self.context.registry)} receivers"
            )

    # -- Lifecycle events ---------------------------------------------------

    def on_entity_built(
        self,
        handle: EntityHandle,
        tags: dict | None = None,
        revived_from: EntityHandle | None = None,
    ) -> EntityHandle | None:
        with self._lock:
            return self.lifecycle.on_entity_built(handle, tags=tags, revived_from=revived_from)

    def on_producer_built(self, handle: EntityHandle) -> EntityHandle | None:
        with self._lock:
            return self.lifecycle.on_producer_built(handle)

    def on_subscriber_built(self, handle: EntityHandle, host_id: int | None = None) -> EntityHandle | None:
        with self._lock:
            return self.lifecycle.on_subscriber_built(handle, host_id=host_id)

    def on_entity_destroyed(self, handle: EntityHandle) -> bool:
        with self._lock:
            return self.lifecycle.on_entity_destroyed(handle)

    def on_producer_destroyed(self, handle: EntityHandle) -> bool:
        with self._lock:
            return self.lifecycle.on_producer_destroyed(handle)

    def on_subscriber_destroyed(self, handle: EntityHandle, host_id: int | None = None) -> bool:
        with self._lock:
            return self.lifecycle.on_subscriber_destroyed(handle, host_id)

    def on_host_relocated(self, host_id: int, partition_id: int | None) -> None:
        with self._lock:
            self.lifecycle.on_host_relocated(host_id, partition_id)

    def on_settings_pasted(self, source: EntityHandle, dest: EntityHandle) -> bool:
        with self._lock:
            return self.lifecycle.on_settings_pasted(source, dest)

    def on_entity_cloned(self, source: EntityHandle, dest: EntityHandle) -> EntityHandle | None:
        with self._lock:
            return self.lifecycle.on_entity_cloned(source, dest)

    on_subscriber_cloned = on_entity_cloned

    def on_blueprint_setup(self, mapping: dict[int, EntityHandle]) -> dict[int, dict]:
        with self._lock:
            return self.lifecycle.on_blueprint_setup(mapping)

    # -- Configuration ------------------------------------------------------

    def get_subscriber_config(self, handle: EntityHandle) -> SubscriberConfig:
        with self._lock:
            return self.lifecycle.get_subscriber_config(handle)

    def set_subscriber_config(self, handle: EntityHandle, config: SubscriberConfig | dict) -> bool:
        with self._lock:
            return self.lifecycle.set_subscriber_config(handle, config)

    def serialize_config(self, handle: EntityHandle) -> dict | None:
        with self._lock:
            return self.lifecycle.serialize_config(handle)

    def restore_config(self, handle: EntityHandle, blob: dict) -> bool:
        with self._lock:
            return self.lifecycle.restore_config(handle, blob)

    def add_partition(self, handle: EntityHandle, partition_id: int) -> bool:
        with self._lock:
            return self.lifecycle.add_partition(handle, partition_id)

    def remove_partition(self, handle: EntityHandle, partition_id: int) -> bool:
        with self._lock:
            return self.lifecycle.remove_partition(handle, partition_id)

    def set_hold_last_value(self, handle: EntityHandle, hold: bool) -> bool:
        with self._lock:
            return self.lifecycle.set_hold_last_value(handle, hold)

    def is_subscriber(self, handle: EntityHandle) -> bool:
        """True for a registered receiver or a ghost placeholder."""
        with self._lock:
            return self.context.registry.lookup(handle) is not None

    def known_partitions(self) -> list[dict]:
        """Partitions a receiver can subscribe to, with display names."""
        with self._lock:
            return [
                {"partition_id": pid, "name": self.host.partition_name(pid)}
                for pid in self.host.enumerate_known_partitions()
            ]

    def receivers(self) -> list[dict]:
        with self._lock:
            return [
                {
                    "handle": record.handle.key,
                    "platform_index": record.host_id,
                    "location": self.context.locations.get(record.host_id),
                    "configured_surfaces": sorted(record.partitions),
                    "hold_last_value": record.hold_last_value,
                }
                for record in self.context.registry.records()
            ]

    # -- Maintenance and diagnostics ---------------------------------------

    def validate_all(self) -> ValidationReport:
        with self._lock:
            return self.lifecycle.validate_all()

    def clear_all(self) -> int:
        with self._lock:
            return self.lifecycle.clear_all()

    def get_stats(self) -> dict:
        with self._lock:
            return diagnostics.get_stats(self.context)

    def dump_state(self) -> str:
        with self._lock:
            return diagnostics.dump_state(self.context, self.host)

    def subscriber_status(self, handle: EntityHandle) -> dict:
        with self._lock:
            return self.lifecycle.subscribers.status(handle)
