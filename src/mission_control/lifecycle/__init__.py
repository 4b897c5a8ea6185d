# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Entity lifecycle: relay creation, registration, teardown, validation."""

from mission_control.lifecycle.manager import LifecycleManager, ValidationReport
from mission_control.lifecycle.producers import ProducerLifecycle
from mission_control.lifecycle.relays import create_relay_pair, release_relays, relays_intact
from mission_control.lifecycle.subscribers import (
    CONFIG_TAG,
    SubscriberDefaults,
    SubscriberLifecycle,
)

__all__ = [
    "CONFIG_TAG",
    "LifecycleManager",
    "ProducerLifecycle",
    "SubscriberDefaults",
    "SubscriberLifecycle",
    "ValidationReport",
    "create_relay_pair",
    "release_relays",
    "relays_intact",
]
