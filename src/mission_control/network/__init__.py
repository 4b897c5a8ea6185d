# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Relay network core: directory, registry, location cache, aggregation, relay."""

from mission_control.network.aggregator import aggregate, aggregate_channels
from mission_control.network.context import NetworkContext
from mission_control.network.directory import Partition, PartitionDirectory
from mission_control.network.location import LocationRecord, LocationResolver
from mission_control.network.registry import (
    PlaceholderSubscriber,
    RealSubscriber,
    SubscriberConfig,
    SubscriberRegistry,
)
from mission_control.network.relay import PassStats, RelayEngine, ResyncStats

__all__ = [
    "aggregate",
    "aggregate_channels",
    "NetworkContext",
    "Partition",
    "PartitionDirectory",
    "LocationRecord",
    "LocationResolver",
    "PlaceholderSubscriber",
    "RealSubscriber",
    "SubscriberConfig",
    "SubscriberRegistry",
    "PassStats",
    "RelayEngine",
    "ResyncStats",
]
