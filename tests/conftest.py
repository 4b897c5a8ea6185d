# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Root conftest — shared in-memory worlds for relay tests."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from mission_control.host.memory import InMemoryHost
from mission_control.lifecycle.manager import LifecycleManager
from mission_control.lifecycle.subscribers import SubscriberDefaults
from mission_control.network.context import NetworkContext
from mission_control.network.relay import RelayEngine


@dataclass
class World:
    """Two planets and one platform parked over the first."""

    host: InMemoryHost
    context: NetworkContext
    relay: RelayEngine
    lifecycle: LifecycleManager
    nauvis: int
    vulcanus: int
    platform: int


def make_world(hold_last_value: bool = True, subscribe_all: bool = True) -> World:
    host = InMemoryHost()
    nauvis = host.add_planet("nauvis")
    vulcanus = host.add_planet("vulcanus")
    platform = host.add_platform("alpha", location=nauvis)
    context = NetworkContext()
    relay = RelayEngine(context, host)
    lifecycle = LifecycleManager(
        context,
        host,
        relay,
        SubscriberDefaults(subscribe_all=subscribe_all, hold_last_value=hold_last_value),
    )
    return World(host, context, relay, lifecycle, nauvis, vulcanus, platform)


@pytest.fixture
def world() -> World:
    return make_world()


@pytest.fixture
def host() -> InMemoryHost:
    return InMemoryHost()


@pytest.fixture
def world_factory():
    """make_world, for tests that need non-default receiver defaults."""
    return make_world
