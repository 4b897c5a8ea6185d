# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Unit tests for relay-pair creation and rollback."""

from __future__ import annotations

import pytest

from mission_control.errors import PartialRegistrationError
from mission_control.host.memory import InMemoryHost
from mission_control.kinds import TOWER_ENTITY_NAME
from mission_control.lifecycle.relays import create_relay_pair, release_relays, relays_intact
from mission_control.signals import Channel, item

pytestmark = pytest.mark.unit


def _setup():
    host = InMemoryHost()
    nauvis = host.add_planet("nauvis")
    tower = host.build(TOWER_ENTITY_NAME, nauvis)
    return host, tower


class TestCreateRelayPair:
    def test_one_relay_per_channel_wired_to_its_channel(self):
        host, tower = _setup()
        outputs = create_relay_pair(host, tower, "tower")
        assert set(outputs) == {Channel.RED, Channel.GREEN}
        assert outputs[Channel.RED] != outputs[Channel.GREEN]
        host.write_channel_signals(outputs[Channel.RED], {item("iron-plate"): 1})
        assert host.output_of(tower, Channel.RED) == {item("iron-plate"): 1}
        assert host.output_of(tower, Channel.GREEN) == {}

    def test_second_creation_fails_rolls_back(self):
        host, tower = _setup()
        host.relay_creation_budget = 1
        with pytest.raises(PartialRegistrationError) as info:
            create_relay_pair(host, tower, "tower")
        assert host.relay_count() == 0
        assert info.value.kind == "tower"
        assert info.value.entity == tower

    def test_first_creation_fails(self):
        host, tower = _setup()
        host.relay_creation_budget = 0
        with pytest.raises(PartialRegistrationError):
            create_relay_pair(host, tower, "tower")
        assert host.relay_count() == 0

    def test_wiring_failure_rolls_back(self):
        host, tower = _setup()
        host.fail_connections = True
        with pytest.raises(PartialRegistrationError, match="could not wire"):
            create_relay_pair(host, tower, "tower")
        assert host.relay_count() == 0


class TestRelease:
    def test_release_skips_already_gone(self):
        host, tower = _setup()
        outputs = create_relay_pair(host, tower, "tower")
        host.destroy_entity(outputs[Channel.RED])
        assert release_relays(host, outputs) == 1
        assert host.relay_count() == 0

    def test_release_none(self):
        host, _ = _setup()
        assert release_relays(host, None) == 0

    def test_relays_intact(self):
        host, tower = _setup()
        outputs = create_relay_pair(host, tower, "tower")
        assert relays_intact(host, outputs)
        host.destroy_entity(outputs[Channel.GREEN])
        assert not relays_intact(host, outputs)
        assert not relays_intact(host, None)
        assert not relays_intact(host, {Channel.RED: outputs[Channel.RED]})
