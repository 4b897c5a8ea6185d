# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Unit tests for receiver ghosts, config blobs, and status reports."""

from __future__ import annotations

import pytest

from mission_control.kinds import RECEIVER_ENTITY_NAME
from mission_control.lifecycle.subscribers import CONFIG_TAG
from mission_control.network.registry import SubscriberConfig

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _ghost(world, config: dict | None = None):
    tags = {CONFIG_TAG: config} if config is not None else None
    return world.host.place_ghost(
        RECEIVER_ENTITY_NAME, world.host.platform_surface(world.platform), tags
    )


def _built_receiver(world):
    handle = world.host.build_on_platform(RECEIVER_ENTITY_NAME, world.platform)
    world.lifecycle.on_entity_built(handle)
    return handle


class TestGhosts:
    def test_ghost_not_registered_but_config_kept(self, world):
        ghost = _ghost(world, {"partitions": [world.vulcanus], "hold_last_value": False})
        assert world.lifecycle.on_entity_built(ghost, tags=world.host.ghost_tags(ghost)) is None
        assert ghost not in world.context.registry
        assert world.host.relay_count() == 0
        assert world.lifecycle.get_subscriber_config(ghost).partitions == [world.vulcanus]

    def test_ghost_without_tags_ignored(self, world):
        ghost = _ghost(world)
        assert world.lifecycle.on_entity_built(ghost) is None
        assert world.context.registry.placeholders() == []

    def test_revive_restores_config_from_tags(self, world):
        ghost = _ghost(world, {"partitions": [world.vulcanus], "hold_last_value": False})
        real, tags = world.host.revive(ghost)
        assert world.lifecycle.on_entity_built(real, tags=tags) == real
        config = world.lifecycle.get_subscriber_config(real)
        assert config == SubscriberConfig(partitions=[world.vulcanus], hold_last_value=False)

    def test_revive_restores_config_from_placeholder(self, world):
        ghost = _ghost(world, {"partitions": [world.vulcanus], "hold_last_value": False})
        world.lifecycle.on_entity_built(ghost, tags=world.host.ghost_tags(ghost))
        world.lifecycle.add_partition(ghost, world.nauvis)
        real, _ = world.host.revive(ghost)

        world.lifecycle.on_entity_built(real, revived_from=ghost)

        assert world.lifecycle.get_subscriber_config(real).partitions == [world.nauvis, world.vulcanus]
        assert world.context.registry.placeholders() == []

    def test_restore_config_onto_ghost(self, world):
        ghost = _ghost(world)
        assert world.lifecycle.restore_config(ghost, {"partitions": [1], "hold_last_value": True})
        assert world.lifecycle.serialize_config(ghost) == {"partitions": [1], "hold_last_value": True}

    def test_destroyed_ghost_drops_placeholder(self, world):
        ghost = _ghost(world, {"partitions": [1]})
        world.lifecycle.on_entity_built(ghost, tags=world.host.ghost_tags(ghost))
        assert world.lifecycle.on_entity_destroyed(ghost) is True
        assert world.context.registry.placeholders() == []

    def test_validate_drops_stale_placeholders(self, world):
        ghost = _ghost(world, {"partitions": [1]})
        world.lifecycle.on_entity_built(ghost, tags=world.host.ghost_tags(ghost))
        world.host.destroy_entity(ghost)
        assert world.lifecycle.validate_all().stale_placeholders == 1


class TestConfigBlobs:
    def test_serialize_restore_between_receivers(self, world):
        source = _built_receiver(world)
        dest = _built_receiver(world)
        world.lifecycle.set_subscriber_config(source, SubscriberConfig(partitions=[world.vulcanus]))
        blob = world.lifecycle.serialize_config(source)
        assert world.lifecycle.restore_config(dest, blob)
        assert world.lifecycle.get_subscriber_config(dest).partitions == [world.vulcanus]

    def test_malformed_blob_ignored(self, world):
        receiver = _built_receiver(world)
        before = world.lifecycle.get_subscriber_config(receiver)
        assert world.lifecycle.restore_config(receiver, {"partitions": "all"}) is False
        assert world.lifecycle.get_subscriber_config(receiver) == before

    def test_unknown_target(self, world):
        other = world.host.build("stone-furnace", world.nauvis)
        assert world.lifecycle.restore_config(other, {"partitions": [1]}) is False
        assert world.lifecycle.serialize_config(other) is None


class TestStatus:
    def test_receiving(self, world):
        receiver = _built_receiver(world)
        status = world.lifecycle.subscribers.status(receiver)
        assert status["location"] == "nauvis"
        assert status["receiving"] is True
        assert status["platform_index"] == world.platform
        assert status["configured_surfaces"] == [world.nauvis, world.vulcanus]

    def test_in_transit(self, world):
        receiver = _built_receiver(world)
        world.lifecycle.on_host_relocated(world.platform, None)
        status = world.lifecycle.subscribers.status(receiver)
        assert status["location"] == "In transit"
        assert status["receiving"] is False

    def test_errors(self, world):
        receiver = world.host.build_on_platform(RECEIVER_ENTITY_NAME, world.platform)
        assert world.lifecycle.subscribers.status(receiver) == {"error": "Not registered"}
        world.lifecycle.on_entity_built(receiver)
        world.host.remove_platform(world.platform)
        assert world.lifecycle.subscribers.status(receiver) == {"error": "Invalid entity"}
