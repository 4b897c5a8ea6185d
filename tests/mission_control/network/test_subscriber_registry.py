# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Unit tests for SubscriberRegistry, SubscriberConfig, and the
real/placeholder subscriber variants."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from mission_control.handles import EntityHandle
from mission_control.network.registry import (
    PlaceholderSubscriber,
    RealSubscriber,
    SubscriberConfig,
    SubscriberRegistry,
)
from mission_control.signals import Channel, item

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

RECEIVER = EntityHandle(5)
GHOST = EntityHandle(6)


def _outputs(red: int = 20, green: int = 21) -> dict:
    return {Channel.RED: EntityHandle(red), Channel.GREEN: EntityHandle(green)}


class TestSubscriberConfig:
    def test_defaults(self):
        config = SubscriberConfig()
        assert config.partitions == []
        assert config.hold_last_value is False

    def test_partitions_deduped_and_sorted(self):
        assert SubscriberConfig(partitions=[3, 1, 3]).partitions == [1, 3]

    def test_rejects_bad_types(self):
        with pytest.raises(ValidationError):
            SubscriberConfig.model_validate({"partitions": "everywhere"})


class TestRegistration:
    def test_register_new(self):
        registry = SubscriberRegistry()
        record = registry.register(RECEIVER, 7, default_partitions=[1, 2], outputs=_outputs(), hold_last_value=True)
        assert isinstance(record, RealSubscriber)
        assert record.partitions == {1, 2}
        assert record.hold_last_value is True
        assert record.host_id == 7
        assert RECEIVER in registry
        assert registry.host_ids() == [7]

    def test_reregistration_preserves_custom_config(self):
        registry = SubscriberRegistry()
        registry.register(RECEIVER, 7, default_partitions=[1, 2])
        registry.set_config(RECEIVER, SubscriberConfig(partitions=[2], hold_last_value=True))

        record = registry.register(RECEIVER, 8, default_partitions=[1, 2, 3], hold_last_value=False)

        assert record.partitions == {2}
        assert record.hold_last_value is True
        assert record.host_id == 8

    def test_reregistration_keeps_held_cache(self):
        registry = SubscriberRegistry()
        record = registry.register(RECEIVER, 7)
        record.last_received[Channel.RED] = {item("iron-plate"): 4}
        registry.register(RECEIVER, 7, outputs=_outputs(30, 31))
        assert registry.get(RECEIVER).last_received[Channel.RED] == {item("iron-plate"): 4}
        assert registry.get(RECEIVER).outputs == _outputs(30, 31)

    def test_unregister(self):
        registry = SubscriberRegistry()
        registry.register(RECEIVER, 7)
        assert registry.unregister(RECEIVER).handle == RECEIVER
        assert registry.unregister(RECEIVER) is None
        assert len(registry) == 0

    def test_records_ordered(self):
        registry = SubscriberRegistry()
        for index in (9, 2, 5):
            registry.register(EntityHandle(index), 1)
        assert [r.handle.index for r in registry] == [2, 5, 9]


class TestConfiguration:
    def test_unknown_subscriber_reads_empty(self):
        registry = SubscriberRegistry()
        assert registry.get_config(RECEIVER) == SubscriberConfig()
        assert registry.set_config(RECEIVER, SubscriberConfig(partitions=[1])) is False
        assert registry.add_partition(RECEIVER, 1) is False

    def test_edit_operations(self):
        registry = SubscriberRegistry()
        registry.register(RECEIVER, 7, default_partitions=[1])
        registry.add_partition(RECEIVER, 4)
        registry.remove_partition(RECEIVER, 1)
        registry.set_hold_last_value(RECEIVER, True)
        assert registry.get_config(RECEIVER) == SubscriberConfig(partitions=[4], hold_last_value=True)
        registry.set_partitions(RECEIVER, [2, 3])
        assert registry.get_config(RECEIVER).partitions == [2, 3]

    def test_is_configured_for(self):
        record = RealSubscriber(handle=RECEIVER, host_id=1, partitions={3})
        assert record.is_configured_for(3)
        assert not record.is_configured_for(4)
        assert not record.is_configured_for(None)


class TestPlaceholders:
    def test_placeholder_uses_same_config_interface(self):
        registry = SubscriberRegistry()
        holder = registry.put_placeholder(GHOST, SubscriberConfig(partitions=[1], hold_last_value=True))
        assert isinstance(holder, PlaceholderSubscriber)
        assert registry.get_config(GHOST).partitions == [1]
        registry.add_partition(GHOST, 2)
        assert registry.get_config(GHOST).partitions == [1, 2]
        assert GHOST not in registry

    def test_pop(self):
        registry = SubscriberRegistry()
        registry.put_placeholder(GHOST, SubscriberConfig(partitions=[1]))
        assert registry.pop_placeholder(GHOST).partitions == {1}
        assert registry.pop_placeholder(GHOST) is None

    def test_real_record_wins_lookup(self):
        registry = SubscriberRegistry()
        registry.put_placeholder(RECEIVER, SubscriberConfig(partitions=[9]))
        registry.register(RECEIVER, 1, default_partitions=[1])
        assert registry.get_config(RECEIVER).partitions == [1]


class TestPersistence:
    def test_round_trip(self):
        registry = SubscriberRegistry()
        record = registry.register(RECEIVER, 7, default_partitions=[1, 2], outputs=_outputs(), hold_last_value=True)
        record.last_received[Channel.GREEN] = {item("coal"): 3}
        record.last_update = 30
        registry.put_placeholder(GHOST, SubscriberConfig(partitions=[2]))

        restored = SubscriberRegistry.from_dict(registry.to_dict())
        again = restored.get(RECEIVER)
        assert again.outputs == _outputs()
        assert again.partitions == {1, 2}
        assert again.hold_last_value is True
        assert again.last_received[Channel.GREEN] == {item("coal"): 3}
        assert again.last_update == 30
        assert restored.get_config(GHOST).partitions == [2]
