# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Unit tests for signal identities, int32 wrap, slot layout, and the
JSON-safe list form used by snapshots."""

from __future__ import annotations

import pytest

from mission_control.signals import (
    CHANNELS,
    INT32_MAX,
    INT32_MIN,
    Channel,
    SignalId,
    count_signals,
    empty_channels,
    format_signal_set,
    item,
    signal_set_from_list,
    signal_set_to_list,
    to_int32,
    to_slots,
    virtual,
)

pytestmark = pytest.mark.unit


class TestSignalId:
    def test_defaults(self):
        sig = SignalId(name="iron-plate")
        assert sig.type == "item"
        assert sig.quality == "normal"

    def test_shorthands(self):
        assert item("copper-plate") == SignalId("item", "copper-plate", "normal")
        assert virtual("signal-A") == SignalId("virtual", "signal-A", "normal")

    def test_quality_is_part_of_identity(self):
        assert item("iron-plate") != item("iron-plate", "rare")

    def test_hashable_as_dict_key(self):
        signals = {item("iron-plate"): 1}
        signals[item("iron-plate")] += 4
        assert signals == {item("iron-plate"): 5}

    def test_dict_round_trip_fills_defaults(self):
        sig = SignalId.from_dict({"name": "iron-plate"})
        assert sig == item("iron-plate")
        assert SignalId.from_dict(virtual("signal-A").to_dict()) == virtual("signal-A")

    def test_str(self):
        assert str(item("iron-plate")) == "item/iron-plate"
        assert str(item("iron-plate", "rare")) == "item/iron-plate@rare"


class TestChannels:
    def test_two_channels(self):
        assert CHANNELS == (Channel.RED, Channel.GREEN)
        assert Channel("red") is Channel.RED

    def test_empty_channels_are_independent(self):
        channels = empty_channels()
        channels[Channel.RED][item("iron-plate")] = 1
        assert channels[Channel.GREEN] == {}
        assert empty_channels()[Channel.RED] == {}


class TestInt32:
    def test_in_range_unchanged(self):
        assert to_int32(12) == 12
        assert to_int32(-5) == -5

    def test_wraps_overflow(self):
        assert to_int32(INT32_MAX + 1) == INT32_MIN
        assert to_int32(INT32_MIN - 1) == INT32_MAX


class TestSlots:
    def test_sorted_and_truncated(self):
        signals = {item("c"): 3, item("a"): 1, item("b"): 2}
        assert to_slots(signals) == [(item("a"), 1), (item("b"), 2), (item("c"), 3)]
        assert to_slots(signals, limit=2) == [(item("a"), 1), (item("b"), 2)]

    def test_empty(self):
        assert to_slots(None) == []
        assert to_slots({}) == []

    def test_count_signals(self):
        assert count_signals(None) == 0
        assert count_signals({item("a"): 0, item("b"): 1}) == 2


class TestListForm:
    def test_round_trip(self):
        signals = {item("iron-plate"): 10, virtual("signal-A"): -3}
        assert signal_set_from_list(signal_set_to_list(signals)) == signals

    def test_repeats_are_summed(self):
        entry = {"signal": item("iron-plate").to_dict(), "count": 2}
        assert signal_set_from_list([entry, entry]) == {item("iron-plate"): 4}

    def test_none_is_empty(self):
        assert signal_set_to_list(None) == []
        assert signal_set_from_list(None) == {}


class TestFormat:
    def test_none(self):
        assert format_signal_set({}) == "(none)"

    def test_truncates(self):
        signals = {item(f"s{i}"): i for i in range(10)}
        text = format_signal_set(signals, max_items=3)
        assert text.startswith("item/s0=0, item/s1=1, item/s2=2")
        assert text.endswith("+7 more")
