# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Unit tests for signal aggregation."""

from __future__ import annotations

import random

import pytest

from mission_control.network.aggregator import aggregate, aggregate_channels
from mission_control.signals import Channel, item, virtual

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_NAMES = ["iron-plate", "copper-plate", "steel-plate", "signal-A", "coal"]


def _random_set(rng: random.Random) -> dict:
    size = rng.randint(0, len(_NAMES))
    return {item(name): rng.randint(-1000, 1000) for name in rng.sample(_NAMES, size)}


class TestAggregate:
    def test_no_inputs_is_empty(self):
        assert aggregate([]) == {}

    def test_disjoint_union(self):
        result = aggregate([{item("iron-plate"): 10}, {item("copper-plate"): 20}, {virtual("signal-A"): 1}])
        assert result == {item("iron-plate"): 10, item("copper-plate"): 20, virtual("signal-A"): 1}

    def test_overlapping_identity_sums(self):
        x = item("iron-plate")
        assert aggregate([{x: 5}, {x: 7}, {x: 0}]) == {x: 12}

    def test_none_and_empty_skipped(self):
        x = item("iron-plate")
        assert aggregate([None, {}, {x: 3}]) == {x: 3}

    def test_negative_counts(self):
        x = item("iron-plate")
        assert aggregate([{x: 5}, {x: -8}]) == {x: -3}

    def test_no_clamping(self):
        x = item("iron-plate")
        assert aggregate([{x: 2 ** 31 - 1}, {x: 1}]) == {x: 2 ** 31}

    def test_inputs_not_mutated(self):
        first = {item("iron-plate"): 1}
        aggregate([first, {item("iron-plate"): 2}])
        assert first == {item("iron-plate"): 1}

    def test_order_independent(self):
        rng = random.Random(1234)
        for _ in range(50):
            sets = [_random_set(rng) for _ in range(rng.randint(0, 6))]
            expected = aggregate(sets)
            shuffled = list(sets)
            rng.shuffle(shuffled)
            assert aggregate(shuffled) == expected

    def test_associative(self):
        rng = random.Random(99)
        for _ in range(50):
            sets = [_random_set(rng) for _ in range(rng.randint(2, 6))]
            split = rng.randint(1, len(sets) - 1)
            nested = aggregate([aggregate(sets[:split]), aggregate(sets[split:])])
            assert nested == aggregate(sets)


class TestAggregateChannels:
    def test_channels_never_mix(self):
        iron, copper = item("iron-plate"), item("copper-plate")
        p1 = {Channel.RED: {iron: 10}, Channel.GREEN: None}
        p2 = {Channel.RED: {iron: 5}, Channel.GREEN: {copper: 20}}
        result = aggregate_channels([p1, p2])
        assert result[Channel.RED] == {iron: 15}
        assert result[Channel.GREEN] == {copper: 20}
        assert copper not in result[Channel.RED]
        assert iron not in result[Channel.GREEN]

    def test_no_readings(self):
        assert aggregate_channels([]) == {Channel.RED: {}, Channel.GREEN: {}}

    def test_missing_channel_key(self):
        result = aggregate_channels([{Channel.GREEN: {item("coal"): 2}}])
        assert result == {Channel.RED: {}, Channel.GREEN: {item("coal"): 2}}
