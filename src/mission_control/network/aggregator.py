# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Signal aggregation: sum many SignalSets into one.

Pure functions, no stored state.  For every identity present in any input
set the result holds the sum of its counts across all sets; a missing
identity counts as 0.  Integer addition makes the result independent of
input order.  No clamping happens here: the host applies its own integer
range when the sum is written.
"""

from __future__ import annotations

from typing import Iterable

from mission_control.signals import CHANNELS, Channel, SignalSet


def aggregate(signal_sets: Iterable[SignalSet | None]) -> SignalSet:
    """Sum *signal_sets*.  ``None`` entries (unwired inputs) contribute nothing."""
    total: SignalSet = {}
    for signals in signal_sets:
        if not signals:
            continue
        for sig, count in signals.items():
            total[sig] = total.get(sig, 0) + count
    return total


def aggregate_channels(
    readings: Iterable[dict[Channel, SignalSet | None]],
) -> dict[Channel, SignalSet]:
    """Aggregate per-participant channel readings, one sum per channel.

    Each reading maps Channel -> SignalSet.  Channel A of one participant is
    only ever summed with channel A of the others.
    """
    per_channel: dict[Channel, list[SignalSet | None]] = {ch: [] for ch in CHANNELS}
    for reading in readings:
        for ch in CHANNELS:
            per_channel[ch].append(reading.get(ch))
    return {ch: aggregate(per_channel[ch]) for ch in CHANNELS}
