# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Signal identities, signal sets, and the two wire channels.

A SignalSet maps a SignalId (type + name + quality) to an integer count.
Channels are the two wire colours.  Nothing in this package ever moves a
signal from one channel to the other: every per-channel structure is keyed
by Channel and every read/write names exactly one channel.

Host-native integer behaviour (signed 32-bit wrap-around, slot limits on a
relay entity) lives here so the in-memory host and the reporting code agree
on it.  Aggregation itself never clamps; see network.aggregator.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

# Slots in one constant-combinator section.
MAX_SIGNAL_SLOTS = 1000


class Channel(str, Enum):
    """Wire colour.  Each one is an independent signal namespace."""

    RED = "red"
    GREEN = "green"


CHANNELS: tuple[Channel, ...] = (Channel.RED, Channel.GREEN)


@dataclass(frozen=True, order=True)
class SignalId:
    """Identity of one signal: type, name, and quality."""

    type: str = "item"
    name: str = ""
    quality: str = "normal"

    def to_dict(self) -> dict:
        return {"type": self.type, "name": self.name, "quality": self.quality}

    @classmethod
    def from_dict(cls, data: dict) -> SignalId:
        return cls(
            type=data.get("type") or "item",
            name=data["name"],
            quality=data.get("quality") or "normal",
        )

    def __str__(self) -> str:
        if self.quality == "normal":
            return f"{self.type}/{self.name}"
        return f"{self.type}/{self.name}@{self.quality}"


SignalSet = dict[SignalId, int]


def item(name: str, quality: str = "normal") -> SignalId:
    """Shorthand for an item signal."""
    return SignalId("item", name, quality)


def virtual(name: str) -> SignalId:
    """Shorthand for a virtual signal (signal-A, signal-check, ...)."""
    return SignalId("virtual", name)


def empty_channels() -> dict[Channel, SignalSet]:
    """A fresh per-channel mapping with an empty SignalSet on each channel."""
    return {ch: {} for ch in CHANNELS}


def to_int32(value: int) -> int:
    """Wrap *value* into the signed 32-bit range, the way the host does."""
    return ((int(value) - INT32_MIN) % 2 ** 32) + INT32_MIN


def count_signals(signals: SignalSet | None) -> int:
    """Number of distinct signal identities in *signals*."""
    if not signals:
        return 0
    return len(signals)


def to_slots(signals: SignalSet | None, limit: int = MAX_SIGNAL_SLOTS) -> list[tuple[SignalId, int]]:
    """Lay *signals* out as relay-entity slots.

    Slots are sorted by identity so the same set always produces the same
    layout.  Anything past *limit* is dropped.
    """
    if not signals:
        return []
    ordered = sorted(signals.items())
    return ordered[:limit]


def signal_set_to_list(signals: SignalSet | None) -> list[dict]:
    """JSON-safe form: ``[{"signal": {...}, "count": n}, ...]`` sorted by identity."""
    return [
        {"signal": sig.to_dict(), "count": count}
        for sig, count in to_slots(signals, limit=len(signals or {}))
    ]


def signal_set_from_list(entries: Iterable[dict] | None) -> SignalSet:
    """Inverse of signal_set_to_list.  Repeated identities are summed."""
    result: SignalSet = {}
    for entry in entries or ():
        sig = SignalId.from_dict(entry["signal"])
        result[sig] = result.get(sig, 0) + int(entry["count"])
    return result


def format_signal_set(signals: SignalSet | None, max_items: int = 8) -> str:
    """Short human-readable rendering used by dump reports."""
    if not signals:
        return "(none)"
    parts = [f"{sig}={count}" for sig, count in sorted(signals.items())[:max_items]]
    extra = len(signals) - max_items
    if extra > 0:
        parts.append(f"... +{extra} more")
    return ", ".join(parts)
