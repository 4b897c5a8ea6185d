# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Diagnostics -- on-demand counts and a human-readable state dump.

Nothing here is pushed proactively.  Operators (or the HTTP surface) ask
for get_stats() or dump_state() when a receiver stays silent and they
want to know why.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mission_control.signals import CHANNELS, format_signal_set

if TYPE_CHECKING:
    from mission_control.host.base import CircuitHost
    from mission_control.network.context import NetworkContext


def get_stats(context: NetworkContext) -> dict:
    """Partition, tower, receiver and platform counts."""
    return {
        "partition_count": len(context.directory),
        "producer_count": context.directory.producer_count(),
        "subscriber_count": len(context.registry),
        "host_count": len(context.locations),
    }


def _partition_label(host: CircuitHost, partition_id: int | None) -> str:
    if partition_id is None:
        return "in transit"
    name = host.partition_name(partition_id)
    return f"{partition_id} ({name or 'INVALID'})"


def dump_state(context: NetworkContext, host: CircuitHost) -> str:
    """Multi-line report of every partition, receiver and location record."""
    stats = get_stats(context)
    lines = [
        f"[Mission Control] tick {context.tick}",
        f"  Surfaces: {stats['partition_count']}",
        f"  Towers: {stats['producer_count']}",
        f"  Receivers: {stats['subscriber_count']}",
        f"  Platforms: {stats['host_count']}",
        "",
        "Partitions:",
    ]

    for part in context.directory.partitions():
        lines.append(f"  Surface {_partition_label(host, part.partition_id)}:")
        lines.append(
            "    Towers: "
            + (", ".join(str(h) for h in sorted(part.producers)) or "none")
        )
        for ch in CHANNELS:
            relays = sorted(part.relay_outputs[ch])
            lines.append(f"    {ch.value} relays: {len(relays)}")
        for ch in CHANNELS:
            lines.append(f"    uplink {ch.value}: {format_signal_set(part.cached_input[ch])}")
            lines.append(f"    downlink {ch.value}: {format_signal_set(part.cached_output[ch])}")
        lines.append(f"    Last update: tick {part.last_update}")

    lines.append("")
    lines.append("Receivers:")
    for record in context.registry.records():
        lines.append(f"  Receiver {record.handle}:")
        lines.append(f"    Entity valid: {'YES' if host.is_valid(record.handle) else 'NO'}")
        lines.append(f"    Platform index: {record.host_id}")
        lines.append(
            f"    Location: {_partition_label(host, context.locations.get(record.host_id))}"
        )
        if record.partitions:
            lines.append(f"    Configured surfaces: {len(record.partitions)}")
            for partition_id in sorted(record.partitions):
                lines.append(f"      - Surface {_partition_label(host, partition_id)}")
        else:
            lines.append("    Configured surfaces: NONE (receiver will not communicate!)")
        lines.append(f"    Hold signal in transit: {'YES' if record.hold_last_value else 'NO'}")

    placeholders = context.registry.placeholders()
    if placeholders:
        lines.append("")
        lines.append("Ghost receivers:")
        for holder in placeholders:
            lines.append(
                f"  Ghost {holder.handle}: surfaces {sorted(holder.partitions)}, "
                f"hold {'YES' if holder.hold_last_value else 'NO'}"
            )

    lines.append("")
    lines.append("Platform locations:")
    for host_id in context.locations.host_ids():
        record = context.locations.record(host_id)
        lines.append(
            f"  Platform {host_id}: {_partition_label(host, record.partition_id)} "
            f"(checked at tick {record.last_check})"
        )
    return "\n".join(lines)
