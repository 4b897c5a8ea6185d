# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Creation and release of the hidden relay-entity pair.

Towers and receivers both get one relay entity per channel, wired only
to the visible entity's output connector of that channel.  Creation is
all-or-nothing: if either relay cannot be created or wired, everything
made for the attempt is destroyed before PartialRegistrationError is
raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from mission_control.errors import PartialRegistrationError
from mission_control.signals import CHANNELS, Channel

if TYPE_CHECKING:
    from mission_control.handles import EntityHandle
    from mission_control.host.base import CircuitHost


def create_relay_pair(host: CircuitHost, visible: EntityHandle, kind: str) -> dict[Channel, EntityHandle]:
    """Create and wire one relay per channel for *visible*."""
    created: dict[Channel, EntityHandle] = {}
    for ch in CHANNELS:
        relay = host.create_relay_entity(visible)
        if relay is None:
            release_relays(host, created)
            raise PartialRegistrationError(kind, visible, f"could not create {ch.value} relay entity")
        created[ch] = relay
    for ch, relay in created.items():
        if not host.connect_channel(relay, visible, ch):
            release_relays(host, created)
            raise PartialRegistrationError(kind, visible, f"could not wire {ch.value} relay entity")
    logger.debug(
        f"{kind} {visible}: relays red={created[Channel.RED]} green={created[Channel.GREEN]}"
    )
    return created


def release_relays(host: CircuitHost, outputs: dict[Channel, EntityHandle] | None) -> int:
    """Destroy whichever of *outputs* still exist.  Returns how many were destroyed."""
    destroyed = 0
    for relay in (outputs or {}).values():
        if relay is not None and host.is_valid(relay) and host.destroy_entity(relay):
            destroyed += 1
    return destroyed


def relays_intact(host: CircuitHost, outputs: dict[Channel, EntityHandle] | None) -> bool:
    """True when *outputs* has a live relay for every channel."""
    if not outputs:
        return False
    return all(host.is_valid(outputs.get(ch)) for ch in CHANNELS)
