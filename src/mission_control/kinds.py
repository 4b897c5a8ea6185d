# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Entity kinds the relay manages, and prototype-name resolution.

Names are resolved to an EntityKind once, when an entity is first seen.
Everything after that dispatches on the enum.
"""

from __future__ import annotations

from enum import Enum

TOWER_ENTITY_NAME = "mission-control-tower"
RECEIVER_ENTITY_NAME = "receiver-combinator"


class EntityKind(str, Enum):
    PRODUCER = "producer"
    SUBSCRIBER = "subscriber"


_BY_NAME: dict[str, EntityKind] = {
    TOWER_ENTITY_NAME: EntityKind.PRODUCER,
    RECEIVER_ENTITY_NAME: EntityKind.SUBSCRIBER,
}


def kind_for_name(name: str | None) -> EntityKind | None:
    """EntityKind for a prototype name, or None for entities we ignore."""
    if name is None:
        return None
    return _BY_NAME.get(name)
