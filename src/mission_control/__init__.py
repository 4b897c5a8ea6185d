# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Mission Control — cross-surface circuit signal relay.

Towers on planet surfaces and receivers on space platforms exchange
red and green circuit signals.  Every tower on a surface sums into that
surface's uplink; every receiver parked over a surface it subscribes to
gets the sum, and the receivers parked there sum into the downlink.
"""

from mission_control.errors import MissionControlError, PartialRegistrationError
from mission_control.handles import EntityArena, EntityHandle
from mission_control.kinds import EntityKind
from mission_control.service import MissionControl
from mission_control.signals import Channel, SignalId

__all__ = [
    "Channel",
    "EntityArena",
    "EntityHandle",
    "EntityKind",
    "MissionControl",
    "MissionControlError",
    "PartialRegistrationError",
    "SignalId",
]
