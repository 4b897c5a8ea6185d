# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Host boundary: the CircuitHost protocol and an in-memory implementation."""

from mission_control.host.base import CircuitHost
from mission_control.host.memory import InMemoryHost, RELAY_ENTITY_NAME

__all__ = ["CircuitHost", "InMemoryHost", "RELAY_ENTITY_NAME"]
