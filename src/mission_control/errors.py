# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Exceptions raised inside the relay core.

Only registration failures are ever raised.  Stale handles, missing
configuration, and location drift are ordinary states handled in place.
"""

from __future__ import annotations


class MissionControlError(Exception):
    """Base class for relay core errors."""


class PartialRegistrationError(MissionControlError):
    """A relay entity could not be created or wired.

    Raised after rollback: whatever was created for the attempt has
    already been destroyed when this propagates.
    """

    def __init__(self, kind: str, entity: object, reason: str) -> None:
        super().__init__(f"{kind} {entity}: {reason}")
        self.kind = kind
        self.entity = entity
        self.reason = reason
