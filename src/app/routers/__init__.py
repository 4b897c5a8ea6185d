# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""API routers for MISSION-CONTROL."""

from app.routers.mission_control import router as mission_control_router

__all__ = ["mission_control_router"]
