# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""FastAPI application factory and logging setup.

Run headless against the in-memory host with:

    uvicorn app.main:create_app --factory
"""

from __future__ import annotations

import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from app.config import Settings, settings
from app.routers import mission_control_router
from mission_control.host.memory import InMemoryHost
from mission_control.service import MissionControl

LOG_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with a single stderr sink at *level*."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)


def create_app(
    service: MissionControl | None = None,
    app_settings: Settings | None = None,
) -> FastAPI:
    """Build the HTTP app around *service*.

    Without a service, a headless one is built over an InMemoryHost and
    its background tick loop runs for the lifetime of the app.
    """
    cfg = app_settings or settings
    configure_logging("DEBUG" if cfg.debug else cfg.log_level)

    owned = service is None
    if service is None:
        service = MissionControl.from_settings(InMemoryHost(max_slots=cfg.max_signal_slots), cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if owned:
            service.start()
        try:
            yield
        finally:
            if owned:
                service.stop()

    app = FastAPI(title=cfg.app_name, lifespan=lifespan)
    app.state.mission_control = service
    app.include_router(mission_control_router)
    logger.info(f"{cfg.app_name} ready")
    return app
