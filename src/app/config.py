# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Service settings, read from the environment or a .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "MISSION-CONTROL"
    debug: bool = False
    log_level: str = "INFO"

    # Relay timing, in game ticks.  The resync interval is also the
    # longest a cached platform location can be out of date.
    transmit_interval_ticks: int = Field(default=15, ge=1)
    resync_interval_ticks: int = Field(default=60, ge=1)
    ticks_per_second: int = Field(default=60, ge=1)

    # What a freshly built receiver starts with
    default_subscribe_all: bool = True
    default_hold_last_value: bool = True

    max_signal_slots: int = Field(default=1000, ge=1)


settings = Settings()
