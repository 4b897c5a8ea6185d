# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Mission Control API -- diagnostics, maintenance, receiver configuration."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from mission_control.handles import EntityHandle
from mission_control.network.registry import SubscriberConfig

router = APIRouter(prefix="/api/mission-control", tags=["mission-control"])


class HoldRequest(BaseModel):
    hold_last_value: bool


def _get_service(request: Request):
    """Retrieve the MissionControl service from app state."""
    service = getattr(request.app.state, "mission_control", None)
    if service is None:
        raise HTTPException(503, "Mission Control not available")
    return service


def _get_receiver(service, key: str) -> EntityHandle:
    """Parse a receiver key and make sure the receiver is known."""
    try:
        handle = EntityHandle.parse(key)
    except ValueError:
        raise HTTPException(404, f"Unknown receiver: {key}")
    if not service.is_subscriber(handle):
        raise HTTPException(404, f"Unknown receiver: {key}")
    return handle


# --- Diagnostics and maintenance ---

@router.get("/stats")
async def get_stats(request: Request):
    """Surface, tower, receiver and platform counts."""
    return _get_service(request).get_stats()


@router.get("/dump", response_class=PlainTextResponse)
async def dump_state(request: Request):
    """Human-readable dump of every surface, receiver and platform."""
    return _get_service(request).dump_state()


@router.post("/validate")
async def validate_all(request: Request):
    """Clean up orphaned entries and repair broken relays."""
    report = _get_service(request).validate_all()
    return report.to_dict()


@router.post("/update")
async def update_now(request: Request):
    """Run one relay pass now."""
    stats = _get_service(request).update_now()
    return stats.to_dict()


@router.post("/clear")
async def clear_all(request: Request):
    """Destroy all relay entities and forget all state."""
    destroyed = _get_service(request).clear_all()
    return {"status": "cleared", "relays_destroyed": destroyed}


@router.get("/partitions")
async def list_partitions(request: Request):
    """Surfaces a receiver can subscribe to."""
    partitions = _get_service(request).known_partitions()
    return {"partitions": partitions, "count": len(partitions)}


# --- Receivers ---

@router.get("/receivers")
async def list_receivers(request: Request):
    receivers = _get_service(request).receivers()
    return {"receivers": receivers, "count": len(receivers)}


@router.get("/receivers/{key}/status")
async def receiver_status(key: str, request: Request):
    service = _get_service(request)
    handle = _get_receiver(service, key)
    return service.subscriber_status(handle)


@router.get("/receivers/{key}/config")
async def get_receiver_config(key: str, request: Request):
    service = _get_service(request)
    handle = _get_receiver(service, key)
    return service.get_subscriber_config(handle).model_dump()


@router.put("/receivers/{key}/config")
async def put_receiver_config(key: str, config: SubscriberConfig, request: Request):
    """Replace a receiver's configured surfaces and hold flag."""
    service = _get_service(request)
    handle = _get_receiver(service, key)
    service.set_subscriber_config(handle, config)
    return service.get_subscriber_config(handle).model_dump()


@router.post("/receivers/{key}/partitions/{partition_id}")
async def add_receiver_partition(key: str, partition_id: int, request: Request):
    service = _get_service(request)
    handle = _get_receiver(service, key)
    service.add_partition(handle, partition_id)
    return service.get_subscriber_config(handle).model_dump()


@router.delete("/receivers/{key}/partitions/{partition_id}")
async def remove_receiver_partition(key: str, partition_id: int, request: Request):
    service = _get_service(request)
    handle = _get_receiver(service, key)
    service.remove_partition(handle, partition_id)
    return service.get_subscriber_config(handle).model_dump()


@router.put("/receivers/{key}/hold")
async def set_receiver_hold(key: str, body: HoldRequest, request: Request):
    service = _get_service(request)
    handle = _get_receiver(service, key)
    service.set_hold_last_value(handle, body.hold_last_value)
    return service.get_subscriber_config(handle).model_dump()
