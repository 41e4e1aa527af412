"""
Maintenance endpoints
=====================

GET   /api/v1/maintenance                   -- list service logs
POST  /api/v1/maintenance                   -- open a log (vehicle -> IN_SHOP)
PATCH /api/v1/maintenance/{log_id}/complete -- close a log (vehicle -> AVAILABLE)
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from fleetflow.api.dependencies import get_maintenance_service
from fleetflow.api.middleware import limiter
from fleetflow.api.schemas import (
    MaintenanceCompleteRequest,
    MaintenanceCreateRequest,
    MaintenanceLogResponse,
)
from fleetflow.config import settings
from fleetflow.domain.enums import MaintenanceStatus
from fleetflow.services.maintenance import MaintenanceService

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.get("", response_model=list[MaintenanceLogResponse], summary="List service logs")
@limiter.limit(settings.rate_limit)
async def list_service_logs(
    request: Request,
    vehicle_id: Optional[int] = None,
    status: Optional[MaintenanceStatus] = None,
    service: MaintenanceService = Depends(get_maintenance_service),
):
    return await service.list_service_logs(vehicle_id=vehicle_id, status=status)


@router.post(
    "",
    status_code=201,
    response_model=MaintenanceLogResponse,
    summary="Open a service log",
    description="Rejections: OPEN_LOG_EXISTS, VEHICLE_ON_TRIP, VEHICLE_NOT_AVAILABLE.",
)
@limiter.limit(settings.rate_limit)
async def open_service_log(
    request: Request,
    body: MaintenanceCreateRequest,
    service: MaintenanceService = Depends(get_maintenance_service),
):
    data = body.model_dump()
    return await service.open_service_log(data.pop("vehicle_id"), **data)


@router.patch(
    "/{log_id}/complete",
    response_model=MaintenanceLogResponse,
    summary="Complete a service log",
)
@limiter.limit(settings.rate_limit)
async def complete_service_log(
    request: Request,
    log_id: int,
    body: MaintenanceCompleteRequest,
    service: MaintenanceService = Depends(get_maintenance_service),
):
    return await service.complete_service_log(
        log_id, body.completed_date, body.final_cost
    )
