"""
Vehicle endpoints
=================

GET   /api/v1/vehicles                       -- list (filter by status / type)
POST  /api/v1/vehicles                       -- register a vehicle
GET   /api/v1/vehicles/available             -- vehicles ready for dispatch
GET   /api/v1/vehicles/{vehicle_id}          -- fetch one
PATCH /api/v1/vehicles/{vehicle_id}          -- update mutable attributes
PATCH /api/v1/vehicles/{vehicle_id}/retire   -- take out of service
PATCH /api/v1/vehicles/{vehicle_id}/reactivate
PATCH /api/v1/vehicles/{vehicle_id}/status   -- administrative override
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from fleetflow.api.dependencies import get_vehicle_service
from fleetflow.api.middleware import limiter
from fleetflow.api.schemas import (
    VehicleCreateRequest,
    VehicleResponse,
    VehicleStatusRequest,
    VehicleUpdateRequest,
)
from fleetflow.config import settings
from fleetflow.domain.enums import VehicleStatus, VehicleType
from fleetflow.services.vehicles import VehicleService

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.get("", response_model=list[VehicleResponse], summary="List vehicles")
@limiter.limit(settings.rate_limit)
async def list_vehicles(
    request: Request,
    status: Optional[VehicleStatus] = None,
    type: Optional[VehicleType] = None,
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.list_vehicles(status=status, vehicle_type=type)


@router.post(
    "",
    status_code=201,
    response_model=VehicleResponse,
    summary="Register a vehicle",
)
@limiter.limit(settings.rate_limit)
async def create_vehicle(
    request: Request,
    body: VehicleCreateRequest,
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.create_vehicle(**body.model_dump())


@router.get(
    "/available",
    response_model=list[VehicleResponse],
    summary="List vehicles ready for dispatch",
)
@limiter.limit(settings.rate_limit)
async def list_available_vehicles(
    request: Request,
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.list_available()


@router.get("/{vehicle_id}", response_model=VehicleResponse, summary="Get a vehicle")
@limiter.limit(settings.rate_limit)
async def get_vehicle(
    request: Request,
    vehicle_id: int,
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.get_vehicle(vehicle_id)


@router.patch(
    "/{vehicle_id}",
    response_model=VehicleResponse,
    summary="Update a vehicle",
    description="Registration fields (plate, model, year, type) cannot change.",
)
@limiter.limit(settings.rate_limit)
async def update_vehicle(
    request: Request,
    vehicle_id: int,
    body: VehicleUpdateRequest,
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.update_vehicle(
        vehicle_id, **body.model_dump(exclude_unset=True, exclude_none=True)
    )


@router.patch(
    "/{vehicle_id}/retire",
    response_model=VehicleResponse,
    summary="Retire a vehicle",
    description=(
        "Refused while a trip is dispatched or a service log is open. "
        "Draft trips on the vehicle are cancelled."
    ),
)
@limiter.limit(settings.rate_limit)
async def retire_vehicle(
    request: Request,
    vehicle_id: int,
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.retire(vehicle_id)


@router.patch(
    "/{vehicle_id}/reactivate",
    response_model=VehicleResponse,
    summary="Return a retired vehicle to service",
)
@limiter.limit(settings.rate_limit)
async def reactivate_vehicle(
    request: Request,
    vehicle_id: int,
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.reactivate(vehicle_id)


@router.patch(
    "/{vehicle_id}/status",
    response_model=VehicleResponse,
    summary="Set vehicle status",
    description="Only RETIRED and AVAILABLE can be requested; the rest follow trips and maintenance.",
)
@limiter.limit(settings.rate_limit)
async def set_vehicle_status(
    request: Request,
    vehicle_id: int,
    body: VehicleStatusRequest,
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.set_status(vehicle_id, body.status)
