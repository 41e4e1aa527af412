"""
Trip endpoints
==============

GET   /api/v1/trips                      -- list (filter by status / vehicle / driver)
POST  /api/v1/trips                      -- create a trip (DISPATCHED unless DRAFT asked)
GET   /api/v1/trips/{trip_id}            -- fetch one
PATCH /api/v1/trips/{trip_id}/status     -- generic transition
PATCH /api/v1/trips/{trip_id}/dispatch   -- promote a draft
PATCH /api/v1/trips/{trip_id}/complete   -- close with the final odometer
PATCH /api/v1/trips/{trip_id}/cancel     -- cancel a draft or dispatched trip
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from fleetflow.api.dependencies import get_trip_service
from fleetflow.api.middleware import limiter
from fleetflow.api.schemas import (
    TripCompleteRequest,
    TripCreateRequest,
    TripResponse,
    TripStatusRequest,
)
from fleetflow.config import settings
from fleetflow.domain.enums import TripStatus
from fleetflow.services.trips import TripService

router = APIRouter(prefix="/trips", tags=["trips"])


@router.get("", response_model=list[TripResponse], summary="List trips")
@limiter.limit(settings.rate_limit)
async def list_trips(
    request: Request,
    status: Optional[TripStatus] = None,
    vehicle_id: Optional[int] = None,
    driver_id: Optional[int] = None,
    service: TripService = Depends(get_trip_service),
):
    return await service.list_trips(
        status=status, vehicle_id=vehicle_id, driver_id=driver_id
    )


@router.post(
    "",
    status_code=201,
    response_model=TripResponse,
    summary="Create a trip",
    description=(
        "Dispatching claims the vehicle (ON_TRIP) and the driver (OFF_DUTY) "
        "in one transaction. Rejections: VEHICLE_NOT_AVAILABLE, "
        "VEHICLE_OVERLOADED, DRIVER_NOT_READY, LICENSE_EXPIRED, "
        "DRIVER_NOT_AUTHORIZED."
    ),
)
@limiter.limit(settings.rate_limit)
async def create_trip(
    request: Request,
    body: TripCreateRequest,
    service: TripService = Depends(get_trip_service),
):
    return await service.create_trip(**body.model_dump())


@router.get("/{trip_id}", response_model=TripResponse, summary="Get a trip")
@limiter.limit(settings.rate_limit)
async def get_trip(
    request: Request,
    trip_id: int,
    service: TripService = Depends(get_trip_service),
):
    return await service.get_trip(trip_id)


@router.patch(
    "/{trip_id}/status",
    response_model=TripResponse,
    summary="Change trip status",
    description="COMPLETED requires odometer_end.",
)
@limiter.limit(settings.rate_limit)
async def update_trip_status(
    request: Request,
    trip_id: int,
    body: TripStatusRequest,
    service: TripService = Depends(get_trip_service),
):
    return await service.update_status(trip_id, body.status, body.odometer_end)


@router.patch(
    "/{trip_id}/dispatch",
    response_model=TripResponse,
    summary="Dispatch a draft trip",
)
@limiter.limit(settings.rate_limit)
async def dispatch_trip(
    request: Request,
    trip_id: int,
    service: TripService = Depends(get_trip_service),
):
    return await service.dispatch_trip(trip_id)


@router.patch(
    "/{trip_id}/complete",
    response_model=TripResponse,
    summary="Complete a dispatched trip",
)
@limiter.limit(settings.rate_limit)
async def complete_trip(
    request: Request,
    trip_id: int,
    body: TripCompleteRequest,
    service: TripService = Depends(get_trip_service),
):
    return await service.complete_trip(trip_id, body.odometer_end)


@router.patch(
    "/{trip_id}/cancel",
    response_model=TripResponse,
    summary="Cancel a trip",
    description="A dispatched trip releases its vehicle and driver.",
)
@limiter.limit(settings.rate_limit)
async def cancel_trip(
    request: Request,
    trip_id: int,
    service: TripService = Depends(get_trip_service),
):
    return await service.cancel_trip(trip_id)
