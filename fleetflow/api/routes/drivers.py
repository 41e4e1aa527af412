"""
Driver endpoints
================

GET   /api/v1/drivers                          -- list (filter by duty status)
POST  /api/v1/drivers                          -- register a driver
GET   /api/v1/drivers/available                -- on duty with a valid license
GET   /api/v1/drivers/{driver_id}              -- fetch one
PATCH /api/v1/drivers/{driver_id}              -- update profile / license
PATCH /api/v1/drivers/{driver_id}/duty-status  -- suspend or reinstate
GET   /api/v1/drivers/{driver_id}/compliance   -- license check
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from fleetflow.api.dependencies import get_driver_service
from fleetflow.api.middleware import limiter
from fleetflow.api.schemas import (
    ComplianceResponse,
    DriverCreateRequest,
    DriverResponse,
    DriverUpdateRequest,
    DutyStatusRequest,
)
from fleetflow.config import settings
from fleetflow.domain.enums import DriverStatus
from fleetflow.infrastructure.models import DriverModel
from fleetflow.services.drivers import DriverService

router = APIRouter(prefix="/drivers", tags=["drivers"])


def _to_response(service: DriverService, driver: DriverModel) -> DriverResponse:
    response = DriverResponse.model_validate(driver)
    response.license_expiry_status = service.expiry_status(driver)
    return response


@router.get("", response_model=list[DriverResponse], summary="List drivers")
@limiter.limit(settings.rate_limit)
async def list_drivers(
    request: Request,
    duty_status: Optional[DriverStatus] = None,
    service: DriverService = Depends(get_driver_service),
):
    drivers = await service.list_drivers(duty_status=duty_status)
    return [_to_response(service, d) for d in drivers]


@router.post(
    "",
    status_code=201,
    response_model=DriverResponse,
    summary="Register a driver",
)
@limiter.limit(settings.rate_limit)
async def create_driver(
    request: Request,
    body: DriverCreateRequest,
    service: DriverService = Depends(get_driver_service),
):
    driver = await service.create_driver(**body.model_dump())
    return _to_response(service, driver)


@router.get(
    "/available",
    response_model=list[DriverResponse],
    summary="List drivers ready for dispatch",
)
@limiter.limit(settings.rate_limit)
async def list_available_drivers(
    request: Request,
    service: DriverService = Depends(get_driver_service),
):
    drivers = await service.list_available()
    return [_to_response(service, d) for d in drivers]


@router.get("/{driver_id}", response_model=DriverResponse, summary="Get a driver")
@limiter.limit(settings.rate_limit)
async def get_driver(
    request: Request,
    driver_id: int,
    service: DriverService = Depends(get_driver_service),
):
    return _to_response(service, await service.get_driver(driver_id))


@router.patch("/{driver_id}", response_model=DriverResponse, summary="Update a driver")
@limiter.limit(settings.rate_limit)
async def update_driver(
    request: Request,
    driver_id: int,
    body: DriverUpdateRequest,
    service: DriverService = Depends(get_driver_service),
):
    driver = await service.update_driver(
        driver_id, **body.model_dump(exclude_unset=True, exclude_none=True)
    )
    return _to_response(service, driver)


@router.patch(
    "/{driver_id}/duty-status",
    response_model=DriverResponse,
    summary="Change duty status",
    description=(
        "SUSPENDED cancels the driver's draft trips. Refused while the "
        "driver has a dispatched trip. OFF_DUTY follows dispatch and cannot "
        "be requested."
    ),
)
@limiter.limit(settings.rate_limit)
async def update_duty_status(
    request: Request,
    driver_id: int,
    body: DutyStatusRequest,
    service: DriverService = Depends(get_driver_service),
):
    driver = await service.update_duty_status(driver_id, body.duty_status)
    return _to_response(service, driver)


@router.get(
    "/{driver_id}/compliance",
    response_model=ComplianceResponse,
    summary="Check license compliance",
    description="422 LICENSE_EXPIRED when the license is no longer valid.",
)
@limiter.limit(settings.rate_limit)
async def check_compliance(
    request: Request,
    driver_id: int,
    service: DriverService = Depends(get_driver_service),
):
    await service.check_license_compliance(driver_id)
    driver = await service.get_driver(driver_id)
    return ComplianceResponse(
        driver_id=driver.id,
        compliant=True,
        license_expiry=driver.license_expiry,
        license_expiry_status=service.expiry_status(driver),
    )
