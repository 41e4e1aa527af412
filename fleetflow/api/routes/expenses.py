"""
Expense endpoints
=================

GET  /api/v1/expenses                           -- list (filter by vehicle / type)
POST /api/v1/expenses                           -- record an expense
POST /api/v1/expenses/fuel                      -- record a fuel fill-up
GET  /api/v1/expenses/vehicle/{vehicle_id}/total -- cost summary for a vehicle
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from fleetflow.api.dependencies import get_expense_service
from fleetflow.api.middleware import limiter
from fleetflow.api.schemas import (
    ExpenseCreateRequest,
    ExpenseResponse,
    FuelLogCreateRequest,
    VehicleCostResponse,
)
from fleetflow.config import settings
from fleetflow.domain.enums import ExpenseType
from fleetflow.services.expenses import ExpenseService

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.get("", response_model=list[ExpenseResponse], summary="List expenses")
@limiter.limit(settings.rate_limit)
async def list_expenses(
    request: Request,
    vehicle_id: Optional[int] = None,
    type: Optional[ExpenseType] = None,
    service: ExpenseService = Depends(get_expense_service),
):
    return await service.list_expenses(vehicle_id=vehicle_id, expense_type=type)


@router.post(
    "",
    status_code=201,
    response_model=ExpenseResponse,
    summary="Record an expense",
)
@limiter.limit(settings.rate_limit)
async def create_expense(
    request: Request,
    body: ExpenseCreateRequest,
    service: ExpenseService = Depends(get_expense_service),
):
    return await service.create_expense(**body.model_dump())


@router.post(
    "/fuel",
    status_code=201,
    response_model=ExpenseResponse,
    summary="Record a fuel fill-up",
    description="total_cost = liters x cost_per_liter, rounded half up.",
)
@limiter.limit(settings.rate_limit)
async def create_fuel_log(
    request: Request,
    body: FuelLogCreateRequest,
    service: ExpenseService = Depends(get_expense_service),
):
    return await service.create_fuel_log(**body.model_dump())


@router.get(
    "/vehicle/{vehicle_id}/total",
    response_model=VehicleCostResponse,
    summary="Operational cost summary for a vehicle",
)
@limiter.limit(settings.rate_limit)
async def vehicle_cost_summary(
    request: Request,
    vehicle_id: int,
    service: ExpenseService = Depends(get_expense_service),
):
    return await service.vehicle_cost_summary(vehicle_id)
