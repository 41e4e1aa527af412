"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

import datetime as dt
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from fleetflow.domain.enums import (
    DriverStatus,
    ExpenseType,
    LicenseExpiryStatus,
    MaintenanceStatus,
    ServiceType,
    TripStatus,
    VehicleStatus,
    VehicleType,
)


# ── Requests ──────────────────────────────────────────────────────────


class VehicleCreateRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=120)
    model: str = Field(..., min_length=2, max_length=120)
    license_plate: str = Field(..., min_length=2, max_length=32)
    year: int
    type: VehicleType
    max_capacity: float = Field(..., gt=0, description="kg")
    odometer: float = Field(0.0, ge=0, description="km")
    acquisition_cost: Optional[int] = Field(None, gt=0)


class VehicleUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=120)
    max_capacity: Optional[float] = Field(None, gt=0)
    odometer: Optional[float] = Field(None, ge=0)
    acquisition_cost: Optional[int] = Field(None, gt=0)


class VehicleStatusRequest(BaseModel):
    status: VehicleStatus


class DriverCreateRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=120)
    employee_id: str = Field(..., min_length=1, max_length=64)
    license_number: str = Field(..., min_length=1, max_length=64)
    license_expiry: date
    authorized_types: list[VehicleType] = Field(..., min_length=1)
    phone: Optional[str] = Field(None, max_length=32)


class DriverUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=120)
    phone: Optional[str] = Field(None, max_length=32)
    license_number: Optional[str] = Field(None, min_length=1, max_length=64)
    license_expiry: Optional[date] = None
    authorized_types: Optional[list[VehicleType]] = Field(None, min_length=1)


class DutyStatusRequest(BaseModel):
    duty_status: DriverStatus


class TripCreateRequest(BaseModel):
    vehicle_id: int
    driver_id: int
    cargo_weight: float = Field(..., gt=0, description="kg")
    origin: str = Field(..., min_length=2, max_length=255)
    destination: str = Field(..., min_length=2, max_length=255)
    status: Optional[TripStatus] = Field(
        None, description="DRAFT or DISPATCHED (default DISPATCHED)."
    )
    revenue: Optional[int] = Field(None, ge=0)
    estimated_fuel_cost: Optional[int] = Field(None, gt=0)


class TripStatusRequest(BaseModel):
    status: TripStatus
    odometer_end: Optional[float] = Field(None, ge=0)


class TripCompleteRequest(BaseModel):
    odometer_end: float = Field(..., ge=0)


class MaintenanceCreateRequest(BaseModel):
    vehicle_id: int
    service_type: ServiceType
    cost: int = Field(..., gt=0)
    scheduled_date: Optional[date] = None
    description: Optional[str] = None
    technician_name: Optional[str] = Field(None, max_length=120)


class MaintenanceCompleteRequest(BaseModel):
    completed_date: date
    final_cost: Optional[int] = Field(None, gt=0)


class ExpenseCreateRequest(BaseModel):
    vehicle_id: int
    trip_id: Optional[int] = None
    type: ExpenseType
    amount: int = Field(..., gt=0)
    date: dt.date
    description: Optional[str] = None
    receipt_ref: Optional[str] = Field(None, max_length=120)


class FuelLogCreateRequest(BaseModel):
    vehicle_id: int
    trip_id: int
    liters: float = Field(..., gt=0)
    cost_per_liter: int = Field(..., gt=0)
    odometer_at_fill: float = Field(..., gt=0)
    date: dt.date


# ── Responses ─────────────────────────────────────────────────────────


class VehicleResponse(BaseModel):
    id: int
    name: str
    model: str
    license_plate: str
    year: int
    type: VehicleType
    max_capacity: float
    odometer: float
    status: VehicleStatus
    acquisition_cost: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DriverResponse(BaseModel):
    id: int
    name: str
    employee_id: str
    license_number: str
    license_expiry: date
    license_expiry_status: Optional[LicenseExpiryStatus] = None
    authorized_types: list[VehicleType]
    phone: Optional[str] = None
    duty_status: DriverStatus
    completed_trips: int
    completion_rate: float
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ComplianceResponse(BaseModel):
    driver_id: int
    compliant: bool
    license_expiry: date
    license_expiry_status: LicenseExpiryStatus


class TripResponse(BaseModel):
    id: int
    vehicle_id: int
    driver_id: int
    origin: str
    destination: str
    cargo_weight: float
    status: TripStatus
    odometer_start: Optional[float] = None
    odometer_end: Optional[float] = None
    dispatched_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    revenue: Optional[int] = None
    estimated_fuel_cost: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MaintenanceLogResponse(BaseModel):
    id: int
    vehicle_id: int
    service_type: ServiceType
    description: Optional[str] = None
    technician_name: Optional[str] = None
    cost: int
    scheduled_date: Optional[date] = None
    completed_date: Optional[date] = None
    status: MaintenanceStatus

    model_config = {"from_attributes": True}


class ExpenseResponse(BaseModel):
    id: int
    vehicle_id: int
    trip_id: Optional[int] = None
    type: ExpenseType
    total_cost: int
    description: Optional[str] = None
    date: dt.date
    receipt_ref: Optional[str] = None
    liters: Optional[float] = None
    cost_per_liter: Optional[int] = None
    odometer_at_fill: Optional[float] = None

    model_config = {"from_attributes": True}


class VehicleCostResponse(BaseModel):
    vehicle_id: int
    fuel_total: int
    maintenance_total: int
    grand_total: int
    cost_per_km: float

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    code: str
