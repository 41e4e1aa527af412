"""
Pure business rules shared by the lifecycle services.

Nothing in here touches the database; every function takes plain values
(or any object exposing the attributes it reads) so the rules can be unit
tested in isolation.

Dispatch preconditions
----------------------
Evaluated in this order, first failure wins:

1. vehicle is AVAILABLE               -> ``VEHICLE_NOT_AVAILABLE`` (409)
2. cargo fits ``max_capacity``        -> ``VEHICLE_OVERLOADED``    (422)
3. driver is ON_DUTY                  -> ``DRIVER_NOT_READY``      (409)
4. license not expired                -> ``LICENSE_EXPIRED``       (422)
5. vehicle type is authorized         -> ``DRIVER_NOT_AUTHORIZED`` (422)
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from .enums import (
    TRIP_TRANSITIONS,
    DriverStatus,
    LicenseExpiryStatus,
    TripStatus,
    VehicleStatus,
    VehicleType,
)
from .errors import ConflictError, InvalidStateTransition, UnprocessableError

_ONE_DECIMAL = Decimal("0.1")


# ── Trip state machine ────────────────────────────────────────────────


def ensure_trip_transition(current: TripStatus, target: TripStatus) -> None:
    """Raise ``InvalidStateTransition`` unless *current* -> *target* is legal."""
    allowed = TRIP_TRANSITIONS.get(TripStatus(current), set())
    if TripStatus(target) not in allowed:
        raise InvalidStateTransition(
            message=f"Cannot move trip from {TripStatus(current).value} "
            f"to {TripStatus(target).value}",
        )


# ── Driver performance ────────────────────────────────────────────────


def completion_rate(completed: int, total_assigned: int) -> float:
    """Percentage of assigned trips that completed, one decimal.

    Rounds half away from zero; 100.0 when nothing has been assigned yet.
    """
    if total_assigned <= 0:
        return 100.0
    rate = Decimal(completed) * 100 / Decimal(total_assigned)
    return float(rate.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


# ── License compliance ────────────────────────────────────────────────


def is_license_expired(license_expiry: date, today: date) -> bool:
    # A license that expires today is still valid today.
    return license_expiry < today


def license_expiry_status(
    license_expiry: date, today: date, warning_days: int = 30
) -> LicenseExpiryStatus:
    if is_license_expired(license_expiry, today):
        return LicenseExpiryStatus.EXPIRED
    if license_expiry <= today + timedelta(days=warning_days):
        return LicenseExpiryStatus.EXPIRING
    return LicenseExpiryStatus.VALID


def ensure_license_valid(license_expiry: date, today: date) -> None:
    if is_license_expired(license_expiry, today):
        raise UnprocessableError(
            "LICENSE_EXPIRED",
            "Driver's license has expired. Assign a compliant driver.",
        )


# ── Dispatch preconditions ────────────────────────────────────────────


def ensure_vehicle_can_carry(vehicle: Any, cargo_weight: float) -> None:
    """Checks 1-2: vehicle availability then capacity."""
    if VehicleStatus(vehicle.status) != VehicleStatus.AVAILABLE:
        raise ConflictError(
            "VEHICLE_NOT_AVAILABLE",
            f"Vehicle is not available (current status: "
            f"{VehicleStatus(vehicle.status).value})",
        )
    if cargo_weight > vehicle.max_capacity:
        raise UnprocessableError(
            "VEHICLE_OVERLOADED",
            f"Cargo weight {cargo_weight}kg exceeds vehicle capacity of "
            f"{vehicle.max_capacity}kg",
        )


def ensure_driver_can_operate(driver: Any, vehicle_type: VehicleType, today: date) -> None:
    """Checks 3-5: duty status, license, type authorization."""
    if DriverStatus(driver.duty_status) != DriverStatus.ON_DUTY:
        raise ConflictError(
            "DRIVER_NOT_READY",
            f"Driver is not on duty (current status: "
            f"{DriverStatus(driver.duty_status).value})",
        )
    ensure_license_valid(driver.license_expiry, today)
    if not is_authorized(driver.authorized_types, vehicle_type):
        raise UnprocessableError(
            "DRIVER_NOT_AUTHORIZED",
            f"Driver is not authorized to operate "
            f"{VehicleType(vehicle_type).value} category vehicles",
        )


def is_authorized(authorized_types: Iterable[str], vehicle_type: VehicleType) -> bool:
    return VehicleType(vehicle_type).value in {
        VehicleType(t).value for t in authorized_types or ()
    }


# ── Money ─────────────────────────────────────────────────────────────


def fuel_total_cost(liters: float, cost_per_liter: int) -> int:
    """Total fuel cost in the smallest currency unit, rounded half up."""
    total = Decimal(str(liters)) * Decimal(cost_per_liter)
    return int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cost_per_km(grand_total: int, odometer: float) -> float:
    if not odometer:
        return 0.0
    return round(grand_total / odometer, 2)
