"""Domain event topics and their payload shapes."""

from __future__ import annotations

from typing import TypedDict

VEHICLE_IN_SHOP = "vehicle.inShop"
VEHICLE_AVAILABLE = "vehicle.available"
TRIP_DISPATCHED = "trip.dispatched"
TRIP_COMPLETED = "trip.completed"
DRIVER_LICENSE_EXPIRED = "driver.licenseExpired"

ALL_TOPICS = (
    VEHICLE_IN_SHOP,
    VEHICLE_AVAILABLE,
    TRIP_DISPATCHED,
    TRIP_COMPLETED,
    DRIVER_LICENSE_EXPIRED,
)


class VehiclePayload(TypedDict):
    vehicleId: int
    plate: str


class TripDispatchedPayload(TypedDict):
    tripId: int
    vehicleId: int
    driverId: int


class TripCompletedPayload(TypedDict):
    tripId: int
    vehicleId: int
    driverId: int
    odometerEnd: float


class LicenseExpiredPayload(TypedDict):
    driverId: int
    name: str
