"""
Vehicle lifecycle
=================

States::

    AVAILABLE --dispatch--> ON_TRIP --complete/cancel--> AVAILABLE
    AVAILABLE --open log--> IN_SHOP --close log-------> AVAILABLE
    AVAILABLE --retire----> RETIRED --reactivate------> AVAILABLE

ON_TRIP and IN_SHOP are owned by the trip and maintenance services; the
only transitions a client can request here are retire and reactivate.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseService, Clock, atomic, utcnow
from .drivers import recompute_completion_rate
from fleetflow.domain.enums import TripStatus, VehicleStatus, VehicleType
from fleetflow.domain.errors import (
    ConflictError,
    DuplicateRecordError,
    NotFoundError,
    UnprocessableError,
    ValidationError,
)
from fleetflow.domain.rules import ensure_trip_transition
from fleetflow.infrastructure.event_bus import EventBus
from fleetflow.infrastructure.models import VehicleModel
from fleetflow.infrastructure.repositories import (
    DriverRepository,
    MaintenanceRepository,
    TripRepository,
    VehicleRepository,
)

logger = logging.getLogger(__name__)

MIN_YEAR = 1990
_UPDATABLE_FIELDS = {"name", "max_capacity", "odometer", "acquisition_cost"}
_REGISTRATION_FIELDS = {"license_plate", "model", "year", "type"}


class VehicleService(BaseService):
    def __init__(
        self,
        session: AsyncSession,
        events: Optional[EventBus] = None,
        clock: Clock = utcnow,
    ):
        super().__init__(session, events, clock)
        self.vehicles = VehicleRepository(session)
        self.drivers = DriverRepository(session)
        self.trips = TripRepository(session)
        self.logs = MaintenanceRepository(session)

    # ── Queries ───────────────────────────────────────────────────────

    async def get_vehicle(self, vehicle_id: int) -> VehicleModel:
        vehicle = await self.vehicles.get_by_id(vehicle_id)
        if not vehicle:
            raise NotFoundError("VEHICLE_NOT_FOUND", "Vehicle not found")
        return vehicle

    async def list_vehicles(
        self,
        status: VehicleStatus | None = None,
        vehicle_type: VehicleType | None = None,
    ) -> list[VehicleModel]:
        return await self.vehicles.find(status=status, vehicle_type=vehicle_type)

    async def list_available(self) -> list[VehicleModel]:
        return await self.vehicles.get_available()

    # ── Commands ──────────────────────────────────────────────────────

    async def create_vehicle(
        self,
        *,
        name: str,
        model: str,
        license_plate: str,
        year: int,
        type: VehicleType | str,
        max_capacity: float,
        odometer: float = 0.0,
        acquisition_cost: int | None = None,
    ) -> VehicleModel:
        try:
            vehicle_type = VehicleType(type)
        except ValueError as exc:
            raise ValidationError(message=f"Unknown vehicle type: {type}") from exc
        for label, value in (("name", name), ("model", model), ("license_plate", license_plate)):
            if not value or len(value.strip()) < 2:
                raise ValidationError(message=f"{label} must be at least 2 characters")
        if not MIN_YEAR <= year <= self.today().year:
            raise ValidationError(
                message=f"year must be between {MIN_YEAR} and {self.today().year}"
            )
        self._validate_measures(max_capacity, odometer, acquisition_cost)

        plate = license_plate.strip()
        if await self.vehicles.get_by_plate(plate):
            raise DuplicateRecordError(
                message="A vehicle with this license_plate already exists"
            )

        async with atomic(self.session):
            vehicle = await self.vehicles.create(
                VehicleModel(
                    name=name.strip(),
                    model=model.strip(),
                    license_plate=plate,
                    year=year,
                    type=vehicle_type,
                    max_capacity=max_capacity,
                    odometer=odometer,
                    acquisition_cost=acquisition_cost,
                    status=VehicleStatus.AVAILABLE,
                )
            )
        logger.info("Vehicle %s (%s) registered", vehicle.id, vehicle.license_plate)
        return vehicle

    async def update_vehicle(self, vehicle_id: int, **changes) -> VehicleModel:
        """Update mutable attributes; registration fields are fixed."""
        frozen = set(changes) & _REGISTRATION_FIELDS
        if frozen:
            raise ValidationError(
                message=f"Registration fields are immutable: {', '.join(sorted(frozen))}"
            )
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                message=f"Fields cannot be updated: {', '.join(sorted(unknown))}"
            )

        vehicle = await self.get_vehicle(vehicle_id)
        if "odometer" in changes and VehicleStatus(vehicle.status) == VehicleStatus.ON_TRIP:
            raise ConflictError(
                "VEHICLE_ON_TRIP",
                "Odometer cannot be edited while the vehicle is on a trip",
            )
        self._validate_measures(
            changes.get("max_capacity", vehicle.max_capacity),
            changes.get("odometer", vehicle.odometer),
            changes.get("acquisition_cost", vehicle.acquisition_cost),
        )
        if changes.get("odometer", vehicle.odometer) < vehicle.odometer:
            raise UnprocessableError(
                "INVALID_ODOMETER", "Odometer reading cannot go backwards"
            )

        async with atomic(self.session):
            for field, value in changes.items():
                setattr(vehicle, field, value)
        return vehicle

    async def retire(self, vehicle_id: int) -> VehicleModel:
        """Take a vehicle out of service and cancel its draft trips."""
        async with atomic(self.session):
            vehicle = await self.get_vehicle(vehicle_id)
            if VehicleStatus(vehicle.status) == VehicleStatus.RETIRED:
                return vehicle

            if await self.trips.count_for_vehicle(vehicle.id, TripStatus.DISPATCHED):
                raise ConflictError(
                    "ACTIVE_TRIPS_EXIST", "Cannot retire vehicle with active trips"
                )
            if await self.logs.get_open_for_vehicle(vehicle.id):
                raise ConflictError(
                    "OPEN_LOG_EXISTS",
                    "Cannot retire vehicle with an open service log",
                )
            if not await self.vehicles.claim(
                vehicle.id, VehicleStatus.AVAILABLE, VehicleStatus.RETIRED
            ):
                raise ConflictError(
                    "VEHICLE_NOT_AVAILABLE",
                    "Vehicle status changed while retiring; retry",
                )

            drafts = await self.trips.get_drafts(vehicle_id=vehicle.id)
            for trip in drafts:
                ensure_trip_transition(trip.status, TripStatus.CANCELLED)
                trip.status = TripStatus.CANCELLED
            for driver_id in sorted({t.driver_id for t in drafts}):
                driver = await self.drivers.get_by_id_for_update(driver_id)
                if driver:
                    await recompute_completion_rate(self.trips, driver)

        logger.info(
            "Vehicle %s retired (%d draft trip(s) cancelled)", vehicle.id, len(drafts)
        )
        return vehicle

    async def reactivate(self, vehicle_id: int) -> VehicleModel:
        """Return a RETIRED vehicle to service."""
        async with atomic(self.session):
            vehicle = await self.get_vehicle(vehicle_id)
            if not await self.vehicles.claim(
                vehicle.id, VehicleStatus.RETIRED, VehicleStatus.AVAILABLE
            ):
                raise ConflictError(
                    "VEHICLE_NOT_RETIRED",
                    f"Only retired vehicles can be reactivated "
                    f"(current status: {VehicleStatus(vehicle.status).value})",
                )
        logger.info("Vehicle %s reactivated", vehicle.id)
        return vehicle

    async def set_status(
        self, vehicle_id: int, status: VehicleStatus | str
    ) -> VehicleModel:
        """Administrative override; only RETIRED and AVAILABLE can be requested."""
        try:
            status = VehicleStatus(status)
        except ValueError as exc:
            raise ValidationError(message=f"Unknown vehicle status: {status}") from exc

        if status == VehicleStatus.RETIRED:
            return await self.retire(vehicle_id)
        if status == VehicleStatus.AVAILABLE:
            vehicle = await self.get_vehicle(vehicle_id)
            if VehicleStatus(vehicle.status) == VehicleStatus.AVAILABLE:
                return vehicle
            return await self.reactivate(vehicle_id)
        raise ValidationError(
            message=f"{status.value} is managed by trips and maintenance and cannot be set directly"
        )

    # ── Internals ─────────────────────────────────────────────────────

    @staticmethod
    def _validate_measures(
        max_capacity: float, odometer: float, acquisition_cost: int | None
    ) -> None:
        if max_capacity is None or max_capacity <= 0:
            raise ValidationError(message="max_capacity must be positive")
        if odometer is None or odometer < 0:
            raise ValidationError(message="odometer cannot be negative")
        if acquisition_cost is not None and acquisition_cost <= 0:
            raise ValidationError(message="acquisition_cost must be positive")
