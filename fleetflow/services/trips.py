"""
Trip State Machine
==================

::

    DRAFT ──dispatch──> DISPATCHED ──complete──> COMPLETED
      │                     │
      └──────cancel─────────┴──────cancel──────> CANCELLED

Cross-entity coupling
---------------------
* dispatch:  vehicle AVAILABLE -> ON_TRIP, driver ON_DUTY -> OFF_DUTY,
  ``odometer_start`` snapshot of the vehicle odometer.
* complete:  vehicle -> AVAILABLE with ``odometer = odometer_end``,
  driver -> ON_DUTY, driver performance recomputed.
* cancel:    a DISPATCHED trip releases vehicle and driver; a DRAFT never
  touched them.  Driver performance recomputed either way.

Concurrency safety
------------------
* All five dispatch preconditions run before the transaction opens; the
  first failure short-circuits with no mutation.
* Inside the transaction the vehicle and driver are *claimed* with
  compare-and-set updates (``WHERE status = 'AVAILABLE'`` /
  ``WHERE duty_status = 'ON_DUTY'``).  Losing the race raises the same
  error the precondition would have and rolls the whole unit back, so two
  trips can never be dispatched against one vehicle.
* Completion and cancellation read the trip and driver rows
  ``FOR UPDATE``; the completion-rate counts are taken under that lock.
* Events are published strictly after commit.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseService, Clock, atomic, utcnow
from .drivers import recompute_completion_rate
from fleetflow.domain import events
from fleetflow.domain.enums import (
    TRIP_INITIAL_STATUSES,
    DriverStatus,
    TripStatus,
    VehicleStatus,
)
from fleetflow.domain.errors import (
    ConflictError,
    InvalidStateTransition,
    NotFoundError,
    UnprocessableError,
    ValidationError,
)
from fleetflow.domain.rules import (
    ensure_driver_can_operate,
    ensure_trip_transition,
    ensure_vehicle_can_carry,
)
from fleetflow.infrastructure.event_bus import EventBus
from fleetflow.infrastructure.models import DriverModel, TripModel, VehicleModel
from fleetflow.infrastructure.repositories import (
    DriverRepository,
    TripRepository,
    VehicleRepository,
)

logger = logging.getLogger(__name__)


class TripService(BaseService):
    def __init__(
        self,
        session: AsyncSession,
        events: Optional[EventBus] = None,
        clock: Clock = utcnow,
    ):
        super().__init__(session, events, clock)
        self.trips = TripRepository(session)
        self.vehicles = VehicleRepository(session)
        self.drivers = DriverRepository(session)

    # ── Queries ───────────────────────────────────────────────────────

    async def get_trip(self, trip_id: int) -> TripModel:
        trip = await self.trips.get_by_id(trip_id)
        if not trip:
            raise NotFoundError("TRIP_NOT_FOUND", "Trip not found")
        return trip

    async def list_trips(
        self,
        status: TripStatus | None = None,
        vehicle_id: int | None = None,
        driver_id: int | None = None,
    ) -> list[TripModel]:
        return await self.trips.find(
            status=status, vehicle_id=vehicle_id, driver_id=driver_id
        )

    # ── Transitions ───────────────────────────────────────────────────

    async def create_trip(
        self,
        *,
        vehicle_id: int,
        driver_id: int,
        cargo_weight: float,
        origin: str,
        destination: str,
        status: TripStatus | str | None = None,
        revenue: int | None = None,
        estimated_fuel_cost: int | None = None,
    ) -> TripModel:
        """Create a trip in DRAFT or (by default) DISPATCHED."""
        target = self._initial_status(status)
        self._validate_request(cargo_weight, origin, destination, revenue, estimated_fuel_cost)

        vehicle, driver = await self._check_preconditions(
            vehicle_id, driver_id, cargo_weight
        )

        trip = TripModel(
            vehicle_id=vehicle.id,
            driver_id=driver.id,
            origin=origin.strip(),
            destination=destination.strip(),
            cargo_weight=cargo_weight,
            status=TripStatus.DRAFT,
            revenue=revenue,
            estimated_fuel_cost=estimated_fuel_cost,
        )
        async with atomic(self.session):
            if target == TripStatus.DISPATCHED:
                await self._claim_vehicle_and_driver(vehicle, driver)
                trip.status = TripStatus.DISPATCHED
                trip.odometer_start = vehicle.odometer
                trip.dispatched_at = self.clock()
            await self.trips.create(trip)

        if trip.status == TripStatus.DISPATCHED:
            self._announce_dispatch(trip)
        else:
            logger.info("Trip %s saved as draft", trip.id)
        return trip

    async def dispatch_trip(self, trip_id: int) -> TripModel:
        """Promote a DRAFT trip, re-running every dispatch precondition."""
        trip = await self.get_trip(trip_id)
        ensure_trip_transition(trip.status, TripStatus.DISPATCHED)

        vehicle, driver = await self._check_preconditions(
            trip.vehicle_id, trip.driver_id, trip.cargo_weight
        )

        async with atomic(self.session):
            await self._claim_vehicle_and_driver(vehicle, driver)
            moved = await self.trips.claim(
                trip.id,
                TripStatus.DRAFT,
                TripStatus.DISPATCHED,
                odometer_start=vehicle.odometer,
                dispatched_at=self.clock(),
            )
            if not moved:
                raise InvalidStateTransition(
                    message="Trip was modified concurrently and is no longer a draft"
                )
        await self.session.refresh(trip)

        self._announce_dispatch(trip)
        return trip

    async def complete_trip(self, trip_id: int, odometer_end: float) -> TripModel:
        if odometer_end is None or odometer_end < 0:
            raise ValidationError(message="odometer_end must be a non-negative number")

        async with atomic(self.session):
            trip = await self._lock_trip(trip_id)
            ensure_trip_transition(trip.status, TripStatus.COMPLETED)
            # Equal readings are a legitimate zero-distance trip.
            if odometer_end < (trip.odometer_start or 0):
                raise UnprocessableError(
                    "INVALID_ODOMETER",
                    "End odometer cannot be less than start odometer",
                )

            trip.status = TripStatus.COMPLETED
            trip.odometer_end = odometer_end
            trip.completed_at = self.clock()

            vehicle = await self.vehicles.get_by_id(trip.vehicle_id)
            if odometer_end < vehicle.odometer:
                raise UnprocessableError(
                    "INVALID_ODOMETER",
                    "End odometer cannot be less than the vehicle's current odometer",
                )
            vehicle.status = VehicleStatus.AVAILABLE
            vehicle.odometer = odometer_end

            driver = await self.drivers.get_by_id_for_update(trip.driver_id)
            driver.duty_status = DriverStatus.ON_DUTY
            await recompute_completion_rate(self.trips, driver)

        logger.info(
            "Trip %s completed (%.1f km)",
            trip.id, odometer_end - (trip.odometer_start or 0),
        )
        self.publish(
            events.TRIP_COMPLETED,
            {
                "tripId": trip.id,
                "vehicleId": trip.vehicle_id,
                "driverId": trip.driver_id,
                "odometerEnd": odometer_end,
            },
        )
        return trip

    async def cancel_trip(self, trip_id: int) -> TripModel:
        """Cancel a DRAFT or DISPATCHED trip.  No event is published."""
        async with atomic(self.session):
            trip = await self._lock_trip(trip_id)
            ensure_trip_transition(trip.status, TripStatus.CANCELLED)

            driver = await self.drivers.get_by_id_for_update(trip.driver_id)
            if TripStatus(trip.status) == TripStatus.DISPATCHED:
                vehicle = await self.vehicles.get_by_id(trip.vehicle_id)
                vehicle.status = VehicleStatus.AVAILABLE
                driver.duty_status = DriverStatus.ON_DUTY

            trip.status = TripStatus.CANCELLED
            await recompute_completion_rate(self.trips, driver)

        logger.info("Trip %s cancelled", trip.id)
        return trip

    async def update_status(
        self,
        trip_id: int,
        status: TripStatus | str,
        odometer_end: float | None = None,
    ) -> TripModel:
        """Route a requested status to the matching transition."""
        try:
            status = TripStatus(status)
        except ValueError as exc:
            raise ValidationError(message=f"Unknown trip status: {status}") from exc

        if status == TripStatus.COMPLETED:
            if odometer_end is None:
                raise ValidationError(
                    message="odometer_end is required for completing a trip"
                )
            return await self.complete_trip(trip_id, odometer_end)
        if status == TripStatus.CANCELLED:
            return await self.cancel_trip(trip_id)
        if status == TripStatus.DISPATCHED:
            return await self.dispatch_trip(trip_id)
        raise InvalidStateTransition(message=f"Trips cannot be moved back to {status.value}")

    # ── Internals ─────────────────────────────────────────────────────

    @staticmethod
    def _initial_status(status: TripStatus | str | None) -> TripStatus:
        if status is None:
            return TripStatus.DISPATCHED
        try:
            status = TripStatus(status)
        except ValueError as exc:
            raise ValidationError(message=f"Unknown trip status: {status}") from exc
        if status not in TRIP_INITIAL_STATUSES:
            raise ValidationError(
                message="A new trip must start as DRAFT or DISPATCHED"
            )
        return status

    @staticmethod
    def _validate_request(
        cargo_weight: float,
        origin: str,
        destination: str,
        revenue: int | None,
        estimated_fuel_cost: int | None,
    ) -> None:
        if cargo_weight is None or cargo_weight <= 0:
            raise ValidationError(message="cargo_weight must be positive")
        for label, value in (("origin", origin), ("destination", destination)):
            if not value or len(value.strip()) < 2:
                raise ValidationError(message=f"{label} must be at least 2 characters")
        if revenue is not None and revenue < 0:
            raise ValidationError(message="revenue cannot be negative")
        if estimated_fuel_cost is not None and estimated_fuel_cost <= 0:
            raise ValidationError(message="estimated_fuel_cost must be positive")

    async def _check_preconditions(
        self, vehicle_id: int, driver_id: int, cargo_weight: float
    ) -> tuple[VehicleModel, DriverModel]:
        vehicle = await self.vehicles.get_by_id(vehicle_id)
        if not vehicle:
            raise NotFoundError("VEHICLE_NOT_FOUND", "Vehicle not found")
        ensure_vehicle_can_carry(vehicle, cargo_weight)

        driver = await self.drivers.get_by_id(driver_id)
        if not driver:
            raise NotFoundError("DRIVER_NOT_FOUND", "Driver not found")
        ensure_driver_can_operate(driver, vehicle.type, self.today())
        return vehicle, driver

    async def _claim_vehicle_and_driver(
        self, vehicle: VehicleModel, driver: DriverModel
    ) -> None:
        if not await self.vehicles.claim(
            vehicle.id, VehicleStatus.AVAILABLE, VehicleStatus.ON_TRIP
        ):
            raise ConflictError(
                "VEHICLE_NOT_AVAILABLE", "Vehicle was dispatched by another request"
            )
        if not await self.drivers.claim(
            driver.id, DriverStatus.ON_DUTY, DriverStatus.OFF_DUTY
        ):
            raise ConflictError(
                "DRIVER_NOT_READY", "Driver was assigned by another request"
            )
        # The odometer snapshot must come from the row we just claimed.
        await self.session.refresh(vehicle)

    async def _lock_trip(self, trip_id: int) -> TripModel:
        trip = await self.trips.get_by_id_for_update(trip_id)
        if not trip:
            raise NotFoundError("TRIP_NOT_FOUND", "Trip not found")
        return trip

    def _announce_dispatch(self, trip: TripModel) -> None:
        logger.info(
            "Trip %s dispatched (vehicle=%s driver=%s odometer_start=%s)",
            trip.id, trip.vehicle_id, trip.driver_id, trip.odometer_start,
        )
        self.publish(
            events.TRIP_DISPATCHED,
            {
                "tripId": trip.id,
                "vehicleId": trip.vehicle_id,
                "driverId": trip.driver_id,
            },
        )
