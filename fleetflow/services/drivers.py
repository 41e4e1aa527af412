"""
Driver lifecycle
================

Owns duty status (ON_DUTY / OFF_DUTY / SUSPENDED), license compliance and
the derived performance fields.

* OFF_DUTY is coupled to dispatch: the trip service moves a driver there
  when a trip is dispatched and back to ON_DUTY when it ends.  It cannot be
  requested directly.
* ``completed_trips`` / ``completion_rate`` are re-aggregated from the trips
  table inside the transaction that changed a trip's status; they are never
  client settable.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseService, Clock, atomic, utcnow
from fleetflow.config import settings
from fleetflow.domain.enums import (
    DriverStatus,
    LicenseExpiryStatus,
    TripStatus,
    VehicleType,
)
from fleetflow.domain.errors import (
    ConflictError,
    DuplicateRecordError,
    NotFoundError,
    ValidationError,
)
from fleetflow.domain.rules import (
    completion_rate,
    ensure_license_valid,
    ensure_trip_transition,
    license_expiry_status,
)
from fleetflow.infrastructure.event_bus import EventBus
from fleetflow.infrastructure.models import DriverModel
from fleetflow.infrastructure.repositories import DriverRepository, TripRepository

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {
    "name",
    "phone",
    "employee_id",
    "license_number",
    "license_expiry",
    "authorized_types",
}


async def recompute_completion_rate(
    trips: TripRepository, driver: DriverModel
) -> None:
    """Recompute ``completed_trips`` and ``completion_rate`` for *driver*.

    Must run in the same transaction as the trip status write it reflects;
    pending changes are autoflushed before the counts are taken.
    """
    total = await trips.count_for_driver(driver.id)
    completed = await trips.count_for_driver(driver.id, TripStatus.COMPLETED)
    driver.completed_trips = completed
    driver.completion_rate = completion_rate(completed, total)


def _normalise_types(authorized_types: Iterable[str]) -> list[str]:
    try:
        types = sorted({VehicleType(t).value for t in authorized_types})
    except ValueError as exc:
        raise ValidationError(message=f"Unknown vehicle type: {exc}") from exc
    if not types:
        raise ValidationError(message="A driver needs at least one authorized vehicle type")
    return types


class DriverService(BaseService):
    def __init__(
        self,
        session: AsyncSession,
        events: Optional[EventBus] = None,
        clock: Clock = utcnow,
        warning_days: int | None = None,
    ):
        super().__init__(session, events, clock)
        self.drivers = DriverRepository(session)
        self.trips = TripRepository(session)
        self.warning_days = (
            settings.license_warning_days if warning_days is None else warning_days
        )

    # ── Queries ───────────────────────────────────────────────────────

    async def get_driver(self, driver_id: int) -> DriverModel:
        driver = await self.drivers.get_by_id(driver_id)
        if not driver:
            raise NotFoundError("DRIVER_NOT_FOUND", "Driver not found")
        return driver

    async def list_drivers(
        self, duty_status: DriverStatus | None = None
    ) -> list[DriverModel]:
        return await self.drivers.find(duty_status=duty_status)

    async def list_available(self) -> list[DriverModel]:
        """ON_DUTY drivers whose license is still valid."""
        return await self.drivers.get_available(self.today())

    def expiry_status(self, driver: DriverModel) -> LicenseExpiryStatus:
        return license_expiry_status(
            driver.license_expiry, self.today(), self.warning_days
        )

    async def check_license_compliance(self, driver_id: int) -> bool:
        driver = await self.get_driver(driver_id)
        ensure_license_valid(driver.license_expiry, self.today())
        return True

    # ── Commands ──────────────────────────────────────────────────────

    async def create_driver(
        self,
        *,
        name: str,
        employee_id: str,
        license_number: str,
        license_expiry: date,
        authorized_types: Iterable[str],
        phone: str | None = None,
    ) -> DriverModel:
        if not name or len(name.strip()) < 2:
            raise ValidationError(message="Driver name must be at least 2 characters")
        if not employee_id or not license_number:
            raise ValidationError(message="Employee id and license number are required")
        types = _normalise_types(authorized_types)
        await self._ensure_unique(employee_id, license_number)

        async with atomic(self.session):
            driver = await self.drivers.create(
                DriverModel(
                    name=name.strip(),
                    employee_id=employee_id,
                    license_number=license_number,
                    license_expiry=license_expiry,
                    authorized_types=types,
                    phone=phone,
                    duty_status=DriverStatus.ON_DUTY,
                    completed_trips=0,
                    completion_rate=100.0,
                )
            )
        logger.info("Driver %s (%s) registered", driver.id, driver.employee_id)
        return driver

    async def update_driver(self, driver_id: int, **changes) -> DriverModel:
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                message=f"Fields cannot be updated: {', '.join(sorted(unknown))}"
            )
        driver = await self.get_driver(driver_id)
        if "authorized_types" in changes:
            changes["authorized_types"] = _normalise_types(changes["authorized_types"])
        if "name" in changes and (not changes["name"] or len(changes["name"].strip()) < 2):
            raise ValidationError(message="Driver name must be at least 2 characters")
        await self._ensure_unique(
            changes.get("employee_id"), changes.get("license_number"), exclude_id=driver.id
        )

        async with atomic(self.session):
            for field, value in changes.items():
                setattr(driver, field, value)
        return driver

    async def update_duty_status(
        self, driver_id: int, new_status: DriverStatus | str
    ) -> DriverModel:
        """Suspend or reinstate a driver.

        Suspension is refused while a trip is dispatched and cancels the
        driver's DRAFT trips in the same transaction.
        """
        try:
            new_status = DriverStatus(new_status)
        except ValueError as exc:
            raise ValidationError(message=f"Unknown duty status: {new_status}") from exc
        if new_status == DriverStatus.OFF_DUTY:
            raise ValidationError(
                message="OFF_DUTY is set by trip dispatch and cannot be requested directly"
            )

        async with atomic(self.session):
            driver = await self.drivers.get_by_id_for_update(driver_id)
            if not driver:
                raise NotFoundError("DRIVER_NOT_FOUND", "Driver not found")
            if DriverStatus(driver.duty_status) == new_status:
                return driver

            active = await self.trips.count_for_driver(driver.id, TripStatus.DISPATCHED)
            if active:
                raise ConflictError(
                    "ACTIVE_TRIP_EXIST",
                    "Cannot change duty status of a driver with a trip in progress",
                )

            if new_status == DriverStatus.SUSPENDED:
                drafts = await self.trips.get_drafts(driver_id=driver.id)
                for trip in drafts:
                    ensure_trip_transition(trip.status, TripStatus.CANCELLED)
                    trip.status = TripStatus.CANCELLED
                if drafts:
                    logger.info(
                        "Cancelled %d draft trip(s) of suspended driver %s",
                        len(drafts), driver.id,
                    )
                    await recompute_completion_rate(self.trips, driver)

            driver.duty_status = new_status

        logger.info("Driver %s duty status -> %s", driver.id, new_status.value)
        return driver

    # ── Internals ─────────────────────────────────────────────────────

    async def _ensure_unique(
        self,
        employee_id: str | None,
        license_number: str | None,
        exclude_id: int | None = None,
    ) -> None:
        existing = await self.drivers.find_conflicting(
            employee_id, license_number, exclude_id=exclude_id
        )
        if existing is None:
            return
        field = "employee_id" if existing.employee_id == employee_id else "license_number"
        raise DuplicateRecordError(message=f"A driver with this {field} already exists")
