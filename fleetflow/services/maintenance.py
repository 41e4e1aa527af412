"""
Maintenance lifecycle
=====================

A service log is open (IN_PROGRESS) or closed (COMPLETED).  While a log is
open its vehicle sits IN_SHOP; closing it returns the vehicle to AVAILABLE.
A vehicle may accumulate many logs, but never more than one open at a time
(also backed by a partial unique index on ``maintenance_logs``).

A vehicle out on a trip cannot be taken into the shop: the log would leave
it IN_SHOP while the trip still holds it, and completing the trip would
then release a vehicle that is being repaired.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseService, Clock, atomic, utcnow
from fleetflow.domain import events
from fleetflow.domain.enums import MaintenanceStatus, ServiceType, VehicleStatus
from fleetflow.domain.errors import ConflictError, NotFoundError, ValidationError
from fleetflow.infrastructure.event_bus import EventBus
from fleetflow.infrastructure.models import MaintenanceLogModel
from fleetflow.infrastructure.repositories import (
    MaintenanceRepository,
    VehicleRepository,
)

logger = logging.getLogger(__name__)


class MaintenanceService(BaseService):
    def __init__(
        self,
        session: AsyncSession,
        events: Optional[EventBus] = None,
        clock: Clock = utcnow,
    ):
        super().__init__(session, events, clock)
        self.logs = MaintenanceRepository(session)
        self.vehicles = VehicleRepository(session)

    async def get_service_log(self, log_id: int) -> MaintenanceLogModel:
        log = await self.logs.get_by_id(log_id)
        if not log:
            raise NotFoundError("LOG_NOT_FOUND", "Service log not found")
        return log

    async def list_service_logs(
        self,
        vehicle_id: int | None = None,
        status: MaintenanceStatus | None = None,
    ) -> list[MaintenanceLogModel]:
        return await self.logs.find(vehicle_id=vehicle_id, status=status)

    async def open_service_log(
        self,
        vehicle_id: int,
        *,
        service_type: ServiceType | str,
        cost: int,
        scheduled_date: date | None = None,
        description: str | None = None,
        technician_name: str | None = None,
    ) -> MaintenanceLogModel:
        try:
            service_type = ServiceType(service_type)
        except ValueError as exc:
            raise ValidationError(message=f"Unknown service type: {service_type}") from exc
        if cost is None or cost <= 0:
            raise ValidationError(message="cost must be a positive amount")

        vehicle = await self.vehicles.get_by_id(vehicle_id)
        if not vehicle:
            raise NotFoundError("VEHICLE_NOT_FOUND", "Vehicle not found")
        if await self.logs.get_open_for_vehicle(vehicle.id):
            raise ConflictError(
                "OPEN_LOG_EXISTS",
                "Vehicle already has an open service log. Close it before creating a new one.",
            )
        status = VehicleStatus(vehicle.status)
        if status == VehicleStatus.ON_TRIP:
            raise ConflictError(
                "VEHICLE_ON_TRIP", "Vehicle is on a trip and cannot enter the shop"
            )
        if status != VehicleStatus.AVAILABLE:
            raise ConflictError(
                "VEHICLE_NOT_AVAILABLE",
                f"Vehicle cannot enter the shop (current status: {status.value})",
            )

        async with atomic(self.session):
            if not await self.vehicles.claim(
                vehicle.id, VehicleStatus.AVAILABLE, VehicleStatus.IN_SHOP
            ):
                raise ConflictError(
                    "VEHICLE_NOT_AVAILABLE", "Vehicle status changed; retry"
                )
            log = await self.logs.create(
                MaintenanceLogModel(
                    vehicle_id=vehicle.id,
                    service_type=service_type,
                    description=description,
                    technician_name=technician_name,
                    cost=cost,
                    scheduled_date=scheduled_date or self.today(),
                    status=MaintenanceStatus.IN_PROGRESS,
                )
            )

        logger.info("Service log %s opened for vehicle %s", log.id, vehicle.id)
        self.publish(
            events.VEHICLE_IN_SHOP,
            {"vehicleId": vehicle.id, "plate": vehicle.license_plate},
        )
        return log

    async def complete_service_log(
        self,
        log_id: int,
        completed_date: date,
        final_cost: int | None = None,
    ) -> MaintenanceLogModel:
        if final_cost is not None and final_cost <= 0:
            raise ValidationError(message="final_cost must be a positive amount")

        async with atomic(self.session):
            log = await self.logs.get_by_id_for_update(log_id)
            if not log:
                raise NotFoundError("LOG_NOT_FOUND", "Service log not found")
            if MaintenanceStatus(log.status) == MaintenanceStatus.COMPLETED:
                raise ConflictError(
                    "LOG_ALREADY_COMPLETED", "Service log is already completed"
                )
            if log.scheduled_date and completed_date < log.scheduled_date:
                raise ValidationError(
                    message="completed_date cannot be before the scheduled date"
                )

            log.status = MaintenanceStatus.COMPLETED
            log.completed_date = completed_date
            if final_cost is not None:
                log.cost = final_cost

            vehicle = await self.vehicles.get_by_id(log.vehicle_id)
            released = VehicleStatus(vehicle.status) == VehicleStatus.IN_SHOP
            if released:
                vehicle.status = VehicleStatus.AVAILABLE
            else:
                logger.warning(
                    "Vehicle %s was %s while log %s was open",
                    vehicle.id, vehicle.status, log.id,
                )

        logger.info("Service log %s completed (cost=%s)", log.id, log.cost)
        if released:
            self.publish(
                events.VEHICLE_AVAILABLE,
                {"vehicleId": vehicle.id, "plate": vehicle.license_plate},
            )
        return log
