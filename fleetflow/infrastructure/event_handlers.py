"""Logging subscribers for the domain events."""

from __future__ import annotations

import logging

from .event_bus import EventBus
from fleetflow.domain import events

logger = logging.getLogger("fleetflow.events")


def _on_trip_dispatched(payload: dict) -> None:
    logger.info(
        "Trip %s dispatched with vehicle %s and driver %s",
        payload["tripId"], payload["vehicleId"], payload["driverId"],
    )


def _on_trip_completed(payload: dict) -> None:
    logger.info(
        "Trip %s completed. Vehicle %s odometer updated to %s",
        payload["tripId"], payload["vehicleId"], payload["odometerEnd"],
    )


def _on_vehicle_in_shop(payload: dict) -> None:
    logger.info("Vehicle %s moved to IN_SHOP for maintenance", payload["plate"])


def _on_vehicle_available(payload: dict) -> None:
    logger.info("Vehicle %s is now AVAILABLE for dispatch", payload["plate"])


def _on_license_expired(payload: dict) -> None:
    logger.warning(
        "Driver %s (%s) suspended: license expired",
        payload["name"], payload["driverId"],
    )


def register_logging_handlers(bus: EventBus) -> None:
    bus.subscribe(events.TRIP_DISPATCHED, _on_trip_dispatched)
    bus.subscribe(events.TRIP_COMPLETED, _on_trip_completed)
    bus.subscribe(events.VEHICLE_IN_SHOP, _on_vehicle_in_shop)
    bus.subscribe(events.VEHICLE_AVAILABLE, _on_vehicle_available)
    bus.subscribe(events.DRIVER_LICENSE_EXPIRED, _on_license_expired)
