"""Vehicle registration, updates, retirement and reactivation."""

from __future__ import annotations

import pytest

from fleetflow.domain.enums import TripStatus, VehicleStatus, VehicleType
from fleetflow.domain.errors import (
    ConflictError,
    DuplicateRecordError,
    NotFoundError,
    UnprocessableError,
    ValidationError,
)
from fleetflow.infrastructure.models import DriverModel, TripModel, VehicleModel


class TestRegistration:
    @pytest.mark.asyncio
    async def test_new_vehicle_is_available(self, make_vehicle):
        vehicle = await make_vehicle()
        assert vehicle.id is not None
        assert vehicle.status == VehicleStatus.AVAILABLE

    @pytest.mark.asyncio
    async def test_duplicate_plate(self, make_vehicle):
        await make_vehicle(license_plate="MH-01-ZZ-0001")
        with pytest.raises(DuplicateRecordError) as exc:
            await make_vehicle(license_plate="MH-01-ZZ-0001")
        assert exc.value.code == "DUPLICATE_RECORD"
        assert exc.value.status_code == 409

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_capacity": 0},
            {"odometer": -1},
            {"year": 1989},
            {"year": 2100},
            {"acquisition_cost": 0},
            {"type": "BUS"},
            {"name": "X"},
        ],
    )
    async def test_rejects_invalid_input(self, make_vehicle, overrides):
        with pytest.raises(ValidationError):
            await make_vehicle(**overrides)

    @pytest.mark.asyncio
    async def test_filters(self, make_vehicle, vehicle_service):
        await make_vehicle(type=VehicleType.TRUCK)
        van = await make_vehicle(type=VehicleType.VAN)
        vans = await vehicle_service.list_vehicles(vehicle_type=VehicleType.VAN)
        assert [v.id for v in vans] == [van.id]
        assert len(await vehicle_service.list_available()) == 2

    @pytest.mark.asyncio
    async def test_get_unknown(self, vehicle_service):
        with pytest.raises(NotFoundError) as exc:
            await vehicle_service.get_vehicle(404)
        assert exc.value.code == "VEHICLE_NOT_FOUND"


class TestUpdate:
    @pytest.mark.asyncio
    async def test_mutable_fields(self, make_vehicle, vehicle_service):
        vehicle = await make_vehicle(odometer=100.0)
        updated = await vehicle_service.update_vehicle(
            vehicle.id, name="Renamed", max_capacity=2000.0, odometer=150.0
        )
        assert updated.name == "Renamed"
        assert updated.max_capacity == 2000.0
        assert updated.odometer == 150.0

    @pytest.mark.asyncio
    async def test_registration_fields_are_immutable(self, make_vehicle, vehicle_service):
        vehicle = await make_vehicle()
        with pytest.raises(ValidationError):
            await vehicle_service.update_vehicle(vehicle.id, license_plate="NEW-PLATE")

    @pytest.mark.asyncio
    async def test_odometer_cannot_decrease(self, make_vehicle, vehicle_service):
        vehicle = await make_vehicle(odometer=100.0)
        with pytest.raises(UnprocessableError) as exc:
            await vehicle_service.update_vehicle(vehicle.id, odometer=99.0)
        assert exc.value.code == "INVALID_ODOMETER"


class TestRetirement:
    @pytest.mark.asyncio
    async def test_retire_and_reactivate(self, make_vehicle, vehicle_service):
        vehicle = await make_vehicle()
        retired = await vehicle_service.retire(vehicle.id)
        assert retired.status == VehicleStatus.RETIRED
        # idempotent
        again = await vehicle_service.retire(vehicle.id)
        assert again.status == VehicleStatus.RETIRED

        back = await vehicle_service.reactivate(vehicle.id)
        assert back.status == VehicleStatus.AVAILABLE

    @pytest.mark.asyncio
    async def test_reactivate_requires_retired(self, make_vehicle, vehicle_service):
        vehicle = await make_vehicle()
        with pytest.raises(ConflictError) as exc:
            await vehicle_service.reactivate(vehicle.id)
        assert exc.value.code == "VEHICLE_NOT_RETIRED"

    @pytest.mark.asyncio
    async def test_cannot_retire_on_trip(
        self, make_vehicle, make_driver, trip_service, vehicle_service
    ):
        vehicle = await make_vehicle()
        driver = await make_driver()
        await trip_service.create_trip(
            vehicle_id=vehicle.id, driver_id=driver.id, cargo_weight=10,
            origin="Pune", destination="Mumbai",
        )
        with pytest.raises(ConflictError) as exc:
            await vehicle_service.retire(vehicle.id)
        assert exc.value.code == "ACTIVE_TRIPS_EXIST"

    @pytest.mark.asyncio
    async def test_cannot_retire_in_shop(
        self, make_vehicle, maintenance_service, vehicle_service
    ):
        vehicle = await make_vehicle()
        vehicle_id = vehicle.id
        await maintenance_service.open_service_log(
            vehicle_id, service_type="ENGINE_REPAIR", cost=50_000
        )
        with pytest.raises(ConflictError) as exc:
            await vehicle_service.retire(vehicle_id)
        assert exc.value.code == "OPEN_LOG_EXISTS"

    @pytest.mark.asyncio
    async def test_retire_cancels_drafts(
        self, make_vehicle, make_driver, trip_service, vehicle_service, db_session
    ):
        vehicle = await make_vehicle()
        driver = await make_driver()
        draft = await trip_service.create_trip(
            vehicle_id=vehicle.id, driver_id=driver.id, cargo_weight=10,
            origin="Pune", destination="Mumbai", status="DRAFT",
        )
        await vehicle_service.retire(vehicle.id)

        trip = await db_session.get(TripModel, draft.id)
        await db_session.refresh(trip)
        assert trip.status == TripStatus.CANCELLED
        refreshed = await db_session.get(DriverModel, driver.id)
        await db_session.refresh(refreshed)
        assert refreshed.completion_rate == 0.0


class TestSetStatus:
    @pytest.mark.asyncio
    async def test_derived_states_cannot_be_requested(self, make_vehicle, vehicle_service):
        vehicle = await make_vehicle()
        for status in ("ON_TRIP", "IN_SHOP"):
            with pytest.raises(ValidationError):
                await vehicle_service.set_status(vehicle.id, status)

    @pytest.mark.asyncio
    async def test_routes_to_retire_and_reactivate(
        self, make_vehicle, vehicle_service, db_session
    ):
        vehicle = await make_vehicle()
        await vehicle_service.set_status(vehicle.id, "RETIRED")
        assert (await db_session.get(VehicleModel, vehicle.id)).status == VehicleStatus.RETIRED
        await vehicle_service.set_status(vehicle.id, VehicleStatus.AVAILABLE)
        assert (await db_session.get(VehicleModel, vehicle.id)).status == VehicleStatus.AVAILABLE
