"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates (through the services, so every business rule applies):
  - 8 vehicles (trucks, vans, bikes), one retired
  - 6 drivers, one with an expired license and one expiring soon
  - 4 trips: one completed, one dispatched, one draft, one cancelled
  - 1 open and 1 completed service log
  - fuel and toll expenses on the completed trip
"""

import asyncio
from datetime import date, timedelta

from sqlalchemy import text

from fleetflow.domain.enums import ServiceType, TripStatus, VehicleType
from fleetflow.infrastructure.database import async_session_factory, engine
from fleetflow.services.drivers import DriverService
from fleetflow.services.expenses import ExpenseService
from fleetflow.services.maintenance import MaintenanceService
from fleetflow.services.trips import TripService
from fleetflow.services.vehicles import VehicleService

TODAY = date.today()

VEHICLES = [
    {"name": "Tata Prima 1", "model": "Prima 4028.S", "license_plate": "MH-12-AB-1001",
     "year": 2021, "type": VehicleType.TRUCK, "max_capacity": 12000, "odometer": 84200,
     "acquisition_cost": 3_200_000_00},
    {"name": "Tata Prima 2", "model": "Prima 4028.S", "license_plate": "MH-12-AB-1002",
     "year": 2022, "type": VehicleType.TRUCK, "max_capacity": 12000, "odometer": 51300,
     "acquisition_cost": 3_350_000_00},
    {"name": "Ashok Ecomet", "model": "Ecomet 1615", "license_plate": "MH-14-CD-2001",
     "year": 2019, "type": VehicleType.TRUCK, "max_capacity": 9000, "odometer": 142800},
    {"name": "Eeco Cargo 1", "model": "Eeco Cargo", "license_plate": "MH-12-EF-3001",
     "year": 2023, "type": VehicleType.VAN, "max_capacity": 600, "odometer": 12400,
     "acquisition_cost": 550_000_00},
    {"name": "Eeco Cargo 2", "model": "Eeco Cargo", "license_plate": "MH-12-EF-3002",
     "year": 2023, "type": VehicleType.VAN, "max_capacity": 600, "odometer": 9800},
    {"name": "Super Carry", "model": "Super Carry", "license_plate": "MH-14-GH-4001",
     "year": 2020, "type": VehicleType.VAN, "max_capacity": 740, "odometer": 66100},
    {"name": "Courier Bike 1", "model": "Splendor Plus", "license_plate": "MH-12-IJ-5001",
     "year": 2022, "type": VehicleType.BIKE, "max_capacity": 40, "odometer": 23100},
    {"name": "Courier Bike 2", "model": "Splendor Plus", "license_plate": "MH-12-IJ-5002",
     "year": 2015, "type": VehicleType.BIKE, "max_capacity": 40, "odometer": 98400},
]

DRIVERS = [
    {"name": "Ramesh Yadav", "employee_id": "EMP-001", "license_number": "MH1220190001",
     "license_expiry": TODAY + timedelta(days=900), "authorized_types": ["TRUCK", "VAN"]},
    {"name": "Suresh Patil", "employee_id": "EMP-002", "license_number": "MH1220180002",
     "license_expiry": TODAY + timedelta(days=400), "authorized_types": ["TRUCK"]},
    {"name": "Anita Desai", "employee_id": "EMP-003", "license_number": "MH1420200003",
     "license_expiry": TODAY + timedelta(days=700), "authorized_types": ["VAN", "BIKE"]},
    {"name": "Imran Shaikh", "employee_id": "EMP-004", "license_number": "MH1220210004",
     "license_expiry": TODAY + timedelta(days=12), "authorized_types": ["VAN"]},
    {"name": "Kavita Rao", "employee_id": "EMP-005", "license_number": "MH1220170005",
     "license_expiry": TODAY - timedelta(days=5), "authorized_types": ["BIKE"]},
    {"name": "Deepak Jadhav", "employee_id": "EMP-006", "license_number": "MH1420220006",
     "license_expiry": TODAY + timedelta(days=1500), "authorized_types": ["BIKE", "VAN"]},
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM vehicles"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        vehicle_service = VehicleService(session)
        driver_service = DriverService(session)
        trip_service = TripService(session)
        maintenance_service = MaintenanceService(session)
        expense_service = ExpenseService(session)

        # ── Vehicles ──────────────────────────────────────────────────
        vehicles = [await vehicle_service.create_vehicle(**v) for v in VEHICLES]
        await vehicle_service.retire(vehicles[7].id)
        print(f"  Created {len(vehicles)} vehicles")

        # ── Drivers ───────────────────────────────────────────────────
        drivers = [await driver_service.create_driver(**d) for d in DRIVERS]
        print(f"  Created {len(drivers)} drivers")

        # ── Trips ─────────────────────────────────────────────────────
        completed = await trip_service.create_trip(
            vehicle_id=vehicles[0].id, driver_id=drivers[0].id, cargo_weight=8500,
            origin="Pune", destination="Mumbai", revenue=45_000_00,
        )
        await trip_service.complete_trip(completed.id, vehicles[0].odometer + 152)

        await trip_service.create_trip(
            vehicle_id=vehicles[1].id, driver_id=drivers[1].id, cargo_weight=11000,
            origin="Pune", destination="Nashik", revenue=38_000_00,
            estimated_fuel_cost=9_500_00,
        )
        await trip_service.create_trip(
            vehicle_id=vehicles[3].id, driver_id=drivers[2].id, cargo_weight=450,
            origin="Hinjewadi", destination="Kothrud", status=TripStatus.DRAFT,
        )
        cancelled = await trip_service.create_trip(
            vehicle_id=vehicles[6].id, driver_id=drivers[5].id, cargo_weight=25,
            origin="Baner", destination="Aundh",
        )
        await trip_service.cancel_trip(cancelled.id)
        print("  Created 4 trips")

        # ── Maintenance ───────────────────────────────────────────────
        done = await maintenance_service.open_service_log(
            vehicles[2].id, service_type=ServiceType.OIL_CHANGE, cost=4_500_00,
            scheduled_date=TODAY - timedelta(days=3), technician_name="Vilas Garage",
        )
        await maintenance_service.complete_service_log(done.id, TODAY, final_cost=4_800_00)
        await maintenance_service.open_service_log(
            vehicles[5].id, service_type=ServiceType.BRAKE_SERVICE, cost=7_200_00,
            description="Front pads worn",
        )
        print("  Created 2 service logs")

        # ── Expenses ──────────────────────────────────────────────────
        await expense_service.create_fuel_log(
            vehicle_id=vehicles[0].id, trip_id=completed.id, liters=62.5,
            cost_per_liter=94_50, odometer_at_fill=vehicles[0].odometer, date=TODAY,
        )
        await expense_service.create_expense(
            vehicle_id=vehicles[0].id, trip_id=completed.id, type="TOLL",
            amount=1_250_00, date=TODAY, description="Expressway toll",
        )
        print("  Created 2 expenses")

        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
