"""
SQLAlchemy ORM models  (maps to PostgreSQL).

Tables
------
* ``vehicles``          -- fleet assets with capacity and availability status
* ``drivers``           -- licensed operators with duty status and performance
* ``trips``             -- cargo movements binding one vehicle to one driver
* ``maintenance_logs``  -- service records; at most one open per vehicle
* ``expenses``          -- append-only cost ledger (fuel, tolls, ...)

Indexes
-------
* **Unique** on ``vehicles.license_plate``, ``drivers.employee_id`` and
  ``drivers.license_number``.
* **Partial unique** on ``maintenance_logs.vehicle_id`` where
  ``status = 'IN_PROGRESS'`` -- backs the one-open-log-per-vehicle rule.
* **B-Tree** on the ``(driver_id, status)`` / ``(vehicle_id, status)`` pairs
  used by the completion-rate and active-trip counts.
"""

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)

from .database import Base
from fleetflow.domain.enums import (
    DriverStatus,
    ExpenseType,
    MaintenanceStatus,
    ServiceType,
    TripStatus,
    VehicleStatus,
    VehicleType,
)


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    model = Column(String(120), nullable=False)
    license_plate = Column(String(32), unique=True, nullable=False)
    year = Column(Integer, nullable=False)
    type = Column(Enum(VehicleType, name="vehicletype"), nullable=False)
    max_capacity = Column(Float, nullable=False)  # kg
    odometer = Column(Float, default=0.0, nullable=False)  # km
    status = Column(
        Enum(VehicleStatus, name="vehiclestatus"),
        default=VehicleStatus.AVAILABLE,
        nullable=False,
    )
    acquisition_cost = Column(Integer, nullable=True)  # smallest currency unit
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        Index("idx_vehicles_status", "status"),
        Index("idx_vehicles_type", "type"),
    )


class DriverModel(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    employee_id = Column(String(64), unique=True, nullable=False)
    license_number = Column(String(64), unique=True, nullable=False)
    license_expiry = Column(Date, nullable=False)
    # list of VehicleType values; JSON keeps it portable across backends
    authorized_types = Column(JSON, nullable=False, default=list)
    phone = Column(String(32), nullable=True)
    duty_status = Column(
        Enum(DriverStatus, name="driverstatus"),
        default=DriverStatus.ON_DUTY,
        nullable=False,
    )
    completed_trips = Column(Integer, default=0, nullable=False)
    completion_rate = Column(Float, default=100.0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        Index("idx_drivers_duty_status", "duty_status"),
        Index("idx_drivers_license_expiry", "license_expiry"),
    )


class TripModel(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=False)
    origin = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    cargo_weight = Column(Float, nullable=False)  # kg
    status = Column(
        Enum(TripStatus, name="tripstatus"),
        default=TripStatus.DRAFT,
        nullable=False,
    )
    odometer_start = Column(Float, nullable=True)
    odometer_end = Column(Float, nullable=True)
    dispatched_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    revenue = Column(Integer, nullable=True)
    estimated_fuel_cost = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        Index("idx_trips_status", "status"),
        Index("idx_trips_driver_status", "driver_id", "status"),
        Index("idx_trips_vehicle_status", "vehicle_id", "status"),
    )


class MaintenanceLogModel(Base):
    __tablename__ = "maintenance_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    service_type = Column(Enum(ServiceType, name="servicetype"), nullable=False)
    description = Column(Text, nullable=True)
    technician_name = Column(String(120), nullable=True)
    cost = Column(Integer, default=0, nullable=False)
    scheduled_date = Column(Date, nullable=True)
    completed_date = Column(Date, nullable=True)
    status = Column(
        Enum(MaintenanceStatus, name="maintenancestatus"),
        default=MaintenanceStatus.IN_PROGRESS,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        Index("idx_maintenance_vehicle", "vehicle_id"),
        Index(
            "uq_maintenance_open_per_vehicle",
            "vehicle_id",
            unique=True,
            postgresql_where=text("status = 'IN_PROGRESS'"),
            sqlite_where=text("status = 'IN_PROGRESS'"),
        ),
    )


class ExpenseModel(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=True)
    type = Column(Enum(ExpenseType, name="expensetype"), nullable=False)
    total_cost = Column(Integer, nullable=False)  # smallest currency unit
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    receipt_ref = Column(String(120), nullable=True)

    # Fuel-only columns
    liters = Column(Float, nullable=True)
    cost_per_liter = Column(Integer, nullable=True)
    odometer_at_fill = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        Index("idx_expenses_vehicle", "vehicle_id"),
        Index("idx_expenses_type", "type"),
    )
