"""
FastAPI application factory.

* Registers routes for vehicles, drivers, trips, maintenance, expenses and admin.
* Owns the domain event bus and wires the logging subscribers onto it.
* Starts / stops the background license-expiry worker via lifespan events.
* Applies rate-limiting middleware and the JSON error handlers.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from fleetflow.api.errors import register_exception_handlers
from fleetflow.api.middleware import limiter
from fleetflow.api.routes import admin, drivers, expenses, maintenance, trips, vehicles
from fleetflow.config import settings
from fleetflow.infrastructure.database import dispose_engine
from fleetflow.infrastructure.event_bus import EventBus
from fleetflow.infrastructure.event_handlers import register_logging_handlers
from fleetflow.infrastructure.redis_client import create_redis
from fleetflow.workers import license_checker

logging.basicConfig(level=settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the license worker on startup; stop it and drain the bus on shutdown."""
    redis = None
    if settings.license_check_enabled:
        redis = create_redis()
        await license_checker.start_license_check_loop(app.state.event_bus, redis)
    yield
    if redis is not None:
        await license_checker.stop_license_check_loop()
        await redis.aclose()
    app.state.event_bus.clear()
    await dispose_engine()


def create_app() -> FastAPI:
    app = FastAPI(
        title="FleetFlow API",
        description=(
            "Fleet operations backend: vehicles, drivers, trips, maintenance "
            "and expenses, with dispatch rules enforced atomically across "
            "vehicle and driver state."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Domain events
    app.state.event_bus = EventBus()
    register_logging_handlers(app.state.event_bus)

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_exception_handlers(app)

    # Routers
    for module in (vehicles, drivers, trips, maintenance, expenses, admin):
        app.include_router(module.router, prefix="/api/v1")

    return app
