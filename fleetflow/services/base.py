"""
Shared plumbing for the lifecycle services.

``atomic`` wraps the mutating part of an operation: it commits when the
block finishes, rolls back on any error and translates the store's
uniqueness violations into ``DuplicateRecordError``.  Domain events must be
published *after* the block exits, never inside it.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import AsyncIterator, Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetflow.domain.errors import DuplicateRecordError
from fleetflow.infrastructure.event_bus import EventBus

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit on success, rollback on error."""
    try:
        yield session
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        logger.info("Integrity error translated to DUPLICATE_RECORD: %s", exc.orig)
        raise DuplicateRecordError(
            message="A record with these unique fields already exists"
        ) from exc
    except Exception:
        await session.rollback()
        raise


class BaseService:
    def __init__(
        self,
        session: AsyncSession,
        events: Optional[EventBus] = None,
        clock: Clock = utcnow,
    ):
        self.session = session
        self.events = events
        self.clock = clock

    def today(self) -> date:
        return self.clock().date()

    def publish(self, topic: str, payload: dict) -> None:
        if self.events is None:
            logger.debug("No event bus configured; dropping %s", topic)
            return
        self.events.publish(topic, payload)
