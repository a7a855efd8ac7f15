"""
Backing store health probes.

Each probe runs the lightest round-trip its store supports and reports the
latency in milliseconds.
"""

import logging
import time
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.pickup_store import PickupStore
from backend.app.schemas.health import HealthCheck

logger = logging.getLogger("pickups")


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


async def check_postgres_health(db: AsyncSession) -> HealthCheck:
    started = time.perf_counter()
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Relational store health check failed", extra={"error": str(exc)})
        return HealthCheck(
            status="unhealthy",
            timestamp=datetime.now(timezone.utc),
            latency=_elapsed_ms(started),
            error=str(exc),
        )
    return HealthCheck(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        latency=_elapsed_ms(started),
    )


async def check_pickup_store_health(store: PickupStore) -> HealthCheck:
    started = time.perf_counter()
    if await store.ping():
        return HealthCheck(
            status="healthy",
            timestamp=datetime.now(timezone.utc),
            latency=_elapsed_ms(started),
        )
    logger.warning("Pickup store health check failed")
    return HealthCheck(
        status="unhealthy",
        timestamp=datetime.now(timezone.utc),
        latency=_elapsed_ms(started),
        error="Pickup store did not answer ping",
    )
