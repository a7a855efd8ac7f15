"""
Redis client and pickup store wiring.

The store is created per application in the lifespan handler and kept on
``app.state``; request handlers receive it through ``get_pickup_store``.
"""

import redis.asyncio as redis
from fastapi import Request

from backend.app.core.config import settings
from backend.app.db.memory_pickup_store import InMemoryPickupStore
from backend.app.db.pickup_store import PickupStore
from backend.app.db.redis_pickup_store import RedisPickupStore


def create_redis():
    """Create an async Redis client from settings."""
    return redis.from_url(
        settings.redis_url,
        decode_responses=settings.redis_decode_responses,
    )


def create_pickup_store(redis_client=None) -> PickupStore:
    """Build the configured pickup store backend."""
    if settings.pickup_store_backend == "memory":
        return InMemoryPickupStore()
    return RedisPickupStore(redis_client or create_redis(), prefix=settings.pickup_key_prefix)


async def get_pickup_store(request: Request) -> PickupStore:
    """FastAPI dependency returning the application's pickup store."""
    return request.app.state.pickup_store
