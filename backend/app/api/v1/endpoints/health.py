"""
Store Health API Endpoints (admin only).

Return 200 when the store is healthy and 500 with the same body otherwise.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.guards import require_admin
from backend.app.core.redis_client import get_pickup_store
from backend.app.db.pickup_store import PickupStore
from backend.app.db.session import get_db
from backend.app.models.actor import Actor
from backend.app.schemas.health import HealthCheck
from backend.app.services.health import check_pickup_store_health, check_postgres_health

router = APIRouter(prefix="/health", tags=["Health"])


def _respond(check: HealthCheck) -> JSONResponse:
    return JSONResponse(
        status_code=200 if check.status == "healthy" else 500,
        content=check.model_dump(mode="json", exclude_none=True),
    )


@router.get("/postgres", response_model=HealthCheck)
async def postgres_health(
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return _respond(await check_postgres_health(db))


@router.get("/redis", response_model=HealthCheck)
async def redis_health(
    actor: Actor = Depends(require_admin),
    store: PickupStore = Depends(get_pickup_store),
):
    return _respond(await check_pickup_store_health(store))
