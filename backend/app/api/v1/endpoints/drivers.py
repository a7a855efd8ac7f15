"""
Driver Profile API Endpoints.

Drivers manage their own profile; admins manage every profile.
"""

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.guards import OwnershipGuard, require_admin, require_role
from backend.app.db.session import get_db
from backend.app.models.actor import Actor
from backend.app.models.driver import Driver
from backend.app.models.enums import UserRole
from backend.app.schemas.driver import (
    DriverListResponse,
    DriverResponse,
    NewDriver,
    UpdateDriver,
    driver_to_response,
)
from backend.app.services import accounts

router = APIRouter(prefix="/drivers", tags=["Drivers"])
ownership_guard = OwnershipGuard()

DRIVER_ROLES = [UserRole.DRIVER, UserRole.ADMIN]


@router.post("", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def create_driver(
    driver_data: NewDriver,
    actor: Actor = Depends(require_role(DRIVER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    account_id = accounts.resolve_account_id(actor, driver_data.id)
    ownership_guard.enforce(account_id, actor)
    driver = await accounts.create_account(
        db, Driver, account_id, driver_data.model_dump(exclude={"id"})
    )
    return driver_to_response(driver)


@router.get("", response_model=DriverListResponse)
async def list_drivers(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    drivers = await accounts.list_accounts(db, Driver, limit, offset)
    return DriverListResponse(
        drivers=[driver_to_response(d) for d in drivers], limit=limit, offset=offset
    )


@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver(
    driver_id: str = Path(..., min_length=1),
    actor: Actor = Depends(require_role(DRIVER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    ownership_guard.enforce(driver_id, actor)
    return driver_to_response(await accounts.get_account(db, Driver, driver_id))


@router.put("/{driver_id}", response_model=DriverResponse)
async def update_driver(
    driver_data: UpdateDriver,
    driver_id: str = Path(..., min_length=1),
    actor: Actor = Depends(require_role(DRIVER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    ownership_guard.enforce(driver_id, actor)
    driver = await accounts.update_account(
        db, Driver, driver_id, driver_data.model_dump(exclude_unset=True, exclude_none=True)
    )
    return driver_to_response(driver)


@router.delete("/{driver_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_driver(
    driver_id: str = Path(..., min_length=1),
    actor: Actor = Depends(require_role(DRIVER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    ownership_guard.enforce(driver_id, actor)
    await accounts.delete_account(db, Driver, driver_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
