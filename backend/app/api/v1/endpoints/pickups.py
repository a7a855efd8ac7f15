"""
Pickup API Endpoints.

Every handler follows the same pipeline: the role guard authenticates and
checks the static role set, FastAPI validates path/query/body, and
``PickupService`` loads the record, applies the gate and status machine and
performs the conditional write.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from backend.app.core.config import settings
from backend.app.core.exceptions import BadRequestError
from backend.app.core.guards import (
    PICKUP_ACCEPT_ROLES,
    PICKUP_AVAILABLE_ROLES,
    PICKUP_CANCEL_ROLES,
    PICKUP_CREATE_ROLES,
    PICKUP_LIST_ROLES,
    PICKUP_READ_ROLES,
    PICKUP_WRITE_ROLES,
    require_role,
)
from backend.app.core.redis_client import get_pickup_store
from backend.app.db.pagination import InvalidCursorError, PickupFilter, decode_cursor
from backend.app.db.pickup_store import PickupStore
from backend.app.domain.pickups.service import PickupService
from backend.app.models.actor import Actor
from backend.app.models.pickup import PickupStatus, as_utc
from backend.app.schemas.pickup import NewPickup, PickupListResponse, UpdatePickup

router = APIRouter(prefix="/pickups", tags=["Pickups"])


def get_pickup_service(store: PickupStore = Depends(get_pickup_store)) -> PickupService:
    return PickupService(store)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_pickup(
    pickup_data: NewPickup,
    actor: Actor = Depends(require_role(PICKUP_CREATE_ROLES)),
    service: PickupService = Depends(get_pickup_service),
):
    """Create a pickup request in status ``pending`` owned by the caller."""
    pickup = await service.create(actor, pickup_data.to_fields())
    return pickup.to_document()


@router.get("", response_model=PickupListResponse, response_model_exclude_none=True)
async def list_pickups(
    statuses: Optional[List[PickupStatus]] = Query(None, alias="status"),
    limit: int = Query(settings.pickup_page_default, ge=1, le=settings.pickup_page_max),
    cursor: Optional[str] = Query(None, min_length=1),
    start_requested_time: Optional[datetime] = Query(None, alias="startRequestedTime"),
    end_requested_time: Optional[datetime] = Query(None, alias="endRequestedTime"),
    reverse: bool = Query(False),
    actor: Actor = Depends(require_role(PICKUP_LIST_ROLES)),
    service: PickupService = Depends(get_pickup_service),
):
    """
    List pickups (admin only).

    Filters combine: any of the given statuses, and a requested-time range
    with inclusive bounds. ``nextCursor`` is returned while more results exist.
    """
    if cursor is not None:
        try:
            decode_cursor(cursor)
        except InvalidCursorError:
            raise BadRequestError(
                "Invalid input: cursor",
                errors=[{"field": "cursor", "message": "Malformed pagination cursor"}],
            )

    pickup_filter = PickupFilter(
        statuses=frozenset(statuses or ()),
        limit=limit,
        cursor=cursor,
        start_requested_time=as_utc(start_requested_time),
        end_requested_time=as_utc(end_requested_time),
        reverse=reverse,
    )
    page = await service.list(actor, pickup_filter)
    return PickupListResponse(
        pickups=[pickup.to_document() for pickup in page.pickups],
        next_cursor=page.next_cursor,
    )


@router.get("/available")
async def list_available_pickups(
    actor: Actor = Depends(require_role(PICKUP_AVAILABLE_ROLES)),
    service: PickupService = Depends(get_pickup_service),
):
    """List every pickup currently open for drivers to accept."""
    pickups = await service.list_available(actor)
    return [pickup.to_document() for pickup in pickups]


@router.get("/{pickup_id}")
async def get_pickup(
    pickup_id: str = Path(..., min_length=1),
    actor: Actor = Depends(require_role(PICKUP_READ_ROLES)),
    service: PickupService = Depends(get_pickup_service),
):
    pickup = await service.get(actor, pickup_id)
    return pickup.to_document()


@router.put("/{pickup_id}")
async def update_pickup(
    update_data: UpdatePickup,
    pickup_id: str = Path(..., min_length=1),
    actor: Actor = Depends(require_role(PICKUP_WRITE_ROLES)),
    service: PickupService = Depends(get_pickup_service),
):
    """
    Update a pickup.

    Owners may edit their pickup until it is accepted and may publish it
    (``pending`` -> ``available``). Admins may also set any other status.
    """
    pickup = await service.update(actor, pickup_id, update_data.to_fields(), update_data.status)
    return pickup.to_document()


@router.delete("/{pickup_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pickup(
    pickup_id: str = Path(..., min_length=1),
    hard_delete: bool = Query(False, alias="hardDelete"),
    actor: Actor = Depends(require_role(PICKUP_WRITE_ROLES)),
    service: PickupService = Depends(get_pickup_service),
):
    """Soft delete a pickup, or remove it for good with ``hardDelete=true`` (admin only)."""
    await service.delete(actor, pickup_id, hard=hard_delete)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{pickup_id}/accept")
async def accept_pickup(
    pickup_id: str = Path(..., min_length=1),
    actor: Actor = Depends(require_role(PICKUP_ACCEPT_ROLES)),
    service: PickupService = Depends(get_pickup_service),
):
    pickup = await service.accept(actor, pickup_id)
    return pickup.to_document()


@router.post("/{pickup_id}/cancel-acceptance")
async def cancel_acceptance(
    pickup_id: str = Path(..., min_length=1),
    actor: Actor = Depends(require_role(PICKUP_CANCEL_ROLES)),
    service: PickupService = Depends(get_pickup_service),
):
    """Hand an accepted pickup back; the pickup ends up ``cancelled`` with no driver."""
    pickup = await service.cancel_acceptance(actor, pickup_id)
    return pickup.to_document()
