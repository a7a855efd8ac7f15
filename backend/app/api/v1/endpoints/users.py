"""
User Profile API Endpoints.

Users manage their own profile; admins manage every profile.
"""

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.guards import OwnershipGuard, require_admin, require_role
from backend.app.db.session import get_db
from backend.app.models.actor import Actor
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.schemas.user import (
    NewUser,
    UpdateUser,
    UserListResponse,
    UserResponse,
    user_to_response,
)
from backend.app.services import accounts

router = APIRouter(prefix="/users", tags=["Users"])
ownership_guard = OwnershipGuard()

USER_ROLES = [UserRole.USER, UserRole.ADMIN]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: NewUser,
    actor: Actor = Depends(require_role(USER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """
    Register a user profile.

    A user registers their own identity; an admin may pass ``id`` explicitly.
    """
    account_id = accounts.resolve_account_id(actor, user_data.id)
    ownership_guard.enforce(account_id, actor)
    user = await accounts.create_account(
        db, User, account_id, user_data.model_dump(exclude={"id"})
    )
    return user_to_response(user)


@router.get("", response_model=UserListResponse)
async def list_users(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    users = await accounts.list_accounts(db, User, limit, offset)
    return UserListResponse(users=[user_to_response(u) for u in users], limit=limit, offset=offset)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str = Path(..., min_length=1),
    actor: Actor = Depends(require_role(USER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    ownership_guard.enforce(user_id, actor)
    return user_to_response(await accounts.get_account(db, User, user_id))


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_data: UpdateUser,
    user_id: str = Path(..., min_length=1),
    actor: Actor = Depends(require_role(USER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    ownership_guard.enforce(user_id, actor)
    user = await accounts.update_account(db, User, user_id, user_data.model_dump(exclude_unset=True, exclude_none=True))
    return user_to_response(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str = Path(..., min_length=1),
    actor: Actor = Depends(require_role(USER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    ownership_guard.enforce(user_id, actor)
    await accounts.delete_account(db, User, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
