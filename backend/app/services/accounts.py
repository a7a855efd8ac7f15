"""
Account profile service.

CRUD helpers shared by the User and Driver endpoints. Both models carry the
same contact and address columns, so the helpers take the model class.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ConflictError, NotFoundError
from backend.app.models.actor import Actor

logger = logging.getLogger("pickups")


def profile_columns(data: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a validated payload (``address`` nested) into column values."""
    columns = {key: value for key, value in data.items() if key != "address"}
    if data.get("address") is not None:
        columns.update(data["address"])
    return columns


def resolve_account_id(actor: Actor, requested_id: Optional[str]) -> str:
    """
    Pick the primary key for a new profile.

    Profiles are keyed by identity subject: callers register their own
    account, admins may register any subject (or get a fresh one). A
    non-admin naming someone else's id gets that id back, so the ownership
    guard refuses it.
    """
    if actor.is_admin:
        return requested_id or str(uuid.uuid4())
    return requested_id or actor.id


async def create_account(db: AsyncSession, model: Type, account_id: str, data: Dict[str, Any]):
    """
    Insert a profile row.

    Raises:
        ConflictError: If the id or email is already registered
    """
    account = model(id=account_id, **profile_columns(data))
    db.add(account)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"{model.__name__} already exists")
    await db.refresh(account)

    logger.info(f"{model.__name__} created", extra={"account_id": account_id})
    return account


async def get_account(db: AsyncSession, model: Type, account_id: str):
    result = await db.execute(select(model).where(model.id == account_id))
    account = result.scalar_one_or_none()
    if account is None:
        raise NotFoundError(model.__name__)
    return account


async def list_accounts(db: AsyncSession, model: Type, limit: int, offset: int) -> List:
    result = await db.execute(
        select(model).order_by(model.created_at, model.id).limit(limit).offset(offset)
    )
    return list(result.scalars().all())


async def update_account(db: AsyncSession, model: Type, account_id: str, data: Dict[str, Any]):
    account = await get_account(db, model, account_id)
    for column, value in profile_columns(data).items():
        setattr(account, column, value)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"{model.__name__} email already in use")
    await db.refresh(account)
    return account


async def delete_account(db: AsyncSession, model: Type, account_id: str) -> None:
    account = await get_account(db, model, account_id)
    await db.delete(account)
    await db.commit()
    logger.info(f"{model.__name__} deleted", extra={"account_id": account_id})
