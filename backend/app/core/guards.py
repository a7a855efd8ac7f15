"""
Security guards for role-based and ownership-based access control.

Static role sets are checked before any record is loaded; the data-dependent
part of authorization lives with the resource (see ``domain.pickups.access``).
"""

from typing import Iterable, List
from fastapi import Depends
from backend.app.core.dependencies import get_current_actor
from backend.app.core.exceptions import ForbiddenError
from backend.app.models.actor import Actor
from backend.app.models.enums import UserRole


def require_role(allowed_roles: Iterable[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/pickups")
        async def list_pickups(actor: Actor = Depends(require_role([UserRole.ADMIN]))):
            ...

    Raises:
        ForbiddenError 403 if the actor's role is not in allowed_roles
    """
    allowed: List[UserRole] = list(allowed_roles)

    async def role_checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in allowed:
            raise ForbiddenError()
        return actor

    return role_checker


def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Dependency for admin-only endpoints."""
    if not actor.is_admin:
        raise ForbiddenError()
    return actor


def verify_self_or_admin(actor: Actor, account_id: str) -> bool:
    """
    Verify that the actor owns the account being accessed.

    Admins can access everything; everyone else only their own account.
    """
    return actor.is_admin or actor.id == account_id


class OwnershipGuard:
    """
    Ownership guard for account resources.

    Usage:
        ownership_guard = OwnershipGuard()

        @router.get("/users/{user_id}")
        async def get_user(user_id: str, actor: Actor = Depends(...)):
            ownership_guard.enforce(user_id, actor)
            ...
    """

    def enforce(self, account_id: str, actor: Actor) -> None:
        """Raise 403 if the actor may not touch the account."""
        if not verify_self_or_admin(actor, account_id):
            raise ForbiddenError("Not authorized")


# Static role sets per pickup operation
PICKUP_CREATE_ROLES = (UserRole.USER, UserRole.ADMIN)
PICKUP_LIST_ROLES = (UserRole.ADMIN,)
PICKUP_READ_ROLES = (UserRole.USER, UserRole.DRIVER, UserRole.ADMIN)
PICKUP_WRITE_ROLES = (UserRole.USER, UserRole.ADMIN)
PICKUP_AVAILABLE_ROLES = (UserRole.DRIVER, UserRole.ADMIN)
PICKUP_ACCEPT_ROLES = (UserRole.DRIVER, UserRole.ADMIN)
PICKUP_CANCEL_ROLES = (UserRole.USER, UserRole.DRIVER, UserRole.ADMIN)
