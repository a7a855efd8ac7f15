"""
Data-dependent authorization for pickups.

Evaluated after the record is loaded, since visibility depends on who owns
the pickup, who is assigned to it and what status it is in.
"""

import enum
from typing import Optional

from backend.app.domain.pickups.decisions import NOT_AUTHORIZED, NOT_FOUND, Allow, Decision
from backend.app.models.actor import Actor
from backend.app.models.enums import UserRole
from backend.app.models.pickup import Pickup, PickupStatus


class Action(str, enum.Enum):
    READ = "read"
    WRITE = "write"


def can_access(
    actor: Actor,
    owner_id: str,
    driver_id: Optional[str],
    status: PickupStatus,
    action: Action,
) -> Decision:
    # Admin sees and touches everything, deleted records included
    if actor.is_admin:
        return Allow()

    # Deleted records don't exist for anyone else
    if status == PickupStatus.DELETED:
        return NOT_FOUND

    if action == Action.WRITE:
        # Which writes are allowed depends on the transition; see state_machine
        return Allow()

    if actor.role == UserRole.USER and actor.id == owner_id:
        return Allow()
    if actor.role == UserRole.DRIVER:
        if status == PickupStatus.AVAILABLE or (driver_id is not None and driver_id == actor.id):
            return Allow()
    return NOT_AUTHORIZED


def can_read(actor: Actor, pickup: Pickup) -> Decision:
    return can_access(actor, pickup.user_id, pickup.driver_id, pickup.status, Action.READ)


def can_write(actor: Actor, pickup: Pickup) -> Decision:
    return can_access(actor, pickup.user_id, pickup.driver_id, pickup.status, Action.WRITE)
