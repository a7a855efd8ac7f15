"""
Pickup status machine.

Pure decision logic: given the current record, the actor and the requested
transition, return ``Allow(changes, expected_status)`` or ``Deny(reason, message)``.
The service writes ``changes`` conditioned on ``expected_status`` so that a
concurrent transition that got there first makes this one fail cleanly.

Status flow:
    pending -> available                    publish (owner or admin)
    available -> accepted                   accept (driver or admin)
    accepted -> cancelled                   cancel-acceptance (assigned driver, owner, admin)
    available/accepted/cancelled -> deleted soft delete (owner or admin)
    any -> (removed)                        hard delete (admin)
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

from backend.app.db.pickup_store import REMOVE, Set, UpdateInstruction
from backend.app.domain.pickups.decisions import (
    NOT_AUTHORIZED,
    NOT_FOUND,
    Allow,
    Decision,
    Deny,
    DenyReason,
)
from backend.app.models.actor import Actor
from backend.app.models.enums import UserRole
from backend.app.models.pickup import DRIVER_ASSIGNED_STATUSES, Pickup, PickupStatus


class Transition(str, enum.Enum):
    PUBLISH = "publish"
    ACCEPT = "accept"
    CANCEL_ACCEPTANCE = "cancel_acceptance"
    UPDATE = "update"
    SET_STATUS = "set_status"
    SOFT_DELETE = "soft_delete"
    HARD_DELETE = "hard_delete"


@dataclass(frozen=True)
class TransitionRule:
    allowed_from: FrozenSet[PickupStatus]
    roles: FrozenSet[UserRole]


ALL_STATUSES = frozenset(PickupStatus)
LIVE_STATUSES = ALL_STATUSES - {PickupStatus.DELETED}
SOFT_DELETABLE_STATUSES = frozenset(
    {PickupStatus.AVAILABLE, PickupStatus.ACCEPTED, PickupStatus.CANCELLED}
)
LOCKED_FOR_UPDATE_STATUSES = frozenset({PickupStatus.ACCEPTED, PickupStatus.COMPLETED})

TRANSITIONS: Dict[Transition, TransitionRule] = {
    Transition.PUBLISH: TransitionRule(
        frozenset({PickupStatus.PENDING}), frozenset({UserRole.USER, UserRole.ADMIN})
    ),
    Transition.ACCEPT: TransitionRule(
        frozenset({PickupStatus.AVAILABLE}), frozenset({UserRole.DRIVER, UserRole.ADMIN})
    ),
    Transition.CANCEL_ACCEPTANCE: TransitionRule(
        frozenset({PickupStatus.ACCEPTED}), frozenset(UserRole)
    ),
    Transition.UPDATE: TransitionRule(
        LIVE_STATUSES - LOCKED_FOR_UPDATE_STATUSES, frozenset({UserRole.USER, UserRole.ADMIN})
    ),
    Transition.SET_STATUS: TransitionRule(LIVE_STATUSES, frozenset({UserRole.ADMIN})),
    Transition.SOFT_DELETE: TransitionRule(
        SOFT_DELETABLE_STATUSES, frozenset({UserRole.USER, UserRole.ADMIN})
    ),
    Transition.HARD_DELETE: TransitionRule(ALL_STATUSES, frozenset({UserRole.ADMIN})),
}


def can_transition(transition: Transition, status: PickupStatus, role: UserRole) -> bool:
    rule = TRANSITIONS[transition]
    return status in rule.allowed_from and role in rule.roles


def _role_denied(transition: Transition, actor: Actor) -> Optional[Deny]:
    if actor.role not in TRANSITIONS[transition].roles:
        return Deny(DenyReason.FORBIDDEN, "User does not have required role")
    return None


def _is_owner_or_admin(actor: Actor, pickup: Pickup) -> bool:
    return actor.is_admin or actor.id == pickup.user_id


def decide_accept(actor: Actor, pickup: Pickup) -> Decision:
    denied = _role_denied(Transition.ACCEPT, actor)
    if denied:
        return denied
    if pickup.status == PickupStatus.DELETED:
        return NOT_FOUND
    if not can_transition(Transition.ACCEPT, pickup.status, actor.role):
        return Deny(DenyReason.CONFLICT, "Pickup not available")
    return Allow(
        changes={"status": Set(PickupStatus.ACCEPTED), "driver_id": Set(actor.id)},
        expected_status=TRANSITIONS[Transition.ACCEPT].allowed_from,
    )


def decide_cancel_acceptance(actor: Actor, pickup: Pickup) -> Decision:
    if pickup.status == PickupStatus.DELETED:
        return NOT_FOUND
    # Wrong status is reported before ownership, whoever asks
    if not can_transition(Transition.CANCEL_ACCEPTANCE, pickup.status, actor.role):
        return Deny(
            DenyReason.CONFLICT,
            f"Pickup can't be cancelled, current status is: {pickup.status.value}",
        )
    involved = (
        actor.is_admin
        or actor.id == pickup.user_id
        or (pickup.driver_id is not None and actor.id == pickup.driver_id)
    )
    if not involved:
        return NOT_AUTHORIZED
    return Allow(
        changes={"status": Set(PickupStatus.CANCELLED), "driver_id": REMOVE},
        expected_status=TRANSITIONS[Transition.CANCEL_ACCEPTANCE].allowed_from,
    )


def _status_changes(actor: Actor, pickup: Pickup, requested: PickupStatus) -> Decision:
    """Instructions for moving ``pickup`` to ``requested`` via update."""
    if requested == PickupStatus.DELETED:
        return Deny(DenyReason.BAD_REQUEST, "status: use DELETE to remove a pickup")

    if can_transition(Transition.SET_STATUS, pickup.status, actor.role):
        changes: Dict[str, UpdateInstruction] = {"status": Set(requested)}
        if requested in DRIVER_ASSIGNED_STATUSES:
            if pickup.driver_id is None:
                return Deny(DenyReason.CONFLICT, f"Pickup has no assigned driver for status {requested.value}")
        elif pickup.driver_id is not None:
            changes["driver_id"] = REMOVE
        return Allow(changes=changes)

    if requested != PickupStatus.AVAILABLE:
        return Deny(DenyReason.FORBIDDEN, f"Users cannot set pickup status to {requested.value}")
    if not can_transition(Transition.PUBLISH, pickup.status, actor.role):
        return Deny(
            DenyReason.CONFLICT,
            f"Pickup can't be published, current status is: {pickup.status.value}",
        )
    return Allow(changes={"status": Set(PickupStatus.AVAILABLE)})


def decide_update(
    actor: Actor,
    pickup: Pickup,
    fields: Mapping[str, Any],
    requested_status: Optional[PickupStatus] = None,
) -> Decision:
    """
    General update, optionally carrying a status change.

    ``fields`` holds the non-status attributes to set, keyed by model field name.
    """
    denied = _role_denied(Transition.UPDATE, actor)
    if denied:
        return denied
    if pickup.status == PickupStatus.DELETED:
        return NOT_FOUND
    if not _is_owner_or_admin(actor, pickup):
        return NOT_AUTHORIZED
    if not actor.is_admin and not can_transition(Transition.UPDATE, pickup.status, actor.role):
        return Deny(DenyReason.FORBIDDEN, "Cannot modify an accepted or completed pickup")

    changes: Dict[str, UpdateInstruction] = {name: Set(value) for name, value in fields.items()}
    if requested_status is not None and requested_status != pickup.status:
        status_decision = _status_changes(actor, pickup, requested_status)
        if isinstance(status_decision, Deny):
            return status_decision
        changes.update(status_decision.changes)

    return Allow(changes=changes, expected_status=frozenset({pickup.status}))


def decide_delete(actor: Actor, pickup: Pickup, hard: bool = False) -> Decision:
    if hard:
        if not can_transition(Transition.HARD_DELETE, pickup.status, actor.role):
            return Deny(DenyReason.FORBIDDEN, "Only admins can hard delete pickups")
        return Allow()

    denied = _role_denied(Transition.SOFT_DELETE, actor)
    if denied:
        return denied
    if pickup.status == PickupStatus.DELETED:
        return NOT_FOUND
    if not _is_owner_or_admin(actor, pickup):
        return NOT_AUTHORIZED
    if not can_transition(Transition.SOFT_DELETE, pickup.status, actor.role):
        return Deny(DenyReason.FORBIDDEN, f"Cannot delete pickup with status {pickup.status.value}")
    return Allow(expected_status=SOFT_DELETABLE_STATUSES)


def check_invariants(pickup: Pickup) -> Iterable[str]:
    """Yield a description of every lifecycle invariant ``pickup`` violates."""
    assigned = pickup.status in DRIVER_ASSIGNED_STATUSES
    if assigned and pickup.driver_id is None:
        yield f"status {pickup.status.value} requires driverId"
    if not assigned and pickup.driver_id is not None:
        yield f"status {pickup.status.value} must not carry driverId"
    if (pickup.status == PickupStatus.DELETED) != (pickup.deleted_at is not None):
        yield "deletedAt must be present iff status is deleted"
